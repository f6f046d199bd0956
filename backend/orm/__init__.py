"""Central ORM module: imports all models for Alembic metadata discovery."""

from api.transfers.orm import IssuedLinkModel, TransferModel

__all__ = [
    "IssuedLinkModel",
    "TransferModel",
]
