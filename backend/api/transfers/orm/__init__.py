from api.transfers.orm.transfer_model import IssuedLinkModel, TransferModel

__all__ = [
    "IssuedLinkModel",
    "TransferModel",
]
