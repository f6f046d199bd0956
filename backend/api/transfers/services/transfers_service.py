"""Transfers service: ownership-scoped management of transfers."""

import logging
from datetime import datetime
from enum import Enum

import storage
from api.transfers.dto.transfer import OwnedTransfer, TransferRecord
from api.transfers.errors import ServiceUnavailable
from api.transfers.repositories import transfers_repository
from api.transfers.services import credential_service, expiry_service

logger = logging.getLogger(__name__)


class DeleteOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def can_manage(record: TransferRecord, owner_id: str | None, manage_key: str | None) -> bool:
    """Owned transfers need their owner; anonymous ones need the manage key."""
    if record.owner_id is not None:
        return owner_id is not None and owner_id == record.owner_id
    return credential_service.verify_manage_key(manage_key, record.manage_key_hash)


def remove_transfer(record: TransferRecord) -> bool:
    """Delete the blob, then the record.

    If the blob cannot be deleted the record is kept so the removal can be
    retried. Returns False if the record was already gone.
    """
    try:
        storage.blob_store.delete(record.storage_path)
    except OSError as e:
        logger.error("Blob delete failed for %s: %s", record.link_id, e)
        raise ServiceUnavailable("File storage is unavailable") from e
    return transfers_repository.delete(record.link_id)


def delete_owned(
    link_id: str,
    owner_id: str | None = None,
    manage_key: str | None = None,
) -> DeleteOutcome:
    record = transfers_repository.get(link_id)
    if not record:
        return DeleteOutcome.NOT_FOUND
    if not can_manage(record, owner_id, manage_key):
        logger.warning("Refused delete of transfer %s", link_id)
        return DeleteOutcome.FORBIDDEN

    remove_transfer(record)
    logger.info("Deleted transfer %s", link_id)
    return DeleteOutcome.OK


def list_owned(owner_id: str, now: datetime | None = None) -> list[OwnedTransfer]:
    now = now or expiry_service.utcnow()
    return [
        OwnedTransfer(
            link_id=record.link_id,
            file_name=record.file_name,
            file_size_bytes=record.file_size_bytes,
            content_type=record.content_type,
            password_required=record.password_required,
            download_count=record.download_count,
            created_at=record.created_at,
            expire_at=record.expire_at,
            expired=expiry_service.is_expired(record, now),
        )
        for record in transfers_repository.list_by_owner(owner_id)
    ]
