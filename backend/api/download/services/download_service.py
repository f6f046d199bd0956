"""Download service: resolves a link to its file.

Every outcome other than a storage failure comes back as a typed result so
the controller can render each state distinctly.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import BinaryIO

import storage
from api.transfers.dto.transfer import TransferMetadata, to_metadata
from api.transfers.errors import ServiceUnavailable
from api.transfers.repositories import transfers_repository
from api.transfers.services import credential_service, expiry_service

logger = logging.getLogger(__name__)


class ResolveOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    PASSWORD_REQUIRED = "password_required"
    INVALID_CREDENTIAL = "invalid_credential"


@dataclass
class ResolveResult:
    outcome: ResolveOutcome
    transfer: TransferMetadata | None = None
    # Open blob stream on success; the caller must close it
    stream: BinaryIO | None = None


@dataclass
class MetadataResult:
    outcome: ResolveOutcome
    transfer: TransferMetadata | None = None


def get_metadata(link_id: str, now: datetime | None = None) -> MetadataResult:
    """Safe description of a live transfer. Never touches the blob."""
    record = transfers_repository.get(link_id)
    if not record:
        return MetadataResult(ResolveOutcome.NOT_FOUND)
    if expiry_service.is_expired(record, now or expiry_service.utcnow()):
        return MetadataResult(ResolveOutcome.EXPIRED)
    return MetadataResult(ResolveOutcome.OK, to_metadata(record))


def resolve_transfer(
    link_id: str,
    password: str | None = None,
    now: datetime | None = None,
) -> ResolveResult:
    """Check expiry, then the password, then open the blob and count the download.

    The count is only incremented once the blob is open, so failed or refused
    downloads never inflate it.
    """
    record = transfers_repository.get(link_id)
    if not record:
        return ResolveResult(ResolveOutcome.NOT_FOUND)

    if expiry_service.is_expired(record, now or expiry_service.utcnow()):
        return ResolveResult(ResolveOutcome.EXPIRED)

    if record.password_required:
        if not password:
            return ResolveResult(ResolveOutcome.PASSWORD_REQUIRED)
        if not credential_service.verify_password(password, record.credential_hash):
            logger.info("Incorrect password for transfer %s", link_id)
            return ResolveResult(ResolveOutcome.INVALID_CREDENTIAL)

    try:
        stream = storage.blob_store.get(record.storage_path)
    except OSError as e:
        logger.error("Blob store read failed for %s: %s", link_id, e)
        raise ServiceUnavailable("File storage is unavailable") from e
    if stream is None:
        logger.warning("Transfer %s has no blob", link_id)
        return ResolveResult(ResolveOutcome.NOT_FOUND)

    try:
        count = transfers_repository.increment_download_count(link_id)
    except BaseException:
        stream.close()
        raise

    if count is None:
        # Reclaimed after the blob was opened; the open stream still serves it
        logger.info("Transfer %s was removed during download", link_id)
        count = record.download_count

    logger.info("Transfer %s downloaded (count %d)", link_id, count)
    transfer = to_metadata(record).model_copy(update={"download_count": count})
    return ResolveResult(ResolveOutcome.OK, transfer, stream)
