"""Upload service: validates uploads, stores the blob and issues the link."""

import logging
import mimetypes
import secrets
from datetime import datetime
from pathlib import PurePosixPath
from typing import BinaryIO

import storage
from config import ALLOWED_TTL_MINUTES, DEFAULT_TTL_MINUTES, MAX_FILE_SIZE, MAX_LINK_ID_ATTEMPTS
from api.transfers.dto.transfer import TransferRecord
from api.transfers.errors import (
    InvalidInput,
    PayloadTooLarge,
    ServiceUnavailable,
    TransferConflict,
)
from api.transfers.repositories import transfers_repository
from api.transfers.services import credential_service, expiry_service, link_service
from api.upload.dto.upload import CreatedTransfer

logger = logging.getLogger(__name__)

MAX_FILE_NAME_LENGTH = 255
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class _LimitedReader:
    """Wraps an upload stream and fails once more than limit bytes are read."""

    def __init__(self, stream: BinaryIO, limit: int):
        self._stream = stream
        self._limit = limit
        self.total = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        self.total += len(chunk)
        if self._limit and self.total > self._limit:
            raise PayloadTooLarge(f"File exceeds max size of {self._limit} bytes")
        return chunk


def clean_file_name(file_name: str | None) -> str:
    """Strip directories and control characters from a client file name."""
    name = (file_name or "").replace("\\", "/")
    name = PurePosixPath(name).name.strip()
    name = "".join(ch for ch in name if ch.isprintable())
    if not name or name in (".", ".."):
        raise InvalidInput("A file name is required")
    return name[:MAX_FILE_NAME_LENGTH]


def resolve_ttl(ttl_minutes: int | None) -> int:
    if ttl_minutes is None:
        return DEFAULT_TTL_MINUTES
    if ttl_minutes not in ALLOWED_TTL_MINUTES:
        allowed = ", ".join(str(m) for m in ALLOWED_TTL_MINUTES)
        raise InvalidInput(f"ttl_minutes must be one of: {allowed}")
    return ttl_minutes


def guess_content_type(file_name: str, content_type: str | None) -> str:
    if content_type and content_type.strip():
        return content_type.strip()
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or DEFAULT_CONTENT_TYPE


def _reserve_link_id() -> str:
    for attempt in range(1, MAX_LINK_ID_ATTEMPTS + 1):
        link_id = link_service.new_link_id()
        try:
            transfers_repository.reserve(link_id)
            return link_id
        except TransferConflict:
            logger.warning(
                "Link id collision (attempt %d of %d)", attempt, MAX_LINK_ID_ATTEMPTS
            )
    logger.error("No unique link id after %d attempts", MAX_LINK_ID_ATTEMPTS)
    raise ServiceUnavailable("Could not allocate a link id, try again later")


def create_transfer(
    content: BinaryIO | None,
    file_name: str | None,
    content_type: str | None = None,
    password: str | None = None,
    ttl_minutes: int | None = None,
    owner_id: str | None = None,
    now: datetime | None = None,
) -> CreatedTransfer:
    """Store the upload and create its transfer record.

    An empty password means the transfer is unprotected. Anonymous uploads
    (no owner_id) get a one-time manage key that authorizes deletion.
    """
    if content is None:
        raise InvalidInput("A file is required")
    name = clean_file_name(file_name)
    ttl = resolve_ttl(ttl_minutes)
    media_type = guess_content_type(name, content_type)

    credential_hash = credential_service.hash_password(password) if password else None

    manage_key = None
    manage_key_hash = None
    if owner_id is None:
        manage_key = secrets.token_urlsafe(24)
        manage_key_hash = credential_service.hash_manage_key(manage_key)

    link_id = _reserve_link_id()
    storage_path = link_service.storage_path_for(link_id)

    try:
        size = storage.blob_store.put(storage_path, _LimitedReader(content, MAX_FILE_SIZE))
    except PayloadTooLarge:
        logger.info("Rejected upload %s: exceeds %d bytes", link_id, MAX_FILE_SIZE)
        storage.blob_store.delete(storage_path)
        raise
    except OSError as e:
        logger.error("Blob store write failed for %s: %s", link_id, e)
        raise ServiceUnavailable("File storage is unavailable") from e

    created_at = now or expiry_service.utcnow()
    record = TransferRecord(
        link_id=link_id,
        owner_id=owner_id,
        file_name=name,
        file_size_bytes=size,
        content_type=media_type,
        storage_path=storage_path,
        credential_hash=credential_hash,
        manage_key_hash=manage_key_hash,
        created_at=created_at,
        expire_at=expiry_service.expiry_for(created_at, ttl),
    )

    try:
        transfers_repository.insert(record)
    except (InvalidInput, ServiceUnavailable):
        storage.blob_store.delete(storage_path)
        raise
    except TransferConflict as e:
        # Reserved ids cannot collide; something else wrote this record
        storage.blob_store.delete(storage_path)
        raise ServiceUnavailable("Could not record transfer") from e

    logger.info(
        "Created transfer %s (%d bytes, ttl %dm, protected=%s, owned=%s)",
        link_id, size, ttl, credential_hash is not None, owner_id is not None,
    )

    return CreatedTransfer(
        link_id=link_id,
        file_name=name,
        file_size_bytes=size,
        expire_at=record.expire_at,
        password_required=credential_hash is not None,
        manage_key=manage_key,
    )
