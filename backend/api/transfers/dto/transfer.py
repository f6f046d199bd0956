"""Transfer Data Transfer Objects."""

from datetime import datetime

from pydantic import BaseModel


class TransferRecord(BaseModel):
    """Full stored record. Internal only: carries the storage path and hashes."""

    link_id: str
    owner_id: str | None = None
    file_name: str
    file_size_bytes: int
    content_type: str
    storage_path: str
    credential_hash: str | None = None
    manage_key_hash: str | None = None
    download_count: int = 0
    created_at: datetime
    expire_at: datetime

    @property
    def password_required(self) -> bool:
        return self.credential_hash is not None


class TransferMetadata(BaseModel):
    """Safe subset shown to anyone holding the link."""

    link_id: str
    file_name: str
    file_size_bytes: int
    content_type: str
    expire_at: datetime
    password_required: bool
    download_count: int


class OwnedTransfer(BaseModel):
    link_id: str
    file_name: str
    file_size_bytes: int
    content_type: str
    password_required: bool
    download_count: int
    created_at: datetime
    expire_at: datetime
    expired: bool


def to_metadata(record: TransferRecord) -> TransferMetadata:
    return TransferMetadata(
        link_id=record.link_id,
        file_name=record.file_name,
        file_size_bytes=record.file_size_bytes,
        content_type=record.content_type,
        expire_at=record.expire_at,
        password_required=record.password_required,
        download_count=record.download_count,
    )
