"""Upload Data Transfer Objects."""

from datetime import datetime

from pydantic import BaseModel


class CreatedTransfer(BaseModel):
    link_id: str
    file_name: str
    file_size_bytes: int
    expire_at: datetime
    password_required: bool
    manage_key: str | None = None


class UploadResponse(BaseModel):
    link_id: str
    share_url: str
    file_name: str
    file_size_bytes: int
    expire_at: datetime
    password_required: bool
    # Returned once to anonymous uploaders; needed to delete the transfer
    manage_key: str | None = None
