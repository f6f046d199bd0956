"""Link service: generates link ids."""

import secrets

from config import LINK_ID_BYTES


def new_link_id() -> str:
    """Random URL-safe id, independent of file content and uploader."""
    return secrets.token_urlsafe(LINK_ID_BYTES)


def storage_path_for(link_id: str) -> str:
    """Blob location for a link. Never built from the uploaded file name."""
    return f"{link_id}/blob"
