"""Owner authentication: HMAC-signed owner tokens.

The identity provider logs users in and hands them a token of the form
``<owner_id>.<signature>``, minted with ``create_owner_token`` and the shared
OWNER_TOKEN_SECRET. Without the secret, every caller is anonymous.
"""

import hashlib
import hmac
import secrets

from fastapi import HTTPException, Request

from config import OWNER_AUTH_ENABLED, OWNER_TOKEN_SECRET

OWNER_TOKEN_HEADER = "X-Owner-Token"
MANAGE_KEY_HEADER = "X-Manage-Key"


def _sign(owner_id: str) -> str:
    key = OWNER_TOKEN_SECRET.encode()
    return hmac.new(key, owner_id.encode(), hashlib.sha256).hexdigest()


def create_owner_token(owner_id: str) -> str:
    if not OWNER_AUTH_ENABLED:
        raise RuntimeError("OWNER_TOKEN_SECRET is not configured")
    if not owner_id:
        raise ValueError("owner_id cannot be empty")
    return f"{owner_id}.{_sign(owner_id)}"


def verify_owner_token(token: str) -> str | None:
    """Return the owner id carried by a valid token, else None."""
    if not OWNER_AUTH_ENABLED or not token:
        return None
    owner_id, sep, signature = token.rpartition(".")
    if not sep or not owner_id:
        return None
    if not secrets.compare_digest(signature.encode(), _sign(owner_id).encode()):
        return None
    return owner_id


def get_owner_id(request: Request) -> str | None:
    """Owner id from the request, None when anonymous.

    A token that is present but invalid is rejected rather than silently
    treated as anonymous.
    """
    token = request.headers.get(OWNER_TOKEN_HEADER, "")
    if not token:
        return None
    owner_id = verify_owner_token(token)
    if owner_id is None:
        raise HTTPException(status_code=401, detail="Invalid owner token")
    return owner_id


def get_manage_key(request: Request) -> str | None:
    return request.headers.get(MANAGE_KEY_HEADER) or None
