"""Credential service: salted, deliberately slow password hashes for links.

Plaintext passwords only pass through hash_password and verify_password.
They are never stored or logged.
"""

import hashlib
import hmac

from werkzeug.security import check_password_hash, generate_password_hash

from config import CREDENTIAL_HASH_METHOD


def hash_password(plaintext: str) -> str:
    """Hash with a fresh random salt; the salt and method travel in the result."""
    return generate_password_hash(plaintext, method=CREDENTIAL_HASH_METHOD)


def verify_password(plaintext: str, hashed: str | None) -> bool:
    """Return True only if plaintext matches hashed.

    Malformed, empty or unsupported hashes return False, so a corrupt record
    looks exactly like a wrong password to the caller.
    """
    if not hashed or plaintext is None:
        return False
    try:
        return check_password_hash(hashed, plaintext)
    except (ValueError, TypeError, OverflowError):
        return False


def hash_manage_key(manage_key: str) -> str:
    """Manage keys are high-entropy random tokens, so a plain digest suffices."""
    return hashlib.sha256(manage_key.encode()).hexdigest()


def verify_manage_key(manage_key: str | None, hashed: str | None) -> bool:
    if not manage_key or not hashed:
        return False
    return hmac.compare_digest(hash_manage_key(manage_key), hashed)
