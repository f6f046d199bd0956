"""Application configuration."""

import os
import re
from pathlib import Path

DATA_DIR = Path(os.environ.get("DATA_DIR", str(Path(__file__).parent.parent / "data")))
DATA_DIR.mkdir(parents=True, exist_ok=True)

FILES_DIR = Path(os.environ.get("FILES_DIR", str(DATA_DIR / "files")))
FILES_DIR.mkdir(parents=True, exist_ok=True)

DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{DATA_DIR}/transfers.db")


def parse_size(size_str: str) -> int:
    """Parse size string like '100MB', '1GB' into bytes."""
    if not size_str:
        return 0

    match = re.match(r"^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB|TB)$", size_str.strip().upper())
    if not match:
        raise ValueError(f"Invalid size: {size_str!r}")

    value = float(match.group(1))
    unit = match.group(2)

    multipliers = {
        "B": 1,
        "KB": 1024,
        "MB": 1024**2,
        "GB": 1024**3,
        "TB": 1024**4,
    }

    return int(value * multipliers[unit])


def _int_list(raw: str) -> tuple[int, ...]:
    return tuple(sorted({int(part) for part in raw.split(",") if part.strip()}))


# Uploads
MAX_FILE_SIZE = parse_size(os.environ.get("MAX_FILE_SIZE", "100MB"))

# Expiry choices offered to uploaders, in minutes
ALLOWED_TTL_MINUTES = _int_list(os.environ.get("ALLOWED_TTL_MINUTES", "1,5,15,30,60,360,1440"))
DEFAULT_TTL_MINUTES = int(os.environ.get("DEFAULT_TTL_MINUTES", "15"))
if not ALLOWED_TTL_MINUTES or min(ALLOWED_TTL_MINUTES) <= 0:
    raise ValueError("ALLOWED_TTL_MINUTES must list positive minute values")
if DEFAULT_TTL_MINUTES not in ALLOWED_TTL_MINUTES:
    raise ValueError("DEFAULT_TTL_MINUTES must be one of ALLOWED_TTL_MINUTES")

# Link ids: 16 random bytes = 128 bits, never below 80 bits
LINK_ID_BYTES = int(os.environ.get("LINK_ID_BYTES", "16"))
if LINK_ID_BYTES < 10:
    raise ValueError("LINK_ID_BYTES must be at least 10")
MAX_LINK_ID_ATTEMPTS = int(os.environ.get("MAX_LINK_ID_ATTEMPTS", "5"))

# Werkzeug hash method, e.g. "pbkdf2:sha256:600000" or "scrypt:32768:8:1"
CREDENTIAL_HASH_METHOD = os.environ.get("CREDENTIAL_HASH_METHOD", "pbkdf2:sha256:600000")

# Owner authentication (tokens are minted by the identity provider)
OWNER_TOKEN_SECRET = os.environ.get("OWNER_TOKEN_SECRET", "").strip()
OWNER_AUTH_ENABLED = bool(OWNER_TOKEN_SECRET)

PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "").strip().rstrip("/")

# Background reclamation; 0 disables the in-process schedule
CLEANUP_INTERVAL_SECONDS = int(os.environ.get("CLEANUP_INTERVAL_SECONDS", "300"))
ORPHAN_GRACE_SECONDS = int(os.environ.get("ORPHAN_GRACE_SECONDS", "3600"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
