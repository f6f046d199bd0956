"""Expiry service: decides whether a transfer is still valid."""

from datetime import datetime, timedelta, timezone

from api.transfers.dto.transfer import TransferRecord


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def expiry_for(created_at: datetime, ttl_minutes: int) -> datetime:
    return created_at + timedelta(minutes=ttl_minutes)


def is_expired(record: TransferRecord, now: datetime) -> bool:
    expire_at = record.expire_at
    if expire_at.tzinfo is None:
        expire_at = expire_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now >= expire_at
