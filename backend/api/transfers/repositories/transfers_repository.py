"""Transfers repository: data access layer for transfer records."""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError

from database import SessionLocal
from api.transfers.dto.transfer import TransferRecord
from api.transfers.errors import InvalidInput, ServiceUnavailable, TransferConflict
from api.transfers.orm.transfer_model import IssuedLinkModel, TransferModel


@contextmanager
def _get_session():
    session = SessionLocal()
    try:
        yield session
    except OperationalError as e:
        session.rollback()
        raise ServiceUnavailable("Transfer database unavailable") from e
    finally:
        session.close()


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _model_to_record(model: TransferModel) -> TransferRecord:
    return TransferRecord(
        link_id=model.link_id,
        owner_id=model.owner_id,
        file_name=model.file_name,
        file_size_bytes=model.file_size_bytes or 0,
        content_type=model.content_type,
        storage_path=model.storage_path,
        credential_hash=model.credential_hash,
        manage_key_hash=model.manage_key_hash,
        download_count=model.download_count or 0,
        created_at=_as_utc(model.created_at),
        expire_at=_as_utc(model.expire_at),
    )


def reserve(link_id: str) -> None:
    """Record link_id as issued. Raises TransferConflict if it ever was before."""
    with _get_session() as session:
        session.add(IssuedLinkModel(link_id=link_id, issued_at=datetime.now(timezone.utc)))
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise TransferConflict(link_id) from e


def insert(record: TransferRecord) -> TransferRecord:
    """Create the record if no live record holds its link id."""
    if _as_utc(record.expire_at) <= _as_utc(record.created_at):
        raise InvalidInput("expire_at must be later than created_at")
    with _get_session() as session:
        model = TransferModel(
            link_id=record.link_id,
            owner_id=record.owner_id,
            file_name=record.file_name,
            file_size_bytes=record.file_size_bytes,
            content_type=record.content_type,
            storage_path=record.storage_path,
            credential_hash=record.credential_hash,
            manage_key_hash=record.manage_key_hash,
            download_count=0,
            created_at=_as_utc(record.created_at),
            expire_at=_as_utc(record.expire_at),
        )
        session.add(model)
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise TransferConflict(record.link_id) from e
        session.refresh(model)
        return _model_to_record(model)


def get(link_id: str) -> TransferRecord | None:
    with _get_session() as session:
        model = session.query(TransferModel).filter_by(link_id=link_id).first()
        return _model_to_record(model) if model else None


def link_id_exists(link_id: str) -> bool:
    with _get_session() as session:
        return session.query(TransferModel.id).filter_by(link_id=link_id).first() is not None


def increment_download_count(link_id: str) -> int | None:
    """Atomically add one download and return the new count, or None if gone.

    The UPDATE takes the row (or database) write lock, so the read that
    follows in the same transaction sees exactly this increment.
    """
    with _get_session() as session:
        result = session.execute(
            update(TransferModel)
            .where(TransferModel.link_id == link_id)
            .values(download_count=TransferModel.download_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            session.rollback()
            return None
        count = session.execute(
            select(TransferModel.download_count).where(TransferModel.link_id == link_id)
        ).scalar_one()
        session.commit()
        return count


def delete(link_id: str) -> bool:
    """Remove the record. The link id stays in issued_links."""
    with _get_session() as session:
        model = session.query(TransferModel).filter_by(link_id=link_id).first()
        if not model:
            return False
        session.delete(model)
        session.commit()
        return True


def list_by_owner(owner_id: str) -> Iterator[TransferRecord]:
    with _get_session() as session:
        query = (
            session.query(TransferModel)
            .filter(TransferModel.owner_id == owner_id)
            .order_by(TransferModel.created_at.desc())
            .yield_per(100)
        )
        for model in query:
            yield _model_to_record(model)


def list_expired(now: datetime) -> list[TransferRecord]:
    with _get_session() as session:
        models = (
            session.query(TransferModel)
            .filter(TransferModel.expire_at <= _as_utc(now))
            .order_by(TransferModel.expire_at)
            .all()
        )
        return [_model_to_record(m) for m in models]
