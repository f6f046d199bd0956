"""Database configuration and session management."""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from config import DATABASE_URL

_connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # Concurrent writers wait on the lock instead of failing straight away
    _connect_args = {"check_same_thread": False, "timeout": 30}

engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    echo=False,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def init_db():
    import orm  # noqa: F401  registers the models on Base.metadata

    Base.metadata.create_all(bind=engine)
