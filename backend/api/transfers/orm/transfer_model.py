"""Transfer ORM models."""

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, func

from database import Base


class TransferModel(Base):
    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    link_id = Column(String(64), unique=True, nullable=False, index=True)
    owner_id = Column(String(255), nullable=True, index=True)
    file_name = Column(String(255), nullable=False)
    file_size_bytes = Column(BigInteger, nullable=False, default=0)
    content_type = Column(String(255), nullable=False)
    storage_path = Column(String(512), nullable=False)
    credential_hash = Column(String(255), nullable=True)
    manage_key_hash = Column(String(64), nullable=True)
    download_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expire_at = Column(DateTime(timezone=True), nullable=False, index=True)


class IssuedLinkModel(Base):
    """Every link id ever handed out. Rows are never deleted."""

    __tablename__ = "issued_links"

    link_id = Column(String(64), primary_key=True)
    issued_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
