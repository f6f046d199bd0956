"""
Shared pytest fixtures for the transfer service test suite.

Configuration is read from the environment at import time, so the test
environment is set up here before any application module is imported.
"""

import io
import os
import shutil
import tempfile

_DATA_DIR = tempfile.mkdtemp(prefix="transfer-tests-")
os.environ["DATA_DIR"] = _DATA_DIR
os.environ["CREDENTIAL_HASH_METHOD"] = "pbkdf2:sha256:1000"
os.environ["OWNER_TOKEN_SECRET"] = "test-owner-secret"
os.environ["CLEANUP_INTERVAL_SECONDS"] = "0"
os.environ["MAX_FILE_SIZE"] = "1MB"
os.environ["LOG_LEVEL"] = "WARNING"
for _name in ("DATABASE_URL", "FILES_DIR", "PUBLIC_BASE_URL", "ALLOWED_TTL_MINUTES",
              "DEFAULT_TTL_MINUTES", "LINK_ID_BYTES", "MAX_LINK_ID_ATTEMPTS"):
    os.environ.pop(_name, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import main  # noqa: E402  runs migrations against the test database
import storage  # noqa: E402
from config import FILES_DIR  # noqa: E402
from database import SessionLocal  # noqa: E402
from api.transfers.orm import IssuedLinkModel, TransferModel  # noqa: E402
from api.upload.services import upload_service  # noqa: E402


class SpyBlobStore(storage.LocalBlobStore):
    """Local store that records which paths were opened."""

    def __init__(self, base_path):
        super().__init__(base_path)
        self.opened = []

    def get(self, path):
        self.opened.append(path)
        return super().get(path)


class FailingBlobStore(storage.LocalBlobStore):
    """Local store whose selected operations raise OSError."""

    def __init__(self, base_path, fail_on=()):
        super().__init__(base_path)
        self.fail_on = set(fail_on)

    def put(self, path, content):
        if "put" in self.fail_on:
            raise OSError("disk unavailable")
        return super().put(path, content)

    def get(self, path):
        if "get" in self.fail_on:
            raise OSError("disk unavailable")
        return super().get(path)

    def delete(self, path):
        if "delete" in self.fail_on:
            raise OSError("disk unavailable")
        return super().delete(path)


@pytest.fixture(autouse=True)
def clean_state():
    """Empty the database and blob directory after every test."""
    yield
    with SessionLocal() as session:
        session.query(TransferModel).delete()
        session.query(IssuedLinkModel).delete()
        session.commit()
    for entry in FILES_DIR.iterdir():
        if entry.is_dir():
            shutil.rmtree(entry, ignore_errors=True)
        else:
            entry.unlink(missing_ok=True)


@pytest.fixture
def spy_store(monkeypatch):
    spy = SpyBlobStore(FILES_DIR)
    monkeypatch.setattr(storage, "blob_store", spy)
    return spy


@pytest.fixture
def failing_store(monkeypatch):
    def _install(*fail_on):
        store = FailingBlobStore(FILES_DIR, fail_on)
        monkeypatch.setattr(storage, "blob_store", store)
        return store

    return _install


@pytest.fixture
def make_transfer():
    """Create a transfer through the upload service."""

    def _make(
        data=b"hello world",
        file_name="hello.txt",
        password=None,
        ttl_minutes=15,
        owner_id=None,
        now=None,
        content_type=None,
    ):
        return upload_service.create_transfer(
            io.BytesIO(data),
            file_name,
            content_type=content_type,
            password=password,
            ttl_minutes=ttl_minutes,
            owner_id=owner_id,
            now=now,
        )

    return _make


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client
