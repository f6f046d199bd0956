"""Blob storage for uploaded file contents.

Blobs are addressed by an internal relative path such as ``<link_id>/blob``.
The transfer services only rely on the ``BlobStore`` interface; the local
filesystem implementation below is the default backend.
"""

import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterator

from config import FILES_DIR

CHUNK_SIZE = 1024 * 1024  # 1MB


class BlobStore(ABC):
    """Durable put/get/delete over internal paths."""

    @abstractmethod
    def put(self, path: str, content: BinaryIO) -> int:
        """Store the stream at path and return the number of bytes written.

        Exceptions raised while reading ``content`` propagate and leave
        nothing behind at ``path``.
        """

    @abstractmethod
    def get(self, path: str) -> BinaryIO | None:
        """Open the blob for reading, or None if it does not exist.

        The caller closes the returned stream.
        """

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the blob. Deleting a missing blob is not an error."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def iter_prefixes(self) -> Iterator[tuple[str, datetime]]:
        """Yield (top-level prefix, last modified) for everything stored."""

    @abstractmethod
    def delete_prefix(self, prefix: str) -> None:
        """Remove everything stored under prefix."""


class LocalBlobStore(BlobStore):
    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        if not path or not path.strip():
            raise ValueError("Blob path cannot be empty")
        full_path = (self.base_path / path).resolve()
        if self.base_path.resolve() not in full_path.parents:
            raise ValueError(f"Blob path escapes storage root: {path!r}")
        return full_path

    def put(self, path: str, content: BinaryIO) -> int:
        full_path = self._resolve(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)

        # Write next to the target and rename, so readers never see a partial blob
        tmp = tempfile.NamedTemporaryFile(delete=False, dir=str(full_path.parent))
        size = 0
        try:
            with tmp:
                while chunk := content.read(CHUNK_SIZE):
                    size += len(chunk)
                    tmp.write(chunk)
            os.replace(tmp.name, full_path)
        except BaseException:
            Path(tmp.name).unlink(missing_ok=True)
            raise
        return size

    def get(self, path: str) -> BinaryIO | None:
        full_path = self._resolve(path)
        try:
            return open(full_path, "rb")
        except FileNotFoundError:
            return None

    def delete(self, path: str) -> None:
        full_path = self._resolve(path)
        full_path.unlink(missing_ok=True)
        # Remove the per-link directory once it is empty
        parent = full_path.parent
        if parent != self.base_path.resolve() and parent.exists() and not any(parent.iterdir()):
            shutil.rmtree(parent, ignore_errors=True)

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except ValueError:
            return False

    def iter_prefixes(self) -> Iterator[tuple[str, datetime]]:
        if not self.base_path.exists():
            return
        for entry in self.base_path.iterdir():
            if entry.is_dir():
                modified = datetime.fromtimestamp(entry.stat().st_mtime, tz=timezone.utc)
                yield entry.name, modified

    def delete_prefix(self, prefix: str) -> None:
        shutil.rmtree(self._resolve(prefix), ignore_errors=True)


blob_store: BlobStore = LocalBlobStore(FILES_DIR)
