"""
Artifact store for rendered reports.

The pipeline talks to `ArtifactStore`; `LocalArtifactStore` is the filesystem
implementation used in every environment today. Paths are relative and
"/"-separated (e.g. "reports/weekly_report_2024-01-08_recruiter_7.csv") so an
object-storage backend can implement the same contract later.

Writes are atomic with respect to readers: content goes to a temporary file
in the destination directory and is then swapped in with os.replace, so a
concurrent reader sees either the old or the new complete file.
"""

import asyncio
import contextlib
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from app.infrastructure.observability.logging import get_logger
from app.services.reports.errors import ArtifactNotFoundError, StoreError

logger = get_logger(__name__)

DOWNLOAD_CHUNK_SIZE = 64 * 1024


@dataclass
class ArtifactDownload:
    """An opened artifact ready to be streamed to a client."""

    path: str
    filename: str
    size_bytes: int
    handle: BinaryIO

    def iter_chunks(self, chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> Iterator[bytes]:
        try:
            while chunk := self.handle.read(chunk_size):
                yield chunk
        finally:
            self.handle.close()

    def read_all(self) -> bytes:
        return b"".join(self.iter_chunks())

    def close(self) -> None:
        self.handle.close()


class ArtifactStore(ABC):
    """Blob store contract used by the report job and the report locator."""

    @abstractmethod
    async def put(self, path: str, data: bytes) -> None: ...

    @abstractmethod
    async def exists(self, path: str) -> bool: ...

    @abstractmethod
    async def list_by_prefix(self, prefix: str) -> list[str]: ...

    @abstractmethod
    async def last_modified(self, path: str) -> datetime: ...

    @abstractmethod
    async def download(self, path: str, filename: str | None = None) -> ArtifactDownload: ...

    async def health_check(self) -> dict:
        return {"healthy": True, "service": type(self).__name__}


def _raise_walk_error(error: OSError) -> None:
    raise error


def normalize_path(path: str) -> str:
    """Validate a store-relative path and return it in canonical form."""
    pure = PurePosixPath(path)
    if not path or pure.is_absolute() or ".." in pure.parts or "\\" in path:
        raise StoreError(f"Invalid artifact path: {path!r}", operation="validate", recoverable=False)
    normalized = pure.as_posix()
    if normalized in ("", "."):
        raise StoreError(f"Invalid artifact path: {path!r}", operation="validate", recoverable=False)
    return normalized


class LocalArtifactStore(ArtifactStore):
    """Filesystem-backed artifact store rooted at a single directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        return self.root.joinpath(*PurePosixPath(normalize_path(path)).parts)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def put(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._atomic_write, target, data)
        except OSError as e:
            logger.error("Artifact write failed", path=path, error=str(e))
            raise StoreError(f"Failed to write {path}: {e}", operation="put") from e

        logger.debug("Artifact written", path=path, size_bytes=len(data))

    @staticmethod
    def _atomic_write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as tmp_file:
                tmp_file.write(data)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def exists(self, path: str) -> bool:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.is_file)
        except OSError as e:
            raise StoreError(f"Failed to stat {path}: {e}", operation="exists") from e

    async def list_by_prefix(self, prefix: str) -> list[str]:
        """
        Every stored file whose relative path starts with `prefix`, sorted.

        Temporary files from in-flight writes are never listed.
        """
        try:
            return await asyncio.to_thread(self._list_sync, prefix)
        except OSError as e:
            logger.error("Artifact listing failed", prefix=prefix, error=str(e))
            raise StoreError(f"Failed to list {prefix!r}: {e}", operation="list_by_prefix") from e

    def _list_sync(self, prefix: str) -> list[str]:
        # Walk only the directory that can contain matches.
        base_dir = prefix.rsplit("/", 1)[0] if "/" in prefix else ""
        start = self._resolve(base_dir) if base_dir else self.root
        if not start.is_dir():
            return []

        paths = []
        for dirpath, _dirnames, filenames in os.walk(start, onerror=_raise_walk_error):
            for filename in filenames:
                if filename.startswith("."):
                    continue
                relative = Path(dirpath, filename).relative_to(self.root).as_posix()
                if relative.startswith(prefix):
                    paths.append(relative)
        return sorted(paths)

    async def last_modified(self, path: str) -> datetime:
        target = self._resolve(path)
        try:
            stat = await asyncio.to_thread(target.stat)
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(path, operation="last_modified") from e
        except OSError as e:
            raise StoreError(f"Failed to stat {path}: {e}", operation="last_modified") from e
        return datetime.fromtimestamp(stat.st_mtime, tz=UTC)

    async def download(self, path: str, filename: str | None = None) -> ArtifactDownload:
        target = self._resolve(path)
        try:
            handle = await asyncio.to_thread(open, target, "rb")
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(path, operation="download") from e
        except OSError as e:
            raise StoreError(f"Failed to open {path}: {e}", operation="download") from e

        size = os.fstat(handle.fileno()).st_size
        return ArtifactDownload(
            path=normalize_path(path),
            filename=filename or target.name,
            size_bytes=size,
            handle=handle,
        )

    async def health_check(self) -> dict:
        writable = await asyncio.to_thread(self._root_writable)
        return {
            "healthy": writable,
            "service": "local_artifact_store",
            "root": str(self.root),
        }

    def _root_writable(self) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self.root, os.W_OK)
