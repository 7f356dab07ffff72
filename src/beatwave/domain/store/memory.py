"""In-process blob store with the same conflict semantics as the remote one."""

import hashlib
import threading
from typing import Optional

from loguru import logger

from .base import ABSENT, BlobStore, StoredBlob
from .exceptions import VersionConflictError


class MemoryBlobStore(BlobStore):
    """Dict-backed store used for tests and demo mode.

    Versions are content hashes salted with a write counter, so rewriting
    identical content still produces a new token.
    """

    def __init__(self, documents: Optional[dict[str, str]] = None):
        self._blobs: dict[str, StoredBlob] = {}
        self._writes = 0
        self._lock = threading.Lock()
        for path, content in (documents or {}).items():
            self.write(path, content)

    def _next_version(self, content: str) -> str:
        self._writes += 1
        digest = hashlib.sha1(f"{self._writes}:{content}".encode("utf-8"))
        return digest.hexdigest()

    def read(self, path: str) -> Optional[StoredBlob]:
        with self._lock:
            return self._blobs.get(path)

    def write(
        self,
        path: str,
        content: str,
        expected_version: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        with self._lock:
            current = self._blobs.get(path)
            if expected_version is not None:
                if expected_version == ABSENT:
                    if current is not None:
                        raise VersionConflictError(path, expected_version)
                elif current is None or current.version != expected_version:
                    raise VersionConflictError(path, expected_version)

            version = self._next_version(content)
            self._blobs[path] = StoredBlob(path=path, content=content, version=version)
        logger.debug(f"memory store: wrote {path} ({message or 'no message'})")
        return version

    def list(self, prefix: str) -> list[str]:
        folder = prefix.rstrip("/") + "/"
        with self._lock:
            return sorted(
                path
                for path in self._blobs
                if path.startswith(folder) and "/" not in path[len(folder):]
            )

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)
