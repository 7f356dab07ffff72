"""
Versioned blob store interface.

Every document carries an opaque version token returned on read. Writes may
pass the token back to make them conditional:

- ``expected_version=None``: blind write, last writer wins
- ``expected_version=ABSENT``: create only, conflicts if the document exists
- any other value: update only if the stored version still matches
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from .exceptions import StoreError

# Version token meaning "the document must not exist yet"
ABSENT = ""


@dataclass(frozen=True)
class StoredBlob:
    """Document content together with its version token."""

    path: str
    content: str
    version: str

    def json(self) -> Any:
        """Decode the content as JSON.

        Raises:
            StoreError: If the stored content is not valid JSON
        """
        try:
            return json.loads(self.content)
        except json.JSONDecodeError as e:
            raise StoreError(f"Malformed JSON in {self.path}: {e}") from e


class BlobStore(ABC):
    """Named, versioned documents."""

    @abstractmethod
    def read(self, path: str) -> Optional[StoredBlob]:
        """Return the document at ``path`` or None if it does not exist."""

    @abstractmethod
    def write(
        self,
        path: str,
        content: str,
        expected_version: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        """Store ``content`` at ``path`` and return the new version token.

        Raises:
            VersionConflictError: If ``expected_version`` is stale
            StoreError: On any other failure
        """

    @abstractmethod
    def list(self, prefix: str) -> list[str]:
        """Paths of the documents directly inside folder ``prefix``."""

    def read_json(self, path: str) -> tuple[Any, Optional[str]]:
        """Read and decode a JSON document. Returns ``(None, None)`` if missing."""
        blob = self.read(path)
        if blob is None:
            return None, None
        return blob.json(), blob.version

    def write_json(
        self,
        path: str,
        data: Any,
        expected_version: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        content = json.dumps(data, indent=2, ensure_ascii=False)
        return self.write(path, content, expected_version, message)
