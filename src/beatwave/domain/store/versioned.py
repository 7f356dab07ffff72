"""
Optimistic read-modify-write over a versioned blob store.

The mutation is applied to a fresh copy of the document on every attempt, so
it must only depend on its argument. A conditional write that loses the race
triggers a re-read; after ``max_attempts`` conflicts the update is abandoned.
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable, Optional

from loguru import logger

from .base import ABSENT, BlobStore
from .exceptions import RetriesExhaustedError, StoreError, VersionConflictError

DEFAULT_MAX_ATTEMPTS = 3


@dataclass
class UpdateResult:
    """Outcome of an optimistic update."""

    data: Any
    version: Optional[str]
    attempts: int
    written: bool


def update_json(
    store: BlobStore,
    path: str,
    mutate: Callable[[Any], Any],
    default: Callable[[], Any] = dict,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    message: Optional[str] = None,
) -> UpdateResult:
    """Apply ``mutate`` to the JSON document at ``path`` with conflict retries.

    Args:
        store: Blob store holding the document
        path: Document path
        mutate: Receives a private copy of the current document and returns
            the new document, or None to leave the stored one untouched
        default: Factory for the document when it does not exist yet
        max_attempts: Conditional writes to try before giving up
        message: Commit message for the write

    Returns:
        UpdateResult with the document as stored after the call

    Raises:
        RetriesExhaustedError: If every attempt hit a version conflict
        StoreError: On any non-conflict store failure
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        blob = store.read(path)
        if blob is None:
            current, version = default(), ABSENT
        else:
            try:
                current, version = blob.json(), blob.version
            except StoreError:
                logger.warning(f"Malformed document at {path}, resetting to default")
                current, version = default(), blob.version

        updated = mutate(copy.deepcopy(current))
        if updated is None:
            return UpdateResult(
                data=current, version=version or None, attempts=attempt, written=False
            )

        try:
            new_version = store.write_json(path, updated, version, message)
        except VersionConflictError:
            logger.debug(f"Version conflict on {path} (attempt {attempt}/{max_attempts})")
            continue

        return UpdateResult(
            data=updated, version=new_version, attempts=attempt, written=True
        )

    logger.warning(f"Giving up on {path} after {max_attempts} conflicting writes")
    raise RetriesExhaustedError(path, max_attempts)
