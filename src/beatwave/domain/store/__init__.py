"""Versioned document store - GitHub Contents API or in-memory."""

from loguru import logger

from beatwave.core.config import StoreConfig

from .base import ABSENT, BlobStore, StoredBlob
from .exceptions import (
    BlobNotFoundError,
    RetriesExhaustedError,
    StoreError,
    VersionConflictError,
)
from .github import GitHubBlobStore
from .memory import MemoryBlobStore
from .versioned import DEFAULT_MAX_ATTEMPTS, UpdateResult, update_json


def create_store(config: StoreConfig) -> BlobStore:
    """Build the store selected by ``config.backend``."""
    if config.backend == "memory":
        logger.info("Using in-memory document store")
        return MemoryBlobStore()
    if not config.token:
        logger.warning("No GitHub token configured; writes will be rejected")
    logger.info(f"Using GitHub document store {config.owner}/{config.repo}@{config.branch}")
    return GitHubBlobStore.from_config(config)


__all__ = [
    "ABSENT",
    "BlobStore",
    "StoredBlob",
    "BlobNotFoundError",
    "RetriesExhaustedError",
    "StoreError",
    "VersionConflictError",
    "GitHubBlobStore",
    "MemoryBlobStore",
    "DEFAULT_MAX_ATTEMPTS",
    "UpdateResult",
    "update_json",
    "create_store",
]
