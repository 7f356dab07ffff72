from typing import Optional

from fastapi import HTTPException
from loguru import logger

from beatwave.core.config import Config, load_config
from beatwave.domain.store import (
    BlobNotFoundError,
    BlobStore,
    RetriesExhaustedError,
    VersionConflictError,
    create_store,
)

_store: Optional[BlobStore] = None


def get_config() -> Config:
    """FastAPI dependency for configuration."""
    return load_config()


def get_store() -> BlobStore:
    """FastAPI dependency for the document store (one per process)."""
    global _store
    if _store is None:
        _store = create_store(load_config().store)
    return _store


def http_error(e: Exception, action: str) -> HTTPException:
    """Map a domain exception to the HTTP error returned to clients."""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, BlobNotFoundError):
        return HTTPException(404, str(e))
    if isinstance(e, (VersionConflictError, RetriesExhaustedError)):
        logger.warning(f"{action}: {e}")
        return HTTPException(409, str(e))
    if isinstance(e, ValueError):
        return HTTPException(400, str(e))
    logger.exception(f"{action} failed")
    return HTTPException(500, f"{action} failed: {str(e)}")
