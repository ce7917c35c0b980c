"""Pending-submission stores."""

from __future__ import annotations

import structlog

from ..config import RelaySettings, StorageBackend
from .base import PendingStore, compound_key, decode_record
from .filesystem import FilesystemStore
from .memory import MemoryStore
from .s3 import S3Store

logger = structlog.get_logger()


def build_store(settings: RelaySettings) -> PendingStore:
    """Instantiate the store selected by ``STORAGE_BACKEND``."""
    backend = settings.storage.backend
    if backend is StorageBackend.S3:
        store: PendingStore = S3Store(settings.s3)
    elif backend is StorageBackend.MEMORY:
        store = MemoryStore()
    else:
        store = FilesystemStore(settings.storage)
    logger.info("pending_store_selected", backend=backend.value)
    return store


__all__ = [
    "FilesystemStore",
    "MemoryStore",
    "PendingStore",
    "S3Store",
    "build_store",
    "compound_key",
    "decode_record",
]
