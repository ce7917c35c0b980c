"""In-process store for development and tests."""

from __future__ import annotations

import threading

import structlog

from ..errors import NotFoundError, StorageFailureError
from ..models import Submission
from .base import PendingStore, compound_key, decode_record

logger = structlog.get_logger()


class MemoryStore(PendingStore):
    """Keeps serialized records in a dict guarded by a lock.

    Records are stored as JSON strings so the round-trip matches the
    durable backends.  Nothing survives a restart.
    """

    def __init__(self) -> None:
        self._records: dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    async def create(self, submission_id: str, token: str, submission: Submission) -> None:
        key = compound_key(submission_id, token)
        with self._lock:
            if key in self._records:
                raise StorageFailureError("a record already exists at this key")
            self._records[key] = submission.to_json()
        logger.debug("pending_record_created", backend="memory", submission_id=submission_id)

    async def claim_and_remove(self, submission_id: str, token: str) -> Submission:
        key = compound_key(submission_id, token)
        with self._lock:
            data = self._records.get(key)
            if data is None:
                raise NotFoundError("no pending record for this id/token pair")
            submission = decode_record(data)
            del self._records[key]
        logger.debug("pending_record_claimed", backend="memory", submission_id=submission_id)
        return submission

    async def exists(self, submission_id: str, token: str) -> bool:
        with self._lock:
            return compound_key(submission_id, token) in self._records
