"""Abstract base class for pending-submission stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import ValidationError

from ..errors import CorruptRecordError
from ..models import Submission


def compound_key(submission_id: str, token: str) -> str:
    """Storage key for a pending record; both parts are needed to rebuild it."""
    return f"{submission_id}_{token}"


def decode_record(data: str | bytes) -> Submission:
    """Deserialize a stored record, raising CorruptRecordError if it is unreadable."""
    try:
        return Submission.from_json(data)
    except (ValidationError, UnicodeDecodeError) as exc:
        raise CorruptRecordError("stored record cannot be deserialized") from exc


class PendingStore(ABC):
    """Durable key-value persistence for submissions awaiting confirmation.

    Records are keyed by :func:`compound_key`, so the (id, token) pair is
    both the lookup key and the proof that the caller received the token.
    """

    async def start(self) -> None:
        """Acquire clients or other resources. No-op by default."""

    async def stop(self) -> None:
        """Release resources acquired by :meth:`start`. No-op by default."""

    @abstractmethod
    async def create(self, submission_id: str, token: str, submission: Submission) -> None:
        """Persist *submission* under the compound key.

        Never overwrites: an existing record at the same key, or any
        failure of the medium, raises ``StorageFailureError``.
        """

    @abstractmethod
    async def claim_and_remove(self, submission_id: str, token: str) -> Submission:
        """Atomically fetch and delete the record at the compound key.

        Raises ``NotFoundError`` if absent (including when another caller
        claimed it first), ``CorruptRecordError`` if unreadable and
        ``StorageFailureError`` if the medium fails.
        """

    @abstractmethod
    async def exists(self, submission_id: str, token: str) -> bool:
        """Return True if a record is pending at the compound key."""
