"""Filesystem store: one JSON file per pending record.

Files are named ``{id}_{token}.pgp_message`` inside ``STORAGE_PATH``.
All filesystem calls are wrapped with ``asyncio.to_thread()`` to avoid
blocking.

Atomicity relies on two POSIX primitives on the same filesystem:

* ``os.link`` fails if the target exists, so a fully written and fsynced
  temp file appears under its final name in one step, never overwriting.
* ``os.rename`` of the record to a per-claim name succeeds for exactly one
  caller, which makes it a compare-and-delete across threads and processes.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from pathlib import Path

import structlog

from ..config import StorageConfig
from ..errors import (
    ConfigurationMissingError,
    CorruptRecordError,
    NotFoundError,
    StorageFailureError,
)
from ..models import Submission
from .base import PendingStore, compound_key, decode_record

logger = structlog.get_logger()

RECORD_SUFFIX = ".pgp_message"


class FilesystemStore(PendingStore):
    """Persist pending submissions as files in a local directory."""

    def __init__(self, config: StorageConfig) -> None:
        self._config = config

    def _root(self) -> Path:
        if not self._config.path:
            raise ConfigurationMissingError("STORAGE_PATH")
        return Path(self._config.path)

    def _record_path(self, submission_id: str, token: str) -> Path:
        return self._root() / f"{compound_key(submission_id, token)}{RECORD_SUFFIX}"

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, submission_id: str, token: str, submission: Submission) -> None:
        path = self._record_path(submission_id, token)
        data = submission.to_json().encode("utf-8")
        try:
            await asyncio.to_thread(_write_once, path, data)
        except FileExistsError as exc:
            logger.error("pending_record_collision", submission_id=submission_id)
            raise StorageFailureError("a record already exists at this key") from exc
        except OSError as exc:
            logger.error(
                "pending_record_write_failed",
                submission_id=submission_id,
                error=str(exc),
            )
            raise StorageFailureError("couldn't write the record to disk") from exc
        logger.debug("pending_record_created", backend="filesystem", submission_id=submission_id)

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    async def claim_and_remove(self, submission_id: str, token: str) -> Submission:
        path = self._record_path(submission_id, token)
        claimed = path.with_name(f".{path.name}.claim-{uuid.uuid4().hex}")

        try:
            await asyncio.to_thread(os.rename, path, claimed)
        except FileNotFoundError as exc:
            raise NotFoundError("no pending record for this id/token pair") from exc
        except OSError as exc:
            logger.error("pending_record_claim_failed", submission_id=submission_id, error=str(exc))
            raise StorageFailureError("couldn't claim the record") from exc

        try:
            data = await asyncio.to_thread(claimed.read_bytes)
        except OSError as exc:
            await self._restore(claimed, path, submission_id)
            logger.error("pending_record_read_failed", submission_id=submission_id, error=str(exc))
            raise StorageFailureError("couldn't read the record from disk") from exc

        try:
            submission = decode_record(data)
        except CorruptRecordError:
            await self._restore(claimed, path, submission_id)
            raise

        try:
            await asyncio.to_thread(claimed.unlink)
        except OSError as exc:
            logger.error(
                "pending_record_delete_failed",
                submission_id=submission_id,
                error=str(exc),
            )
            raise StorageFailureError("couldn't delete the record after reading it") from exc

        logger.debug("pending_record_claimed", backend="filesystem", submission_id=submission_id)
        return submission

    async def _restore(self, claimed: Path, path: Path, submission_id: str) -> None:
        """Put an unreadable record back under its key for operator inspection."""
        try:
            await asyncio.to_thread(os.rename, claimed, path)
        except OSError:
            logger.exception("pending_record_restore_failed", submission_id=submission_id)

    # ------------------------------------------------------------------
    # Existence
    # ------------------------------------------------------------------

    async def exists(self, submission_id: str, token: str) -> bool:
        path = self._record_path(submission_id, token)
        return await asyncio.to_thread(path.exists)


def _write_once(path: Path, data: bytes) -> None:
    """Write *data* durably to *path*, failing if *path* already exists."""
    tmp = path.with_name(f".{path.name}.tmp-{uuid.uuid4().hex}")
    try:
        with open(tmp, "xb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.link(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)
