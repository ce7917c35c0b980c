"""S3 store for pending records.

All boto3 calls are wrapped with ``asyncio.to_thread()`` to avoid blocking.
Key format: ``{prefix}/{id}_{token}.json``.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from ..config import S3Config
from ..errors import ConfigurationMissingError, NotFoundError, StorageFailureError
from ..models import Submission
from .base import PendingStore, compound_key, decode_record

logger = structlog.get_logger()

_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})
# Conditional delete lost the race to another claimant
_CLAIMED_CODES = _MISSING_CODES | {"PreconditionFailed", "412"}


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class S3Store(PendingStore):
    """Persist pending submissions as JSON objects in an S3 bucket.

    Create uses ``If-None-Match: *`` so an existing object is never
    overwritten.  Claims delete with ``If-Match: <etag>`` of the object
    just read, so across processes only one claimant's delete succeeds.
    Claims on the same key are also serialized by a per-key lock inside
    this process.
    """

    def __init__(self, config: S3Config) -> None:
        self._config = config
        self._client = None  # type: ignore[assignment]
        self._key_locks: dict[str, _KeyLock] = {}

    async def start(self) -> None:
        """Create the boto3 S3 client."""
        kwargs: dict = {"region_name": self._config.region}
        if self._config.endpoint_url:
            kwargs["endpoint_url"] = self._config.endpoint_url
        self._client = await asyncio.to_thread(boto3.client, "s3", **kwargs)
        logger.info("s3_store_started", bucket=self._config.bucket)

    async def stop(self) -> None:
        """Clean up the boto3 client."""
        self._client = None
        logger.info("s3_store_stopped")

    def _bucket(self) -> str:
        if not self._config.bucket:
            raise ConfigurationMissingError("S3_BUCKET")
        return self._config.bucket

    def _object_key(self, submission_id: str, token: str) -> str:
        return f"{self._config.prefix}/{compound_key(submission_id, token)}.json"

    @asynccontextmanager
    async def _locked(self, key: str) -> AsyncIterator[None]:
        entry = self._key_locks.get(key)
        if entry is None:
            entry = self._key_locks[key] = _KeyLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._key_locks[key]

    # ------------------------------------------------------------------
    # Store operations
    # ------------------------------------------------------------------

    async def create(self, submission_id: str, token: str, submission: Submission) -> None:
        assert self._client is not None, "S3 client not started"
        bucket = self._bucket()
        key = self._object_key(submission_id, token)
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=bucket,
                Key=key,
                Body=submission.to_json().encode("utf-8"),
                ContentType="application/json",
                IfNoneMatch="*",
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("pending_record_write_failed", submission_id=submission_id, error=str(exc))
            raise StorageFailureError("couldn't write the record to S3") from exc
        logger.debug("pending_record_created", backend="s3", submission_id=submission_id)

    async def claim_and_remove(self, submission_id: str, token: str) -> Submission:
        assert self._client is not None, "S3 client not started"
        bucket = self._bucket()
        key = self._object_key(submission_id, token)

        async with self._locked(key):
            try:
                response = await asyncio.to_thread(
                    self._client.get_object,
                    Bucket=bucket,
                    Key=key,
                )
                data: bytes = await asyncio.to_thread(response["Body"].read)
            except ClientError as exc:
                if _error_code(exc) in _MISSING_CODES:
                    raise NotFoundError("no pending record for this id/token pair") from exc
                logger.error("pending_record_read_failed", submission_id=submission_id, error=str(exc))
                raise StorageFailureError("couldn't read the record from S3") from exc
            except BotoCoreError as exc:
                logger.error("pending_record_read_failed", submission_id=submission_id, error=str(exc))
                raise StorageFailureError("couldn't read the record from S3") from exc

            submission = decode_record(data)

            try:
                await asyncio.to_thread(
                    self._client.delete_object,
                    Bucket=bucket,
                    Key=key,
                    IfMatch=response["ETag"],
                )
            except ClientError as exc:
                if _error_code(exc) in _CLAIMED_CODES:
                    logger.warning("pending_record_claimed_elsewhere", submission_id=submission_id)
                    raise NotFoundError("no pending record for this id/token pair") from exc
                logger.error(
                    "pending_record_delete_failed",
                    submission_id=submission_id,
                    error=str(exc),
                )
                raise StorageFailureError("couldn't delete the record after reading it") from exc
            except BotoCoreError as exc:
                logger.error(
                    "pending_record_delete_failed",
                    submission_id=submission_id,
                    error=str(exc),
                )
                raise StorageFailureError("couldn't delete the record after reading it") from exc

        logger.debug("pending_record_claimed", backend="s3", submission_id=submission_id)
        return submission

    async def exists(self, submission_id: str, token: str) -> bool:
        assert self._client is not None, "S3 client not started"
        try:
            await asyncio.to_thread(
                self._client.head_object,
                Bucket=self._bucket(),
                Key=self._object_key(submission_id, token),
            )
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False
            raise StorageFailureError("couldn't query S3") from exc
        except BotoCoreError as exc:
            raise StorageFailureError("couldn't query S3") from exc
        return True


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))
