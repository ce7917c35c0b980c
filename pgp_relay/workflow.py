"""SubmissionWorkflow: the two-phase submit/confirm protocol.

A submission moves ``Unsubmitted → Pending`` when its record is persisted
and ``Pending → Delivered`` when it has been claimed and handed to the
notifier.  Invalid input is rejected before any state exists.  The
workflow holds no state between calls and never retries.
"""

from __future__ import annotations

import structlog

from .errors import EnvelopeError, InvalidInputError
from .identifiers import new_submission_id, new_token
from .models import PendingRecord, Submission
from .notifier import Notifier
from .storage import PendingStore
from .validation import (
    is_valid_submission_id,
    is_valid_token,
    validate_email,
    validate_payload_envelope,
)

logger = structlog.get_logger()


class SubmissionWorkflow:
    """Orchestrate validation, persistence and notification."""

    def __init__(self, store: PendingStore, notifier: Notifier) -> None:
        self._store = store
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Phase 1: submit
    # ------------------------------------------------------------------

    async def submit(self, reply_to: str, payload: str) -> str:
        """Persist a submission and email its token to *reply_to*.

        Returns the submission id.  The token is only ever sent out of
        band.  If the token email fails the record stays pending.
        """
        logger.debug("submit_received")

        if not validate_email(reply_to):
            logger.warning("submit_rejected", reason="invalid_reply_to")
            raise InvalidInputError("reply-to is not a valid email address")
        try:
            validate_payload_envelope(payload)
        except EnvelopeError as exc:
            logger.warning("submit_rejected", reason=exc.kind.value, error=str(exc))
            raise

        record = PendingRecord(
            id=new_submission_id(),
            token=new_token(),
            submission=Submission(reply_to=reply_to, payload=payload),
        )
        log = logger.bind(submission_id=record.id)

        await self._store.create(record.id, record.token, record.submission)
        log.info("submission_pending")

        await self._notifier.send_token(reply_to, record.token)
        log.info("submission_token_sent")
        return record.id

    # ------------------------------------------------------------------
    # Phase 2: confirm
    # ------------------------------------------------------------------

    async def confirm(self, submission_id: str, token: str) -> None:
        """Claim the pending record for (id, token) and deliver its payload.

        The claim is single-use.  If delivery fails after the claim, the
        payload is lost rather than risking a second delivery.
        """
        logger.debug("confirm_received")

        if not is_valid_submission_id(submission_id) or not is_valid_token(token):
            logger.warning("confirm_rejected", reason="malformed_id_or_token")
            raise InvalidInputError("malformed id or token")

        log = logger.bind(submission_id=submission_id)

        submission = await self._store.claim_and_remove(submission_id, token)
        log.info("submission_claimed")

        await self._notifier.send_payload(submission)
        log.info("submission_delivered")
