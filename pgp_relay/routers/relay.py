"""Relay endpoints: submit a payload, confirm it with the emailed token."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse

from pgp_relay.deps import get_workflow
from pgp_relay.errors import NotFoundError, RelayError
from pgp_relay.models import ConfirmRequest, SubmitRequest
from pgp_relay.workflow import SubmissionWorkflow

logger = structlog.get_logger()
router = APIRouter(tags=["relay"])


def _to_http(exc: RelayError) -> HTTPException:
    """Map a relay failure to a coarse client-facing status."""
    if exc.status_code >= 500:
        logger.error("request_failed", error_type=type(exc).__name__, error=str(exc))
    elif isinstance(exc, NotFoundError):
        logger.warning("record_not_found")
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("/submit", response_class=PlainTextResponse)
async def submit(
    body: SubmitRequest,
    workflow: Annotated[SubmissionWorkflow, Depends(get_workflow)],
):
    """Store a payload and email a confirmation token to its reply-to address.

    Returns the submission id as plain text.
    """
    try:
        submission_id = await workflow.submit(body.reply_to, body.payload)
    except RelayError as exc:
        raise _to_http(exc) from exc
    return PlainTextResponse(submission_id)


@router.post("/confirm")
async def confirm(
    body: ConfirmRequest,
    workflow: Annotated[SubmissionWorkflow, Depends(get_workflow)],
):
    """Forward the pending payload for (id, token) to the operator."""
    try:
        await workflow.confirm(body.id, body.token)
    except RelayError as exc:
        raise _to_http(exc) from exc
    return Response(status_code=200)
