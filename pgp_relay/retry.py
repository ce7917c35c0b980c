"""Tenacity retry policy for outbound SMTP, driven by RetryConfig.

This is the mail collaborator's own transport policy.  The submission
workflow never retries: once this policy gives up, the failure is
surfaced to the caller exactly once.
"""

from __future__ import annotations

from collections.abc import Callable

import aiosmtplib
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import RetryConfig

logger = structlog.get_logger()

# Failures raised before a session exists, so nothing can have been accepted.
# SMTPServerDisconnected is left out: it can follow the end of DATA.
TRANSIENT_SMTP_ERRORS: tuple[type[BaseException], ...] = (
    aiosmtplib.SMTPConnectError,
    aiosmtplib.SMTPConnectTimeoutError,
)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "smtp_send_retry",
        attempt=state.attempt_number,
        error=repr(exc),
    )


def smtp_retry(
    config: RetryConfig,
    *,
    retryable_exceptions: tuple[type[BaseException], ...] = TRANSIENT_SMTP_ERRORS,
) -> Callable:
    """Return a tenacity retry decorator configured from *config*.

    Usage::

        @smtp_retry(config.retry)
        async def _send(message: EmailMessage) -> None: ...
    """
    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.multiplier,
            min=config.initial_wait_seconds,
            max=config.max_wait_seconds,
        ),
        retry=retry_if_exception_type(retryable_exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
