"""Outbound email: the token mail to the sender and the payload mail to the operator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib
import structlog

from .config import MailConfig, RelaySettings, RetryConfig, SmtpConfig
from .errors import ConfigurationMissingError, NotifierFailureError
from .models import Submission
from .retry import smtp_retry

logger = structlog.get_logger()


class Notifier(ABC):
    """Sends the two emails the submission workflow needs.

    Both calls are single-shot from the workflow's point of view and
    report failure by raising a :class:`~pgp_relay.errors.RelayError`.
    """

    @abstractmethod
    async def send_token(self, address: str, token: str) -> None:
        """Email the confirmation *token* to *address*."""

    @abstractmethod
    async def send_payload(self, submission: Submission) -> None:
        """Deliver *submission* to the operator with its reply-to address."""


class SmtpNotifier(Notifier):
    """Notifier backed by an authenticated SMTP relay."""

    def __init__(self, smtp: SmtpConfig, mail: MailConfig, retry: RetryConfig) -> None:
        self._smtp = smtp
        self._mail = mail
        self._send_with_retry = smtp_retry(retry)(self._send)

    @classmethod
    def from_settings(cls, settings: RelaySettings) -> SmtpNotifier:
        return cls(settings.smtp, settings.mail, settings.retry)

    # ------------------------------------------------------------------
    # Message builders
    # ------------------------------------------------------------------

    def build_token_message(self, address: str, token: str) -> EmailMessage:
        logger.debug("building_token_email")
        msg = EmailMessage()
        msg["From"] = _require(self._mail.from_address, "MAIL_FROM_ADDRESS")
        msg["To"] = address
        msg["Subject"] = self._mail.token_subject
        msg.set_content(self._mail.token_body.replace("{token}", token))
        return msg

    def build_payload_message(self, submission: Submission) -> EmailMessage:
        logger.debug("building_payload_email")
        recipient = _require(self._mail.recipient, "MAIL_RECIPIENT")
        msg = EmailMessage()
        msg["From"] = _require(self._mail.from_address, "MAIL_FROM_ADDRESS")
        msg["To"] = formataddr((self._mail.recipient_name, recipient))
        msg["Reply-To"] = submission.reply_to
        msg["Subject"] = self._mail.payload_subject
        msg.set_content(submission.payload)
        return msg

    # ------------------------------------------------------------------
    # Notifier interface
    # ------------------------------------------------------------------

    async def send_token(self, address: str, token: str) -> None:
        try:
            message = self.build_token_message(address, token)
        except ValueError as exc:
            raise NotifierFailureError("couldn't build the token email") from exc
        await self._dispatch(message, kind="token")

    async def send_payload(self, submission: Submission) -> None:
        try:
            message = self.build_payload_message(submission)
        except ValueError as exc:
            raise NotifierFailureError("couldn't build the payload email") from exc
        await self._dispatch(message, kind="payload")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _dispatch(self, message: EmailMessage, *, kind: str) -> None:
        hostname = _require(self._smtp.server, "SMTP_SERVER")
        username = _require(self._smtp.username, "SMTP_USERNAME")
        secret = self._smtp.token.get_secret_value() if self._smtp.token else None
        password = _require(secret, "SMTP_TOKEN")

        logger.debug("sending_email", kind=kind, server=hostname)
        try:
            await self._send_with_retry(
                message,
                hostname=hostname,
                username=username,
                password=password,
            )
        except aiosmtplib.SMTPException as exc:
            logger.error("email_send_failed", kind=kind, error=str(exc))
            raise NotifierFailureError("couldn't send the email") from exc
        logger.info("email_sent", kind=kind)

    async def _send(
        self,
        message: EmailMessage,
        *,
        hostname: str,
        username: str,
        password: str,
    ) -> None:
        await aiosmtplib.send(
            message,
            hostname=hostname,
            port=self._smtp.port,
            username=username,
            password=password,
            use_tls=self._smtp.use_tls,
            start_tls=self._smtp.start_tls,
            timeout=self._smtp.timeout_seconds,
        )


def _require(value: str | None, setting: str) -> str:
    if not value:
        logger.error("setting_missing", setting=setting)
        raise ConfigurationMissingError(setting)
    return value
