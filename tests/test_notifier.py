"""Tests for pgp_relay.notifier."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from pgp_relay.config import MailConfig, RelaySettings, RetryConfig, SmtpConfig
from pgp_relay.errors import ConfigurationMissingError, NotifierFailureError
from pgp_relay.models import Submission
from pgp_relay.notifier import SmtpNotifier
from tests.conftest import make_payload


@pytest.fixture
def notifier(settings: RelaySettings) -> SmtpNotifier:
    return SmtpNotifier.from_settings(settings)


class TestBuildMessages:
    def test_token_message(self, notifier: SmtpNotifier):
        msg = notifier.build_token_message("a@b.com", "T0K3N")

        assert msg["From"] == "relay@mailhost.net"
        assert msg["To"] == "a@b.com"
        assert msg["Subject"] == "Your submission token"
        assert msg.get_content_type() == "text/plain"
        assert "\n\nT0K3N\n\n" in msg.get_content()

    def test_payload_message(self, notifier: SmtpNotifier):
        payload = make_payload()
        msg = notifier.build_payload_message(Submission(reply_to="a@b.com", payload=payload))

        assert msg["From"] == "relay@mailhost.net"
        assert msg["To"] == "Me <operator@mailhost.net>"
        assert msg["Reply-To"] == "a@b.com"
        assert msg["Subject"] == "Email from your contact form"
        assert msg.get_content().rstrip("\n") == payload

    def test_missing_sender(self, settings: RelaySettings):
        settings.mail = MailConfig(recipient="operator@mailhost.net")
        notifier = SmtpNotifier.from_settings(settings)
        with pytest.raises(ConfigurationMissingError, match="MAIL_FROM_ADDRESS"):
            notifier.build_token_message("a@b.com", "t")

    def test_missing_recipient(self, settings: RelaySettings):
        settings.mail = MailConfig(from_address="relay@mailhost.net")
        notifier = SmtpNotifier.from_settings(settings)
        with pytest.raises(ConfigurationMissingError, match="MAIL_RECIPIENT"):
            notifier.build_payload_message(Submission(reply_to="a@b.com", payload="p"))


class TestSend:
    @pytest.mark.asyncio
    async def test_send_token_uses_configured_relay(self, notifier: SmtpNotifier):
        with patch("pgp_relay.notifier.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await notifier.send_token("a@b.com", "T0K3N")

        mock_send.assert_awaited_once()
        message = mock_send.call_args.args[0]
        assert message["To"] == "a@b.com"
        kwargs = mock_send.call_args.kwargs
        assert kwargs["hostname"] == "smtp.mailhost.net"
        assert kwargs["port"] == 465
        assert kwargs["username"] == "relay"
        assert kwargs["password"] == "s3cret"
        assert kwargs["use_tls"] is True
        assert kwargs["start_tls"] is False

    @pytest.mark.asyncio
    async def test_send_payload(self, notifier: SmtpNotifier):
        with patch("pgp_relay.notifier.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await notifier.send_payload(Submission(reply_to="a@b.com", payload="p"))

        message = mock_send.call_args.args[0]
        assert message["Reply-To"] == "a@b.com"

    @pytest.mark.asyncio
    async def test_missing_smtp_server(self, settings: RelaySettings):
        settings.smtp = SmtpConfig(username="relay", token="s3cret")
        notifier = SmtpNotifier.from_settings(settings)
        with patch("pgp_relay.notifier.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            with pytest.raises(ConfigurationMissingError, match="SMTP_SERVER"):
                await notifier.send_token("a@b.com", "t")
        mock_send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_smtp_token(self, settings: RelaySettings):
        settings.smtp = SmtpConfig(server="smtp.mailhost.net", username="relay")
        notifier = SmtpNotifier.from_settings(settings)
        with pytest.raises(ConfigurationMissingError, match="SMTP_TOKEN"):
            await notifier.send_token("a@b.com", "t")

    @pytest.mark.asyncio
    async def test_rejected_message_is_notifier_failure(self, notifier: SmtpNotifier):
        error = aiosmtplib.SMTPResponseException(550, "mailbox unavailable")
        with patch("pgp_relay.notifier.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            mock_send.side_effect = error
            with pytest.raises(NotifierFailureError) as excinfo:
                await notifier.send_token("a@b.com", "t")

        assert excinfo.value.status_code == 500
        # permanent failures are not retried
        assert mock_send.await_count == 1

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, notifier: SmtpNotifier):
        with patch("pgp_relay.notifier.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            mock_send.side_effect = [aiosmtplib.SMTPConnectError("refused"), None]
            await notifier.send_token("a@b.com", "t")

        assert mock_send.await_count == 2

    @pytest.mark.asyncio
    async def test_transient_failure_exhausts_retries(self, notifier: SmtpNotifier):
        with patch("pgp_relay.notifier.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            mock_send.side_effect = aiosmtplib.SMTPConnectError("refused")
            with pytest.raises(NotifierFailureError):
                await notifier.send_payload(Submission(reply_to="a@b.com", payload="p"))

        # settings fixture allows two attempts
        assert mock_send.await_count == 2

    @pytest.mark.asyncio
    async def test_disconnect_after_data_delivers_once(self, settings: RelaySettings):
        settings.retry = RetryConfig(max_attempts=3, initial_wait_seconds=0.01, max_wait_seconds=0.02)
        notifier = SmtpNotifier.from_settings(settings)
        accepted = []

        async def accept_then_drop(message, **kwargs):
            # server queued the message, then the link dropped before the 250 reply
            accepted.append(message)
            raise aiosmtplib.SMTPServerDisconnected("Unexpected EOF received")

        with patch("pgp_relay.notifier.aiosmtplib.send", side_effect=accept_then_drop):
            with pytest.raises(NotifierFailureError):
                await notifier.send_payload(Submission(reply_to="a@b.com", payload="p"))

        assert len(accepted) == 1
