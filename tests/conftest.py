"""Shared test fixtures for the relay test suite."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from pgp_relay.app import create_app
from pgp_relay.config import (
    MailConfig,
    RelaySettings,
    RetryConfig,
    SmtpConfig,
    StorageBackend,
    StorageConfig,
)
from pgp_relay.deps import get_workflow
from pgp_relay.models import Submission
from pgp_relay.notifier import Notifier
from pgp_relay.storage import MemoryStore
from pgp_relay.workflow import SubmissionWorkflow

# ------------------------------------------------------------------
# Sample payloads
# ------------------------------------------------------------------

MINIMAL_PAYLOAD = "-----BEGIN PGP MESSAGE-----\n\n-----END PGP MESSAGE-----"


def make_payload(body_lines: list[str] | None = None, *, newline: str = "\n") -> str:
    """Build an armored message around *body_lines*."""
    if body_lines is None:
        body_lines = [
            "wcBMA0b2+1R8ZyF1AQf/Vq3yJm0pL8nXz4y1mY7k9cQwErTyUiOpAsDfGhJk",
            "LzXcVbNm1234567890+/==",
            "=XyZ1",
        ]
    lines = ["-----BEGIN PGP MESSAGE-----", "", *body_lines, "-----END PGP MESSAGE-----"]
    return newline.join(lines)


# ------------------------------------------------------------------
# Collaborator fakes
# ------------------------------------------------------------------


class RecordingNotifier(Notifier):
    """Notifier that records what it was asked to send."""

    def __init__(self, *, token_error: Exception | None = None, payload_error: Exception | None = None):
        self.tokens: list[tuple[str, str]] = []
        self.payloads: list[Submission] = []
        self._token_error = token_error
        self._payload_error = payload_error

    async def send_token(self, address: str, token: str) -> None:
        if self._token_error is not None:
            raise self._token_error
        self.tokens.append((address, token))

    async def send_payload(self, submission: Submission) -> None:
        if self._payload_error is not None:
            raise self._payload_error
        self.payloads.append(submission)

    @property
    def last_token(self) -> str:
        return self.tokens[-1][1]


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def settings() -> RelaySettings:
    return RelaySettings(
        storage=StorageConfig(backend=StorageBackend.MEMORY),
        smtp=SmtpConfig(server="smtp.mailhost.net", username="relay", token="s3cret"),
        mail=MailConfig(from_address="relay@mailhost.net", recipient="operator@mailhost.net"),
        retry=RetryConfig(max_attempts=2, initial_wait_seconds=0.01, max_wait_seconds=0.02),
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def workflow(store: MemoryStore, notifier: RecordingNotifier) -> SubmissionWorkflow:
    return SubmissionWorkflow(store, notifier)


def override_workflow(app, workflow: SubmissionWorkflow):
    """Override the workflow dependency on the app."""
    app.dependency_overrides[get_workflow] = lambda: workflow
    return app


@pytest.fixture
def app(settings: RelaySettings, workflow: SubmissionWorkflow):
    """App with the workflow injected. Lifespan is not started."""
    return override_workflow(create_app(settings), workflow)


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
