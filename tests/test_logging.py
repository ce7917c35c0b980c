"""Tests for pgp_relay.logging."""

from __future__ import annotations

import logging

from pgp_relay.logging import redact_secrets, setup_logging


class TestRedactSecrets:
    def test_masks_tokens(self):
        event = {"event": "x", "token": "AbC123", "smtp_token": "pw", "submission_id": "id"}
        out = redact_secrets(logging.getLogger(), "info", event)
        assert out["token"] == "***"
        assert out["smtp_token"] == "***"
        assert out["submission_id"] == "id"

    def test_leaves_other_events_alone(self):
        event = {"event": "submission_pending"}
        assert redact_secrets(logging.getLogger(), "info", dict(event)) == event


class TestSetupLogging:
    def test_installs_single_root_handler(self):
        setup_logging(json=False, level="debug")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert logging.getLogger("uvicorn.access").propagate is True
