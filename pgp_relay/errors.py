"""Error taxonomy for the relay.

Every failure the workflow can surface is a :class:`RelayError` carrying the
HTTP status it maps to and a coarse ``detail`` that is safe to show clients.
"""

from __future__ import annotations

from enum import Enum


class RelayError(Exception):
    """Base class for all relay failures."""

    status_code: int = 500
    detail: str = "Internal server error"


class InvalidInputError(RelayError):
    """Malformed reply-to address, payload envelope, or id/token shape."""

    status_code = 400
    detail = "Invalid input"


class EnvelopeErrorKind(str, Enum):
    """Which armored-envelope rule a payload violated."""

    TOO_LONG = "too_long"
    MALFORMED_HEADER = "malformed_header"
    LINE_TOO_LONG = "line_too_long"
    ILLEGAL_CHARACTER = "illegal_character"
    MALFORMED_FOOTER = "malformed_footer"


class EnvelopeError(InvalidInputError):
    """The payload does not conform to the armored-message envelope."""

    def __init__(self, kind: EnvelopeErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class NotFoundError(RelayError):
    """No pending record exists for the given (id, token) pair."""

    status_code = 404
    detail = "Not found"


class CorruptRecordError(RelayError):
    """A pending record exists but cannot be deserialized."""


class StorageFailureError(RelayError):
    """The storage medium failed to write, read or delete a record."""


class ConfigurationMissingError(RelayError):
    """A setting required by a collaborator is absent."""

    def __init__(self, setting: str) -> None:
        super().__init__(f"{setting} is not configured")
        self.setting = setting


class NotifierFailureError(RelayError):
    """Outbound email delivery failed."""

    def __init__(self, message: str, *, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code
