"""Input validation: reply-to addresses, armored payloads, confirmation shape.

All functions here are pure and synchronous.
"""

from __future__ import annotations

import string

import structlog
from email_validator import EmailNotValidError
from email_validator import validate_email as _check_email

from .errors import EnvelopeError, EnvelopeErrorKind
from .identifiers import SUBMISSION_ID_RE, TOKEN_LENGTH, TOKEN_RE

logger = structlog.get_logger()

BEGIN_MARKER = "-----BEGIN PGP MESSAGE-----"
END_MARKER = "-----END PGP MESSAGE-----"

MAX_LINES = 200
# What OpenPGP.js produces
MAX_LINE_LENGTH = 60
MIN_LINES = 3

# Radix-64 plus ' ' and '-' so the footer line passes the body check.
# ASCII only: non-ASCII letters such as "é" are rejected even though
# str.isalnum() would accept them.
_BODY_CHARS = frozenset(string.ascii_letters + string.digits + "+/=- ")


def validate_email(address: str) -> bool:
    """Return True if *address* is a syntactically valid email address."""
    try:
        _check_email(address, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def split_lines(text: str) -> list[str]:
    """Split on ``\\n``, dropping a trailing ``\\r`` per line.

    A final trailing newline does not produce an extra empty line.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def validate_payload_envelope(text: str) -> None:
    """Check that *text* is an ASCII-armored PGP message.

    Raises :class:`EnvelopeError` naming the first rule that failed.
    """
    logger.debug("validating_payload_envelope")

    lines = split_lines(text)
    if len(lines) > MAX_LINES:
        raise EnvelopeError(EnvelopeErrorKind.TOO_LONG, "PGP message is too long")

    if not lines or lines[0] != BEGIN_MARKER:
        raise EnvelopeError(
            EnvelopeErrorKind.MALFORMED_HEADER,
            "first line doesn't contain the PGP header",
        )
    if len(lines) < 2 or lines[1] != "":
        raise EnvelopeError(
            EnvelopeErrorKind.MALFORMED_HEADER,
            "second line isn't empty",
        )
    if len(lines) < MIN_LINES:
        raise EnvelopeError(
            EnvelopeErrorKind.MALFORMED_FOOTER,
            "message ends before the PGP footer",
        )

    for line in lines[2:-1]:
        if len(line) > MAX_LINE_LENGTH:
            raise EnvelopeError(
                EnvelopeErrorKind.LINE_TOO_LONG,
                f"line length greater than {MAX_LINE_LENGTH} characters",
            )
        if not _BODY_CHARS.issuperset(line):
            raise EnvelopeError(
                EnvelopeErrorKind.ILLEGAL_CHARACTER,
                "unexpected character in message",
            )

    if lines[-1] != END_MARKER:
        raise EnvelopeError(
            EnvelopeErrorKind.MALFORMED_FOOTER,
            "last line doesn't contain the PGP footer",
        )


def is_valid_submission_id(value: str) -> bool:
    return SUBMISSION_ID_RE.fullmatch(value) is not None


def is_valid_token(value: str) -> bool:
    return len(value) == TOKEN_LENGTH and TOKEN_RE.fullmatch(value) is not None
