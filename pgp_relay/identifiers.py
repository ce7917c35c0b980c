"""Submission id and confirmation token generation."""

from __future__ import annotations

import re
import secrets
import string
import uuid

# Length of the token emailed to the sender to verify their address
TOKEN_LENGTH = 30

TOKEN_ALPHABET = string.ascii_letters + string.digits

TOKEN_RE = re.compile(r"[A-Za-z0-9]+")

# Canonical lowercase UUIDv4, the only form new_submission_id() produces
SUBMISSION_ID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"
)


def new_submission_id() -> str:
    """Return a random 128-bit identifier in canonical dashed form."""
    return str(uuid.uuid4())


def new_token() -> str:
    """Return ``TOKEN_LENGTH`` alphanumerics drawn from the OS CSPRNG."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))
