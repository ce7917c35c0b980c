"""PGP Relay: email-verified relay for armored messages.

A sender submits a payload plus a reply-to address; the payload is only
forwarded once the sender presents the token emailed to that address.
"""

from .config import RelaySettings
from .errors import (
    ConfigurationMissingError,
    CorruptRecordError,
    EnvelopeError,
    EnvelopeErrorKind,
    InvalidInputError,
    NotFoundError,
    NotifierFailureError,
    RelayError,
    StorageFailureError,
)
from .models import PendingRecord, Submission
from .notifier import Notifier, SmtpNotifier
from .storage import FilesystemStore, MemoryStore, PendingStore, S3Store
from .workflow import SubmissionWorkflow

__all__ = [
    "ConfigurationMissingError",
    "CorruptRecordError",
    "EnvelopeError",
    "EnvelopeErrorKind",
    "FilesystemStore",
    "InvalidInputError",
    "MemoryStore",
    "NotFoundError",
    "Notifier",
    "NotifierFailureError",
    "PendingRecord",
    "PendingStore",
    "RelayError",
    "RelaySettings",
    "S3Store",
    "SmtpNotifier",
    "StorageFailureError",
    "Submission",
    "SubmissionWorkflow",
]
