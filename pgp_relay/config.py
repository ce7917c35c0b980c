"""Relay configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
Settings required by a collaborator (storage location, SMTP endpoint,
sender/recipient addresses) default to ``None`` and are checked on first
use, so a missing value surfaces as a server-side fault instead of a crash.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    FILESYSTEM = "filesystem"
    S3 = "s3"
    MEMORY = "memory"


class StorageConfig(BaseSettings):
    """Where pending submissions are kept."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: StorageBackend = Field(
        default=StorageBackend.FILESYSTEM,
        description="Pending-submission store backend",
    )
    path: str | None = Field(
        default=None,
        description="Directory holding pending records (filesystem backend)",
    )


class S3Config(BaseSettings):
    """S3 settings for the s3 storage backend."""

    model_config = SettingsConfigDict(env_prefix="S3_")

    bucket: str | None = Field(default=None, description="S3 bucket name")
    prefix: str = Field(
        default="pending",
        description="S3 key prefix for pending records",
    )
    region: str = Field(default="us-east-1", description="AWS region")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint URL (e.g. for MinIO)",
    )


class SmtpConfig(BaseSettings):
    """Outbound SMTP relay connection settings."""

    model_config = SettingsConfigDict(env_prefix="SMTP_")

    server: str | None = Field(default=None, description="SMTP relay hostname")
    port: int = Field(default=465, description="SMTP relay port")
    use_tls: bool = Field(default=True, description="Connect with implicit TLS")
    start_tls: bool = Field(
        default=False,
        description="Upgrade a plaintext connection with STARTTLS",
    )
    username: str | None = Field(default=None, description="SMTP login username")
    token: SecretStr | None = Field(default=None, description="SMTP login password or API token")
    timeout_seconds: float = Field(default=30.0, description="SMTP operation timeout")


class MailConfig(BaseSettings):
    """Addresses and wording of the emails the relay sends."""

    model_config = SettingsConfigDict(env_prefix="MAIL_")

    from_address: str | None = Field(
        default=None,
        description="Sender address for both token and payload emails",
    )
    recipient: str | None = Field(
        default=None,
        description="Operator address that receives confirmed payloads",
    )
    recipient_name: str = Field(default="Me", description="Display name of the recipient")
    token_subject: str = Field(default="Your submission token")
    payload_subject: str = Field(default="Email from your contact form")
    token_body: str = Field(
        default=(
            "Hello, and thank you for using the contact form. You'll need to "
            "input this token to verify your email address:\n\n{token}\n\n"
            "You can safely ignore this email if you didn't use the form."
        ),
        description="Body of the token email; ``{token}`` is substituted",
    )


class RetryConfig(BaseSettings):
    """Retry / backoff for transient SMTP connection failures, driven by Tenacity."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(default=3, description="Maximum send attempts per email")
    initial_wait_seconds: float = Field(
        default=0.5,
        description="Initial backoff wait in seconds",
    )
    max_wait_seconds: float = Field(
        default=5.0,
        description="Maximum backoff wait in seconds",
    )
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")


class RelaySettings(BaseSettings):
    """Top-level settings, constructed once at startup.

    Server env vars are prefixed with ``RELAY_``; nested configs are
    populated from their own prefixes.
    Example: ``RELAY_PORT=8080 STORAGE_PATH=/var/lib/pgp-relay``
    """

    model_config = SettingsConfigDict(env_prefix="RELAY_")

    # --- Server -------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Bind port")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )

    # --- Collaborators ------------------------------------------------------
    storage: StorageConfig = Field(default_factory=StorageConfig)
    s3: S3Config = Field(default_factory=S3Config)
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    mail: MailConfig = Field(default_factory=MailConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
