"""Data models: submissions, pending records and HTTP request bodies."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field


class Submission(BaseModel):
    """A sender's reply-to address plus the armored payload.

    Serialized with the field names ``reply_to`` / ``pgp_message``.
    ``populate_by_name=True`` allows construction via ``payload=`` too.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    reply_to: str
    payload: str = Field(alias="pgp_message")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> Submission:
        return cls.model_validate_json(data)


class PendingRecord(BaseModel):
    """A submission together with its identity, as created by ``submit``."""

    model_config = {"frozen": True}

    id: str
    token: str
    submission: Submission


class SubmitRequest(BaseModel):
    """Body of ``POST /submit``.

    Shape checks (email syntax, envelope) happen in the workflow so that
    failures map to 400 with no state created.
    """

    reply_to: str = Field(validation_alias=AliasChoices("replyTo", "reply_to"))
    payload: str = Field(validation_alias=AliasChoices("payload", "pgp_message"))


class ConfirmRequest(BaseModel):
    """Body of ``POST /confirm``."""

    id: str = Field(validation_alias=AliasChoices("id", "msg_id"))
    token: str
