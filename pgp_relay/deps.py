"""FastAPI dependency-injection helpers."""

from __future__ import annotations

from fastapi import Request

from pgp_relay.workflow import SubmissionWorkflow


def get_workflow(request: Request) -> SubmissionWorkflow:
    return request.app.state.workflow
