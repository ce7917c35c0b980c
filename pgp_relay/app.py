"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pgp_relay.config import RelaySettings
from pgp_relay.notifier import SmtpNotifier
from pgp_relay.storage import build_store
from pgp_relay.workflow import SubmissionWorkflow

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build the store, notifier and workflow. Shutdown: stop the store."""
    settings: RelaySettings = app.state.settings
    store = build_store(settings)
    await store.start()
    notifier = SmtpNotifier.from_settings(settings)
    app.state.workflow = SubmissionWorkflow(store, notifier)
    logger.info("relay_started")
    yield
    await store.stop()
    logger.info("shutdown_complete")


async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("request_body_invalid", path=request.url.path)
    return JSONResponse({"detail": "Invalid input"}, status_code=400)


def create_app(settings: RelaySettings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = RelaySettings()

    app = FastAPI(
        title="PGP Relay",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_exception_handler(RequestValidationError, _bad_request)

    from pgp_relay.routers.relay import router as relay_router

    app.include_router(relay_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "pgp-relay"}

    return app
