"""FastAPI application factory."""

from __future__ import annotations

import secrets
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from jai_chat.api.routes import admin, auth, chats
from jai_chat.app import JaiChatApp
from jai_chat.errors import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from jai_chat.log import get_logger

logger = get_logger(__name__)

_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AccessDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (PersistenceError, 500),
]


def _status_for(exc: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(jai: JaiChatApp) -> FastAPI:
    """Build the HTTP app around an already wired JaiChatApp."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await jai.start()
        try:
            yield
        finally:
            await jai.stop()

    app = FastAPI(title="jai-chat", lifespan=lifespan)
    app.state.jai = jai

    server_cfg = jai.config.server
    session_secret = server_cfg.session_secret
    if not session_secret:
        # Sessions will not survive a restart
        logger.warning("session_secret_missing")
        session_secret = secrets.token_hex(32)
    app.add_middleware(SessionMiddleware, secret_key=session_secret, same_site="lax")
    if server_cfg.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=server_cfg.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["Content-Type", "Authorization", "X-Device-Id", "X-Admin-Token"],
        )

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=uuid.uuid4().hex[:12],
            path=request.url.path,
        )
        response = await call_next(request)
        logger.debug("request_completed", method=request.method, status=response.status_code)
        return response

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            logger.error("request_failed", error=str(exc), error_type=type(exc).__name__)
            return JSONResponse(status_code=status, content={"error": "Failed to process request"})
        return JSONResponse(status_code=status, content={"error": str(exc)})

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "providers": [p.name for p in jai.orchestrator.providers]}

    app.include_router(chats.router)
    app.include_router(auth.router)
    app.include_router(admin.router)
    return app
