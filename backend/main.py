# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Build the identity services once per process (directory, notifier, signer,
  hasher) and hang them on ``app.state``.  A missing JWT secret raises
  ``ConfigError`` here, so the process never starts half-configured.
* Register CORS middleware (client origin, credentials allowed).
* Mount the auth router.
* Expose a /health endpoint for container liveness checks.
"""

import time
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from auth.router import router as auth_router
from core.config import Settings, settings
from core.errors import ConfigError
from core.logger import logger
from core.security import Hasher, Signer
from database import make_session_factory
from identity.lifecycle import IdentityLifecycle
from identity.memory import InMemoryDirectory
from identity.notifier import (
    HttpNotifier,
    LoggingNotifier,
    RetryingNotifier,
    RetryPolicy,
    linear_backoff,
)
from identity.sessions import SessionManager
from identity.sql_directory import SqlDirectory


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def build_directory(cfg: Settings):
    if cfg.directory_backend == "memory":
        logger.warning("Using the in-memory directory – nothing will be persisted")
        return InMemoryDirectory()
    if cfg.directory_backend == "sql":
        return SqlDirectory(make_session_factory(cfg.database_url))
    raise ConfigError(f"Unknown DIRECTORY_BACKEND: {cfg.directory_backend!r}")


def build_notifier(cfg: Settings) -> RetryingNotifier:
    if cfg.mail_service_url:
        transport = HttpNotifier(cfg.mail_service_url, timeout=cfg.mail_timeout_seconds)
    else:
        logger.warning("MAIL_SERVICE_URL not set – notifications are only logged")
        transport = LoggingNotifier()
    policy = RetryPolicy(
        attempts=cfg.mail_attempts,
        backoff=linear_backoff(cfg.mail_backoff_seconds),
    )
    return RetryingNotifier(transport, policy)


def build_identity(cfg: Settings, directory=None, notifier: Optional[RetryingNotifier] = None) -> IdentityLifecycle:
    signer = Signer.from_settings(cfg)
    directory = directory if directory is not None else build_directory(cfg)
    sessions = SessionManager(
        directory,
        signer,
        access_ttl=timedelta(minutes=cfg.access_token_expire_minutes),
        refresh_ttl=timedelta(days=cfg.refresh_token_expire_days),
    )
    return IdentityLifecycle(
        directory,
        sessions,
        notifier if notifier is not None else build_notifier(cfg),
        Hasher(rounds=cfg.password_hash_rounds),
        signer,
        activation_base_url=cfg.activation_base_url,
        reset_base_url=cfg.reset_base_url,
        notify_attempts=cfg.mail_attempts,
    )


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies and cookies (passwords, refresh tokens) are never echoed.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        # Activation links and reset tickets ride in the path
        path = request.url.path
        for prefix in ("/auth/activate/", "/auth/reset-password/"):
            if path.startswith(prefix):
                path = prefix + "***"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


def create_app(identity: Optional[IdentityLifecycle] = None, cfg: Settings = settings) -> FastAPI:
    app = FastAPI(title="authgate", version="1.0.0")
    app.state.identity = identity if identity is not None else build_identity(cfg)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cfg.client_url],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(_RequestLogMiddleware)

    app.include_router(auth_router)

    @app.on_event("startup")
    async def _on_startup():
        logger.info("authgate service starting up")

    @app.on_event("shutdown")
    async def _on_shutdown():
        logger.info("authgate service shutting down")

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "authgate"}

    return app


app = create_app()
