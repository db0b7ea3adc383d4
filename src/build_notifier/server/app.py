"""HTTP adapter for push notifications.

Usage::

    from build_notifier.server.app import create_app

    app = create_app()
    # uvicorn.run(app, host="0.0.0.0", port=8080)

``POST /`` accepts one delivery envelope and answers ``204 No Content`` once
the notification is handled, whether or not the backends accepted the
signal. Undecodable bodies, and any other unhandled error, answer ``400``
with ``{"message": ..., "links": {"self": {"href": ...}}}``.
"""
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from build_notifier.__version__ import __version__
from build_notifier.backends.auth import (
    Authenticator,
    MetadataServerAuthenticator,
    StaticTokenAuthenticator,
)
from build_notifier.core.classifier import StatusClassifier
from build_notifier.core.config import NotifierConfig
from build_notifier.core.exceptions import DecodeError
from build_notifier.decoding.decoder import EnvelopeDecoder
from build_notifier.handler import NotificationHandler
from build_notifier.sinks.factory import build_sink

logger = structlog.get_logger(__name__)


def build_authenticator(
    config: NotifierConfig, http_client: httpx.AsyncClient | None = None
) -> Authenticator:
    """Static token when configured, otherwise the metadata server."""
    if config.access_token:
        return StaticTokenAuthenticator(config.access_token)
    return MetadataServerAuthenticator(http_client)


def _request_uri(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def _error_response(request: Request, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "message": message,
            "links": {"self": {"href": _request_uri(request)}},
        },
    )


def _raw_body(request: Request) -> str | None:
    body: bytes | None = getattr(request.state, "raw_body", None)
    if body is None:
        return None
    return body.decode("utf-8", errors="replace")


async def _decode_error_handler(request: Request, exc: DecodeError) -> JSONResponse:
    logger.warning(
        "notification_decode_failed",
        method=request.method,
        url=str(request.url),
        error=str(exc),
        shape=exc.shape,
        body=_raw_body(request),
    )
    return _error_response(request, str(exc))


async def _unhandled_error_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "unhandled_request_error",
            method=request.method,
            url=str(request.url),
            body=_raw_body(request),
        )
        return _error_response(request, str(exc) or type(exc).__name__)


def create_app(
    config: NotifierConfig | None = None,
    *,
    handler: NotificationHandler | None = None,
) -> FastAPI:
    """Create the notifier FastAPI application.

    Args:
        config: Service configuration; read from the environment when omitted.
        handler: A ready handler. When omitted, the app builds one on startup
            from *config*, sharing one pooled ``httpx.AsyncClient`` between
            the authenticator and the backend clients.

    Returns:
        A configured :class:`FastAPI` application.
    """
    if config is None:
        config = NotifierConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.handler is not None:
            yield
            return

        async with httpx.AsyncClient() as http_client:
            authenticator = build_authenticator(config, http_client)
            sink = build_sink(config, authenticator, http_client)
            app.state.handler = NotificationHandler(
                EnvelopeDecoder(), StatusClassifier(), sink
            )
            logger.info("notifier_started", sink=config.sink.value, version=__version__)
            try:
                yield
            finally:
                app.state.handler = None
                logger.info("notifier_stopped")

    app = FastAPI(title="Build Notifier", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.handler = handler

    app.add_exception_handler(DecodeError, _decode_error_handler)
    app.middleware("http")(_unhandled_error_middleware)

    @app.post("/", status_code=204)
    async def receive_notification(request: Request) -> Response:
        body = await request.body()
        request.state.raw_body = body
        notification_handler: NotificationHandler | None = request.app.state.handler
        if notification_handler is None:
            raise RuntimeError("Notification handler is not initialised")
        await notification_handler.handle(body)
        return Response(status_code=204)

    from build_notifier.server.health import router as health_router

    app.include_router(health_router)
    return app


def main() -> None:
    """Serve the notifier with uvicorn using environment configuration."""
    import uvicorn

    from build_notifier.utils.logging import configure_logging

    config = NotifierConfig.from_env()
    configure_logging(config.log_level, json=config.log_json)
    # log_config=None keeps uvicorn on the structlog-formatted root handler.
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)
