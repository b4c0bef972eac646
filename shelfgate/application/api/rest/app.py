import logging
from contextlib import asynccontextmanager

import logfire
from dishka import AsyncContainer
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shelfgate.application.api.rest.middleware import GateMiddleware, RequireHttpsMiddleware
from shelfgate.application.api.rest.routes import health
from shelfgate.application.api.v1.errors import map_shelfgate_error
from shelfgate.application.api.v1.routes import auth, usersetup
from shelfgate.application.di import create_container
from shelfgate.config import Config, configure_logging
from shelfgate.domain.auth.port.provider_registry import ProviderRegistry
from shelfgate.domain.shared.error import ShelfgateError
from shelfgate.infrastructure.session import (
    SessionMiddleware,
    SessionStore,
    create_session_store,
)
from shelfgate.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = app.state.dishka_container

    # Build the SAML registry before the first request arrives
    await container.get(ProviderRegistry)

    yield

    await app.state.session_store.close()
    await container.close()


def create_app(
    config: Config | None = None,
    container: AsyncContainer | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """Create FastAPI application."""
    # Pydantic Settings populates from env vars at runtime
    if config is None:
        config = Config()  # type: ignore[call-arg]

    # Configure logging early
    configure_logging(config.logging)
    logger.info("Starting shelfgate: %s v%s", config.server.name, config.server.version)
    if config.auth.skip_auth:
        logger.warning("Authentication is disabled; every request runs as the bypass superuser")

    app_instance = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )

    # Instrument FastAPI for automatic tracing of HTTP requests
    logfire.instrument_fastapi(app_instance)

    # Middleware runs outermost-last-added: https -> session -> container -> gate
    app_instance.add_middleware(GateMiddleware)

    # Setup dependency injection
    if container is None:
        container = create_container(config)
    setup_dishka(container, app_instance)

    if session_store is None:
        session_store = create_session_store(config.session)
    app_instance.state.session_store = session_store
    app_instance.add_middleware(
        SessionMiddleware,
        store=session_store,
        secret=config.session.secret,
        cookie_name=config.session.cookie_name,
        max_age=config.session.max_age,
        same_site=config.session.same_site,
        https_only=config.session.https_only,
    )

    if config.server.require_https:
        app_instance.add_middleware(RequireHttpsMiddleware)

    # Register routes
    app_instance.include_router(health.router)
    app_instance.include_router(auth.router)
    app_instance.include_router(usersetup.router)

    # Global shelfgate error handler - maps domain and infrastructure errors to HTTP responses
    @app_instance.exception_handler(ShelfgateError)
    async def shelfgate_error_handler(request: Request, exc: ShelfgateError):
        http_exc = map_shelfgate_error(exc)
        if http_exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
        else:
            logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(
            status_code=http_exc.status_code,
            content=http_exc.detail,
        )

    # Global exception handler - logs all unhandled exceptions
    @app_instance.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app_instance
