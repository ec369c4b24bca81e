import logging
from contextlib import asynccontextmanager

import logfire
from dishka import AsyncContainer
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fedbroker.application.api.errors import map_broker_error
from fedbroker.application.api.routes import auth, health
from fedbroker.application.di import create_container
from fedbroker.config import Config, configure_logging
from fedbroker.domain.auth.port.identity_backend import IdentityBackend
from fedbroker.domain.auth.port.provider_registry import ProviderRegistry
from fedbroker.domain.shared.error import BrokerError
from fedbroker.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container: AsyncContainer = app.state.dishka_container

    # Fail fast on a misconfigured backend instead of on the first login
    await container.get(IdentityBackend)
    registry = await container.get(ProviderRegistry)
    if not registry.available_providers():
        logger.warning("No identity providers configured; every login will 404")

    yield

    await container.close()


def create_app(config: Config | None = None, container: AsyncContainer | None = None) -> FastAPI:
    """Create FastAPI application."""
    if config is None:
        # Pydantic Settings populates from env vars at runtime
        config = Config()  # type: ignore[call-arg]

    # Configure logging early
    configure_logging(config.logging)
    logger.info("Starting %s v%s", config.server.name, config.server.version)

    app_instance = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )

    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # Tracing for inbound requests and outbound provider calls; exports only with a token
    logfire.configure(
        service_name=config.server.name,
        service_version=config.server.version,
        send_to_logfire="if-token-present",
        console=False,
    )
    logfire.instrument_httpx()
    logfire.instrument_fastapi(app_instance)

    # Setup dependency injection
    setup_dishka(container or create_container(config), app_instance)

    app_instance.include_router(health.router)
    app_instance.include_router(auth.router)

    # Global broker error handler - maps domain and infrastructure errors to HTTP responses
    @app_instance.exception_handler(BrokerError)
    async def broker_error_handler(request: Request, exc: BrokerError):
        http_exc = map_broker_error(exc)
        return JSONResponse(
            status_code=http_exc.status_code,
            content=http_exc.detail,
            headers={"Cache-Control": "no-store"},
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
