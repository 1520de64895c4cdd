from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request

from core.deps import RegistryHandlerDep
from core.providers import init_providers
from core.settings import Settings, get_settings
from health.router import router as health_router
from middleware.analytics import with_analytics
from middleware.chain import Handler, compose
from middleware.request_logging import with_logging
from providers.factory import Providers
from registry.handler import HandlerOptions, make_registry_handler

logger = logging.getLogger(__name__)


def build_handler(providers: Providers) -> Handler:
    """
    Core handler wrapped outer-to-inner: logging, then analytics delivery
    (when a delivery stream is configured).
    """
    settings = providers.settings
    handler = make_registry_handler(
        providers.store,
        HandlerOptions(
            canonical_hostname=settings.server.canonical_hostname,
            title=settings.server.title,
        ),
    )

    middlewares = [with_logging]
    if providers.delivery is not None and settings.delivery.enabled:
        middlewares.append(
            with_analytics(
                providers.delivery,
                settings.delivery.stream_name,
                settings.delivery.timeout_seconds,
            )
        )
    return compose(handler, *middlewares)


def create_app(settings: Optional[Settings] = None, providers: Optional[Providers] = None) -> FastAPI:
    settings = settings or (providers.settings if providers else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        built = init_providers(app, settings, providers)
        app.state.handler = build_handler(built)
        logger.info(
            "registry ready (store=%s, delivery=%s, canonical_hostname=%s)",
            settings.store.provider,
            settings.delivery.stream_name or "disabled",
            settings.server.canonical_hostname or "any",
        )
        yield

    app = FastAPI(title="Module Registry", lifespan=lifespan)

    # ---------------------------------------------------------------------
    # Routers
    # ---------------------------------------------------------------------

    app.include_router(health_router)

    # ---------------------------------------------------------------------
    # Catch-all: objects and listings
    # ---------------------------------------------------------------------

    @app.api_route("/{path:path}", methods=["GET", "HEAD"], include_in_schema=False)
    async def serve(request: Request, handler: RegistryHandlerDep):
        return await handler(request)

    return app


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


configure_logging(get_settings().server.log_level)

app = create_app()


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
