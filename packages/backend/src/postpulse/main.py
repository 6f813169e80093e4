"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown. Middleware, CORS, REST routes
and the GraphQL router (HTTP + WebSocket on one path) are registered here.

Shutdown order matters: open subscription streams are drained first, so
each client gets a clean `complete` while its socket is still up, and only
then is the database engine disposed.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from postpulse import __version__
from postpulse.api import api_router
from postpulse.config import settings
from postpulse.logging_config import setup_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` at shutdown.
    """
    logger.info(
        "postpulse.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        graphql_path=settings.graphql_path,
    )

    yield

    logger.info("postpulse.shutdown")

    from postpulse.realtime.pubsub import pubsub
    drained = pubsub.close_all()
    logger.info("postpulse.subscriptions_drained", count=drained)

    from postpulse.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    setup_logging(settings.log_level, json_logs=settings.log_json)

    app = FastAPI(
        title="PostPulse",
        description="Real-time posts over GraphQL",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from postpulse.middleware.request_id import RequestIdMiddleware
    from postpulse.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount REST routes (health)
    app.include_router(api_router)

    # Mount GraphQL — queries/mutations over HTTP, subscriptions over WebSocket
    from postpulse.graphql import get_graphql_router
    app.include_router(get_graphql_router(), prefix=settings.graphql_path)

    return app


# Default app instance (used by uvicorn: postpulse.main:app)
app = create_app()
