"""FastAPI application factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from corpdate.cabs.router import router as cabs_router
from corpdate.config import get_settings
from corpdate.database import close_db, init_db
from corpdate.health.router import router as health_router
from corpdate.matching.router import router as matching_router
from corpdate.meetings.router import router as meetings_router
from corpdate.messaging.router import router as messaging_router
from corpdate.middleware import setup_middleware
from corpdate.notifications.router import router as notifications_router
from corpdate.payments.router import router as payments_router
from corpdate.premium.router import router as premium_router
from corpdate.redis_client import close_redis, get_redis, init_redis
from corpdate.restaurants.router import router as restaurants_router
from corpdate.users.router import router as users_router
from corpdate.verification.router import router as verification_router
from corpdate.ws.bridge import PubSubBridge
from corpdate.ws.router import router as ws_router

logger = structlog.get_logger()


def _log_bridge_exit(task: asyncio.Task[None]) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("pubsub_bridge_crashed", exc_info=task.exception())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Redis pub/sub -> WebSocket bridge
    bridge = PubSubBridge(get_redis())
    bridge_task = asyncio.create_task(bridge.start())
    bridge_task.add_done_callback(_log_bridge_exit)

    yield

    await bridge.stop()
    bridge_task.cancel()
    try:
        await bridge_task
    except asyncio.CancelledError:
        pass

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="CorpDate API",
        description="Matching, paid dinner meetings and contact unlocks for working professionals",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(matching_router)
    app.include_router(messaging_router)
    app.include_router(restaurants_router)
    app.include_router(meetings_router)
    app.include_router(cabs_router)
    app.include_router(payments_router)
    app.include_router(premium_router)
    app.include_router(notifications_router)
    app.include_router(verification_router)
    app.include_router(ws_router)

    return app


app = create_app()
