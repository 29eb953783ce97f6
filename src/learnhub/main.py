"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from learnhub import background
from learnhub.admin.router import router as admin_router
from learnhub.certificates.router import router as certificates_router
from learnhub.config import get_settings
from learnhub.courses.router import router as courses_router
from learnhub.database import close_db, get_session, init_db
from learnhub.gamification.router import router as gamification_router
from learnhub.gamification.seed import seed_badges
from learnhub.health.router import router as health_router
from learnhub.middleware import setup_middleware
from learnhub.notifications.router import router as notifications_router
from learnhub.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.warning("No Redis configured: rate limiting disabled, events handled in-process")

    # Seed badge definitions (idempotent)
    try:
        async for db in get_session():
            await seed_badges(db)
            break
    except Exception:
        logger.warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await background.drain(timeout=10)
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="LearnHub API",
        description="Learning progress, certificates, gamification and notifications",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(courses_router)
    app.include_router(certificates_router)
    app.include_router(gamification_router)
    app.include_router(notifications_router)
    app.include_router(admin_router)

    return app


app = create_app()
