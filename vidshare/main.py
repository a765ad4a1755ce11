"""
FastAPI application factory: entry point for the vidshare backend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import vidshare.models  # noqa: F401  (registers tables on Base.metadata)
from vidshare.api.v1.router import v1_router
from vidshare.config import settings
from vidshare.db.base import Base
from vidshare.db.session import engine
from vidshare.middleware.error_handler import (
    ErrorHandlerMiddleware,
    RequestIdMiddleware,
    register_exception_handlers,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks."""
    # Create all tables (dev convenience; run migrations in production)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings.UPLOAD_TEMP_PATH.mkdir(parents=True, exist_ok=True)
    logger.info("vidshare started (storage backend: %s)", settings.STORAGE_BACKEND)

    yield

    await engine.dispose()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="vidshare API",
        description="User, session and video management API for a video-sharing platform.",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # ── Middleware (last added is outermost) ─────────────
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── API Routes ───────────────────────────────────────
    app.include_router(v1_router)

    # ── Static file serving for locally stored media ─────
    if settings.STORAGE_BACKEND == "local":
        settings.STORAGE_LOCAL_PATH.mkdir(parents=True, exist_ok=True)
        app.mount("/media", StaticFiles(directory=str(settings.STORAGE_LOCAL_PATH)), name="media")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "vidshare.main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=True,
    )
