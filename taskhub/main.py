"""
TaskHub application factory.

    uvicorn taskhub.main:app
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from taskhub.api.v1.router import api_router
from taskhub.core.config import settings
from taskhub.core.exceptions import register_exception_handlers
from taskhub.core.rate_limit import limiter, rate_limit_exceeded_handler
from taskhub.db.session import engine
from taskhub.services.storage_service import document_storage
from taskhub.services.websocket_service import ws_manager

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    document_storage.ensure_root()
    logger.info(
        "%s v%s started, storing documents under %s",
        settings.APP_NAME,
        settings.APP_VERSION,
        document_storage.root,
    )
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("%s stopped", settings.APP_NAME)


def _install_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # slowapi looks the limiter up on app.state
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Task management API: shared tasks with PDF documents and "
            "real-time assignment notifications."
        ),
        lifespan=lifespan,
    )
    _install_middleware(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check() -> dict[str, Any]:
        return {
            "status": "ok",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "connectedUsers": ws_manager.connected_user_count,
        }

    return app


app = create_application()
