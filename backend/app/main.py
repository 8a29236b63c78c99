# app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

# Import router objects explicitly to avoid module name collisions
from app.routers.health import router as health_router
from app.routers.exec import router as exec_router
from app.routers.progress import router as progress_router
from app.observability.logging import configure_logging
from app.observability.middleware import register_request_middleware, unhandled_exception_handler
from app.observability.metrics import router as observability_router
from app.scheduler.setup import init_scheduler, shutdown_scheduler
from app.schemas.common import API_VERSION
from app.config import get_settings

configure_logging(get_settings().LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_scheduler()
    try:
        yield
    finally:
        await shutdown_scheduler()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Cable Progress", version=API_VERSION, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=86400
    )

    if settings.TRUSTED_HOSTS:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.TRUSTED_HOSTS)

    register_request_middleware(app)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(observability_router)
    app.include_router(exec_router)
    app.include_router(progress_router)

    return app


app = create_app()
