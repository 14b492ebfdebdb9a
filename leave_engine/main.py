"""Leave Policy Engine — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leave_engine.applications.router import router as applications_router
from leave_engine.balance.router import router as balances_router
from leave_engine.common.exceptions import register_exception_handlers
from leave_engine.config import settings
from leave_engine.configuration.router import router as configurations_router
from leave_engine.database import engine

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Root logger at ``LOG_LEVEL``; uvicorn keeps its own handlers."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Leave engine starting (%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Leave Policy Engine",
        description="Leave configuration rules, balance derivation and request validation",
        version=VERSION,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
        }

    app.include_router(
        configurations_router,
        prefix="/api/v1/leave-configurations",
        tags=["leave-configurations"],
    )
    app.include_router(balances_router, prefix="/api/v1/balances", tags=["balances"])
    app.include_router(applications_router, prefix="/api/v1/applications", tags=["applications"])

    return app


app = create_app()
