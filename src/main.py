"""Rental reservations FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from src.container import ServiceContainer, build_container
from src.core.config import settings
from src.core.exceptions import AppException
from src.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_db_error_handler,
    validation_exception_handler,
)
from src.core.logging_config import configure_logging
from src.modules.accounts.router import router as accounts_router
from src.modules.dashboard.router import router as dashboard_router
from src.modules.reservations.router import router as reservations_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    if settings.store_backend == "sql" and settings.auto_create_schema:
        from src.core.database import create_schema

        await create_schema()
        logger.info("Database schema created")
    yield
    # Shutdown


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Rental Reservations",
        description="Booking and reservation engine for a peer-to-peer rental marketplace",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.container = container or build_container()

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_db_error_handler)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(reservations_router, prefix="/api/v1")
    app.include_router(accounts_router, prefix="/api/v1")
    app.include_router(dashboard_router, prefix="/api/v1")

    return app


# Development instance over the in-memory collaborators of build_container()
app = create_app()
