"""Entry point for the FastAPI application.

Builds the app, mounts the API routers and creates the tables on
startup.  Run with ``uvicorn focal.api.main:app``; configuration comes
from ``focal.core.config``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from focal.api.error_handlers import register_exception_handlers
from focal.api.routes.budgets import router as budgets_router
from focal.api.routes.categories import router as categories_router
from focal.api.routes.expenses import router as expenses_router
from focal.api.routes.notifications import router as notifications_router
from focal.api.routes.receipts import router as receipts_router
from focal.api.routes.settings import router as settings_router
from focal.core.config import settings
from focal.core.database import init_db
from focal.core.observability import init_sentry

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info("Starting up...")
    if init_sentry("api"):
        logger.info("Sentry SDK initialized (api)")
    await init_db()
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
)

# Development allows every origin; otherwise BACKEND_CORS_ORIGINS.
env_is_dev = (settings.ENVIRONMENT or "development").lower() == "development"
allow_origins = ["*"] if env_is_dev else list(dict.fromkeys(settings.BACKEND_CORS_ORIGINS or []))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=not env_is_dev,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(receipts_router)
app.include_router(expenses_router)
app.include_router(budgets_router)
app.include_router(notifications_router)
app.include_router(settings_router)
app.include_router(categories_router)


@app.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    """Health check endpoint (supports GET & HEAD)."""
    return {"status": "healthy", "environment": settings.ENVIRONMENT}
