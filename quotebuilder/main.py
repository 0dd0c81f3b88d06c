"""
QuoteBuilder API - Main Application Entry Point
Quotation management for interior and fit-out businesses.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quotebuilder.core.config import settings
from quotebuilder.core.database import init_db, close_db
from quotebuilder.core.exception_handlers import register_exception_handlers
from quotebuilder.api.v1.router import api_router


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("Starting %s v%s (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)

    # Create tables directly in development, production runs Alembic
    if settings.is_development:
        await init_db()

    yield

    logger.info("Shutting down")
    await close_db()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
## QuoteBuilder API

Backend for building, pricing and approving customer quotations.

### Main features:

* **Authentication** - Registration, login, JWT tokens
* **Roles** - Per-resource permissions, including approval and approval bypass
* **Catalog** - Categories and products with suggested rates
* **Clients** - Customers quotes are addressed to
* **Quotes** - Line, overall or combined discounts, tax, category breakdown
* **Workflow** - Draft, approval, sending and acceptance with a revision history
* **PDF** - Branded quote documents
    """,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)


# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API router
app.include_router(api_router, prefix="/api/v1")


# Health check endpoint
@app.get(
    "/health",
    tags=["Health"],
    summary="Server health check",
)
async def health_check():
    """Check if the API is running."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


# Root endpoint
@app.get(
    "/",
    tags=["Info"],
    summary="API information",
)
async def root():
    """Get API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "Quotation management API",
        "docs": "/docs" if settings.is_development else "Disabled in production",
        "health": "/health",
    }


# For running with uvicorn directly
if __name__ == "__main__":
    import os
    import uvicorn

    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(
        "quotebuilder.main:app",
        host=settings.HOST,
        port=port,
        reload=settings.is_development,
    )
