"""
Training Documents API — FastAPI Application

This is the entry point for the backend. It:
1. Configures logging from LOG_LEVEL
2. Creates the FastAPI app instance
3. Configures CORS (so the management frontend can call us)
4. Registers the document routes

Run with:
    uvicorn app.main:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.routers import documents
from app.services.theme import default_theme

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic.

    Building the default theme once at startup surfaces a bad brand color
    or an unreadable font path immediately rather than on the first request.
    """
    # --- Startup ---
    theme = default_theme()
    logger.info(
        "Starting Training Documents API (env=%s, fonts=%s/%s)",
        settings.APP_ENV, theme.font_regular, theme.font_bold,
    )

    yield  # App is running, handling requests

    # --- Shutdown ---
    logger.info("Shutting down")


app = FastAPI(
    title="Training Documents API",
    description="PDF generation for training conventions, attestations, quotes and invoices",
    version="1.0.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Original-Size", "X-Compressed-Size"],
)

# --- Routers ---
app.include_router(documents.router)


# --- Health Check Endpoints ---

@app.get("/", tags=["health"])
async def root():
    """Root endpoint — confirms the API is alive."""
    return {
        "service": "Training Documents API",
        "status": "running",
        "version": "1.0.0",
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Health check for load balancers and monitoring."""
    return {
        "status": "healthy",
        "environment": settings.APP_ENV,
        "page_compression": settings.PDF_PAGE_COMPRESSION,
    }
