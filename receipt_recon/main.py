# receipt_recon/main.py

import logging

from fastapi import FastAPI

from receipt_recon.config import get_settings
from receipt_recon.models import RECEIPT_SCHEMA_VERSION
from receipt_recon.routers import health, reconcile

settings = get_settings()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Attach a single stream handler to the package logger."""
    if level is None:
        level = settings.log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("receipt_recon")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level)


configure_logging()

# ============================================
# Create FastAPI app
# ============================================

app = FastAPI(
    title=settings.app_name,
    description="Merges saved and freshly fetched warehouse receipts into one canonical file",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# ============================================
# Include routers
# ============================================

app.include_router(health.router, tags=["Health"])
app.include_router(reconcile.router, tags=["Reconciliation"])

# ============================================
# Root endpoint
# ============================================

@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "schema_version": RECEIPT_SCHEMA_VERSION,
        "status": "running",
        "docs": "/docs" if settings.debug else None,
    }
