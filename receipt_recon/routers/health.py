# receipt_recon/routers/health.py

from fastapi import APIRouter

from receipt_recon.models import RECEIPT_SCHEMA_VERSION

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "receipt-recon",
        "schema_version": RECEIPT_SCHEMA_VERSION,
    }
