# receipt_recon/routers/__init__.py

from receipt_recon.routers import health
from receipt_recon.routers import reconcile

__all__ = ["health", "reconcile"]
