# receipt_recon/models/__init__.py

from receipt_recon.models.receipt import (
    RECEIPT_SCHEMA_VERSION,
    SCHEMA_VERSION_KEY,
    Receipt,
    Item,
    Coupon,
    SubTaxes,
    Tender,
)
from receipt_recon.models.reconciliation import (
    RecordSource,
    Identity,
    PartitionStats,
    MergeAnomaly,
    ReconciliationSummary,
)

__all__ = [
    # Receipt
    "RECEIPT_SCHEMA_VERSION",
    "SCHEMA_VERSION_KEY",
    "Receipt",
    "Item",
    "Coupon",
    "SubTaxes",
    "Tender",
    # Reconciliation
    "RecordSource",
    "Identity",
    "PartitionStats",
    "MergeAnomaly",
    "ReconciliationSummary",
]
