# receipt_recon/core/__init__.py

from receipt_recon.core.pipeline import reconcile, ReconciliationResult
from receipt_recon.core.errors import (
    ReconciliationError,
    ConfigurationError,
    IdentityError,
    RecordShapeError,
)
from receipt_recon.core.identity import resolve_identity
from receipt_recon.core.merge import merge_receipts
from receipt_recon.core.schema import (
    canonical_record,
    canonical_item,
    canonical_coupon,
    canonical_tender,
    canonical_subtaxes,
    normalize,
)
from receipt_recon.core.stats import StatsAggregator
from receipt_recon.core.upstream import validate_query_fields, fetch_window
from receipt_recon.core.export import dump_records, load_records, suggested_filename

__all__ = [
    "reconcile",
    "ReconciliationResult",
    "ReconciliationError",
    "ConfigurationError",
    "IdentityError",
    "RecordShapeError",
    "resolve_identity",
    "merge_receipts",
    "canonical_record",
    "canonical_item",
    "canonical_coupon",
    "canonical_tender",
    "canonical_subtaxes",
    "normalize",
    "StatsAggregator",
    "validate_query_fields",
    "fetch_window",
    "dump_records",
    "load_records",
    "suggested_filename",
]
