# receipt_recon/core/pipeline.py

"""
Reconciliation pipeline.

Stages, strictly in order:
1. concatenate existing ++ fetched
2. resolve every identity (one bad receipt aborts the run)
3. group by identity key, merging later sightings into earlier ones
4. normalize each merged receipt to the canonical schema
5. stable sort by transactionDateTime, oldest first
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional
import logging
import re

from receipt_recon.models import (
    RECEIPT_SCHEMA_VERSION,
    Identity,
    Receipt,
    MergeAnomaly,
    ReconciliationSummary,
)
from receipt_recon.core.identity import resolve_identity
from receipt_recon.core.merge import merge_receipts
from receipt_recon.core.schema import normalize
from receipt_recon.core.stats import StatsAggregator

logger = logging.getLogger(__name__)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
_FRACTION = re.compile(r"(?<=:\d\d)\.(\d+)")


def _pad_fraction(match: re.Match) -> str:
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    return "." + match.group(1)[:6].ljust(6, "0")


class ReconciliationResult:
    """Result of a reconciliation run."""

    def __init__(self):
        self.records: list[Receipt] = []
        self.stats: Optional[StatsAggregator] = None
        self.summary: Optional[ReconciliationSummary] = None
        self.anomalies: list[MergeAnomaly] = []
        self.duration_ms: int = 0

    @property
    def is_empty(self) -> bool:
        """Nothing to persist."""
        return not self.records

    @property
    def duplicates_removed(self) -> int:
        return self.summary.duplicates_removed if self.summary else 0

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "summary": self.summary.model_dump() if self.summary else None,
            "members": self.stats.report() if self.stats else {},
            "anomalies": [a.model_dump() for a in self.anomalies],
            "records": [r.to_dict() for r in self.records],
            "duration_ms": self.duration_ms,
        }


# ============================================
# Timestamps
# ============================================

def parse_transaction_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 transactionDateTime.

    Naive values are read as UTC. Returns None when the value is missing or
    cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            text = _FRACTION.sub(_pad_fraction, value.strip().replace("Z", "+00:00"))
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_receipts(records: Iterable[Receipt]) -> list[Receipt]:
    """Oldest first. Stable; undated receipts go last in input order."""
    keyed = []
    for record in records:
        parsed = parse_transaction_datetime(record.transactionDateTime)
        if parsed is None:
            logger.warning(
                f"Receipt {record.transactionBarcode} has no parseable "
                f"transactionDateTime ({record.transactionDateTime!r}); sorting it last"
            )
        keyed.append((parsed is None, parsed or _EARLIEST, record))

    keyed.sort(key=lambda entry: (entry[0], entry[1]))
    return [record for _, _, record in keyed]


# ============================================
# Pipeline
# ============================================

def resolve_all(
    existing: list[Mapping[str, Any]],
    fetched: list[Mapping[str, Any]],
) -> list[Identity]:
    """Identities for existing ++ fetched, in order. Raises on the first failure."""
    identities = [
        resolve_identity(raw, source="existing", index=i)
        for i, raw in enumerate(existing)
    ]
    identities.extend(
        resolve_identity(raw, source="fetched", index=i)
        for i, raw in enumerate(fetched)
    )
    return identities


def reconcile(
    existing: Optional[Iterable[Mapping[str, Any]]],
    fetched: Iterable[Mapping[str, Any]],
    *,
    preserve_unknown: Optional[bool] = None,
    repeated_threshold: Optional[int] = None,
) -> ReconciliationResult:
    """
    Main reconciliation function.

    Merges previously saved receipts with freshly fetched ones into a single
    deduplicated, canonical, chronologically ordered list. Raises
    IdentityError before producing anything if any receipt lacks a barcode,
    and RecordShapeError if a nested array holds an entry that is not an object.
    """
    start_time = datetime.now()
    result = ReconciliationResult()

    existing = list(existing or [])
    fetched = list(fetched)

    # ============================================
    # Concatenate
    # ============================================
    all_raw = existing + fetched
    logger.info(
        f"Merging {len(existing)} existing receipts with {len(fetched)} "
        f"fetched receipts = {len(all_raw)} total"
    )

    # ============================================
    # Identity check
    # ============================================
    identities = resolve_all(existing, fetched)

    # ============================================
    # Group & merge
    # ============================================
    stats = StatsAggregator()
    grouped: dict[str, Mapping[str, Any]] = {}
    seen_in_fetch: set[str] = set()
    duplicates_removed = 0

    for position, (raw, identity) in enumerate(zip(all_raw, identities)):
        key = identity.unique_key
        is_fetched = position >= len(existing)

        if is_fetched:
            stats.record_fetched(identity.partition_key)
            if key in seen_in_fetch:
                stats.record_repeated(identity.partition_key)
            seen_in_fetch.add(key)
        else:
            stats.record_existing(identity.partition_key)

        if key not in grouped:
            grouped[key] = raw
            if is_fetched:
                stats.record_unique(identity.partition_key)
        else:
            grouped[key] = merge_receipts(grouped[key], raw)
            duplicates_removed += 1

    logger.info(f"Deduplication complete: removed {duplicates_removed} duplicate receipts")
    logger.info(f"Final unique receipt count is {len(grouped)}")

    # ============================================
    # Normalize, then sort
    # ============================================
    records = [normalize(raw, preserve_unknown=preserve_unknown) for raw in grouped.values()]
    result.records = sort_receipts(records)
    if result.records:
        logger.info("Receipts sorted oldest -> newest")
    else:
        logger.info("No unique receipts found; nothing to persist")

    # ============================================
    # Statistics
    # ============================================
    result.stats = stats
    result.anomalies = stats.anomalies(repeated_threshold)
    for anomaly in result.anomalies:
        logger.warning(anomaly.message)
    stats.log_report(unique_saved=len(result.records))

    totals = stats.totals
    result.summary = ReconciliationSummary(
        total_existing=len(existing),
        total_fetched=len(fetched),
        total_input=len(all_raw),
        unique_records=len(result.records),
        duplicates_removed=duplicates_removed,
        members=totals["members"],
        new_merged=totals["new_merged"],
        schema_version=RECEIPT_SCHEMA_VERSION,
    )

    result.duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)

    return result
