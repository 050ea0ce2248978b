# receipt_recon/core/stats.py

"""
Per-member statistics for a reconciliation run.

Purely observational: the pipeline reports its grouping decisions here and
nothing in this module feeds back into the merge. Receipts without a
membership number are not attributed to any member.
"""

import logging
from typing import Optional

from receipt_recon.models import PartitionStats, MergeAnomaly
from receipt_recon.config import get_settings

logger = logging.getLogger(__name__)


class StatsAggregator:
    """Counters for one run. Each run owns a fresh instance."""

    def __init__(self, unknown_member: Optional[str] = None):
        if unknown_member is None:
            unknown_member = get_settings().unknown_member_key
        self.unknown_member = unknown_member
        self.partitions: dict[str, PartitionStats] = {}

    def _bump(self, partition_key: str, counter: str) -> None:
        if partition_key == self.unknown_member:
            return
        stats = self.partitions.setdefault(partition_key, PartitionStats())
        setattr(stats, counter, getattr(stats, counter) + 1)

    def record_existing(self, partition_key: str) -> None:
        self._bump(partition_key, "existing")

    def record_fetched(self, partition_key: str) -> None:
        self._bump(partition_key, "new")

    def record_unique(self, partition_key: str) -> None:
        """A fetched receipt introduced an identity key not seen before."""
        self._bump(partition_key, "unique")

    def record_repeated(self, partition_key: str) -> None:
        """A fetched receipt repeated a key already seen in the same fetch."""
        self._bump(partition_key, "repeated")

    # ============================================
    # Reporting
    # ============================================

    def get(self, partition_key: str) -> PartitionStats:
        return self.partitions.get(partition_key, PartitionStats())

    @property
    def totals(self) -> dict:
        values = self.partitions.values()
        return {
            "members": len(self.partitions),
            "existing": sum(s.existing for s in values),
            "fetched": sum(s.new for s in values),
            "new_merged": sum(s.unique for s in values),
        }

    def report(self) -> dict[str, dict]:
        return {key: stats.report() for key, stats in self.partitions.items()}

    def anomalies(self, threshold: Optional[int] = None) -> list[MergeAnomaly]:
        """Members whose fetched batch repeated identity keys more than `threshold` times."""
        if threshold is None:
            threshold = get_settings().repeated_fetch_threshold

        found = []
        for key, stats in self.partitions.items():
            if stats.repeated > threshold:
                found.append(MergeAnomaly(
                    partition_key=key,
                    repeated=stats.repeated,
                    fetched=stats.new,
                    message=(
                        f"Fetched batch for member {key} repeated "
                        f"{stats.repeated} of {stats.new} receipts"
                    ),
                ))
        return found

    def log_report(self, unique_saved: int) -> None:
        for key, stats in self.partitions.items():
            logger.info(
                f"Member {key}: existing={stats.existing} fetched={stats.new} "
                f"duplicates_in_fetch={stats.duplicates_in_fetch} "
                f"new_unique={stats.unique} total_saved={stats.final_saved}"
            )

        totals = self.totals
        logger.info(
            f"Totals: members={totals['members']} existing={totals['existing']} "
            f"fetched={totals['fetched']} new_merged={totals['new_merged']} "
            f"unique_saved={unique_saved}"
        )
