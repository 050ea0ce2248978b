# receipt_recon/models/reconciliation.py

from typing import Literal
from pydantic import BaseModel

RecordSource = Literal["existing", "fetched"]


# ============================================
# Identity
# ============================================

class Identity(BaseModel):
    """Deduplication identity of a raw receipt."""

    partition_key: str
    unique_key: str

    class Config:
        frozen = True


# ============================================
# Statistics
# ============================================

class PartitionStats(BaseModel):
    """Per-member counters observed during a reconciliation run."""

    existing: int = 0
    new: int = 0
    unique: int = 0
    repeated: int = 0

    @property
    def duplicates_in_fetch(self) -> int:
        return self.new - self.unique

    @property
    def final_saved(self) -> int:
        return self.existing + self.unique

    def report(self) -> dict:
        return {
            "existing": self.existing,
            "fetched": self.new,
            "duplicates_in_fetch": self.duplicates_in_fetch,
            "new_unique": self.unique,
            "repeated_in_fetch": self.repeated,
            "total_saved": self.final_saved,
        }


class MergeAnomaly(BaseModel):
    """Informational: a member's fetched batch repeated identity keys."""

    partition_key: str
    repeated: int
    fetched: int
    message: str


# ============================================
# Reconciliation Run
# ============================================

class ReconciliationSummary(BaseModel):
    """Summary of a reconciliation run."""

    total_existing: int
    total_fetched: int
    total_input: int
    unique_records: int
    duplicates_removed: int
    members: int
    new_merged: int = 0
    schema_version: str
