# receipt_recon/core/errors.py

"""
Failure modes of a reconciliation run.

Every error here is fatal to the whole run: nothing is returned and the caller
decides whether to retry with corrected input.
"""

from typing import Any, Mapping, Optional

from receipt_recon.models import RecordSource

DIAGNOSTIC_FIELDS = (
    "membershipNumber",
    "transactionDateTime",
    "warehouseNumber",
    "registerNumber",
    "transactionNumber",
)

SOURCE_LABELS = {
    "existing": "Existing receipt file",
    "fetched": "Receipts API",
}


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class ConfigurationError(ReconciliationError):
    """The upstream query does not request a mandatory identity field."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            "Query does not request required receipt identity fields: "
            + ", ".join(self.missing_fields)
        )


class IdentityError(ReconciliationError):
    """A raw receipt has no transactionBarcode and can never be deduplicated."""

    def __init__(
        self,
        source: RecordSource,
        payload: Mapping[str, Any],
        index: Optional[int] = None,
    ):
        self.source = source
        self.index = index
        self.payload = dict(payload)
        self.diagnostics = {
            field: payload.get(field) or "UNKNOWN" for field in DIAGNOSTIC_FIELDS
        }
        super().__init__(
            f"Receipt from {SOURCE_LABELS[source]} is missing transactionBarcode "
            f"(membership {self.diagnostics['membershipNumber']}, "
            f"date {self.diagnostics['transactionDateTime']}). "
            "Fix the input data or the receipts query and re-run."
        )

    def to_dict(self) -> dict:
        return {
            "error": "missing_transaction_barcode",
            "source": self.source,
            "index": self.index,
            "diagnostics": self.diagnostics,
            "payload": self.payload,
        }


class RecordShapeError(ReconciliationError):
    """A nested collection holds an entry that is not an object."""

    def __init__(self, collection: str, index: int, value: Any, barcode: Any = None):
        self.collection = collection
        self.index = index
        self.value = value
        self.barcode = barcode
        super().__init__(
            f"Receipt {barcode or 'UNKNOWN'}: {collection}[{index}] is "
            f"{type(value).__name__}, expected an object"
        )

    def to_dict(self) -> dict:
        return {
            "error": "malformed_nested_entry",
            "collection": self.collection,
            "index": self.index,
            "transactionBarcode": self.barcode,
            "value": self.value,
        }
