# receipt_recon/core/identity.py

"""
Identity resolution for raw receipts.

Identity key = membershipNumber (or the unknown-member sentinel) joined with
transactionBarcode. The barcode is the only field that makes a receipt
re-identifiable on a later run, so a receipt without one is rejected.
"""

import logging
from typing import Any, Mapping, Optional

from receipt_recon.models import Identity, RecordSource
from receipt_recon.core.errors import IdentityError, SOURCE_LABELS
from receipt_recon.config import get_settings

logger = logging.getLogger(__name__)


def partition_key_for(raw: Mapping[str, Any], unknown_member: Optional[str] = None) -> str:
    """Membership number, or the sentinel when absent or empty."""
    if unknown_member is None:
        unknown_member = get_settings().unknown_member_key
    member = raw.get("membershipNumber")
    return str(member) if member else unknown_member


def resolve_identity(
    raw: Mapping[str, Any],
    source: RecordSource = "fetched",
    index: Optional[int] = None,
) -> Identity:
    """
    Derive the deduplication identity of a raw receipt.

    Raises IdentityError when transactionBarcode is absent or empty. The
    diagnostic block is logged before raising so a human can locate the
    receipt (warehouse/register/transaction number rebuild the barcode).
    """
    settings = get_settings()
    barcode = raw.get("transactionBarcode")

    if not barcode:
        error = IdentityError(source, raw, index=index)
        _log_identity_failure(error)
        raise error

    partition_key = partition_key_for(raw, settings.unknown_member_key)
    return Identity(
        partition_key=partition_key,
        unique_key=f"{partition_key}{settings.identity_separator}{barcode}",
    )


def _log_identity_failure(error: IdentityError) -> None:
    d = error.diagnostics
    logger.error(
        "INVALID RECEIPT - missing transactionBarcode\n"
        f"  Source          : {SOURCE_LABELS[error.source]}\n"
        f"  Membership      : {d['membershipNumber']}\n"
        f"  TransactionDate : {d['transactionDateTime']}\n"
        f"  Warehouse       : {d['warehouseNumber']}\n"
        f"  Register        : {d['registerNumber']}\n"
        f"  Transaction No  : {d['transactionNumber']}\n"
        f"  Payload         : {error.payload}"
    )
