# receipt_recon/core/upstream.py

"""
Contract with the upstream receipts service.

The fetch itself happens elsewhere. This module renders the receipts query
from the schema registry, checks that a query requests the identity fields
the pipeline depends on, and computes the date window to fetch.
"""

from datetime import date
from typing import Iterable, Optional
import logging
import re

from receipt_recon.models import Receipt, Item, Coupon, SubTaxes, Tender
from receipt_recon.core.schema import canonical_fields
from receipt_recon.core.errors import ConfigurationError
from receipt_recon.config import get_settings

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("transactionBarcode", "membershipNumber", "transactionDateTime")
RECONSTRUCTION_FIELDS = ("warehouseNumber", "registerNumber", "transactionNumber")

_NESTED_BLOCKS = (
    ("itemArray", Item),
    ("couponArray", Coupon),
    ("subTaxes", SubTaxes),
    ("tenderArray", Tender),
)
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def build_receipts_query() -> str:
    """GraphQL receipts query requesting every canonical attribute."""
    nested = {name for name, _ in _NESTED_BLOCKS}
    lines = [
        "query receipts($startDate: String!, $endDate: String!) {",
        "  receipts(startDate: $startDate, endDate: $endDate) {",
    ]
    for field in canonical_fields(Receipt):
        if field.startswith("__") or field in nested:
            continue
        lines.append(f"    {field}")
    for name, model in _NESTED_BLOCKS:
        lines.append(f"    {name} {{")
        lines.extend(f"      {field}" for field in canonical_fields(model))
        lines.append("    }")
    lines.extend(["  }", "}"])
    return "\n".join(lines)


def validate_query_fields(query: str | Iterable[str]) -> list[str]:
    """
    Check that a receipts query requests the fields reconciliation relies on.

    Accepts the query text or an iterable of requested field names. Raises
    ConfigurationError when an identity field is missing. Missing
    reconstruction fields are not fatal; they are logged and returned.
    """
    requested = set(_NAME.findall(query)) if isinstance(query, str) else set(query)

    missing_required = [f for f in REQUIRED_FIELDS if f not in requested]
    if missing_required:
        logger.error(f"Receipts query is missing required fields: {missing_required}")
        raise ConfigurationError(missing_required)

    missing_reconstruction = [f for f in RECONSTRUCTION_FIELDS if f not in requested]
    if missing_reconstruction:
        logger.warning(
            "Barcode reconstruction would be impossible; query does not request "
            f"{missing_reconstruction}"
        )

    return missing_reconstruction


def fetch_window(today: Optional[date] = None, years: Optional[int] = None) -> tuple[str, str]:
    """
    Date range to request, as ISO dates.

    Ends today; starts `years` back plus one further month, on the 1st.
    """
    if today is None:
        today = date.today()
    if years is None:
        years = get_settings().fetch_window_years

    year = today.year - years
    month = today.month - 1
    if month == 0:
        month = 12
        year -= 1

    return date(year, month, 1).isoformat(), today.isoformat()
