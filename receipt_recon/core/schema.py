# receipt_recon/core/schema.py

"""
Schema registry: canonical defaults and normalization.

Normalization is a storage contract, not an identity or comparison
mechanism. It runs once, after deduplication and merge are final. Running
it earlier fills in default nulls that the merge would then mistake for
"this source had no value".
"""

import logging
from typing import Any, Mapping, Optional, Type

from pydantic import BaseModel

from receipt_recon.models import (
    RECEIPT_SCHEMA_VERSION,
    SCHEMA_VERSION_KEY,
    Receipt,
    Item,
    Coupon,
    SubTaxes,
    Tender,
)
from receipt_recon.core.errors import RecordShapeError
from receipt_recon.config import get_settings

logger = logging.getLogger(__name__)

NESTED_SEQUENCES: dict[str, Type[BaseModel]] = {
    "itemArray": Item,
    "couponArray": Coupon,
    "tenderArray": Tender,
}
NESTED_OBJECTS: dict[str, Type[BaseModel]] = {
    "subTaxes": SubTaxes,
}


# ============================================
# Canonical factories
# ============================================

def canonical_record() -> Receipt:
    """Fresh receipt with every attribute defaulted, stamped with the current version."""
    return Receipt()


def canonical_item() -> Item:
    return Item()


def canonical_coupon() -> Coupon:
    return Coupon()


def canonical_tender() -> Tender:
    return Tender()


def canonical_subtaxes() -> SubTaxes:
    return SubTaxes()


def canonical_fields(model: Type[BaseModel]) -> list[str]:
    """Attribute names of a canonical model, as they appear in persisted files."""
    return [info.alias or name for name, info in model.model_fields.items()]


def schema_description() -> dict:
    """The full canonical enumeration, keyed by structure."""
    return {
        "schema_version": RECEIPT_SCHEMA_VERSION,
        "receipt": canonical_fields(Receipt),
        "itemArray": canonical_fields(Item),
        "couponArray": canonical_fields(Coupon),
        "subTaxes": canonical_fields(SubTaxes),
        "tenderArray": canonical_fields(Tender),
    }


# ============================================
# Schema versions
# ============================================

def _version_tuple(version: Any) -> tuple[int, ...]:
    try:
        return tuple(int(part) for part in str(version).split("."))
    except ValueError:
        return ()


def is_newer_version(version: Any) -> bool:
    """True when a version string is ahead of the one this registry implements."""
    return _version_tuple(version) > _version_tuple(RECEIPT_SCHEMA_VERSION)


def _stamp_for(raw_version: Any) -> str:
    if raw_version is not None and is_newer_version(raw_version):
        logger.warning(
            f"Receipt carries schema version {raw_version}, newer than "
            f"{RECEIPT_SCHEMA_VERSION}. Keeping its stamp; it will not be migrated."
        )
        return str(raw_version)
    return RECEIPT_SCHEMA_VERSION


# ============================================
# Normalization
# ============================================

def _overlay(model: Type[BaseModel], raw: Mapping[str, Any], preserve_unknown: bool) -> dict:
    """
    Collect the overrides a raw mapping applies on top of a model's defaults.

    Known attributes override only when not None. Unknown attributes are
    carried as-is when preserve_unknown is set, otherwise dropped.
    """
    known = set(canonical_fields(model))
    overrides = {}
    for key, value in raw.items():
        if key in known:
            if value is not None:
                overrides[key] = value
        elif preserve_unknown:
            overrides[key] = value
    return overrides


def _overlay_element(
    model: Type[BaseModel],
    collection: str,
    index: int,
    element: Any,
    receipt: Mapping[str, Any],
    preserve_unknown: bool,
) -> dict:
    """A null entry becomes a default row; any other non-object is rejected."""
    if element is None:
        return {}
    if not isinstance(element, Mapping):
        raise RecordShapeError(collection, index, element, receipt.get("transactionBarcode"))
    return _overlay(model, element, preserve_unknown)


def normalize(
    raw: Mapping[str, Any] | BaseModel,
    *,
    preserve_unknown: Optional[bool] = None,
) -> Receipt:
    """
    Convert a raw or merged receipt into canonical shape.

    Every canonical attribute is present in the result. Nested sequences are
    normalized element-wise and subTaxes recursively; a missing or null
    sequence becomes [] and a missing subTaxes becomes the default object.
    Pure: the input is never modified.
    """
    if preserve_unknown is None:
        preserve_unknown = get_settings().preserve_unknown_fields

    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=True)

    data = _overlay(Receipt, raw, preserve_unknown)
    data[SCHEMA_VERSION_KEY] = _stamp_for(raw.get(SCHEMA_VERSION_KEY))

    for key, model in NESTED_SEQUENCES.items():
        value = raw.get(key)
        if isinstance(value, list):
            data[key] = [
                _overlay_element(model, key, i, element, raw, preserve_unknown)
                for i, element in enumerate(value)
            ]
        else:
            data[key] = []

    for key, model in NESTED_OBJECTS.items():
        value = raw.get(key)
        data[key] = _overlay(model, value, preserve_unknown) if isinstance(value, Mapping) else {}

    return Receipt.model_validate(data)
