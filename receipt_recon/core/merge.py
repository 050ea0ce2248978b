# receipt_recon/core/merge.py

"""
Deep merge of two sightings of the same receipt.

`incoming` is always the newer side. Rules, applied recursively and keyed
on the incoming value's type:

- scalar:   incoming wins unless it is None, then existing is kept
- mapping:  recurse key by key (subTaxes merges tax code by tax code)
- list:     a non-empty incoming list replaces existing wholesale;
            an empty one keeps existing
- missing:  treated as {} / [] / None

Not commutative: swapping the operands changes the result whenever both
sides hold different non-null scalars.
"""

import copy
from typing import Any, Mapping, Optional


def merge_scalars(existing: Any, incoming: Any) -> Any:
    return existing if incoming is None else incoming


def merge_lists(existing: Optional[list], incoming: Optional[list]) -> list:
    # Line items carry no stable per-row identity across fetches
    if incoming:
        return copy.deepcopy(incoming)
    return copy.deepcopy(existing) if isinstance(existing, list) else []


def merge_objects(
    existing: Optional[Mapping[str, Any]],
    incoming: Optional[Mapping[str, Any]],
) -> dict:
    existing = existing if isinstance(existing, Mapping) else {}
    incoming = incoming if isinstance(incoming, Mapping) else {}

    out = copy.deepcopy(dict(existing))
    for key, value in incoming.items():
        if isinstance(value, Mapping):
            out[key] = merge_objects(existing.get(key), value)
        elif isinstance(value, list):
            out[key] = merge_lists(existing.get(key), value)
        else:
            out[key] = merge_scalars(existing.get(key), value)
    return out


def merge_receipts(existing: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict:
    """Merge two raw receipts with the same identity key. Inputs are not modified."""
    return merge_objects(existing, incoming)
