# receipt_recon/core/export.py

"""
Serialization of reconciled receipts.

Output is a pretty-printed JSON array (UTF-8, indent 2) so successive files
diff cleanly. Writing the file is left to the caller.
"""

from typing import Any, Iterable
import json

from receipt_recon.models import Receipt

FILENAME_PREFIX = "Costco_In-Warehouse_Receipts"


def dump_records(records: Iterable[Receipt]) -> str:
    return json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)


def load_records(text: str | bytes) -> list[dict[str, Any]]:
    """
    Parse a previously saved receipts file into raw receipts.

    Raises ValueError when the content is not a JSON array of objects.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8")

    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of receipts, got {type(data).__name__}")

    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Receipt {i} is not a JSON object")

    return data


def suggested_filename(records: Iterable[Receipt]) -> str:
    """Name the file after its member, or the member count when several."""
    members = []
    for record in records:
        member = record.membershipNumber
        if member and member not in members:
            members.append(member)

    if len(members) == 1:
        return f"{FILENAME_PREFIX}_{members[0]}.json"
    if len(members) > 1:
        return f"{FILENAME_PREFIX}_{len(members)}-Members.json"
    return f"{FILENAME_PREFIX}.json"
