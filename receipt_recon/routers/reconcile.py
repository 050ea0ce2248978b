# receipt_recon/routers/reconcile.py

"""
Reconciliation routes.

The caller supplies both sides (the previously saved file and the freshly
fetched receipts); the service returns the merged file contents.
"""

from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from receipt_recon.core.pipeline import reconcile
from receipt_recon.core.errors import IdentityError, ConfigurationError, RecordShapeError
from receipt_recon.core.schema import schema_description
from receipt_recon.core.upstream import validate_query_fields, build_receipts_query
from receipt_recon.core.export import dump_records, load_records, suggested_filename

router = APIRouter()


# ============================================
# Request/Response Models
# ============================================

class ReconcileRequest(BaseModel):
    existing: list[dict[str, Any]] = Field(default_factory=list)
    fetched: list[dict[str, Any]] = Field(default_factory=list)
    # Raw contents of a previously saved file, read ahead of `existing`
    existing_file: Optional[str] = None
    preserve_unknown: Optional[bool] = None
    include_file: bool = False


class ReconcileResponse(BaseModel):
    success: bool
    summary: dict
    members: dict
    anomalies: list
    records: list
    filename: Optional[str] = None
    file: Optional[str] = None
    duration_ms: int


class QueryCheckRequest(BaseModel):
    query: str


# ============================================
# Main Reconciliation Endpoint
# ============================================

@router.post("/reconcile", response_model=ReconcileResponse)
async def run_reconciliation(request: ReconcileRequest):
    """
    Merge existing and fetched receipts.

    1. Reads `existing_file` when given (422 if it is not a JSON array of objects)
    2. Validates every receipt's identity (422 on the first one without a barcode)
    3. Deduplicates and deep-merges, fetched side winning
    4. Normalizes to the canonical schema and sorts oldest first
    5. Returns the file contents too when `include_file` is set
    """
    existing = list(request.existing)
    if request.existing_file is not None:
        try:
            existing = load_records(request.existing_file) + existing
        except ValueError as e:
            raise HTTPException(
                status_code=422,
                detail={"error": "invalid_existing_file", "message": str(e)},
            )

    try:
        result = reconcile(
            existing,
            request.fetched,
            preserve_unknown=request.preserve_unknown,
        )
    except (IdentityError, RecordShapeError) as e:
        raise HTTPException(status_code=422, detail=e.to_dict())

    payload = result.to_dict()
    return ReconcileResponse(
        success=True,
        summary=payload["summary"],
        members=payload["members"],
        anomalies=payload["anomalies"],
        records=payload["records"],
        filename=None if result.is_empty else suggested_filename(result.records),
        file=dump_records(result.records) if request.include_file else None,
        duration_ms=result.duration_ms,
    )


# ============================================
# Schema & Query Contract
# ============================================

@router.get("/schema")
async def get_schema():
    """Canonical attribute enumeration and its version."""
    return schema_description()


@router.get("/query")
async def get_receipts_query():
    """The receipts query upstream fetchers should send."""
    return {"query": build_receipts_query()}


@router.post("/query/validate")
async def validate_query(request: QueryCheckRequest):
    """Reject a receipts query that does not request the identity fields."""
    try:
        missing_optional = validate_query_fields(request.query)
    except ConfigurationError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "missing_required_fields", "missing_fields": e.missing_fields},
        )

    return {
        "valid": True,
        "missing_reconstruction_fields": missing_optional,
    }
