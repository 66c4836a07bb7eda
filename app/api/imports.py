import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.services.snapshot_store import clear_trade_data, import_into_store
from app.services.trade_import import ImportOutcome, reconstruct_trades

router = APIRouter(prefix="/api/import", tags=["imports"])


async def _read_csv_upload(file: UploadFile) -> str:
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a CSV file")

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Empty CSV")

    return contents.decode(errors="replace")


def _parse_mapping(raw: Optional[str]) -> Optional[Dict[str, str]]:
    """`mapping` form field: JSON object of canonical field -> CSV header."""
    if not raw:
        return None
    try:
        mapping = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="mapping must be a JSON object")
    if not isinstance(mapping, dict):
        raise HTTPException(status_code=400, detail="mapping must be a JSON object")
    return {str(k): str(v) for k, v in mapping.items() if v}


def _outcome_body(outcome: ImportOutcome) -> Dict[str, Any]:
    return {
        "status": outcome.status.value,
        "format": outcome.csv_format.value,
        "message": outcome.message,
        "rows": outcome.rows,
        "headers": outcome.headers,
        "mapping": outcome.mapping,
        "missing": outcome.missing,
        "defaulted_fields": outcome.defaulted_fields,
    }


def _reconstruct_or_422(text: str, mapping: Optional[Dict[str, str]]) -> ImportOutcome:
    outcome = reconstruct_trades(text, mapping)
    if not outcome.ok:
        # empty / unknown format / mapping needed / nothing matched
        raise HTTPException(
            status_code=422,
            detail=_outcome_body(outcome),
        )
    return outcome


@router.post("/csv", status_code=status.HTTP_200_OK)
async def import_csv(
    file: UploadFile = File(...),
    mapping: Optional[str] = Form(None),
    mode: str = Query("append", pattern="^(append|replace)$"),
    db: Session = Depends(get_db),
):
    """Import a Tradovate CSV and merge its trades into the saved history."""
    text = await _read_csv_upload(file)
    outcome = _reconstruct_or_422(text, _parse_mapping(mapping))

    if mode == "replace" and not clear_trade_data(db):
        raise HTTPException(status_code=500, detail="Could not clear saved trades")

    try:
        result = import_into_store(db, outcome.trades, file.filename)
    except RuntimeError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    body = _outcome_body(outcome)
    body.update(
        {
            "file": file.filename,
            "mode": mode,
            "reconstructed": len(outcome.trades),
            "added": result.added,
            "skipped": result.skipped,
            "total": len(result.merged),
        }
    )
    return body


@router.post("/preview")
async def preview_csv(
    file: UploadFile = File(...),
    mapping: Optional[str] = Form(None),
    limit: int = Query(50, ge=1, le=1000),
):
    """Reconstruct trades without saving them."""
    text = await _read_csv_upload(file)
    outcome = _reconstruct_or_422(text, _parse_mapping(mapping))

    body = _outcome_body(outcome)
    body["count"] = len(outcome.trades)
    body["trades"] = [t.model_dump(mode="json", by_alias=True) for t in outcome.trades[:limit]]
    return body
