from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.trade import Trade
from app.services.snapshot_store import clear_trade_data, load_trade_data
from app.services.trade_store import SORT_KEYS, filter_trades, sort_trades

router = APIRouter(prefix="/api/trades", tags=["trades"])

ISO_DATE = r"^\d{4}-\d{2}-\d{2}$"


def load_saved_trades(db: Session) -> List[Trade]:
    snapshot = load_trade_data(db)
    return list(snapshot.trades) if snapshot else []


@router.get("")
def list_trades(
    date_from: Optional[str] = Query(None, pattern=ISO_DATE),
    date_to: Optional[str] = Query(None, pattern=ISO_DATE),
    symbol: Optional[str] = Query(None, max_length=50),
    sort: str = Query("id"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    """Saved trades, optionally narrowed by trading date range and symbol."""
    if sort not in SORT_KEYS:
        raise HTTPException(status_code=400, detail=f"Cannot sort by {sort!r}")

    snapshot = load_trade_data(db)
    if snapshot is None:
        return {"savedAt": None, "fileNames": [], "total": 0, "trades": []}

    trades = filter_trades(snapshot.trades, date_from, date_to, symbol)
    trades = sort_trades(trades, sort, descending=order == "desc")

    return {
        "savedAt": snapshot.saved_at.isoformat() if snapshot.saved_at else None,
        "fileNames": snapshot.file_names,
        "total": len(snapshot.trades),
        "trades": [t.model_dump(mode="json", by_alias=True) for t in trades],
    }


@router.delete("")
def delete_trades(db: Session = Depends(get_db)):
    if not clear_trade_data(db):
        raise HTTPException(status_code=500, detail="Could not clear saved trades")
    return {"cleared": True}
