"""
Saved trade history: one versioned snapshot row per storage key.
"""
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.snapshot import TradeSnapshot
from app.schemas.snapshot import Snapshot, build_snapshot, dump_snapshot, parse_snapshot
from app.schemas.trade import Trade
from app.services.trade_store import MergeResult, merge_trades

logger = logging.getLogger(__name__)

STORAGE_KEY = os.environ.get("TRADE_JOURNAL_STORAGE_KEY", "tradovate_analytics_data")


def _get_row(db: Session, storage_key: str) -> Optional[TradeSnapshot]:
    return db.execute(
        select(TradeSnapshot).where(TradeSnapshot.storage_key == storage_key)
    ).scalar_one_or_none()


def save_trade_data(
    db: Session,
    trades: Sequence[Trade],
    file_names: Sequence[str],
    storage_key: str = STORAGE_KEY,
) -> bool:
    """Replace the saved snapshot. Returns False if the write failed."""
    snapshot = build_snapshot(trades, list(file_names))

    try:
        row = _get_row(db, storage_key)
        if row is None:
            row = TradeSnapshot(storage_key=storage_key)
            db.add(row)
        row.payload = dump_snapshot(snapshot)
        row.saved_at = snapshot.saved_at or datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save trade snapshot %r", storage_key)
        return False

    logger.info("Saved %d trade(s) under %r", len(snapshot.trades), storage_key)
    return True


def load_trade_data(db: Session, storage_key: str = STORAGE_KEY) -> Optional[Snapshot]:
    row = _get_row(db, storage_key)
    if row is None:
        return None
    return parse_snapshot(row.payload)


def clear_trade_data(db: Session, storage_key: str = STORAGE_KEY) -> bool:
    try:
        db.execute(delete(TradeSnapshot).where(TradeSnapshot.storage_key == storage_key))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to clear trade snapshot %r", storage_key)
        return False
    return True


def has_saved_data(db: Session, storage_key: str = STORAGE_KEY) -> bool:
    snapshot = load_trade_data(db, storage_key)
    return snapshot is not None and len(snapshot.trades) > 0


def import_into_store(
    db: Session,
    trades: Sequence[Trade],
    file_name: Optional[str] = None,
    storage_key: str = STORAGE_KEY,
) -> MergeResult:
    """
    Merge freshly reconstructed trades into the saved history and persist it.

    The file name is appended to the snapshot's file list once.
    """
    snapshot = load_trade_data(db, storage_key)
    existing: List[Trade] = list(snapshot.trades) if snapshot else []
    file_names: List[str] = list(snapshot.file_names) if snapshot else []

    result = merge_trades(existing, trades)

    if file_name and file_name not in file_names:
        file_names.append(file_name)

    if not save_trade_data(db, result.merged, file_names, storage_key):
        raise RuntimeError("could not persist merged trades")

    logger.info(
        "%s: %d added, %d duplicate(s) skipped, %d total",
        file_name or "<upload>",
        result.added,
        result.skipped,
        len(result.merged),
    )
    return result
