from dataclasses import dataclass, field
from datetime import timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from app.schemas.trade import Trade


@dataclass
class MergeResult:
    merged: List[Trade] = field(default_factory=list)
    added: int = 0
    skipped: int = 0


def _instant_key(value) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _num_key(value: float) -> str:
    # 100 and 100.0 must produce the same key
    return repr(float(value))


def trade_fingerprint(trade: Trade) -> str:
    """
    Dedup key: symbol | entry time | exit time | pnl | entry price | exit price | qty.

    Instants are normalized to UTC so the same moment serialized with
    different offsets yields the same key.
    """
    return "|".join(
        [
            trade.symbol or "",
            _instant_key(trade.entry_time),
            _instant_key(trade.exit_time),
            _num_key(trade.pnl),
            _num_key(trade.entry_price),
            _num_key(trade.exit_price),
            str(trade.qty or 1),
        ]
    )


def sort_by_exit(trades: Iterable[Trade]) -> List[Trade]:
    return sorted(trades, key=lambda t: t.exit_time)


def renumber_trades(trades: Sequence[Trade]) -> List[Trade]:
    """Copies of `trades` with dense 1-based ids, in the given order."""
    return [t.model_copy(update={"id": i}) for i, t in enumerate(trades, start=1)]


def merge_trades(existing: Sequence[Trade], incoming: Sequence[Trade]) -> MergeResult:
    """
    Append incoming trades not already present (by fingerprint).

    Neither input is modified; the merged list holds renumbered copies sorted
    by exit time.
    """
    seen = {trade_fingerprint(t) for t in existing}
    combined = list(existing)
    added = 0
    skipped = 0

    for trade in incoming:
        fp = trade_fingerprint(trade)
        if fp in seen:
            skipped += 1
            continue
        seen.add(fp)
        combined.append(trade)
        added += 1

    return MergeResult(
        merged=renumber_trades(sort_by_exit(combined)),
        added=added,
        skipped=skipped,
    )


def filter_trades(
    trades: Iterable[Trade],
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    symbol: Optional[str] = None,
) -> List[Trade]:
    """
    Trades whose trading date lies in [date_from, date_to] (ISO dates, both
    inclusive, either may be omitted) and whose symbol contains `symbol`,
    ignoring case.
    """
    needle = (symbol or "").lower()
    out: List[Trade] = []
    for t in trades:
        if date_from and t.trade_date < date_from:
            continue
        if date_to and t.trade_date > date_to:
            continue
        if needle and needle not in (t.symbol or "").lower():
            continue
        out.append(t)
    return out


# Sortable columns of the trade list, by their serialized names.
SORT_KEYS: Dict[str, Callable[[Trade], Any]] = {
    "id": lambda t: t.id,
    "tradeDate": lambda t: t.trade_date,
    "symbol": lambda t: (t.symbol or "").lower(),
    "qty": lambda t: t.qty,
    "buyPrice": lambda t: t.entry_price,
    "sellPrice": lambda t: t.exit_price,
    "pnl": lambda t: t.pnl,
    "commission": lambda t: t.commission,
    "duration": lambda t: t.duration_seconds,
}


def sort_trades(
    trades: Iterable[Trade],
    column: str = "id",
    descending: bool = False,
) -> List[Trade]:
    """Stable sort on one of SORT_KEYS; ties keep their incoming order."""
    return sorted(trades, key=SORT_KEYS[column], reverse=descending)
