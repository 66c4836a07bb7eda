"""
FIFO reconstruction of closed trades from fills / filled orders.

Each contract gets its own queue of open one-lot units. An incoming unit on
the same side as the queue (or into an empty queue) opens/extends the
position; an opposite unit closes the oldest queued unit and emits a trade.
Quantities are exploded into one-lot units first, so partial fills and
position flips fall out of the same loop.
"""
import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Tuple

from app.models.enums import ExecutionSide, TradeDirection
from app.schemas.execution import Execution
from app.schemas.trade import Trade
from app.services.instruments import (
    MultiplierCache,
    commission_rate,
    extract_root,
    resolve_commission,
    resolve_multiplier,
    round2,
)
from app.services.schema_detector import (
    AVG_PRICE_HEADERS,
    FILL_TIME_HEADERS,
    STATUS_HEADERS,
    find_column,
)
from app.services.trade_store import renumber_trades, sort_by_exit
from app.services.trading_calendar import session_date
from app.utils.csv_rows import ParsedCsv
from app.utils.durations import format_duration
from app.utils.imports import parse_money, parse_price, parse_quantity, parse_timestamp
from app.utils.side_parser import infer_side

logger = logging.getLogger(__name__)

ORDER_QTY_HEADERS = ("filledQty", "Filled Qty", "Quantity", "qty")
ORDER_ID_HEADERS = ("orderId", "Order ID", "_id")
NOTIONAL_HEADERS = ("Notional Value", "notionalValue")
FILLED_STATUS = "filled"


# -------------------------------------------------
# Row -> Execution
# -------------------------------------------------
def _defaulted(**fields) -> Tuple[str, ...]:
    return tuple(name for name, result in fields.items() if result.defaulted)


def executions_from_fills(parsed: ParsedCsv) -> List[Execution]:
    """Tradovate Fills export: one row per fill."""
    executions: List[Execution] = []

    for arrival, row in enumerate(parsed.records()):
        side = infer_side(row)
        qty = parse_quantity(row.get("_qty") or row.get("Quantity"))
        price = parse_price(row.get("_price") or row.get("Price"))
        ts = parse_timestamp(row.get("_timestamp") or row.get("Timestamp"))
        commission = parse_money(row.get("commission")) or 0.0

        symbol = row.get("Contract") or ""
        product = row.get("Product") or ""

        executions.append(
            Execution(
                side=side.value,
                price=price.value,
                quantity=qty.value,
                timestamp=ts.value,
                symbol=symbol,
                root=product or extract_root(symbol),
                commission=abs(commission),
                sequence=row.get("_id") or row.get("Fill ID") or "",
                contract_key=row.get("_contractId") or symbol,
                product_description=row.get("Product Description") or "",
                arrival=arrival,
                defaulted=_defaulted(side=side, quantity=qty, price=price, timestamp=ts),
            )
        )

    return executions


def executions_from_orders(parsed: ParsedCsv) -> List[Execution]:
    """
    Tradovate Orders export: one row per order.

    Only orders in the terminal Filled state take part; cancelled, rejected
    and working orders are skipped.
    """
    headers = parsed.headers
    status_col = find_column(headers, STATUS_HEADERS)
    price_col = find_column(headers, AVG_PRICE_HEADERS)
    time_col = find_column(headers, FILL_TIME_HEADERS)
    qty_col = find_column(headers, ORDER_QTY_HEADERS)
    id_col = find_column(headers, ORDER_ID_HEADERS)
    notional_col = find_column(headers, NOTIONAL_HEADERS)

    executions: List[Execution] = []
    skipped = 0

    for arrival, row in enumerate(parsed.records()):
        status = (row.get(status_col) or "").strip().lower() if status_col else ""
        if not status.startswith(FILLED_STATUS):
            skipped += 1
            continue

        side = infer_side(row)
        qty = parse_quantity(row.get(qty_col) if qty_col else None)
        price = parse_price(row.get(price_col) if price_col else None)
        ts = parse_timestamp(
            (row.get(time_col) if time_col else None) or row.get("Timestamp")
        )

        notional: Optional[float] = None
        if notional_col:
            total = parse_money(row.get(notional_col))
            if total is not None and total > 0:
                notional = total / qty.value

        symbol = row.get("Contract") or ""
        product = row.get("Product") or ""

        executions.append(
            Execution(
                side=side.value,
                price=price.value,
                quantity=qty.value,
                timestamp=ts.value,
                symbol=symbol,
                root=product or extract_root(symbol),
                sequence=(row.get(id_col) if id_col else "") or "",
                contract_key=row.get("contractId") or row.get("_contractId") or symbol,
                product_description=row.get("Product Description") or "",
                notional=notional,
                arrival=arrival,
                defaulted=_defaulted(side=side, quantity=qty, price=price, timestamp=ts),
            )
        )

    if skipped:
        logger.debug("Skipped %d order(s) not in a filled state", skipped)
    return executions


# -------------------------------------------------
# Matching
# -------------------------------------------------
def _sequence_key(sequence: str) -> Tuple[int, int, str]:
    s = (sequence or "").strip()
    if s.isdigit():
        return (0, int(s), "")
    return (1, 0, s)


def _chronological_key(execution: Execution):
    return (execution.timestamp, _sequence_key(execution.sequence), execution.arrival)


def group_executions(executions: Iterable[Execution]) -> Dict[str, List[Execution]]:
    """Executions per contract, groups in first-seen order."""
    groups: Dict[str, List[Execution]] = {}
    for execution in executions:
        groups.setdefault(execution.group_key, []).append(execution)
    return groups


def explode_units(execution: Execution) -> List[Execution]:
    """N contracts -> N one-lot units; commission basis split evenly."""
    qty = max(int(execution.quantity), 1)
    per_unit = execution.commission / qty
    return [
        Execution(
            side=execution.side,
            price=execution.price,
            quantity=1,
            timestamp=execution.timestamp,
            symbol=execution.symbol,
            root=execution.root,
            commission=per_unit,
            sequence=execution.sequence,
            contract_key=execution.contract_key,
            product_description=execution.product_description,
            notional=execution.notional,
            arrival=execution.arrival,
            defaulted=execution.defaulted,
        )
        for _ in range(qty)
    ]


def _unit_commission(root: str, buy: Execution, sell: Execution) -> float:
    # Rate table first; the ledger's own commission only for products it lacks.
    if commission_rate(root) is not None:
        return resolve_commission(root, 1)
    return round2(abs(buy.commission) + abs(sell.commission))


def create_trade_from_match(
    buy: Execution,
    sell: Execution,
    multipliers: MultiplierCache,
) -> Trade:
    root = buy.root or sell.root
    if buy.notional is not None:
        multiplier = resolve_multiplier(root, buy.notional, buy.price, multipliers)
    else:
        multiplier = resolve_multiplier(root, sell.notional, sell.price, multipliers)

    pnl = round2((sell.price - buy.price) * multiplier)
    held = (sell.timestamp - buy.timestamp).total_seconds()
    trade_date, day_of_week = session_date(sell.timestamp, buy.timestamp)

    return Trade(
        symbol=buy.symbol or sell.symbol,
        qty=1,
        entry_price=buy.price,
        exit_price=sell.price,
        pnl=pnl,
        commission=_unit_commission(root, buy, sell),
        entry_time=buy.timestamp,
        exit_time=sell.timestamp,
        duration=format_duration(abs(held)),
        direction=TradeDirection.LONG if buy.timestamp <= sell.timestamp else TradeDirection.SHORT,
        trade_date=trade_date,
        day_of_week=day_of_week,
        product_description=buy.product_description or sell.product_description,
    )


def _match_group(
    executions: List[Execution],
    multipliers: MultiplierCache,
) -> Tuple[List[Trade], Deque[Execution]]:
    queue: Deque[Execution] = deque()
    trades: List[Trade] = []

    for execution in sorted(executions, key=_chronological_key):
        for unit in explode_units(execution):
            if not queue or queue[0].side == unit.side:
                queue.append(unit)
                continue

            opened = queue.popleft()
            if unit.side == ExecutionSide.BUY:
                trades.append(create_trade_from_match(unit, opened, multipliers))
            else:
                trades.append(create_trade_from_match(opened, unit, multipliers))

    return trades, queue


def match_executions(executions: Iterable[Execution]) -> List[Trade]:
    """
    Pair executions FIFO per contract and return closed trades.

    Output is sorted by exit time with ids 1..n. Units still open at the end
    of the batch are dropped: only closed round trips are reported.
    """
    multipliers = MultiplierCache()
    trades: List[Trade] = []

    for key, group in group_executions(executions).items():
        closed, still_open = _match_group(group, multipliers)
        trades.extend(closed)
        if still_open:
            logger.debug(
                "%s: %d %s unit(s) still open at end of batch",
                key,
                len(still_open),
                still_open[0].side.value,
            )

    return renumber_trades(sort_by_exit(trades))
