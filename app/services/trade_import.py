"""
CSV text -> closed trades.

Fills and Orders ledgers go through FIFO matching; pre-aggregated
Performance exports (or any file with a resolvable column mapping) are
mapped row by row. Problems the user has to fix (empty file, columns we
cannot place) come back as an ImportOutcome status, never as exceptions.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from app.models.enums import CsvFormat, ImportStatus, TradeDirection
from app.schemas.trade import Trade, coerce_direction
from app.services.execution_matching import (
    executions_from_fills,
    executions_from_orders,
    match_executions,
)
from app.services.instruments import commission_rate, extract_root, resolve_commission, round2
from app.services.schema_detector import (
    REQUIRED_COLUMNS,
    ColumnMapping,
    auto_detect_mapping,
    detect_csv_format,
    validate_mapping,
)
from app.services.trading_calendar import session_date
from app.utils.csv_rows import ParsedCsv, parse_csv_text
from app.utils.durations import format_duration
from app.utils.imports import EPOCH, parse_money, parse_pnl, parse_price, parse_quantity, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class ImportOutcome:
    status: ImportStatus
    csv_format: CsvFormat = CsvFormat.UNKNOWN
    trades: List[Trade] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    mapping: Dict[str, str] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)
    rows: int = 0
    defaulted_fields: int = 0
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == ImportStatus.OK


def normalize_performance_rows(
    parsed: ParsedCsv,
    mapping: Dict[str, str],
) -> Tuple[List[Trade], int]:
    """
    One trade per row of a pre-aggregated export, in file order.

    Returns (trades, number of fields that fell back to a default).
    """
    trades: List[Trade] = []
    defaulted = 0

    def col(row: Dict[str, str], key: str) -> Optional[str]:
        header = mapping.get(key)
        return row.get(header) if header else None

    for i, row in enumerate(parsed.records(), start=1):
        symbol = (col(row, "symbol") or "").strip()
        qty = parse_quantity(col(row, "qty"))
        buy_price = parse_price(col(row, "buy_price"))
        sell_price = parse_price(col(row, "sell_price"))
        pnl = parse_pnl(col(row, "pnl"))
        bought = parse_timestamp(col(row, "bought_timestamp"))
        sold = parse_timestamp(col(row, "sold_timestamp"))
        defaulted += sum(
            r.defaulted for r in (qty, buy_price, sell_price, pnl, bought, sold)
        )

        root = extract_root(symbol)
        if commission_rate(root) is not None:
            commission = resolve_commission(root, qty.value)
        else:
            commission = round2(abs(parse_money(col(row, "commission")) or 0.0))

        direction = coerce_direction(col(row, "direction"))
        if direction is None:
            direction = (
                TradeDirection.LONG if bought.value <= sold.value else TradeDirection.SHORT
            )

        duration = (col(row, "duration") or "").strip()
        if not duration and bought.value > EPOCH and sold.value > EPOCH:
            duration = format_duration((sold.value - bought.value).total_seconds())

        trade_date, day_of_week = session_date(sold.value, bought.value)

        trades.append(
            Trade(
                id=i,
                symbol=symbol,
                qty=qty.value,
                entry_price=buy_price.value,
                exit_price=sell_price.value,
                pnl=round2(pnl.value),
                commission=commission,
                entry_time=bought.value,
                exit_time=sold.value,
                duration=duration,
                direction=direction,
                trade_date=trade_date,
                day_of_week=day_of_week,
                product_description=col(row, "product_description") or "",
            )
        )

    return trades, defaulted


def _resolve_mapping(
    headers: List[str],
    mapping: Optional[Dict[str, str]],
) -> ColumnMapping:
    if mapping:
        return validate_mapping(mapping, headers)
    return auto_detect_mapping(headers)


def reconstruct_trades(
    text: str,
    mapping: Optional[Dict[str, str]] = None,
) -> ImportOutcome:
    """
    Parse CSV text and rebuild its closed trades.

    `mapping` (canonical field -> header) forces the row-mapping path, for
    files whose columns could not be detected automatically.
    """
    parsed = parse_csv_text(text or "")
    outcome = ImportOutcome(
        status=ImportStatus.OK,
        headers=list(parsed.headers),
        rows=len(parsed.rows),
    )

    if not parsed.rows:
        outcome.status = ImportStatus.EMPTY
        outcome.message = "The CSV file contains no data rows."
        return outcome

    fmt = detect_csv_format(parsed.headers)
    outcome.csv_format = fmt

    if not mapping and fmt in (CsvFormat.FILLS, CsvFormat.ORDERS):
        if fmt == CsvFormat.FILLS:
            executions = executions_from_fills(parsed)
        else:
            executions = executions_from_orders(parsed)

        outcome.defaulted_fields = sum(len(e.defaulted) for e in executions)
        outcome.trades = match_executions(executions)

        if not outcome.trades:
            outcome.status = ImportStatus.NO_TRADES
            outcome.message = (
                "No matching trades were found. Check that the file contains both Buy and Sell executions."
            )
            return outcome

    else:
        resolved = _resolve_mapping(parsed.headers, mapping)
        outcome.mapping = dict(resolved.mapping)
        outcome.missing = list(resolved.missing)

        if resolved.missing:
            if fmt == CsvFormat.UNKNOWN and len(resolved.missing) == len(REQUIRED_COLUMNS):
                outcome.status = ImportStatus.UNKNOWN_FORMAT
                outcome.message = "Unrecognized CSV format. Map the columns manually."
            else:
                outcome.status = ImportStatus.MAPPING_REQUIRED
                outcome.message = "Could not detect columns: " + ", ".join(resolved.missing)
            return outcome

        outcome.trades, outcome.defaulted_fields = normalize_performance_rows(
            parsed, resolved.mapping
        )

    if outcome.defaulted_fields:
        logger.debug(
            "%d field(s) were unparseable and replaced with defaults", outcome.defaulted_fields
        )
    logger.info(
        "Reconstructed %d trade(s) from %d %s row(s)",
        len(outcome.trades),
        outcome.rows,
        fmt.value,
    )
    return outcome
