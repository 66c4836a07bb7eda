from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from app.models.enums import CsvFormat

# Canonical field -> accepted headers, highest priority first.
REQUIRED_COLUMNS: Dict[str, List[str]] = {
    "symbol": ["symbol", "Symbol", "Contract", "contract", "Product"],
    "buy_price": ["buyPrice", "Buy Price", "Entry Price", "entryPrice", "avgPrice"],
    "sell_price": ["sellPrice", "Sell Price", "Exit Price", "exitPrice"],
    "pnl": ["pnl", "P&L", "PnL", "Profit/Loss", "Net P&L"],
    "qty": ["qty", "Qty", "Quantity", "quantity", "filledQty"],
    "bought_timestamp": ["boughtTimestamp", "Bought Timestamp", "Buy Time", "Entry Time", "Fill Time"],
    "sold_timestamp": ["soldTimestamp", "Sold Timestamp", "Sell Time", "Exit Time"],
    "duration": ["duration", "Duration"],
}

OPTIONAL_COLUMNS: Dict[str, List[str]] = {
    "commission": ["commission", "Commission", "Fee", "fee"],
    "direction": ["B/S", "direction", "Direction", "Side", "side", "_action"],
    "product_description": ["Product Description", "productDescription"],
}

# Header sets used for format classification.
FILL_ID_HEADERS = ("Fill ID", "_id")
SIDE_HEADERS = ("B/S", "_action")
STATUS_HEADERS = ("Status", "status", "_status")
AVG_PRICE_HEADERS = ("avgPrice", "Avg Fill Price", "Avg Price")
FILL_TIME_HEADERS = ("Fill Time", "fillTime")


@dataclass
class ColumnMapping:
    mapping: Dict[str, str] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing


def find_column(headers: Sequence[str], aliases: Sequence[str]) -> Optional[str]:
    for alias in aliases:
        if alias in headers:
            return alias
    return None


def _has_any(headers: Sequence[str], names: Sequence[str]) -> bool:
    return find_column(headers, names) is not None


def detect_csv_format(headers: Sequence[str]) -> CsvFormat:
    """
    Classify a header row.

    FILLS:       fill id + B/S + commission + Contract
    ORDERS:      B/S + status + average price + fill time
    PERFORMANCE: buyPrice + sellPrice + pnl
    """
    has_side = _has_any(headers, SIDE_HEADERS)

    if (
        _has_any(headers, FILL_ID_HEADERS)
        and has_side
        and "commission" in headers
        and "Contract" in headers
    ):
        return CsvFormat.FILLS

    if (
        has_side
        and _has_any(headers, STATUS_HEADERS)
        and _has_any(headers, AVG_PRICE_HEADERS)
        and _has_any(headers, FILL_TIME_HEADERS)
    ):
        return CsvFormat.ORDERS

    if "buyPrice" in headers and "sellPrice" in headers and "pnl" in headers:
        return CsvFormat.PERFORMANCE

    return CsvFormat.UNKNOWN


def auto_detect_mapping(headers: Sequence[str]) -> ColumnMapping:
    """Resolve every canonical field to the first alias present in `headers`."""
    result = ColumnMapping()

    for key, aliases in REQUIRED_COLUMNS.items():
        found = find_column(headers, aliases)
        if found:
            result.mapping[key] = found
        else:
            result.missing.append(key)

    for key, aliases in OPTIONAL_COLUMNS.items():
        found = find_column(headers, aliases)
        if found:
            result.mapping[key] = found

    return result


def validate_mapping(mapping: Dict[str, str], headers: Sequence[str]) -> ColumnMapping:
    """
    Check a caller-supplied mapping (canonical field -> header).

    Unknown canonical fields are dropped; required fields that are absent or
    point at a header not in the file are reported as missing.
    """
    known = set(REQUIRED_COLUMNS) | set(OPTIONAL_COLUMNS)
    result = ColumnMapping()

    for key, header in mapping.items():
        if key in known and header and header in headers:
            result.mapping[key] = header

    result.missing = [k for k in REQUIRED_COLUMNS if k not in result.mapping]
    return result
