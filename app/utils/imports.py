import re
from datetime import datetime, timezone
from typing import Any, NamedTuple, Optional

from dateutil import parser as dateutil_parser

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_qty_re = re.compile(r"([+-]?[0-9,]*\.?[0-9]+)")

# Larger fills are treated as a mis-mapped column (e.g. an order id).
MAX_QUANTITY = 10000


class ParseResult(NamedTuple):
    """A coerced field value. `defaulted` is True when the raw value was unusable."""

    value: Any
    defaulted: bool = False


def parse_money(value: Optional[str]) -> Optional[float]:
    """
    "$100.00" -> 100.0, "$(15.00)" -> -15.0, "-$16.25" -> -16.25, "1,234.5" -> 1234.5
    Returns None when nothing numeric is found.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)

    v = str(value).strip()
    if v in ("", "--", "-"):
        return None

    negative = False
    if "(" in v and ")" in v:
        negative = True
        v = v.replace("(", "").replace(")", "")
    v = v.strip()
    if v.startswith("-"):
        negative = True
        v = v[1:]

    v = v.replace("$", "").replace(",", "").replace("%", "").strip()
    v = re.sub(r"[A-Za-z]+$", "", v).strip()

    try:
        amount = float(v)
    except ValueError:
        m = _qty_re.search(v)
        if not m:
            return None
        amount = float(m.group(1).replace(",", ""))

    return -amount if negative else amount


def parse_pnl(value: Optional[str]) -> ParseResult:
    amount = parse_money(value)
    if amount is None:
        return ParseResult(0.0, True)
    return ParseResult(amount)


def parse_price(value: Optional[str]) -> ParseResult:
    amount = parse_money(value)
    if amount is None:
        return ParseResult(0.0, True)
    return ParseResult(amount)


def parse_quantity(value: Optional[str]) -> ParseResult:
    """Whole contracts, 1..MAX_QUANTITY. Unusable values default to 1."""
    amount = parse_money(value)
    if amount is None:
        return ParseResult(1, True)
    qty = abs(int(amount))
    if qty < 1 or qty > MAX_QUANTITY:
        return ParseResult(1, True)
    return ParseResult(qty)


_TIMESTAMP_FORMATS = [
    "%m/%d/%Y %H:%M:%S",          # Tradovate: 02/11/2026 15:34:46
    "%m/%d/%y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
]


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime_utc(s: Optional[str]) -> Optional[datetime]:
    """Parse broker timestamps and return a timezone-aware UTC datetime (naive input is UTC)."""
    if not s:
        return None
    s = str(s).strip()
    if not s:
        return None

    for f in _TIMESTAMP_FORMATS:
        try:
            return _as_utc(datetime.strptime(s, f))
        except ValueError:
            continue

    try:
        if "T" in s:
            return _as_utc(dateutil_parser.isoparse(s))
        return _as_utc(dateutil_parser.parse(s))
    except (ValueError, OverflowError):
        return None


def parse_timestamp(value: Optional[str]) -> ParseResult:
    dt = parse_datetime_utc(value)
    if dt is None:
        return ParseResult(EPOCH, True)
    return ParseResult(dt)
