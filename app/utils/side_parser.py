import re
from typing import Mapping, Optional

from app.models.enums import ExecutionSide
from app.utils.imports import ParseResult

_ws_re = re.compile(r"\s+", flags=re.UNICODE)


def _normalize_text(s: Optional[str]) -> str:
    if s is None:
        return ""

    # Replace common odd whitespace
    s = s.replace("\u00A0", " ")   # NBSP
    s = s.replace("\u200B", "")   # zero-width space
    s = s.replace("\u200C", "")   # zero-width non-joiner
    s = s.replace("\u200D", "")   # zero-width joiner

    # Strip non-printing control chars (keep normal unicode letters)
    s = "".join(ch for ch in s if ch.isprintable())

    s = s.strip()
    s = _ws_re.sub(" ", s)
    return s


_re_buy = re.compile(r"^(buy|b|bot|bought)$", re.I)
_re_sell = re.compile(r"^(sell|s|sld|sold)$", re.I)

# Tradovate API exports encode the side as an action enum.
_ACTION_CODES = {"0": ExecutionSide.BUY, "1": ExecutionSide.SELL}


def parse_side(value: Optional[str]) -> Optional[ExecutionSide]:
    s = _normalize_text(value)
    if not s:
        return None
    if _re_buy.match(s):
        return ExecutionSide.BUY
    if _re_sell.match(s):
        return ExecutionSide.SELL
    return None


def infer_side(row: Mapping[str, str]) -> ParseResult:
    """
    Side of a fill/order row: the "B/S" column first, then the "_action" code.
    Rows with neither resolve to Buy, flagged as defaulted.
    """
    side = parse_side(row.get("B/S"))
    if side is not None:
        return ParseResult(side)

    action = _normalize_text(row.get("_action"))
    if action in _ACTION_CODES:
        return ParseResult(_ACTION_CODES[action])

    side = parse_side(row.get("Side") or row.get("side"))
    if side is not None:
        return ParseResult(side)

    return ParseResult(ExecutionSide.BUY, True)
