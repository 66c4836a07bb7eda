import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

# Dated contract suffix: one futures month code + 1-2 year digits, e.g. "NQH6", "ESZ25".
_MONTH_SUFFIX_RE = re.compile(r"[FGHJKMNQUVXZ]\d{1,2}$")

# Per-side commission (exchange + clearing + NFA + broker), USD per contract.
COMMISSION_PER_SIDE: Dict[str, float] = {
    # equity index
    "ES": 2.38, "NQ": 2.38, "YM": 2.38, "RTY": 2.38, "EMD": 2.38, "NKD": 2.38,
    "MES": 0.81, "MNQ": 0.81, "MYM": 0.81, "M2K": 0.81,
    # FX
    "6A": 2.58, "6B": 2.58, "6C": 2.58, "6E": 2.58, "6J": 2.58, "6N": 2.58, "6S": 2.58,
    "M6A": 0.61, "M6B": 0.61, "M6E": 0.61,
    # rates
    "ZB": 1.95, "UB": 2.02, "ZN": 1.80, "ZF": 1.72, "ZT": 1.72, "TN": 1.80,
    # energy
    "CL": 2.58, "QM": 2.28, "MCL": 0.91, "NG": 2.68, "QG": 1.08, "HO": 2.58, "RB": 2.58,
    # metals
    "GC": 2.58, "MGC": 0.91, "SI": 2.58, "SIL": 1.41, "HG": 2.58, "MHG": 0.91, "PL": 2.58,
    # agricultural
    "ZC": 3.08, "ZS": 3.08, "ZW": 3.08, "ZL": 3.08, "ZM": 3.08, "HE": 3.08, "LE": 3.08,
    "XC": 1.23, "XK": 1.23, "XW": 1.23,
}

# USD value of one full point of price movement.
PRODUCT_MULTIPLIERS: Dict[str, float] = {
    "NQ": 20, "ES": 50, "YM": 5, "RTY": 50, "EMD": 100, "NKD": 5,
    "MES": 5, "MNQ": 2, "MYM": 0.50, "M2K": 5,
    "GC": 100, "MGC": 10, "SI": 5000, "SIL": 1000, "HG": 25000, "MHG": 2500, "PL": 50,
    "CL": 1000, "QM": 500, "MCL": 100, "NG": 10000, "QG": 2500, "HO": 42000, "RB": 42000,
    "ZB": 1000, "UB": 1000, "ZN": 1000, "ZF": 1000, "ZT": 2000, "TN": 1000,
    "6E": 125000, "6J": 12500000, "6B": 62500, "6A": 100000, "6C": 100000,
    "6N": 100000, "6S": 125000, "M6A": 10000, "M6B": 6250, "M6E": 12500,
    "ZC": 50, "ZS": 50, "ZW": 50, "ZL": 600, "ZM": 100, "HE": 400, "LE": 400,
    "XC": 10, "XK": 10, "XW": 10,
}

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Half-up rounding to cents (matches broker statements, not banker's rounding)."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def _round_half_up_int(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def extract_root(symbol: Optional[str]) -> str:
    """NQH6 -> NQ, MESZ25 -> MES. Symbols without a month suffix are returned as-is."""
    if not symbol:
        return ""
    s = symbol.strip()
    return _MONTH_SUFFIX_RE.sub("", s) if _MONTH_SUFFIX_RE.search(s) else s


def commission_rate(root: str) -> Optional[float]:
    """Per-side rate, or None when the product is not in the rate table."""
    return COMMISSION_PER_SIDE.get(root)


def resolve_commission(root: str, quantity: int = 1) -> float:
    """Round-trip commission for `quantity` contracts. Unknown products cost 0."""
    rate = commission_rate(root)
    if rate is None:
        return 0.0
    return round2(rate * 2 * quantity)


class MultiplierCache(dict):
    """
    Product -> multiplier, pinned for one matching run.

    The first multiplier resolved for a product wins, so every trade in that
    product uses the same value even if later rows would infer another one.
    """


def resolve_multiplier(
    root: str,
    notional: Optional[float] = None,
    price: Optional[float] = None,
    cache: Optional[MultiplierCache] = None,
) -> float:
    if cache is not None and root in cache:
        return cache[root]

    multiplier: Optional[float] = None
    if notional is not None and price is not None and notional > 0 and price > 0:
        inferred = _round_half_up_int(notional / price)
        if inferred > 0:
            multiplier = float(inferred)

    if multiplier is None:
        multiplier = float(PRODUCT_MULTIPLIERS.get(root, 1))

    if cache is not None:
        cache[root] = multiplier
    return multiplier
