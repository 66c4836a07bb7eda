from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from app.models.enums import ExecutionSide


@dataclass
class Execution:
    """
    One broker fill (or filled order) after column normalization.

    Lives only inside a matching run; never persisted.
    `commission` is the raw commission basis for the whole execution and
    `notional` the per-contract notional value, when the ledger carries one.
    """

    side: ExecutionSide
    price: float
    quantity: int
    timestamp: datetime
    symbol: str
    root: str
    commission: float = 0.0
    sequence: str = ""
    contract_key: str = ""
    product_description: str = ""
    notional: Optional[float] = None
    arrival: int = 0
    defaulted: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def group_key(self) -> str:
        return self.contract_key or self.symbol
