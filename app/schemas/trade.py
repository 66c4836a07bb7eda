from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import TradeDirection
from app.utils.durations import parse_duration_to_seconds
from app.utils.imports import EPOCH

_LONG_WORDS = {"long", "buy", "b", "bot", "0"}
_SHORT_WORDS = {"short", "sell", "s", "sld", "1"}


def coerce_direction(value: Any) -> TradeDirection | None:
    """Map export values (Long/Short, Buy/Sell, B/S, 0/1) onto a trade direction."""
    if isinstance(value, TradeDirection):
        return value
    s = str(value or "").strip().lower()
    if s in _LONG_WORDS:
        return TradeDirection.LONG
    if s in _SHORT_WORDS:
        return TradeDirection.SHORT
    return None


class Trade(BaseModel):
    """
    One closed round trip.

    Entry is always the buy side and exit the sell side; for a Short the sell
    happened first. Serialized with the broker export names (buyPrice,
    soldTimestamp, ...) so saved snapshots stay readable by older dashboards.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = 0
    symbol: str
    qty: int = 1
    entry_price: float = Field(alias="buyPrice")
    exit_price: float = Field(alias="sellPrice")
    pnl: float
    commission: float = Field(0.0, ge=0)
    entry_time: datetime = Field(alias="boughtTimestamp")
    exit_time: datetime = Field(alias="soldTimestamp")
    duration: str = ""
    direction: TradeDirection = TradeDirection.LONG
    trade_date: str = Field("", alias="tradeDate")
    day_of_week: str = Field("", alias="dayOfWeek")
    product_description: str = Field("", alias="productDescription")

    @field_validator("entry_time", "exit_time")
    @classmethod
    def _aware_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("direction", mode="before")
    @classmethod
    def _direction(cls, value: Any) -> TradeDirection:
        return coerce_direction(value) or TradeDirection.LONG

    @field_validator("product_description", "duration", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def duration_seconds(self) -> int:
        """Holding time in seconds: the duration string, else the timestamp gap."""
        seconds = parse_duration_to_seconds(self.duration)
        if seconds > 0:
            return seconds
        # placeholder instants from unparseable timestamps carry no duration
        if self.entry_time <= EPOCH or self.exit_time <= EPOCH:
            return 0
        return int(abs((self.exit_time - self.entry_time).total_seconds()))
