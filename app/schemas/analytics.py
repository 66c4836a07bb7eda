import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, SerializationInfo, field_serializer
from pydantic.alias_generators import to_camel

from app.schemas.trade import Trade


def _camel(name: str) -> str:
    # totalPnL / netPnL / cumulativePnL, as the dashboard has always named them
    return to_camel(name).replace("Pnl", "PnL")


class _Summary(BaseModel):
    model_config = ConfigDict(alias_generator=_camel, populate_by_name=True)


class KpiSummary(_Summary):
    total_trades: int = 0
    win_count: int = 0
    loss_count: int = 0
    even_count: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    net_pnl: float = 0.0
    total_commission: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    max_win: float = 0.0
    max_loss: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    avg_pnl: float = 0.0

    @field_serializer("profit_factor")
    def _profit_factor(self, value: float, info: SerializationInfo):
        # JSON has no infinity literal
        if math.isinf(value) and info.mode_is_json():
            return "Infinity"
        return value


class DailySummary(_Summary):
    date: str
    pnl: float = 0.0
    cumulative_pnl: float = 0.0
    trade_count: int = 0
    win_rate: float = 0.0
    commission: float = 0.0
    net_pnl: float = 0.0


class WeeklySummary(_Summary):
    week_start: str
    week_end: str
    pnl: float = 0.0
    trade_count: int = 0
    win_rate: float = 0.0
    commission: float = 0.0
    net_pnl: float = 0.0
    active_days: int = 0


class MonthlySummary(_Summary):
    month: str
    pnl: float = 0.0
    trade_count: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    commission: float = 0.0
    net_pnl: float = 0.0
    trading_days: int = 0


class DayOfWeekSummary(_Summary):
    day: str
    pnl: float = 0.0
    trade_count: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    avg_pnl: float = 0.0
    commission: float = 0.0


class ExtendedSummary(_Summary):
    most_active_day: str = "-"
    most_active_day_count: int = 0
    most_active_day_dates: int = 0
    least_active_day: str = "-"
    least_active_day_count: int = 0
    total_active_days: int = 0
    avg_trades_per_day: float = 0.0
    most_profitable_day: str = "-"
    most_profitable_pnl: float = 0.0
    least_profitable_day: str = "-"
    least_profitable_pnl: float = 0.0
    total_lots: int = 0
    avg_duration: float = 0.0
    avg_win_duration: float = 0.0
    avg_loss_duration: float = 0.0
    long_count: int = 0
    short_count: int = 0
    long_percent: float = 0.0
    best_trade: Optional[Trade] = None
    worst_trade: Optional[Trade] = None
