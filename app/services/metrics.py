import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from app.models.enums import TradeDirection
from app.schemas.analytics import (
    DailySummary,
    DayOfWeekSummary,
    ExtendedSummary,
    KpiSummary,
    MonthlySummary,
    WeeklySummary,
)
from app.schemas.trade import Trade
from app.services.trading_calendar import WEEKDAY_NAMES


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_streaks(trades: Sequence[Trade]) -> Dict[str, int]:
    """
    Longest consecutive wins / losses in list order.
    A breakeven trade resets both counters.
    """
    max_wins = max_losses = 0
    current_wins = current_losses = 0

    for t in trades:
        if t.pnl > 0:
            current_wins += 1
            current_losses = 0
            max_wins = max(max_wins, current_wins)
        elif t.pnl < 0:
            current_losses += 1
            current_wins = 0
            max_losses = max(max_losses, current_losses)
        else:
            current_wins = 0
            current_losses = 0

    return {"max_wins": max_wins, "max_losses": max_losses}


def calculate_kpis(trades: Optional[Sequence[Trade]]) -> KpiSummary:
    if not trades:
        return KpiSummary()

    total_trades = len(trades)
    wins = [t.pnl for t in trades if t.pnl > 0]
    losses = [t.pnl for t in trades if t.pnl < 0]

    total_pnl = sum(t.pnl for t in trades)
    total_commission = sum(t.commission or 0.0 for t in trades)

    total_win = sum(wins)
    total_loss = abs(sum(losses))

    if total_loss > 0:
        profit_factor = total_win / total_loss
    elif total_win > 0:
        profit_factor = math.inf
    else:
        profit_factor = 0.0

    streaks = calculate_streaks(trades)

    return KpiSummary(
        total_trades=total_trades,
        win_count=len(wins),
        loss_count=len(losses),
        even_count=total_trades - len(wins) - len(losses),
        win_rate=len(wins) / total_trades * 100,
        total_pnl=total_pnl,
        net_pnl=total_pnl - total_commission,
        total_commission=total_commission,
        avg_win=total_win / len(wins) if wins else 0.0,
        avg_loss=total_loss / len(losses) if losses else 0.0,
        profit_factor=profit_factor,
        max_win=max(wins) if wins else 0.0,
        max_loss=min(losses) if losses else 0.0,
        max_consecutive_wins=streaks["max_wins"],
        max_consecutive_losses=streaks["max_losses"],
        avg_pnl=total_pnl / total_trades,
    )


def calculate_daily_summary(trades: Sequence[Trade]) -> List[DailySummary]:
    """Per trading day, ascending, with a running cumulative P/L."""
    buckets: Dict[str, List[Trade]] = defaultdict(list)
    for t in trades:
        buckets[t.trade_date].append(t)

    out: List[DailySummary] = []
    cumulative = 0.0

    for day in sorted(buckets):
        day_trades = buckets[day]
        pnl = sum(t.pnl for t in day_trades)
        commission = sum(t.commission or 0.0 for t in day_trades)
        cumulative += pnl

        out.append(
            DailySummary(
                date=day,
                pnl=pnl,
                cumulative_pnl=cumulative,
                trade_count=len(day_trades),
                win_rate=calculate_kpis(day_trades).win_rate,
                commission=commission,
                net_pnl=pnl - commission,
            )
        )

    return out


def _week_start(trade_date: str) -> date:
    d = date.fromisoformat(trade_date)
    return d - timedelta(days=d.weekday())


def calculate_weekly_summary(trades: Sequence[Trade]) -> List[WeeklySummary]:
    """Monday-to-Sunday weeks keyed by their Monday, ascending."""
    buckets: Dict[date, List[Trade]] = defaultdict(list)
    for t in trades:
        buckets[_week_start(t.trade_date)].append(t)

    out: List[WeeklySummary] = []
    for start in sorted(buckets):
        week_trades = buckets[start]
        pnl = sum(t.pnl for t in week_trades)
        commission = sum(t.commission or 0.0 for t in week_trades)

        out.append(
            WeeklySummary(
                week_start=start.isoformat(),
                week_end=(start + timedelta(days=6)).isoformat(),
                pnl=pnl,
                trade_count=len(week_trades),
                win_rate=calculate_kpis(week_trades).win_rate,
                commission=commission,
                net_pnl=pnl - commission,
                active_days=len({t.trade_date for t in week_trades}),
            )
        )

    return out


def calculate_monthly_summary(trades: Sequence[Trade]) -> List[MonthlySummary]:
    """Calendar months ("YYYY-MM") of the trading date, ascending."""
    buckets: Dict[str, List[Trade]] = defaultdict(list)
    for t in trades:
        buckets[t.trade_date[:7]].append(t)

    out: List[MonthlySummary] = []
    for month in sorted(buckets):
        month_trades = buckets[month]
        kpis = calculate_kpis(month_trades)

        out.append(
            MonthlySummary(
                month=month,
                pnl=kpis.total_pnl,
                trade_count=kpis.total_trades,
                wins=kpis.win_count,
                losses=kpis.loss_count,
                win_rate=kpis.win_rate,
                commission=kpis.total_commission,
                net_pnl=kpis.net_pnl,
                trading_days=len({t.trade_date for t in month_trades}),
            )
        )

    return out


def calculate_day_of_week_summary(trades: Sequence[Trade]) -> List[DayOfWeekSummary]:
    """Monday..Sunday; weekdays without trades are left out."""
    buckets: Dict[str, List[Trade]] = defaultdict(list)
    for t in trades:
        buckets[t.day_of_week].append(t)

    out: List[DayOfWeekSummary] = []
    for day in WEEKDAY_NAMES:
        day_trades = buckets.get(day)
        if not day_trades:
            continue

        count = len(day_trades)
        pnl = sum(t.pnl for t in day_trades)
        wins = sum(1 for t in day_trades if t.pnl > 0)
        losses = sum(1 for t in day_trades if t.pnl < 0)

        out.append(
            DayOfWeekSummary(
                day=day,
                pnl=pnl,
                trade_count=count,
                wins=wins,
                losses=losses,
                win_rate=wins / count * 100,
                avg_pnl=pnl / count,
                commission=sum(t.commission or 0.0 for t in day_trades),
            )
        )

    return out


def calculate_extended_kpis(trades: Optional[Sequence[Trade]]) -> ExtendedSummary:
    if not trades:
        return ExtendedSummary()

    total_trades = len(trades)

    # weekday stats, in canonical weekday order so ties resolve Monday-first
    dow_pnl: Dict[str, float] = defaultdict(float)
    dow_count: Dict[str, int] = defaultdict(int)
    dow_dates: Dict[str, set] = defaultdict(set)
    active_days = set()

    for t in trades:
        dow_pnl[t.day_of_week] += t.pnl
        dow_count[t.day_of_week] += 1
        dow_dates[t.day_of_week].add(t.trade_date)
        active_days.add(t.trade_date)

    order = [d for d in WEEKDAY_NAMES if d in dow_count]
    order += sorted(d for d in dow_count if d not in WEEKDAY_NAMES)

    most_active = max(order, key=lambda d: (dow_count[d], -order.index(d)))
    least_active = min(order, key=lambda d: (dow_count[d], order.index(d)))
    most_profitable = max(order, key=lambda d: (dow_pnl[d], -order.index(d)))
    least_profitable = min(order, key=lambda d: (dow_pnl[d], order.index(d)))

    all_durations: List[int] = []
    win_durations: List[int] = []
    loss_durations: List[int] = []
    for t in trades:
        seconds = t.duration_seconds
        if seconds <= 0:
            continue
        all_durations.append(seconds)
        if t.pnl > 0:
            win_durations.append(seconds)
        elif t.pnl < 0:
            loss_durations.append(seconds)

    long_count = sum(1 for t in trades if t.direction == TradeDirection.LONG)
    short_count = sum(1 for t in trades if t.direction == TradeDirection.SHORT)

    best = trades[0]
    worst = trades[0]
    for t in trades[1:]:
        if t.pnl > best.pnl:
            best = t
        if t.pnl < worst.pnl:
            worst = t

    return ExtendedSummary(
        most_active_day=most_active,
        most_active_day_count=dow_count[most_active],
        most_active_day_dates=len(dow_dates[most_active]),
        least_active_day=least_active,
        least_active_day_count=dow_count[least_active],
        total_active_days=len(active_days),
        avg_trades_per_day=total_trades / len(active_days),
        most_profitable_day=most_profitable,
        most_profitable_pnl=dow_pnl[most_profitable],
        least_profitable_day=least_profitable,
        least_profitable_pnl=dow_pnl[least_profitable],
        total_lots=sum(t.qty or 1 for t in trades),
        avg_duration=_mean(all_durations),
        avg_win_duration=_mean(win_durations),
        avg_loss_duration=_mean(loss_durations),
        long_count=long_count,
        short_count=short_count,
        long_percent=long_count / total_trades * 100,
        best_trade=best,
        worst_trade=worst,
    )


# -------------------------------------------------
# Display helpers
# -------------------------------------------------
def format_currency(value: float) -> str:
    if math.isinf(value):
        return "∞"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_profit_factor(value: float) -> str:
    if math.isinf(value):
        return "∞"
    return f"{value:.2f}"


def format_trade_detail(trade: Optional[Trade]) -> str:
    """e.g. Long 1 /NQH6 @ 25266.0, Exited @ 25271.0, 02/11/2026 15:34:46"""
    if trade is None:
        return ""
    detail = (
        f"{trade.direction.value} {trade.qty or 1} /{trade.symbol}"
        f" @ {trade.entry_price}, Exited @ {trade.exit_price}"
    )
    if trade.exit_time.timestamp() > 0:
        detail += ", " + trade.exit_time.strftime("%m/%d/%Y %H:%M:%S")
    return detail
