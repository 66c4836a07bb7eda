import math
from datetime import datetime, timedelta, timezone

import pytest

from app.models.enums import TradeDirection
from app.schemas.trade import Trade
from app.services.metrics import (
    calculate_daily_summary,
    calculate_day_of_week_summary,
    calculate_extended_kpis,
    calculate_kpis,
    calculate_monthly_summary,
    calculate_streaks,
    calculate_weekly_summary,
    format_currency,
    format_percent,
    format_profit_factor,
    format_trade_detail,
)
from app.services.trade_import import reconstruct_trades
from app.utils.imports import EPOCH


# -------------------------------------------------
# Helpers
# -------------------------------------------------
def make_trade(
    trade_id,
    pnl,
    trade_date="2026-02-11",
    day_of_week="Wednesday",
    symbol="MESH6",
    commission=1.62,
    duration="",
    direction=TradeDirection.LONG,
):
    exit_time = datetime.fromisoformat(trade_date).replace(hour=15, tzinfo=timezone.utc)
    return Trade(
        id=trade_id,
        symbol=symbol,
        entry_price=6950.0,
        exit_price=6950.0 + pnl / 5,
        pnl=pnl,
        commission=commission,
        entry_time=exit_time - timedelta(minutes=5),
        exit_time=exit_time,
        duration=duration,
        direction=direction,
        trade_date=trade_date,
        day_of_week=day_of_week,
    )


WED = ("2026-02-11", "Wednesday")
THU = ("2026-02-12", "Thursday")


@pytest.fixture()
def sample_trades():
    rows = [
        (100.00, WED, "NQH6", 4.76, "1min 24sec"),
        (23.75, WED, "MESH6", 1.62, "5min 30sec"),
        (22.50, WED, "MESH6", 1.62, "10min"),
        (3.75, WED, "MESH6", 1.62, "1min"),
        (11.25, THU, "MESH6", 1.62, "5min"),
        (8.75, THU, "MESH6", 1.62, "2min"),
        (10.00, THU, "MESH6", 1.62, "30min"),
        (-15.00, THU, "MESH6", 1.62, "5min"),
        (-12.50, THU, "MESH6", 1.62, "3min"),
        (-16.25, THU, "MESH6", 1.62, "10min"),
    ]
    return [
        make_trade(i, pnl, day[0], day[1], symbol, commission, duration)
        for i, (pnl, day, symbol, commission, duration) in enumerate(rows, start=1)
    ]


# =================================================
# Headline KPIs
# =================================================
def test_kpis_for_ten_trade_sample(sample_trades):
    kpis = calculate_kpis(sample_trades)

    assert kpis.total_trades == 10
    assert kpis.win_count == 7
    assert kpis.loss_count == 3
    assert kpis.even_count == 0
    assert kpis.win_rate == pytest.approx(70.0)
    assert kpis.total_pnl == pytest.approx(136.25)
    assert kpis.total_commission == pytest.approx(4.76 + 1.62 * 9)
    assert kpis.net_pnl == pytest.approx(136.25 - (4.76 + 1.62 * 9))
    assert kpis.avg_win == pytest.approx(180.0 / 7)
    assert kpis.avg_loss == pytest.approx(43.75 / 3)
    assert kpis.profit_factor == pytest.approx(180.0 / 43.75)
    assert kpis.profit_factor > 1
    assert kpis.max_win == 100.0
    assert kpis.max_loss == -16.25
    assert kpis.max_consecutive_wins == 7
    assert kpis.max_consecutive_losses == 3
    assert kpis.avg_pnl == pytest.approx(13.625)


def test_empty_and_none_give_zero_kpis():
    for trades in ([], None):
        kpis = calculate_kpis(trades)
        assert kpis.total_trades == 0
        assert kpis.win_rate == 0
        assert kpis.total_pnl == 0
        assert kpis.profit_factor == 0


def test_profit_factor_infinite_without_losses():
    kpis = calculate_kpis([make_trade(1, 10.0), make_trade(2, 0.0)])

    assert math.isinf(kpis.profit_factor)
    assert kpis.model_dump(mode="json", by_alias=True)["profitFactor"] == "Infinity"
    assert kpis.model_dump()["profit_factor"] == math.inf


def test_profit_factor_zero_when_nothing_won_or_lost():
    kpis = calculate_kpis([make_trade(1, 0.0), make_trade(2, 0.0)])

    assert kpis.profit_factor == 0
    assert kpis.even_count == 2


def test_kpi_aliases_are_camel_case(sample_trades):
    dumped = calculate_kpis(sample_trades).model_dump(by_alias=True)

    assert dumped["totalTrades"] == 10
    assert "totalPnL" in dumped
    assert "netPnL" in dumped
    assert "maxConsecutiveWins" in dumped


def test_breakeven_resets_streaks():
    trades = [make_trade(i, pnl) for i, pnl in enumerate([5, 5, 0, 5, -1, 0, -1, -1], start=1)]

    assert calculate_streaks(trades) == {"max_wins": 2, "max_losses": 2}


# =================================================
# Bucketed summaries
# =================================================
def test_daily_summary(sample_trades):
    days = calculate_daily_summary(sample_trades)

    assert [d.date for d in days] == ["2026-02-11", "2026-02-12"]
    assert days[0].pnl == pytest.approx(150.0)
    assert days[0].trade_count == 4
    assert days[0].win_rate == pytest.approx(100.0)
    assert days[1].pnl == pytest.approx(-13.75)
    assert days[1].win_rate == pytest.approx(50.0)
    assert days[1].cumulative_pnl == pytest.approx(136.25)
    assert days[0].net_pnl == pytest.approx(150.0 - (4.76 + 1.62 * 3))


def test_daily_summary_sorts_out_of_order_input():
    trades = [make_trade(1, 5.0, *THU), make_trade(2, 7.0, *WED)]
    days = calculate_daily_summary(trades)

    assert [d.date for d in days] == ["2026-02-11", "2026-02-12"]
    assert [d.cumulative_pnl for d in days] == [7.0, 12.0]


def test_weekly_summary_groups_by_monday(sample_trades):
    trades = sample_trades + [make_trade(11, 20.0, "2026-02-16", "Monday")]

    weeks = calculate_weekly_summary(trades)

    assert [(w.week_start, w.week_end) for w in weeks] == [
        ("2026-02-09", "2026-02-15"),
        ("2026-02-16", "2026-02-22"),
    ]
    assert weeks[0].trade_count == 10
    assert weeks[0].active_days == 2
    assert weeks[0].pnl == pytest.approx(136.25)
    assert weeks[1].win_rate == pytest.approx(100.0)


def test_sunday_session_belongs_to_previous_monday_week():
    weeks = calculate_weekly_summary([make_trade(1, 1.0, "2026-02-15", "Sunday")])
    assert weeks[0].week_start == "2026-02-09"


def test_monthly_summary_rolls_up_calendar_months(sample_trades):
    trades = sample_trades + [
        make_trade(11, 40.0, "2026-03-02", "Monday", commission=0.0),
        make_trade(12, -10.0, "2026-01-30", "Friday", commission=0.0),
    ]

    months = calculate_monthly_summary(trades)

    assert [m.month for m in months] == ["2026-01", "2026-02", "2026-03"]
    feb = months[1]
    assert feb.trade_count == 10
    assert (feb.wins, feb.losses) == (7, 3)
    assert feb.pnl == pytest.approx(136.25)
    assert feb.win_rate == pytest.approx(70.0)
    assert feb.net_pnl == pytest.approx(136.25 - (4.76 + 1.62 * 9))
    assert feb.trading_days == 2
    assert months[0].pnl == pytest.approx(-10.0)
    assert months[2].model_dump(by_alias=True)["netPnL"] == pytest.approx(40.0)


def test_day_of_week_summary_in_weekday_order(sample_trades):
    trades = [make_trade(11, -3.0, "2026-02-09", "Monday")] + sample_trades

    rows = calculate_day_of_week_summary(trades)

    assert [r.day for r in rows] == ["Monday", "Wednesday", "Thursday"]
    thursday = rows[2]
    assert thursday.trade_count == 6
    assert (thursday.wins, thursday.losses) == (3, 3)
    assert thursday.win_rate == pytest.approx(50.0)
    assert thursday.avg_pnl == pytest.approx(-13.75 / 6)


def test_summaries_of_nothing_are_empty():
    assert calculate_daily_summary([]) == []
    assert calculate_weekly_summary([]) == []
    assert calculate_day_of_week_summary([]) == []
    assert calculate_monthly_summary([]) == []


# =================================================
# Extended KPIs
# =================================================
def test_extended_kpis(sample_trades):
    ext = calculate_extended_kpis(sample_trades)

    assert ext.most_active_day == "Thursday"
    assert ext.most_active_day_count == 6
    assert ext.most_active_day_dates == 1
    assert ext.least_active_day == "Wednesday"
    assert ext.least_active_day_count == 4
    assert ext.total_active_days == 2
    assert ext.avg_trades_per_day == pytest.approx(5.0)
    assert ext.most_profitable_day == "Wednesday"
    assert ext.most_profitable_pnl == pytest.approx(150.0)
    assert ext.least_profitable_day == "Thursday"
    assert ext.least_profitable_pnl == pytest.approx(-13.75)
    assert ext.total_lots == 10
    assert ext.long_count == 10
    assert ext.short_count == 0
    assert ext.long_percent == pytest.approx(100.0)
    assert ext.best_trade.id == 1
    assert ext.worst_trade.id == 10


def test_extended_durations_come_from_duration_strings(sample_trades):
    ext = calculate_extended_kpis(sample_trades)

    all_secs = [84, 330, 600, 60, 300, 120, 1800, 300, 180, 600]
    assert ext.avg_duration == pytest.approx(sum(all_secs) / 10)
    assert ext.avg_win_duration == pytest.approx(sum(all_secs[:7]) / 7)
    assert ext.avg_loss_duration == pytest.approx(sum(all_secs[7:]) / 3)


def test_extended_duration_falls_back_to_timestamps():
    ext = calculate_extended_kpis([make_trade(1, 5.0, duration="")])
    assert ext.avg_duration == pytest.approx(300.0)


def test_placeholder_timestamp_has_no_duration():
    trade = make_trade(1, 5.0, duration="").model_copy(update={"entry_time": EPOCH})

    assert trade.duration_seconds == 0
    assert calculate_extended_kpis([trade]).avg_duration == 0


def test_unparseable_timestamp_does_not_skew_avg_duration():
    text = (
        "symbol,qty,buyPrice,sellPrice,pnl,boughtTimestamp,soldTimestamp,duration\n"
        "MESH6,1,6950.00,6951.00,$5.00,02/11/2026 15:00:00,02/11/2026 15:01:00,\n"
        "MESH6,1,6950.00,6951.00,$5.00,garbage,02/11/2026 15:10:00,\n"
    )
    outcome = reconstruct_trades(text)
    assert outcome.ok
    assert len(outcome.trades) == 2

    ext = calculate_extended_kpis(outcome.trades)
    assert ext.avg_duration == pytest.approx(60.0)
    assert ext.avg_win_duration == pytest.approx(60.0)


def test_extended_kpis_empty():
    ext = calculate_extended_kpis([])

    assert ext.most_active_day == "-"
    assert ext.total_active_days == 0
    assert ext.best_trade is None


def test_long_short_split():
    trades = [
        make_trade(1, 5.0),
        make_trade(2, 5.0, direction=TradeDirection.SHORT),
        make_trade(3, -5.0, direction=TradeDirection.SHORT),
        make_trade(4, 5.0),
    ]
    ext = calculate_extended_kpis(trades)

    assert (ext.long_count, ext.short_count) == (2, 2)
    assert ext.long_percent == pytest.approx(50.0)


# =================================================
# Display helpers
# =================================================
def test_formatters():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-16.25) == "-$16.25"
    assert format_percent(70) == "70.0%"
    assert format_profit_factor(math.inf) == "∞"
    assert format_profit_factor(4.114285) == "4.11"


def test_format_trade_detail():
    trade = make_trade(1, 100.0, symbol="NQH6").model_copy(
        update={"entry_price": 25266.0, "exit_price": 25271.0}
    )

    assert format_trade_detail(trade) == (
        "Long 1 /NQH6 @ 25266.0, Exited @ 25271.0, 02/11/2026 15:00:00"
    )
    assert format_trade_detail(None) == ""
