from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.trades import load_saved_trades
from app.db import get_db
from app.services.metrics import (
    calculate_daily_summary,
    calculate_day_of_week_summary,
    calculate_extended_kpis,
    calculate_kpis,
    calculate_monthly_summary,
    calculate_weekly_summary,
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


# =================================================
# HEADLINE KPIs
# =================================================
@router.get("/summary")
def summary(db: Session = Depends(get_db)):
    return calculate_kpis(load_saved_trades(db)).model_dump(mode="json", by_alias=True)


@router.get("/extended")
def extended(db: Session = Depends(get_db)):
    """Weekday activity, holding times, long/short split, best/worst trade."""
    return calculate_extended_kpis(load_saved_trades(db)).model_dump(mode="json", by_alias=True)


# =================================================
# BUCKETED SERIES
# =================================================
@router.get("/daily")
def daily(db: Session = Depends(get_db)):
    return [
        d.model_dump(mode="json", by_alias=True)
        for d in calculate_daily_summary(load_saved_trades(db))
    ]


@router.get("/weekly")
def weekly(db: Session = Depends(get_db)):
    return [
        w.model_dump(mode="json", by_alias=True)
        for w in calculate_weekly_summary(load_saved_trades(db))
    ]


@router.get("/day-of-week")
def day_of_week(db: Session = Depends(get_db)):
    return [
        d.model_dump(mode="json", by_alias=True)
        for d in calculate_day_of_week_summary(load_saved_trades(db))
    ]


@router.get("/monthly")
def monthly(db: Session = Depends(get_db)):
    return [
        m.model_dump(mode="json", by_alias=True)
        for m in calculate_monthly_summary(load_saved_trades(db))
    ]
