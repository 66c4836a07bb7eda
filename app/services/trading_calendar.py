"""
Exchange trading-day assignment (CME Globex, US Central time).

The Globex session for day D opens at 17:00 CT on D-1, so anything executed
at or after 17:00 local belongs to the next calendar date. Central time is
UTC-6 in winter and UTC-5 under US daylight saving (second Sunday of March
02:00 local to first Sunday of November 02:00 local).
"""
from datetime import date, datetime, timedelta, timezone

STANDARD_OFFSET_HOURS = -6
DAYLIGHT_OFFSET_HOURS = -5
SESSION_CUTOVER_HOUR = 17
EPOCH_DATE = date(1970, 1, 1)

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


def _nth_sunday(year: int, month: int, n: int) -> date:
    first = date(year, month, 1)
    # Monday=0 .. Sunday=6
    days_to_sunday = (6 - first.weekday()) % 7
    return first + timedelta(days=days_to_sunday + 7 * (n - 1))


def dst_bounds_utc(year: int) -> tuple[datetime, datetime]:
    """UTC instants at which daylight time starts and ends in `year`."""
    start_day = _nth_sunday(year, 3, 2)
    end_day = _nth_sunday(year, 11, 1)

    # 02:00 CST (UTC-6) -> 08:00 UTC, 02:00 CDT (UTC-5) -> 07:00 UTC
    start = datetime(start_day.year, start_day.month, start_day.day, 8, tzinfo=timezone.utc)
    end = datetime(end_day.year, end_day.month, end_day.day, 7, tzinfo=timezone.utc)
    return start, end


def _to_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _check_instant(instant: datetime) -> datetime:
    utc = _to_utc(instant)
    if utc.timestamp() <= 0:
        raise ValueError(f"instant must be after the epoch, got {instant!r}")
    return utc


def session_offset(instant: datetime) -> int:
    """UTC offset in hours of the reference zone at `instant` (-5 or -6)."""
    utc = _check_instant(instant)
    start, end = dst_bounds_utc(utc.year)
    if start <= utc < end:
        return DAYLIGHT_OFFSET_HOURS
    return STANDARD_OFFSET_HOURS


def to_exchange_time(instant: datetime) -> datetime:
    """Naive local wall-clock time in the reference zone."""
    utc = _check_instant(instant)
    return (utc + timedelta(hours=session_offset(utc))).replace(tzinfo=None)


def trading_day(instant: datetime) -> str:
    local = to_exchange_time(instant)
    day = local.date()
    if local.hour >= SESSION_CUTOVER_HOUR:
        day += timedelta(days=1)
    return day.isoformat()


def weekday_label(date_string: str) -> str:
    """Weekday name of a YYYY-MM-DD trading day (not of any execution instant)."""
    return WEEKDAY_NAMES[date.fromisoformat(date_string).weekday()]


def session_date(*instants: datetime) -> tuple[str, str]:
    """
    (trading day, weekday) for the first usable instant, e.g. a trade's exit
    time falling back to its entry time. Epoch placeholders left by
    unparseable timestamps are skipped; if nothing usable remains the epoch
    date itself is returned.
    """
    for instant in instants:
        if instant is not None and _to_utc(instant).timestamp() > 0:
            day = trading_day(instant)
            return day, weekday_label(day)

    day = EPOCH_DATE.isoformat()
    return day, weekday_label(day)
