import re
from typing import Optional

_hr_re = re.compile(r"(\d+)\s*hr")
_min_re = re.compile(r"(\d+)\s*min")
_sec_re = re.compile(r"(\d+)\s*sec")


def _split(total_seconds: int) -> tuple[int, int, int]:
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return hours, minutes, seconds


def format_duration(total_seconds: float) -> str:
    """
    Compact holding time used on trades: "1hr 5min 30sec", "36min 8sec", "0sec".
    Zero-valued units are omitted; seconds are floored.
    """
    total = int(abs(total_seconds))
    hours, minutes, seconds = _split(total)

    parts = []
    if hours > 0:
        parts.append(f"{hours}hr")
    if minutes > 0:
        parts.append(f"{minutes}min")
    if seconds > 0 or not parts:
        parts.append(f"{seconds}sec")
    return " ".join(parts)


def parse_duration_to_seconds(duration: Optional[str]) -> int:
    """Inverse of format_duration: 1hr 5min 30sec -> 3930. Unparseable input -> 0."""
    if not duration or not isinstance(duration, str):
        return 0

    total = 0
    m = _hr_re.search(duration)
    if m:
        total += int(m.group(1)) * 3600
    m = _min_re.search(duration)
    if m:
        total += int(m.group(1)) * 60
    m = _sec_re.search(duration)
    if m:
        total += int(m.group(1))
    return total


def format_duration_from_seconds(total_seconds: Optional[float]) -> str:
    """Display form for averages: "1 hr 5 min 30 sec"."""
    if not total_seconds or total_seconds <= 0:
        return "0 sec"

    hours, minutes, seconds = _split(int(round(total_seconds)))
    parts = []
    if hours > 0:
        parts.append(f"{hours} hr")
    if minutes > 0:
        parts.append(f"{minutes} min")
    if seconds > 0 or not parts:
        parts.append(f"{seconds} sec")
    return " ".join(parts)
