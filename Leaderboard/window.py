from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Tuple

from .config import WINDOW_SHAPES


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_midnight(value: datetime) -> datetime:
    value = as_utc(value)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def week_start(now: datetime) -> datetime:
    """Monday 00:00 UTC of the week containing `now` (weeks run Monday-Sunday)."""
    today = utc_midnight(now)
    # weekday(): Monday=0 .. Sunday=6
    return today - timedelta(days=today.weekday())


def week_window(
    now: datetime | None = None, week_offset: int = 0, shape: str = "week"
) -> Tuple[datetime, datetime]:
    """
    now: reference instant; defaults to the current UTC time
    week_offset: whole weeks to step back from the current week
    shape: 'week' for the full Monday-Sunday week, 'to_date' to stop at `now`
    returns [start_utc, end_utc)
    """
    if isinstance(week_offset, bool) or not isinstance(week_offset, int) or week_offset < 0:
        raise ValueError(f"week_offset must be a non-negative integer, got {week_offset!r}")
    if shape not in WINDOW_SHAPES:
        raise ValueError(f"Unknown window shape: {shape!r}")

    now = as_utc(now or datetime.now(timezone.utc))
    start = week_start(now) - timedelta(days=7 * week_offset)
    end = start + timedelta(days=7)
    if shape == "to_date":
        end = min(end, now)
    return start, end
