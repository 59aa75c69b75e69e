"""
Time utilities for cadence-aligned forecast schedules.

Alignment policy (fixed, always UTC):
  - Hourly → next top of the hour.
  - Daily  → next midnight UTC.
  - Weekly → next Monday 00:00 UTC.

"Next" is strictly in the future: when ``now`` sits exactly on a boundary the
schedule starts one full period later, never at ``now`` itself.

``now`` is always a parameter so alignment can be tested without a clock;
``utcnow()`` is the only function here that reads the wall clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from candle_forecaster.taxonomy.cadence import Cadence


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def _as_utc(now: datetime) -> datetime:
    """Normalise ``now`` to an aware UTC datetime; naive values are taken as UTC."""
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def next_aligned_datetime(cadence: Cadence, now: datetime) -> datetime:
    """Return the first cadence boundary strictly after ``now``.

    Args:
        cadence: Forecast cadence.
        now: Reference instant.  Naive datetimes are interpreted as UTC.

    Returns:
        Aware UTC datetime of the next boundary.
    """
    now = _as_utc(now)

    if cadence is Cadence.HOURLY:
        floor = now.replace(minute=0, second=0, microsecond=0)
        return floor + timedelta(hours=1)

    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if cadence is Cadence.DAILY:
        return midnight + timedelta(days=1)

    # Monday is weekday() == 0; a Monday itself rolls over to the following one.
    days_until_monday = (7 - now.weekday()) % 7 or 7
    return midnight + timedelta(days=days_until_monday)


def next_aligned_timestamp(cadence: Cadence, now: datetime) -> int:
    """``next_aligned_datetime`` as integer seconds since the epoch."""
    return int(next_aligned_datetime(cadence, now).timestamp())


def schedule_timestamps(cadence: Cadence, count: int, now: datetime) -> list[int]:
    """Return ``count`` consecutive period-start timestamps after ``now``.

    Args:
        cadence: Forecast cadence.
        count: Number of timestamps (>= 0).
        now: Reference instant.

    Returns:
        Strictly increasing timestamps spaced ``cadence.period_seconds`` apart.

    Raises:
        ValueError: If ``count`` is negative.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}.")
    first = next_aligned_timestamp(cadence, now)
    step = cadence.period_seconds
    return [first + i * step for i in range(count)]


def format_timestamp(ts: int) -> str:
    """Render epoch seconds as ``YYYY-MM-DD HH:MM`` (UTC) for terminal output."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
