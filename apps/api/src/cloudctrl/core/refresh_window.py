"""Daily refresh window arithmetic (local wall-clock time)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class RefreshCountdown:
    hours: int
    minutes: int
    next_refresh: datetime


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def in_refresh_window(now: datetime, refresh_hour: int) -> bool:
    """True during [refresh_hour:00, refresh_hour+1:00)."""
    return now.hour == refresh_hour


def time_until_next_refresh(now: datetime, refresh_hour: int) -> RefreshCountdown:
    """
    Time left until the next ``refresh_hour``:00.

    Once the refresh hour has started today the next occurrence is tomorrow,
    so a call at 08:30 with ``refresh_hour=8`` reports 23h 30m.
    """
    next_refresh = now.replace(hour=refresh_hour, minute=0, second=0, microsecond=0)
    if now.hour >= refresh_hour:
        next_refresh += timedelta(days=1)

    remaining = int((next_refresh - now).total_seconds())
    return RefreshCountdown(
        hours=remaining // 3600,
        minutes=(remaining % 3600) // 60,
        next_refresh=next_refresh,
    )
