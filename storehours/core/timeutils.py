# storehours/core/timeutils.py
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
MINUTES_PER_DAY = 24 * 60

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class LocalClock(BaseModel):
    """A merchant-local calendar date and wall-clock time.

    ``day_of_week`` is Sunday-first (0=Sunday .. 6=Saturday), the same
    encoding used by opening hours and mode schedules.
    """
    model_config = ConfigDict(frozen=True)

    date: str          # YYYY-MM-DD
    time: str          # HH:MM, 24-hour
    day_of_week: int

    def at(self, hhmm: str) -> "LocalClock":
        """Same local date, different wall-clock time."""
        return LocalClock(date=self.date, time=hhmm, day_of_week=self.day_of_week)


def is_valid_hhmm(value: Optional[str]) -> bool:
    return bool(value) and HHMM_PATTERN.fullmatch(value) is not None


def is_valid_timezone(name: Optional[str]) -> bool:
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    total %= MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def sunday_first_weekday(d: date) -> int:
    # date.isoweekday(): Monday=1 .. Sunday=7
    return d.isoweekday() % 7


def day_of_week_from_iso_date(date_iso: str) -> int:
    """Day of week for a calendar date, independent of any timezone."""
    return sunday_first_weekday(date.fromisoformat(date_iso))


def local_clock(now: datetime, tz_name: str) -> LocalClock:
    """Convert an instant into the merchant's local date, time and weekday.

    A naive ``now`` is taken to be UTC. Raises ``ZoneInfoNotFoundError`` for an
    unknown timezone; callers validate the name first.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(ZoneInfo(tz_name))
    return LocalClock(
        date=local.date().isoformat(),
        time=f"{local.hour:02d}:{local.minute:02d}",
        day_of_week=sunday_first_weekday(local.date()),
    )


def clock_for(date_iso: str, hhmm: str) -> LocalClock:
    """Clock for an explicit local date and time (reservations, previews)."""
    return LocalClock(date=date_iso, time=hhmm, day_of_week=day_of_week_from_iso_date(date_iso))


def is_within_window(now: str, start: str, end: str) -> bool:
    """Half-open window check on pre-validated HH:MM strings.

    start == end  -> full day
    start <  end  -> start <= now < end
    start >  end  -> crosses midnight: now >= start or now < end
    """
    if start == end:
        return True
    if start < end:
        return start <= now < end
    return now >= start or now < end


def minutes_until_window_end(now: str, start: str, end: str) -> Optional[int]:
    """Minutes from ``now`` until the window closes, or None for a full-day window.

    Only meaningful when ``now`` lies inside the window.
    """
    if start == end:
        return None
    now_m, end_m = to_minutes(now), to_minutes(end)
    if end_m > now_m:
        return end_m - now_m
    return end_m + MINUTES_PER_DAY - now_m


def minutes_until_windows_end(now: str, windows: list[tuple[str, str]]) -> Optional[int]:
    """Minutes until a union of windows stops covering ``now``.

    Windows that touch or overlap the covered stretch extend it, across
    midnight too. None when the union covers a full day.
    Only meaningful when ``now`` lies inside at least one window.
    """
    now_m = to_minutes(now)
    spans = []
    for start, end in windows:
        if start == end:
            return None
        start_m = to_minutes(start)
        spans.append(((start_m - now_m) % MINUTES_PER_DAY, (to_minutes(end) - start_m) % MINUTES_PER_DAY))

    remaining = max(
        (minutes_until_window_end(now, s, e) for s, e in windows if is_within_window(now, s, e)),
        default=0,
    )
    extended = True
    while extended and remaining < MINUTES_PER_DAY:
        extended = False
        for offset, length in spans:
            if offset <= remaining < offset + length:
                remaining = offset + length
                extended = True
    return remaining if remaining < MINUTES_PER_DAY else None
