# storehours/core/availability.py
"""
Store availability evaluator.

Pure functions over an explicit ``MerchantSchedule`` and a ``LocalClock``.
Nothing here touches the database, the wall clock or raises on degenerate
schedule data: missing rows resolve to "closed" / "unavailable".

Store-level priority:  manual override > special hours > weekly opening hours
Mode-level priority:   special closed > mode disabled > special mode override
                       > per-day mode schedule > merchant-level mode window
"""
from __future__ import annotations

from datetime import date as _Date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from storehours.core.timeutils import (
    DAY_NAMES,
    LocalClock,
    is_within_window,
    minutes_until_window_end,
    minutes_until_windows_end,
)


class OrderMode(str, Enum):
    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"
    DELIVERY = "DELIVERY"

    @property
    def label(self) -> str:
        return MODE_LABELS[self]


MODE_LABELS = {
    OrderMode.DINE_IN: "Dine In",
    OrderMode.TAKEAWAY: "Takeaway",
    OrderMode.DELIVERY: "Delivery",
}

# Attribute prefixes used on merchants and special hours for each mode
MODE_PREFIX = {
    OrderMode.DINE_IN: "dine_in",
    OrderMode.TAKEAWAY: "takeaway",
    OrderMode.DELIVERY: "delivery",
}


# ---------- Schedule inputs ----------

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class OpeningHourRule(_Frozen):
    day_of_week: int
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    is_closed: bool = False
    is_24_hours: bool = False


class ModeWindow(_Frozen):
    mode: OrderMode
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool = True


class SpecialHourRule(_Frozen):
    date: _Date
    name: Optional[str] = None
    is_closed: bool = False
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    # None means "not overridden for this mode"
    is_dine_in_enabled: Optional[bool] = None
    is_takeaway_enabled: Optional[bool] = None
    is_delivery_enabled: Optional[bool] = None
    dine_in_start_time: Optional[str] = None
    dine_in_end_time: Optional[str] = None
    takeaway_start_time: Optional[str] = None
    takeaway_end_time: Optional[str] = None
    delivery_start_time: Optional[str] = None
    delivery_end_time: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or "Special Hours"

    def mode_enabled(self, mode: OrderMode) -> Optional[bool]:
        return getattr(self, f"is_{MODE_PREFIX[mode]}_enabled")

    def mode_window(self, mode: OrderMode) -> Optional[tuple[str, str]]:
        prefix = MODE_PREFIX[mode]
        start = getattr(self, f"{prefix}_start_time")
        end = getattr(self, f"{prefix}_end_time")
        if start and end:
            return start, end
        return None


class MerchantSchedule(_Frozen):
    """Everything the evaluator may read about one merchant."""
    timezone: str
    is_open: bool = True
    is_manual_override: bool = False
    is_per_day_mode_schedule_enabled: bool = False

    is_dine_in_enabled: bool = True
    is_takeaway_enabled: bool = True
    is_delivery_enabled: bool = False

    dine_in_schedule_start: Optional[str] = None
    dine_in_schedule_end: Optional[str] = None
    takeaway_schedule_start: Optional[str] = None
    takeaway_schedule_end: Optional[str] = None
    delivery_schedule_start: Optional[str] = None
    delivery_schedule_end: Optional[str] = None

    opening_hours: tuple[OpeningHourRule, ...] = ()
    mode_schedules: tuple[ModeWindow, ...] = ()
    special_hours: tuple[SpecialHourRule, ...] = ()

    def mode_enabled(self, mode: OrderMode) -> bool:
        return getattr(self, f"is_{MODE_PREFIX[mode]}_enabled")

    def legacy_window(self, mode: OrderMode) -> Optional[tuple[str, str]]:
        prefix = MODE_PREFIX[mode]
        start = getattr(self, f"{prefix}_schedule_start")
        end = getattr(self, f"{prefix}_schedule_end")
        if start and end:
            return start, end
        return None

    def opening_hour_for(self, day_of_week: int) -> Optional[OpeningHourRule]:
        return next((h for h in self.opening_hours if h.day_of_week == day_of_week), None)


# ---------- Results ----------

class TimeWindow(_Frozen):
    start: str
    end: str


class ModeAvailability(_Frozen):
    mode: OrderMode
    available: bool
    reason: Optional[str] = None
    windows: tuple[TimeWindow, ...] = ()
    minutes_until_close: Optional[int] = None


class StoreAvailability(_Frozen):
    is_open: bool
    reason: Optional[str] = None
    is_manual_override: bool = False
    scheduled_open: bool = False
    special_hour_name: Optional[str] = None
    minutes_until_close: Optional[int] = None
    next_opening: Optional[str] = None


class StoreStatus(_Frozen):
    clock: LocalClock
    store: StoreAvailability
    modes: dict[OrderMode, ModeAvailability] = Field(default_factory=dict)


# ---------- Special-hours resolver ----------

def resolve_today(special_hours, today_iso: str) -> Optional[SpecialHourRule]:
    """Return the special-hour record for ``today_iso`` if there is one.

    Records for any other date are ignored rather than rejected, so a
    server/merchant clock mismatch falls back to the weekly schedule.
    """
    for special in special_hours:
        if special.date.isoformat() == today_iso:
            return special
    return None


# ---------- Store level ----------

def _open_by_schedule(schedule: MerchantSchedule, clock: LocalClock,
                      special: Optional[SpecialHourRule]) -> StoreAvailability:
    """Schedule-only decision: special hours, then the weekly row for today."""
    if special is not None:
        if special.is_closed:
            return StoreAvailability(
                is_open=False,
                reason=f"Closed for {special.name}" if special.name else "Closed for special hours",
                special_hour_name=special.name,
            )
        if special.open_time and special.close_time:
            if is_within_window(clock.time, special.open_time, special.close_time):
                return StoreAvailability(
                    is_open=True,
                    scheduled_open=True,
                    reason=f"Open ({special.display_name})",
                    special_hour_name=special.name,
                    minutes_until_close=minutes_until_window_end(
                        clock.time, special.open_time, special.close_time),
                )
            return StoreAvailability(
                is_open=False, reason="Currently Closed", special_hour_name=special.name)

    today = schedule.opening_hour_for(clock.day_of_week)
    if today is None or today.is_closed:
        return StoreAvailability(is_open=False, reason="Closed Today")
    if today.is_24_hours:
        return StoreAvailability(is_open=True, scheduled_open=True)
    if today.open_time and today.close_time:
        if is_within_window(clock.time, today.open_time, today.close_time):
            return StoreAvailability(
                is_open=True,
                scheduled_open=True,
                minutes_until_close=minutes_until_window_end(
                    clock.time, today.open_time, today.close_time),
            )
        return StoreAvailability(is_open=False, reason="Currently Closed")
    # Row exists but carries no window
    return StoreAvailability(is_open=False, reason="Closed Today")


def next_opening(schedule: MerchantSchedule, clock: LocalClock,
                 include_today: bool = True) -> Optional[str]:
    """Human readable hint for when the weekly schedule next opens.

    ``include_today=False`` skips today's weekly row, used when a special-hour
    record has replaced it.
    """
    if not schedule.opening_hours:
        return None

    today = schedule.opening_hour_for(clock.day_of_week) if include_today else None
    if today and not today.is_closed and not today.is_24_hours and today.open_time:
        if clock.time < today.open_time:
            return f"Opens at {today.open_time}"

    for offset in range(1, 8):
        day = (clock.day_of_week + offset) % 7
        hours = schedule.opening_hour_for(day)
        if hours is None or hours.is_closed:
            continue
        when = "tomorrow" if offset == 1 else DAY_NAMES[day]
        if hours.is_24_hours:
            return f"Opens {when}"
        if hours.open_time:
            return f"Opens {when} at {hours.open_time}"
    return None


def evaluate_store(schedule: MerchantSchedule, clock: LocalClock) -> StoreAvailability:
    """Store-level OPEN/CLOSED, recomputed from scratch on every call."""
    special = resolve_today(schedule.special_hours, clock.date)
    by_schedule = _open_by_schedule(schedule, clock, special)

    if schedule.is_manual_override:
        if schedule.is_open:
            reason = None if by_schedule.is_open else "Manually Open"
        else:
            reason = "Manually Closed"
        return StoreAvailability(
            is_open=schedule.is_open,
            reason=reason,
            is_manual_override=True,
            scheduled_open=by_schedule.is_open,
            special_hour_name=by_schedule.special_hour_name,
        )

    if by_schedule.is_open:
        return by_schedule
    replaces_today = special is not None and (
        special.is_closed or bool(special.open_time and special.close_time))
    if replaces_today and not special.is_closed and clock.time < special.open_time:
        hint = f"Opens at {special.open_time}"
    else:
        hint = next_opening(schedule, clock, include_today=not replaces_today)
    return by_schedule.model_copy(update={"next_opening": hint})


# ---------- Mode level ----------

def _windows_result(mode: OrderMode, now: str, windows: list[tuple[str, str]]) -> ModeAvailability:
    """Union of windows: available when ``now`` falls in any of them."""
    time_windows = tuple(TimeWindow(start=s, end=e) for s, e in windows)
    if any(is_within_window(now, start, end) for start, end in windows):
        return ModeAvailability(
            mode=mode,
            available=True,
            windows=time_windows,
            minutes_until_close=minutes_until_windows_end(now, windows),
        )
    spans = ", ".join(f"{s} - {e}" for s, e in windows)
    return ModeAvailability(mode=mode, available=False, reason=f"Available {spans}", windows=time_windows)


def is_mode_available(mode: OrderMode, schedule: MerchantSchedule,
                      clock: LocalClock) -> ModeAvailability:
    special = resolve_today(schedule.special_hours, clock.date)

    if special is not None and special.is_closed:
        reason = f"Closed for {special.name}" if special.name else "Closed for special hours"
        return ModeAvailability(mode=mode, available=False, reason=reason)

    if not schedule.mode_enabled(mode):
        return ModeAvailability(mode=mode, available=False, reason=f"{mode.label} is not available")

    if special is not None:
        enabled = special.mode_enabled(mode)
        if enabled is False:
            return ModeAvailability(mode=mode, available=False, reason=f"{mode.label} not available today")
        if enabled is True:
            window = special.mode_window(mode)
            if window is None:
                return ModeAvailability(mode=mode, available=True)
            return _windows_result(mode, clock.time, [window])

    if schedule.is_per_day_mode_schedule_enabled:
        windows = [
            (s.start_time, s.end_time)
            for s in schedule.mode_schedules
            if s.mode == mode and s.day_of_week == clock.day_of_week and s.is_active
        ]
        if not windows:
            return ModeAvailability(mode=mode, available=False, reason=f"{mode.label} is not scheduled today")
        return _windows_result(mode, clock.time, sorted(windows))

    legacy = schedule.legacy_window(mode)
    if legacy is None:
        return ModeAvailability(mode=mode, available=True)
    return _windows_result(mode, clock.time, [legacy])


def evaluate(schedule: MerchantSchedule, clock: LocalClock) -> StoreStatus:
    """Store status plus availability for every order mode."""
    return StoreStatus(
        clock=clock,
        store=evaluate_store(schedule, clock),
        modes={mode: is_mode_available(mode, schedule, clock) for mode in OrderMode},
    )
