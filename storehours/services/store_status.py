# storehours/services/store_status.py
"""
Single entry point for store/mode availability.

Every endpoint that needs to know whether a merchant is open goes through
here: fetch the merchant's schedule rows, validate what the evaluator assumes,
run the pure evaluator and apply caller-side guards (delivery coordinates,
scheduled-order gating).
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from storehours.core.availability import (
    MerchantSchedule,
    ModeAvailability,
    ModeWindow,
    OpeningHourRule,
    OrderMode,
    SpecialHourRule,
    evaluate,
    evaluate_store,
    is_mode_available,
)
from storehours.core.config import settings
from storehours.core.errors import (
    MerchantInactiveError,
    MerchantNotFoundError,
    ScheduleValidationError,
)
from storehours.core.logging import get_logger
from storehours.core.timeutils import (
    LocalClock,
    clock_for,
    from_minutes,
    is_valid_hhmm,
    is_valid_timezone,
    local_clock,
)
from storehours.crud.merchant import get_merchant_by_code
from storehours.crud.schedule import get_special_hour
from storehours.db.models.merchant import Merchant
from storehours.db.models.schedule import MerchantSpecialHour
from storehours.schemas.status import (
    AvailabilityCheckOut,
    AvailableTimesOut,
    ModeStatusOut,
    StoreStatusOut,
    TimeWindowOut,
)

logger = get_logger(__name__)

SLOT_INTERVALS = (5, 10, 15, 20, 30, 60)


# ---------- Input validation (before the evaluator runs) ----------

def parse_mode(value: Optional[str]) -> OrderMode:
    try:
        return OrderMode((value or "").upper())
    except ValueError:
        raise ScheduleValidationError('Query param "mode" is required (DINE_IN, TAKEAWAY, DELIVERY)')


def merchant_timezone(merchant: Merchant) -> str:
    tz = merchant.timezone or settings.DEFAULT_TIMEZONE
    if not is_valid_timezone(tz):
        raise ScheduleValidationError(f"Merchant timezone '{tz}' is not a valid IANA timezone")
    return tz


async def _load_active_merchant(db: AsyncSession, code: str) -> Merchant:
    merchant = await get_merchant_by_code(db, code, with_schedule=True)
    if merchant is None:
        raise MerchantNotFoundError(code)
    if not merchant.is_active:
        raise MerchantInactiveError(code)
    return merchant


# ---------- ORM -> evaluator input ----------

def build_schedule(
    merchant: Merchant,
    special_hours: Sequence[MerchantSpecialHour] = (),
    *,
    tz: Optional[str] = None,
) -> MerchantSchedule:
    """Map ORM rows into the evaluator's explicit schedule model.

    Rows with malformed times are dropped here so the evaluator only ever
    sees validated HH:MM strings.
    """
    opening_hours = [
        OpeningHourRule.model_validate(h)
        for h in merchant.opening_hours
        if h.is_closed or h.is_24_hours or _valid_pair(h.open_time, h.close_time)
    ]
    mode_schedules = [
        ModeWindow.model_validate(s)
        for s in merchant.mode_schedules
        if s.mode in OrderMode.__members__ and is_valid_hhmm(s.start_time) and is_valid_hhmm(s.end_time)
    ]
    specials = [_special_rule(s) for s in special_hours]

    return MerchantSchedule(
        timezone=tz or merchant_timezone(merchant),
        is_open=merchant.is_open,
        is_manual_override=merchant.is_manual_override,
        is_per_day_mode_schedule_enabled=merchant.is_per_day_mode_schedule_enabled,
        is_dine_in_enabled=merchant.is_dine_in_enabled,
        is_takeaway_enabled=merchant.is_takeaway_enabled,
        is_delivery_enabled=merchant.is_delivery_enabled,
        dine_in_schedule_start=_valid_or_none(merchant.dine_in_schedule_start),
        dine_in_schedule_end=_valid_or_none(merchant.dine_in_schedule_end),
        takeaway_schedule_start=_valid_or_none(merchant.takeaway_schedule_start),
        takeaway_schedule_end=_valid_or_none(merchant.takeaway_schedule_end),
        delivery_schedule_start=_valid_or_none(merchant.delivery_schedule_start),
        delivery_schedule_end=_valid_or_none(merchant.delivery_schedule_end),
        opening_hours=opening_hours,
        mode_schedules=mode_schedules,
        special_hours=specials,
    )


def _valid_pair(start: Optional[str], end: Optional[str]) -> bool:
    return is_valid_hhmm(start) and is_valid_hhmm(end)


def _valid_or_none(value: Optional[str]) -> Optional[str]:
    return value if is_valid_hhmm(value) else None


SPECIAL_WINDOWS = (
    ("open_time", "close_time"),
    ("dine_in_start_time", "dine_in_end_time"),
    ("takeaway_start_time", "takeaway_end_time"),
    ("delivery_start_time", "delivery_end_time"),
)


def _special_rule(row: MerchantSpecialHour) -> SpecialHourRule:
    """A window with either end malformed is cleared as a whole."""
    rule = SpecialHourRule.model_validate(row)
    cleared = {}
    for start_f, end_f in SPECIAL_WINDOWS:
        if not _valid_pair(getattr(rule, start_f), getattr(rule, end_f)):
            cleared.update({start_f: None, end_f: None})
    return rule.model_copy(update=cleared)


# ---------- Caller-side guards ----------

def apply_delivery_guard(result: ModeAvailability, merchant: Merchant) -> ModeAvailability:
    """Delivery needs an origin point; the evaluator itself is mode-agnostic."""
    if result.mode != OrderMode.DELIVERY or not result.available:
        return result
    if merchant.latitude is None or merchant.longitude is None:
        return result.model_copy(update={
            "available": False,
            "reason": "Delivery location not configured",
            "minutes_until_close": None,
        })
    return result


def _mode_out(result: ModeAvailability) -> ModeStatusOut:
    return ModeStatusOut(
        available=result.available,
        reason=result.reason,
        windows=[TimeWindowOut(start=w.start, end=w.end) for w in result.windows],
        minutes_until_close=result.minutes_until_close,
    )


# ---------- Public operations ----------

async def get_store_status(
    db: AsyncSession, code: str, *, now: Optional[datetime] = None
) -> StoreStatusOut:
    """Current store status and per-mode availability for a merchant."""
    merchant = await _load_active_merchant(db, code)
    tz = merchant_timezone(merchant)
    now = now or datetime.now(timezone.utc)
    clock = local_clock(now, tz)

    special = await get_special_hour(db, merchant.id, date.fromisoformat(clock.date))
    schedule = build_schedule(merchant, [special] if special else [], tz=tz)
    status = evaluate(schedule, clock)

    modes = {
        mode: _mode_out(apply_delivery_guard(result, merchant))
        for mode, result in status.modes.items()
    }

    logger.info(
        "store_status_evaluated",
        merchant_code=code,
        local_time=clock.time,
        day_of_week=clock.day_of_week,
        is_open=status.store.is_open,
        reason=status.store.reason,
        manual_override=status.store.is_manual_override,
        special_hour=special is not None,
    )

    store = status.store
    return StoreStatusOut(
        merchant_code=merchant.code,
        timezone=tz,
        date=clock.date,
        local_time=clock.time,
        day_of_week=clock.day_of_week,
        is_open=store.is_open,
        reason=store.reason,
        is_manual_override=store.is_manual_override,
        scheduled_open=store.scheduled_open,
        special_hour_name=store.special_hour_name,
        minutes_until_close=store.minutes_until_close,
        next_opening=store.next_opening,
        modes=modes,
        server_time=now,
    )


def generate_slots(interval_minutes: int) -> list[str]:
    return [from_minutes(m) for m in range(0, 24 * 60, interval_minutes)]


def slot_is_orderable(
    schedule: MerchantSchedule, clock: LocalClock, mode: OrderMode, merchant: Merchant
) -> bool:
    if not evaluate_store(schedule, clock).is_open:
        return False
    result = apply_delivery_guard(is_mode_available(mode, schedule, clock), merchant)
    return result.available


async def get_available_times(
    db: AsyncSession,
    code: str,
    *,
    mode: str,
    interval_minutes: int = 15,
    include_past: bool = False,
    now: Optional[datetime] = None,
) -> AvailableTimesOut:
    """Today's orderable HH:MM slots (merchant-local) for one order mode."""
    order_mode = parse_mode(mode)
    if interval_minutes not in SLOT_INTERVALS:
        raise ScheduleValidationError(
            f"intervalMinutes must be one of: {', '.join(str(i) for i in SLOT_INTERVALS)}"
        )

    merchant = await _load_active_merchant(db, code)
    tz = merchant_timezone(merchant)

    if not merchant.is_scheduled_order_enabled:
        return AvailableTimesOut(
            timezone=tz,
            mode=order_mode,
            interval_minutes=interval_minutes,
            slots=[],
            disabled_reason="Scheduled orders are not enabled for this merchant.",
        )

    clock = local_clock(now or datetime.now(timezone.utc), tz)
    special = await get_special_hour(db, merchant.id, date.fromisoformat(clock.date))
    schedule = build_schedule(merchant, [special] if special else [], tz=tz)

    slots = [
        hhmm for hhmm in generate_slots(interval_minutes)
        if (include_past or hhmm >= clock.time)
        and slot_is_orderable(schedule, clock.at(hhmm), order_mode, merchant)
    ]

    logger.info(
        "available_times_computed",
        merchant_code=code,
        mode=order_mode.value,
        interval_minutes=interval_minutes,
        slot_count=len(slots),
    )

    return AvailableTimesOut(
        timezone=tz,
        date=clock.date,
        now=clock.time,
        mode=order_mode,
        interval_minutes=interval_minutes,
        slots=slots,
    )


async def check_availability_at(
    db: AsyncSession,
    code: str,
    *,
    on_date: date,
    at_time: str,
    mode: str,
) -> AvailabilityCheckOut:
    """Availability at an explicit merchant-local date and time."""
    order_mode = parse_mode(mode)
    if not is_valid_hhmm(at_time):
        raise ScheduleValidationError("time must be HH:MM (24-hour, zero padded)")

    merchant = await _load_active_merchant(db, code)
    special = await get_special_hour(db, merchant.id, on_date)
    schedule = build_schedule(merchant, [special] if special else [])
    clock = clock_for(on_date.isoformat(), at_time)

    store = evaluate_store(schedule, clock)
    result = apply_delivery_guard(is_mode_available(order_mode, schedule, clock), merchant)

    return AvailabilityCheckOut(
        date=clock.date,
        time=clock.time,
        day_of_week=clock.day_of_week,
        mode=order_mode,
        is_open=store.is_open,
        store_reason=store.reason,
        special_hour_name=store.special_hour_name,
        available=result.available,
        reason=result.reason,
    )
