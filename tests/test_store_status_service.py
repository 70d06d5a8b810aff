#!/usr/bin/env python3
"""
Tests for the store status service: ORM rows -> evaluator -> response models.
"""

from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from storehours.core.availability import ModeAvailability, OrderMode, evaluate_store
from storehours.core.errors import (
    MerchantInactiveError,
    MerchantNotFoundError,
    ScheduleValidationError,
)
from storehours.core.timeutils import clock_for
from storehours.services.store_status import (
    apply_delivery_guard,
    build_schedule,
    check_availability_at,
    generate_slots,
    get_available_times,
    get_store_status,
    merchant_timezone,
    parse_mode,
)

UTC = timezone.utc

# Monday 2025-01-06 14:00 in Sydney (AEDT, UTC+11)
MONDAY_2PM_SYDNEY = datetime(2025, 1, 6, 3, 0, tzinfo=UTC)
# Monday 2025-01-06 10:30 in Sydney
MONDAY_1030_SYDNEY = datetime(2025, 1, 5, 23, 30, tzinfo=UTC)

MON_9_TO_22 = {"day_of_week": 1, "open_time": "09:00", "close_time": "22:00"}


def _merchant(**kw):
    defaults = dict(
        code="demo", timezone="UTC", is_open=True, is_manual_override=False,
        is_per_day_mode_schedule_enabled=False,
        is_dine_in_enabled=True, is_takeaway_enabled=True, is_delivery_enabled=True,
        dine_in_schedule_start=None, dine_in_schedule_end=None,
        takeaway_schedule_start=None, takeaway_schedule_end=None,
        delivery_schedule_start=None, delivery_schedule_end=None,
        latitude=None, longitude=None, opening_hours=[], mode_schedules=[],
    )
    defaults.update(kw)
    return SimpleNamespace(**defaults)


@pytest.mark.unit
class TestInputValidation:

    def test_parse_mode_is_case_insensitive(self):
        assert parse_mode("delivery") is OrderMode.DELIVERY
        assert parse_mode("DINE_IN") is OrderMode.DINE_IN

    @pytest.mark.parametrize("value", [None, "", "PICKUP"])
    def test_parse_mode_rejects_unknown(self, value):
        with pytest.raises(ScheduleValidationError):
            parse_mode(value)

    def test_merchant_timezone_falls_back_to_default(self):
        assert merchant_timezone(_merchant(timezone=None)) == "Australia/Sydney"

    def test_invalid_stored_timezone_is_rejected(self):
        with pytest.raises(ScheduleValidationError) as exc:
            merchant_timezone(_merchant(timezone="Mars/Base"))
        assert exc.value.status_code == 422

    def test_slots_cover_the_day(self):
        slots = generate_slots(60)
        assert len(slots) == 24
        assert slots[0] == "00:00"
        assert slots[-1] == "23:00"
        assert len(generate_slots(15)) == 96


@pytest.mark.unit
class TestBuildSchedule:

    def test_malformed_rows_are_dropped(self):
        merchant = _merchant(
            opening_hours=[
                SimpleNamespace(day_of_week=1, open_time="09:00", close_time="22:00",
                                is_closed=False, is_24_hours=False),
                SimpleNamespace(day_of_week=2, open_time="9am", close_time="22:00",
                                is_closed=False, is_24_hours=False),
                SimpleNamespace(day_of_week=3, open_time=None, close_time=None,
                                is_closed=True, is_24_hours=False),
            ],
            mode_schedules=[
                SimpleNamespace(mode="DELIVERY", day_of_week=1, start_time="11:00", end_time="15:00",
                                is_active=True),
                SimpleNamespace(mode="PICKUP", day_of_week=1, start_time="11:00", end_time="15:00",
                                is_active=True),
                SimpleNamespace(mode="DINE_IN", day_of_week=1, start_time="25:00", end_time="15:00",
                                is_active=True),
            ],
            dine_in_schedule_start="10:00",
            dine_in_schedule_end="bogus",
        )
        sched = build_schedule(merchant)

        assert [h.day_of_week for h in sched.opening_hours] == [1, 3]
        assert [s.mode for s in sched.mode_schedules] == [OrderMode.DELIVERY]
        assert sched.legacy_window(OrderMode.DINE_IN) is None
        assert sched.timezone == "UTC"

    def test_malformed_special_times_are_cleared(self):
        merchant = _merchant(opening_hours=[
            SimpleNamespace(is_closed=False, is_24_hours=False, **MON_9_TO_22),
        ])
        special = SimpleNamespace(
            date=date(2025, 1, 6), name="Holiday", is_closed=False,
            open_time="ab:cd", close_time="17:00",
            is_dine_in_enabled=None, is_takeaway_enabled=None, is_delivery_enabled=None,
            dine_in_start_time="10:00", dine_in_end_time="14:00",
            takeaway_start_time="11:00", takeaway_end_time=None,
            delivery_start_time=None, delivery_end_time=None,
        )
        sched = build_schedule(merchant, [special])

        rule = sched.special_hours[0]
        assert rule.open_time is None and rule.close_time is None
        assert (rule.dine_in_start_time, rule.dine_in_end_time) == ("10:00", "14:00")
        assert rule.takeaway_start_time is None

        status = evaluate_store(sched, clock_for("2025-01-06", "12:00"))
        assert status.is_open


@pytest.mark.unit
class TestDeliveryGuard:

    def test_missing_coordinates_block_delivery(self):
        result = ModeAvailability(mode=OrderMode.DELIVERY, available=True, minutes_until_close=30)
        guarded = apply_delivery_guard(result, _merchant(latitude=-33.86, longitude=None))
        assert not guarded.available
        assert guarded.reason == "Delivery location not configured"
        assert guarded.minutes_until_close is None

    def test_coordinates_present(self):
        result = ModeAvailability(mode=OrderMode.DELIVERY, available=True)
        assert apply_delivery_guard(result, _merchant(latitude=-33.86, longitude=151.2)).available

    def test_other_modes_untouched(self):
        result = ModeAvailability(mode=OrderMode.TAKEAWAY, available=True)
        assert apply_delivery_guard(result, _merchant()) is result


@pytest.mark.integration
class TestGetStoreStatus:

    async def test_status_in_merchant_local_time(self, seed_merchant, db):
        await seed_merchant(opening_hours=[MON_9_TO_22])

        status = await get_store_status(db, "demo", now=MONDAY_2PM_SYDNEY)

        assert status.merchant_code == "demo"
        assert status.timezone == "Australia/Sydney"
        assert status.date == "2025-01-06"
        assert status.local_time == "14:00"
        assert status.day_of_week == 1
        assert status.is_open
        assert status.minutes_until_close == 480
        assert status.modes[OrderMode.DINE_IN].available
        assert status.modes[OrderMode.TAKEAWAY].available
        assert not status.modes[OrderMode.DELIVERY].available
        assert status.server_time == MONDAY_2PM_SYDNEY

    async def test_only_todays_special_hour_applies(self, seed_merchant, db):
        await seed_merchant(
            opening_hours=[MON_9_TO_22],
            special_hours=[
                {"date": date(2025, 1, 7), "name": "Tomorrow's holiday", "is_closed": True},
            ],
        )
        status = await get_store_status(db, "demo", now=MONDAY_2PM_SYDNEY)
        assert status.is_open
        assert status.special_hour_name is None

    async def test_special_closed_today(self, seed_merchant, db):
        await seed_merchant(
            opening_hours=[MON_9_TO_22],
            special_hours=[{"date": date(2025, 1, 6), "name": "Stocktake", "is_closed": True}],
        )
        status = await get_store_status(db, "demo", now=MONDAY_2PM_SYDNEY)
        assert not status.is_open
        assert status.reason == "Closed for Stocktake"
        assert all(not m.available for m in status.modes.values())

    async def test_delivery_requires_coordinates(self, seed_merchant, db):
        await seed_merchant(opening_hours=[MON_9_TO_22], is_delivery_enabled=True)
        status = await get_store_status(db, "demo", now=MONDAY_2PM_SYDNEY)
        assert status.modes[OrderMode.DELIVERY].reason == "Delivery location not configured"

    async def test_unknown_merchant(self, db):
        with pytest.raises(MerchantNotFoundError):
            await get_store_status(db, "missing", now=MONDAY_2PM_SYDNEY)

    async def test_inactive_merchant(self, seed_merchant, db):
        await seed_merchant(is_active=False)
        with pytest.raises(MerchantInactiveError) as exc:
            await get_store_status(db, "demo", now=MONDAY_2PM_SYDNEY)
        assert exc.value.message == "Merchant is currently not accepting orders"


@pytest.mark.integration
class TestAvailableTimes:

    async def test_future_slots_only(self, seed_merchant, db):
        await seed_merchant(
            opening_hours=[{"day_of_week": 1, "open_time": "09:00", "close_time": "12:00"}],
            is_scheduled_order_enabled=True,
        )
        result = await get_available_times(
            db, "demo", mode="TAKEAWAY", interval_minutes=60, now=MONDAY_1030_SYDNEY)

        assert result.date == "2025-01-06"
        assert result.now == "10:30"
        assert result.slots == ["11:00"]
        assert result.disabled_reason is None

    async def test_include_past(self, seed_merchant, db):
        await seed_merchant(
            opening_hours=[{"day_of_week": 1, "open_time": "09:00", "close_time": "12:00"}],
            is_scheduled_order_enabled=True,
        )
        result = await get_available_times(
            db, "demo", mode="TAKEAWAY", interval_minutes=60, include_past=True,
            now=MONDAY_1030_SYDNEY)
        assert result.slots == ["09:00", "10:00", "11:00"]

    async def test_slots_respect_mode_windows(self, seed_merchant, db):
        await seed_merchant(
            opening_hours=[MON_9_TO_22],
            is_scheduled_order_enabled=True,
            takeaway_schedule_start="17:00",
            takeaway_schedule_end="19:00",
        )
        result = await get_available_times(
            db, "demo", mode="takeaway", interval_minutes=30, now=MONDAY_1030_SYDNEY)
        assert result.slots == ["17:00", "17:30", "18:00", "18:30"]

    async def test_delivery_without_coordinates_has_no_slots(self, seed_merchant, db):
        await seed_merchant(
            opening_hours=[MON_9_TO_22],
            is_scheduled_order_enabled=True,
            is_delivery_enabled=True,
        )
        result = await get_available_times(
            db, "demo", mode="DELIVERY", interval_minutes=60, now=MONDAY_1030_SYDNEY)
        assert result.slots == []

    async def test_scheduled_orders_disabled(self, seed_merchant, db):
        await seed_merchant(opening_hours=[MON_9_TO_22])
        result = await get_available_times(db, "demo", mode="DINE_IN", now=MONDAY_1030_SYDNEY)
        assert result.slots == []
        assert result.disabled_reason == "Scheduled orders are not enabled for this merchant."

    async def test_invalid_interval(self, seed_merchant, db):
        await seed_merchant(is_scheduled_order_enabled=True)
        with pytest.raises(ScheduleValidationError):
            await get_available_times(db, "demo", mode="DINE_IN", interval_minutes=7)


@pytest.mark.integration
class TestCheckAvailabilityAt:

    async def test_uses_that_dates_special_hours(self, seed_merchant, db):
        await seed_merchant(
            opening_hours=[{"day_of_week": 4, "open_time": "09:00", "close_time": "22:00"}],
            special_hours=[{"date": date(2025, 12, 25), "name": "Christmas Day", "is_closed": True}],
        )
        christmas = await check_availability_at(
            db, "demo", on_date=date(2025, 12, 25), at_time="12:00", mode="DINE_IN")
        next_week = await check_availability_at(
            db, "demo", on_date=date(2026, 1, 1), at_time="12:00", mode="DINE_IN")

        assert christmas.day_of_week == 4
        assert not christmas.is_open
        assert not christmas.available
        assert christmas.store_reason == "Closed for Christmas Day"
        assert next_week.is_open
        assert next_week.available

    async def test_bad_time(self, seed_merchant, db):
        await seed_merchant()
        with pytest.raises(ScheduleValidationError):
            await check_availability_at(db, "demo", on_date=date(2025, 1, 6), at_time="7pm", mode="DINE_IN")
