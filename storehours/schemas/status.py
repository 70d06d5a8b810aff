# storehours/schemas/status.py
from datetime import datetime as _Datetime
from typing import Optional

from storehours.core.availability import OrderMode
from storehours.schemas.base import CamelModel


class TimeWindowOut(CamelModel):
    start: str
    end: str


class ModeStatusOut(CamelModel):
    available: bool
    reason: Optional[str] = None
    windows: list[TimeWindowOut] = []
    minutes_until_close: Optional[int] = None


class StoreStatusOut(CamelModel):
    merchant_code: str
    timezone: str
    date: str
    local_time: str
    day_of_week: int
    is_open: bool
    reason: Optional[str] = None
    is_manual_override: bool
    scheduled_open: bool
    special_hour_name: Optional[str] = None
    minutes_until_close: Optional[int] = None
    next_opening: Optional[str] = None
    modes: dict[OrderMode, ModeStatusOut]
    server_time: _Datetime


class AvailableTimesOut(CamelModel):
    timezone: str
    date: Optional[str] = None
    now: Optional[str] = None
    mode: OrderMode
    interval_minutes: int
    slots: list[str]
    disabled_reason: Optional[str] = None


class AvailabilityCheckOut(CamelModel):
    """Store and mode availability at an explicit local date/time."""
    date: str
    time: str
    day_of_week: int
    mode: OrderMode
    is_open: bool
    store_reason: Optional[str] = None
    special_hour_name: Optional[str] = None
    available: bool
    reason: Optional[str] = None
