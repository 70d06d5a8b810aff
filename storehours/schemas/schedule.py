# storehours/schemas/schedule.py
from datetime import date as _Date
from typing import Annotated, Optional

from pydantic import Field, field_validator, model_validator

from storehours.core.availability import OrderMode
from storehours.schemas.base import CamelModel, check_hhmm, check_pair

DayOfWeek = Annotated[int, Field(ge=0, le=6, description="0=Sunday .. 6=Saturday")]


# ---------- Opening hours ----------

class OpeningHourIn(CamelModel):
    day_of_week: DayOfWeek
    open_time: Optional[str] = Field(None, examples=["09:00"])
    close_time: Optional[str] = Field(None, examples=["22:00"])
    is_closed: bool = False
    is_24_hours: bool = False

    @field_validator("open_time", "close_time")
    @classmethod
    def _check_time(cls, v: Optional[str]) -> Optional[str]:
        return check_hhmm(v)

    @model_validator(mode="after")
    def _check_window(self):
        check_pair(self.open_time, self.close_time, "opening hours")
        if not self.is_closed and not self.is_24_hours and not self.open_time:
            raise ValueError("an open day needs openTime/closeTime or is24Hours")
        return self


class OpeningHoursReplace(CamelModel):
    hours: list[OpeningHourIn] = Field(..., max_length=7)

    @field_validator("hours")
    @classmethod
    def _unique_days(cls, v: list[OpeningHourIn]) -> list[OpeningHourIn]:
        days = [h.day_of_week for h in v]
        if len(days) != len(set(days)):
            raise ValueError("each dayOfWeek may appear only once")
        return sorted(v, key=lambda h: h.day_of_week)


class OpeningHourOut(CamelModel):
    day_of_week: int
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    is_closed: bool
    is_24_hours: bool


# ---------- Per-day mode schedules ----------

class ModeScheduleIn(CamelModel):
    mode: OrderMode
    day_of_week: DayOfWeek
    start_time: str = Field(..., examples=["11:00"])
    end_time: str = Field(..., examples=["15:00"])
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        checked = check_hhmm(v)
        if checked is None:
            raise ValueError("time is required")
        return checked


class ModeSchedulesReplace(CamelModel):
    schedules: list[ModeScheduleIn] = Field(default_factory=list)


class ModeScheduleOut(CamelModel):
    id: int
    mode: OrderMode
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool


# ---------- Special hours ----------

_SPECIAL_TIME_FIELDS = (
    "open_time", "close_time",
    "dine_in_start_time", "dine_in_end_time",
    "takeaway_start_time", "takeaway_end_time",
    "delivery_start_time", "delivery_end_time",
)


class SpecialHourIn(CamelModel):
    name: Optional[str] = Field(None, max_length=120, examples=["Christmas Day"])
    is_closed: bool = False
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    is_dine_in_enabled: Optional[bool] = None
    is_takeaway_enabled: Optional[bool] = None
    is_delivery_enabled: Optional[bool] = None
    dine_in_start_time: Optional[str] = None
    dine_in_end_time: Optional[str] = None
    takeaway_start_time: Optional[str] = None
    takeaway_end_time: Optional[str] = None
    delivery_start_time: Optional[str] = None
    delivery_end_time: Optional[str] = None

    @field_validator(*_SPECIAL_TIME_FIELDS)
    @classmethod
    def _check_time(cls, v: Optional[str]) -> Optional[str]:
        return check_hhmm(v)

    @model_validator(mode="after")
    def _check_windows(self):
        check_pair(self.open_time, self.close_time, "special hours")
        for prefix in ("dine_in", "takeaway", "delivery"):
            check_pair(getattr(self, f"{prefix}_start_time"), getattr(self, f"{prefix}_end_time"),
                       f"{prefix} special hours")
        return self


class SpecialHourOut(SpecialHourIn):
    id: int
    date: _Date
