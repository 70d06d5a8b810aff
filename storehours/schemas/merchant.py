# storehours/schemas/merchant.py
from datetime import datetime as _Datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from storehours.core.timeutils import is_valid_timezone
from storehours.schemas.base import CamelModel, check_hhmm, check_pair

_WINDOW_FIELDS = (
    "dine_in_schedule_start", "dine_in_schedule_end",
    "takeaway_schedule_start", "takeaway_schedule_end",
    "delivery_schedule_start", "delivery_schedule_end",
)
WINDOW_PREFIXES = ("dine_in", "takeaway", "delivery")


class MerchantSettings(CamelModel):
    """Fields shared by create and update payloads."""
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    timezone: Optional[str] = Field(None, examples=["Australia/Sydney"])
    is_active: Optional[bool] = None
    is_per_day_mode_schedule_enabled: Optional[bool] = None
    is_scheduled_order_enabled: Optional[bool] = None
    is_dine_in_enabled: Optional[bool] = None
    is_takeaway_enabled: Optional[bool] = None
    is_delivery_enabled: Optional[bool] = None
    dine_in_schedule_start: Optional[str] = Field(None, examples=["10:00"])
    dine_in_schedule_end: Optional[str] = Field(None, examples=["22:00"])
    takeaway_schedule_start: Optional[str] = None
    takeaway_schedule_end: Optional[str] = None
    delivery_schedule_start: Optional[str] = None
    delivery_schedule_end: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("name")
    @classmethod
    def _clean_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = " ".join(v.strip().split())
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not is_valid_timezone(v):
            raise ValueError(f"unknown IANA timezone: {v}")
        return v

    @field_validator(*_WINDOW_FIELDS)
    @classmethod
    def _check_window_time(cls, v: Optional[str]) -> Optional[str]:
        return check_hhmm(v)


class MerchantCreate(MerchantSettings):
    code: str = Field(..., min_length=2, max_length=50, pattern=r"^[a-z0-9][a-z0-9-]*$",
                      examples=["wellard-kebab-house"])
    name: str = Field(..., min_length=1, max_length=120)
    timezone: str = Field("Australia/Sydney", examples=["Australia/Sydney"])

    @model_validator(mode="after")
    def _check_windows(self):
        for prefix in WINDOW_PREFIXES:
            check_pair(
                getattr(self, f"{prefix}_schedule_start"),
                getattr(self, f"{prefix}_schedule_end"),
                f"{prefix} schedule",
            )
        return self


class MerchantUpdate(MerchantSettings):
    """Partial update; only fields present in the payload are written.

    Window pairing is checked against the stored row in ``update_merchant``.
    """


class MerchantOut(CamelModel):
    id: int
    code: str
    name: str
    timezone: str
    is_active: bool
    is_open: bool
    is_manual_override: bool
    is_per_day_mode_schedule_enabled: bool
    is_scheduled_order_enabled: bool
    is_dine_in_enabled: bool
    is_takeaway_enabled: bool
    is_delivery_enabled: bool
    dine_in_schedule_start: Optional[str] = None
    dine_in_schedule_end: Optional[str] = None
    takeaway_schedule_start: Optional[str] = None
    takeaway_schedule_end: Optional[str] = None
    delivery_schedule_start: Optional[str] = None
    delivery_schedule_end: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: _Datetime
    updated_at: _Datetime


class StoreStatusUpdate(CamelModel):
    """Manual override toggle from the back-office."""
    is_open: bool
    is_manual_override: bool = True
