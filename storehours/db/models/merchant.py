# storehours/db/models/merchant.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storehours.db.session import Base, BigIntId

if TYPE_CHECKING:
    from storehours.db.models.schedule import (
        MerchantModeSchedule,
        MerchantOpeningHour,
        MerchantSpecialHour,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Merchant(Base):
    __tablename__ = "merchants"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    # Public slug used in customer URLs
    code: Mapped[str] = mapped_column(sa.String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    timezone: Mapped[str] = mapped_column(sa.String(64), nullable=False, server_default="Australia/Sydney")
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.true())

    # Store status snapshot; authoritative only while is_manual_override is set
    is_open: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.true())
    is_manual_override: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.false())
    is_per_day_mode_schedule_enabled: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, server_default=sa.false()
    )
    is_scheduled_order_enabled: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.false())

    is_dine_in_enabled: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.true())
    is_takeaway_enabled: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.true())
    is_delivery_enabled: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.false())

    # Merchant-level mode windows, used when per-day schedules are off
    dine_in_schedule_start: Mapped[str | None] = mapped_column(sa.String(5))
    dine_in_schedule_end: Mapped[str | None] = mapped_column(sa.String(5))
    takeaway_schedule_start: Mapped[str | None] = mapped_column(sa.String(5))
    takeaway_schedule_end: Mapped[str | None] = mapped_column(sa.String(5))
    delivery_schedule_start: Mapped[str | None] = mapped_column(sa.String(5))
    delivery_schedule_end: Mapped[str | None] = mapped_column(sa.String(5))

    # Delivery origin
    latitude: Mapped[float | None] = mapped_column(sa.Float)
    longitude: Mapped[float | None] = mapped_column(sa.Float)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Relations
    opening_hours: Mapped[list["MerchantOpeningHour"]] = relationship(
        back_populates="merchant",
        cascade="all, delete-orphan",
        order_by="MerchantOpeningHour.day_of_week",
    )
    mode_schedules: Mapped[list["MerchantModeSchedule"]] = relationship(
        back_populates="merchant",
        cascade="all, delete-orphan",
    )
    special_hours: Mapped[list["MerchantSpecialHour"]] = relationship(
        back_populates="merchant",
        cascade="all, delete-orphan",
    )
