# storehours/db/models/schedule.py

from __future__ import annotations
import datetime as dt
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storehours.db.session import Base, BigIntId

if TYPE_CHECKING:
    from storehours.db.models.merchant import Merchant


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MerchantOpeningHour(Base):
    """Weekly template: one row per day of week (0=Sunday)."""
    __tablename__ = "merchant_opening_hours"
    __table_args__ = (
        sa.UniqueConstraint("merchant_id", "day_of_week", name="uq_opening_hours_merchant_day"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    merchant_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    open_time: Mapped[str | None] = mapped_column(sa.String(5))
    close_time: Mapped[str | None] = mapped_column(sa.String(5))
    is_closed: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.false())
    is_24_hours: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.false())

    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    merchant: Mapped["Merchant"] = relationship(back_populates="opening_hours")


class MerchantModeSchedule(Base):
    """Per-mode availability window; several rows per mode/day are allowed."""
    __tablename__ = "merchant_mode_schedules"
    __table_args__ = (
        sa.Index("ix_mode_schedules_merchant_mode_day", "merchant_id", "mode", "day_of_week"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    merchant_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False
    )
    mode: Mapped[str] = mapped_column(sa.String(16), nullable=False)  # DINE_IN | TAKEAWAY | DELIVERY
    day_of_week: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    start_time: Mapped[str] = mapped_column(sa.String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(sa.String(5), nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.true())

    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    merchant: Mapped["Merchant"] = relationship(back_populates="mode_schedules")


class MerchantSpecialHour(Base):
    """Date-specific override (holiday, event) superseding the weekly template."""
    __tablename__ = "merchant_special_hours"
    __table_args__ = (
        sa.UniqueConstraint("merchant_id", "date", name="uq_special_hours_merchant_date"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    merchant_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    name: Mapped[str | None] = mapped_column(sa.String(120))
    is_closed: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.false())
    open_time: Mapped[str | None] = mapped_column(sa.String(5))
    close_time: Mapped[str | None] = mapped_column(sa.String(5))

    # NULL = not overridden for that mode
    is_dine_in_enabled: Mapped[bool | None] = mapped_column(sa.Boolean)
    is_takeaway_enabled: Mapped[bool | None] = mapped_column(sa.Boolean)
    is_delivery_enabled: Mapped[bool | None] = mapped_column(sa.Boolean)
    dine_in_start_time: Mapped[str | None] = mapped_column(sa.String(5))
    dine_in_end_time: Mapped[str | None] = mapped_column(sa.String(5))
    takeaway_start_time: Mapped[str | None] = mapped_column(sa.String(5))
    takeaway_end_time: Mapped[str | None] = mapped_column(sa.String(5))
    delivery_start_time: Mapped[str | None] = mapped_column(sa.String(5))
    delivery_end_time: Mapped[str | None] = mapped_column(sa.String(5))

    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    merchant: Mapped["Merchant"] = relationship(back_populates="special_hours")
