# storehours/crud/schedule.py
from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from storehours.db.models.schedule import (
    MerchantModeSchedule,
    MerchantOpeningHour,
    MerchantSpecialHour,
)
from storehours.schemas.schedule import ModeScheduleIn, OpeningHourIn, SpecialHourIn


# ---------- Opening hours ----------

async def list_opening_hours(db: AsyncSession, merchant_id: int) -> Sequence[MerchantOpeningHour]:
    q = (
        sa.select(MerchantOpeningHour)
        .where(MerchantOpeningHour.merchant_id == merchant_id)
        .order_by(MerchantOpeningHour.day_of_week.asc())
    )
    res = await db.execute(q)
    return res.scalars().all()


async def replace_opening_hours(
    db: AsyncSession, merchant_id: int, hours: list[OpeningHourIn]
) -> Sequence[MerchantOpeningHour]:
    """Replace the weekly template in one transaction."""
    await db.execute(sa.delete(MerchantOpeningHour).where(MerchantOpeningHour.merchant_id == merchant_id))
    db.add_all(
        MerchantOpeningHour(merchant_id=merchant_id, **h.model_dump())
        for h in hours
    )
    await db.commit()
    return await list_opening_hours(db, merchant_id)


# ---------- Mode schedules ----------

async def list_mode_schedules(db: AsyncSession, merchant_id: int) -> Sequence[MerchantModeSchedule]:
    q = (
        sa.select(MerchantModeSchedule)
        .where(MerchantModeSchedule.merchant_id == merchant_id)
        .order_by(
            MerchantModeSchedule.mode.asc(),
            MerchantModeSchedule.day_of_week.asc(),
            MerchantModeSchedule.start_time.asc(),
        )
    )
    res = await db.execute(q)
    return res.scalars().all()


async def replace_mode_schedules(
    db: AsyncSession, merchant_id: int, schedules: list[ModeScheduleIn]
) -> Sequence[MerchantModeSchedule]:
    await db.execute(sa.delete(MerchantModeSchedule).where(MerchantModeSchedule.merchant_id == merchant_id))
    db.add_all(
        MerchantModeSchedule(
            merchant_id=merchant_id,
            mode=s.mode.value,
            day_of_week=s.day_of_week,
            start_time=s.start_time,
            end_time=s.end_time,
            is_active=s.is_active,
        )
        for s in schedules
    )
    await db.commit()
    return await list_mode_schedules(db, merchant_id)


# ---------- Special hours ----------

async def get_special_hour(db: AsyncSession, merchant_id: int, on_date: date) -> Optional[MerchantSpecialHour]:
    q = sa.select(MerchantSpecialHour).where(
        MerchantSpecialHour.merchant_id == merchant_id,
        MerchantSpecialHour.date == on_date,
    )
    res = await db.execute(q)
    return res.scalar_one_or_none()


async def list_special_hours(
    db: AsyncSession,
    merchant_id: int,
    *,
    from_date: Optional[date] = None,
    limit: int = 100,
) -> Sequence[MerchantSpecialHour]:
    q = sa.select(MerchantSpecialHour).where(MerchantSpecialHour.merchant_id == merchant_id)
    if from_date is not None:
        q = q.where(MerchantSpecialHour.date >= from_date)
    q = q.order_by(MerchantSpecialHour.date.asc()).limit(limit)
    res = await db.execute(q)
    return res.scalars().all()


async def upsert_special_hour(
    db: AsyncSession, merchant_id: int, on_date: date, data: SpecialHourIn
) -> MerchantSpecialHour:
    obj = await get_special_hour(db, merchant_id, on_date)
    if obj is None:
        obj = MerchantSpecialHour(merchant_id=merchant_id, date=on_date)
        db.add(obj)
    # Full replacement: fields missing from the payload are reset
    for k, v in data.model_dump().items():
        setattr(obj, k, v)
    await db.commit()
    await db.refresh(obj)
    return obj


async def delete_special_hour(db: AsyncSession, merchant_id: int, on_date: date) -> bool:
    obj = await get_special_hour(db, merchant_id, on_date)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    return True
