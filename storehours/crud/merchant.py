# storehours/crud/merchant.py
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storehours.core.errors import ScheduleValidationError
from storehours.db.models.merchant import Merchant
from storehours.schemas.base import check_pair
from storehours.schemas.merchant import WINDOW_PREFIXES, MerchantCreate, MerchantUpdate

# Columns that may be cleared by sending null; everything else is NOT NULL
NULLABLE_FIELDS = {
    "dine_in_schedule_start", "dine_in_schedule_end",
    "takeaway_schedule_start", "takeaway_schedule_end",
    "delivery_schedule_start", "delivery_schedule_end",
    "latitude", "longitude",
}


async def get_merchant_by_code(
    db: AsyncSession, code: str, *, with_schedule: bool = False
) -> Optional[Merchant]:
    stmt = sa.select(Merchant).where(Merchant.code == code)
    if with_schedule:
        stmt = stmt.options(
            selectinload(Merchant.opening_hours),
            selectinload(Merchant.mode_schedules),
        )
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def create_merchant(db: AsyncSession, data: MerchantCreate) -> Merchant:
    """Insert a merchant; unset flags fall back to column server defaults."""
    obj = Merchant(**data.model_dump(exclude_none=True))
    db.add(obj)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise
    await db.refresh(obj)
    return obj


async def update_merchant(db: AsyncSession, merchant: Merchant, data: MerchantUpdate) -> Merchant:
    """Apply the fields present in ``data``.

    Raises ScheduleValidationError when the merged row would hold a mode
    window with only one end set; nothing is written in that case.
    """
    changes = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_FIELDS
    }
    for prefix in WINDOW_PREFIXES:
        start_f, end_f = f"{prefix}_schedule_start", f"{prefix}_schedule_end"
        try:
            check_pair(
                changes.get(start_f, getattr(merchant, start_f)),
                changes.get(end_f, getattr(merchant, end_f)),
                f"{prefix} schedule",
            )
        except ValueError as e:
            raise ScheduleValidationError(str(e)) from e

    for k, v in changes.items():
        setattr(merchant, k, v)

    await db.commit()
    await db.refresh(merchant)
    return merchant


async def set_store_status(
    db: AsyncSession, merchant: Merchant, *, is_open: bool, is_manual_override: bool
) -> Merchant:
    merchant.is_open = is_open
    merchant.is_manual_override = is_manual_override
    await db.commit()
    await db.refresh(merchant)
    return merchant
