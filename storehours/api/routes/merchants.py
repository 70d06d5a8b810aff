# storehours/api/routes/merchants.py
"""Back-office endpoints: merchant settings, weekly hours, mode schedules,
special hours and the manual open/close override."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storehours.api.auth import require_api_key
from storehours.core.errors import ScheduleValidationError
from storehours.core.logging import get_logger, set_request_context
from storehours.crud.merchant import (
    create_merchant,
    get_merchant_by_code,
    set_store_status,
    update_merchant,
)
from storehours.crud.schedule import (
    delete_special_hour,
    list_mode_schedules,
    list_opening_hours,
    list_special_hours,
    replace_mode_schedules,
    replace_opening_hours,
    upsert_special_hour,
)
from storehours.db.models.merchant import Merchant
from storehours.db.session import get_session
from storehours.schemas.merchant import MerchantCreate, MerchantOut, MerchantUpdate, StoreStatusUpdate
from storehours.schemas.schedule import (
    ModeScheduleOut,
    ModeSchedulesReplace,
    OpeningHourOut,
    OpeningHoursReplace,
    SpecialHourIn,
    SpecialHourOut,
)

router = APIRouter(prefix="/merchants", tags=["merchants"], dependencies=[Depends(require_api_key)])
logger = get_logger(__name__)


async def _merchant_or_404(db: AsyncSession, code: str) -> Merchant:
    set_request_context(merchant_code=code)
    obj = await get_merchant_by_code(db, code)
    if not obj:
        raise HTTPException(status_code=404, detail="Merchant not found")
    return obj


@router.post("", response_model=MerchantOut, status_code=status.HTTP_201_CREATED)
async def create_merchant_ep(payload: MerchantCreate, db: AsyncSession = Depends(get_session)):
    try:
        obj = await create_merchant(db, payload)
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="merchant code already exists")
    logger.info("merchant_created", merchant_code=obj.code, timezone=obj.timezone)
    return obj


@router.get("/{code}", response_model=MerchantOut)
async def get_merchant_ep(code: str, db: AsyncSession = Depends(get_session)):
    return await _merchant_or_404(db, code)


@router.patch("/{code}", response_model=MerchantOut)
async def update_merchant_ep(code: str, payload: MerchantUpdate, db: AsyncSession = Depends(get_session)):
    obj = await _merchant_or_404(db, code)
    try:
        obj = await update_merchant(db, obj, payload)
    except ScheduleValidationError as e:
        raise HTTPException(
            status_code=e.status_code, detail={"error": e.code, "message": e.message}
        )
    logger.info("merchant_updated", fields=sorted(payload.model_fields_set))
    return obj


@router.put("/{code}/store-status", response_model=MerchantOut)
async def store_status_override_ep(
    code: str, payload: StoreStatusUpdate, db: AsyncSession = Depends(get_session)
):
    obj = await _merchant_or_404(db, code)
    obj = await set_store_status(
        db, obj, is_open=payload.is_open, is_manual_override=payload.is_manual_override
    )
    logger.info("store_status_override", is_open=obj.is_open, manual_override=obj.is_manual_override)
    return obj


# ---------- Weekly opening hours ----------

@router.get("/{code}/opening-hours", response_model=list[OpeningHourOut])
async def get_opening_hours_ep(code: str, db: AsyncSession = Depends(get_session)):
    obj = await _merchant_or_404(db, code)
    return await list_opening_hours(db, obj.id)


@router.put("/{code}/opening-hours", response_model=list[OpeningHourOut])
async def put_opening_hours_ep(
    code: str, payload: OpeningHoursReplace, db: AsyncSession = Depends(get_session)
):
    obj = await _merchant_or_404(db, code)
    rows = await replace_opening_hours(db, obj.id, payload.hours)
    logger.info("opening_hours_replaced", days=len(rows))
    return rows


# ---------- Per-day mode schedules ----------

@router.get("/{code}/mode-schedules", response_model=list[ModeScheduleOut])
async def get_mode_schedules_ep(code: str, db: AsyncSession = Depends(get_session)):
    obj = await _merchant_or_404(db, code)
    return await list_mode_schedules(db, obj.id)


@router.put("/{code}/mode-schedules", response_model=list[ModeScheduleOut])
async def put_mode_schedules_ep(
    code: str, payload: ModeSchedulesReplace, db: AsyncSession = Depends(get_session)
):
    obj = await _merchant_or_404(db, code)
    rows = await replace_mode_schedules(db, obj.id, payload.schedules)
    logger.info("mode_schedules_replaced", windows=len(rows))
    return rows


# ---------- Special hours ----------

@router.get("/{code}/special-hours", response_model=list[SpecialHourOut])
async def list_special_hours_ep(
    code: str,
    from_date: Optional[date] = Query(None, alias="fromDate"),
    limit: int = 100,
    db: AsyncSession = Depends(get_session),
):
    obj = await _merchant_or_404(db, code)
    return await list_special_hours(db, obj.id, from_date=from_date, limit=limit)


@router.put("/{code}/special-hours/{on_date}", response_model=SpecialHourOut)
async def put_special_hour_ep(
    code: str, on_date: date, payload: SpecialHourIn, db: AsyncSession = Depends(get_session)
):
    obj = await _merchant_or_404(db, code)
    row = await upsert_special_hour(db, obj.id, on_date, payload)
    logger.info("special_hour_saved", date=on_date.isoformat(), is_closed=row.is_closed)
    return row


@router.delete("/{code}/special-hours/{on_date}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_special_hour_ep(code: str, on_date: date, db: AsyncSession = Depends(get_session)):
    obj = await _merchant_or_404(db, code)
    ok = await delete_special_hour(db, obj.id, on_date)
    if not ok:
        raise HTTPException(status_code=404, detail="Special hours not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
