# storehours/api/routes/public.py
"""Customer-facing, unauthenticated availability endpoints."""
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from storehours.core.errors import StoreHoursError, log_error
from storehours.core.logging import set_request_context
from storehours.db.session import get_session
from storehours.schemas.status import AvailabilityCheckOut, AvailableTimesOut, StoreStatusOut
from storehours.services.store_status import (
    check_availability_at,
    get_available_times,
    get_store_status,
)

router = APIRouter(prefix="/public/merchants", tags=["public"])

# Status must reflect overrides and schedule boundaries immediately
NO_STORE = "no-store, no-cache, must-revalidate, max-age=0"


def _http_error(exc: StoreHoursError, code: str, endpoint: str) -> HTTPException:
    log_error(exc, {"merchant_code": code, "endpoint": endpoint})
    return HTTPException(
        status_code=exc.status_code,
        detail={"error": exc.code, "message": exc.message},
    )


@router.get("/{code}/status", response_model=StoreStatusOut)
async def store_status_ep(
    code: str,
    response: Response,
    at: Optional[datetime] = Query(None, description="Evaluate at this instant instead of now (ISO 8601)"),
    db: AsyncSession = Depends(get_session),
):
    set_request_context(merchant_code=code)
    response.headers["Cache-Control"] = NO_STORE
    try:
        return await get_store_status(db, code, now=at)
    except StoreHoursError as e:
        raise _http_error(e, code, "status")


@router.get("/{code}/available-times", response_model=AvailableTimesOut)
async def available_times_ep(
    code: str,
    response: Response,
    mode: str = Query("", description="DINE_IN | TAKEAWAY | DELIVERY"),
    interval_minutes: int = Query(15, alias="intervalMinutes"),
    include_past: bool = Query(False, alias="includePast"),
    at: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_session),
):
    set_request_context(merchant_code=code)
    response.headers["Cache-Control"] = NO_STORE
    try:
        return await get_available_times(
            db, code,
            mode=mode,
            interval_minutes=interval_minutes,
            include_past=include_past,
            now=at,
        )
    except StoreHoursError as e:
        raise _http_error(e, code, "available-times")


@router.get("/{code}/availability", response_model=AvailabilityCheckOut)
async def availability_ep(
    code: str,
    response: Response,
    on_date: date = Query(..., alias="date"),
    at_time: str = Query(..., alias="time", examples=["19:30"]),
    mode: str = Query(...),
    db: AsyncSession = Depends(get_session),
):
    set_request_context(merchant_code=code)
    response.headers["Cache-Control"] = NO_STORE
    try:
        return await check_availability_at(db, code, on_date=on_date, at_time=at_time, mode=mode)
    except StoreHoursError as e:
        raise _http_error(e, code, "availability")
