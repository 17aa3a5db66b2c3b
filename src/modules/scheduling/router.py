"""Public booking page routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.scheduling.schemas import AvailableDates, BookingPagePublic, DaySlots
from src.modules.scheduling.service import SchedulingService

router = APIRouter(prefix="/api/v1/booking/{breeder_id}", tags=["booking"])


@router.get("/page", response_model=BookingPagePublic)
async def booking_page(breeder_id: str, db: AsyncSession = Depends(get_db)) -> BookingPagePublic:
    return await SchedulingService(db).get_booking_page(breeder_id)


@router.get("/dates", response_model=AvailableDates)
async def available_dates(breeder_id: str, db: AsyncSession = Depends(get_db)) -> AvailableDates:
    return await SchedulingService(db).get_available_dates(breeder_id)


@router.get("/slots", response_model=DaySlots)
async def available_slots(
    breeder_id: str,
    appointment_type_id: str = Query(...),
    date_value: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
) -> DaySlots:
    return await SchedulingService(db).get_available_slots(breeder_id, appointment_type_id, date_value)


@router.get("/slots/range", response_model=list[DaySlots])
async def available_slots_for_range(
    breeder_id: str,
    appointment_type_id: str = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
) -> list[DaySlots]:
    return await SchedulingService(db).get_slots_for_range(breeder_id, appointment_type_id, start_date, end_date)
