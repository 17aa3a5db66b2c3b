"""Breeder-facing scheduling configuration routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import get_current_breeder_id
from src.modules.scheduling.schemas import (
    AppointmentTypeCreate,
    AppointmentTypePublic,
    AppointmentTypeUpdate,
    SchedulingSettingsPublic,
    SchedulingSettingsUpdate,
    WeeklyAvailabilitySchema,
)
from src.modules.scheduling.service import SchedulingService

router = APIRouter(prefix="/api/v1/admin/scheduling", tags=["admin-scheduling"])


@router.get("/settings", response_model=SchedulingSettingsPublic)
async def get_settings(
    breeder_id: str = Depends(get_current_breeder_id),
    db: AsyncSession = Depends(get_db),
) -> SchedulingSettingsPublic:
    return await SchedulingService(db).get_settings(breeder_id)


@router.put("/settings", response_model=SchedulingSettingsPublic)
async def save_settings(
    payload: SchedulingSettingsUpdate,
    breeder_id: str = Depends(get_current_breeder_id),
    db: AsyncSession = Depends(get_db),
) -> SchedulingSettingsPublic:
    return await SchedulingService(db).save_settings(breeder_id, payload)


@router.put("/availability", response_model=SchedulingSettingsPublic)
async def replace_availability(
    payload: WeeklyAvailabilitySchema,
    breeder_id: str = Depends(get_current_breeder_id),
    db: AsyncSession = Depends(get_db),
) -> SchedulingSettingsPublic:
    return await SchedulingService(db).replace_weekly_availability(breeder_id, payload)


@router.get("/appointment-types", response_model=list[AppointmentTypePublic])
async def list_appointment_types(
    breeder_id: str = Depends(get_current_breeder_id),
    db: AsyncSession = Depends(get_db),
) -> list[AppointmentTypePublic]:
    return await SchedulingService(db).list_appointment_types(breeder_id)


@router.post("/appointment-types", response_model=AppointmentTypePublic, status_code=status.HTTP_201_CREATED)
async def create_appointment_type(
    payload: AppointmentTypeCreate,
    breeder_id: str = Depends(get_current_breeder_id),
    db: AsyncSession = Depends(get_db),
) -> AppointmentTypePublic:
    return await SchedulingService(db).create_appointment_type(breeder_id, payload)


@router.patch("/appointment-types/{appointment_type_id}", response_model=AppointmentTypePublic)
async def update_appointment_type(
    appointment_type_id: str,
    payload: AppointmentTypeUpdate,
    breeder_id: str = Depends(get_current_breeder_id),
    db: AsyncSession = Depends(get_db),
) -> AppointmentTypePublic:
    return await SchedulingService(db).update_appointment_type(breeder_id, appointment_type_id, payload)


@router.delete("/appointment-types/{appointment_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment_type(
    appointment_type_id: str,
    breeder_id: str = Depends(get_current_breeder_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    await SchedulingService(db).delete_appointment_type(breeder_id, appointment_type_id)
