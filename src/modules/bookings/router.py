"""Booking submission and management routes."""

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import get_current_breeder_id
from src.core.locks import get_lock_manager
from src.modules.bookings.schemas import (
    BookingAdminPublic,
    BookingCancel,
    BookingCreate,
    BookingPublic,
    BookingUpdate,
)
from src.modules.bookings.service import BookingService
from src.shared.enums import BookingStatus

router = APIRouter(prefix="/api/v1/booking/{breeder_id}", tags=["booking"])
admin_router = APIRouter(prefix="/api/v1/admin/bookings", tags=["admin-bookings"])


async def get_booking_service(db: AsyncSession = Depends(get_db)) -> BookingService:
    return BookingService(db, get_lock_manager())


@router.post("/bookings", response_model=BookingPublic, status_code=status.HTTP_201_CREATED)
async def create_booking(
    breeder_id: str,
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
) -> BookingPublic:
    return await service.create_booking(breeder_id, payload)


@admin_router.get("", response_model=list[BookingAdminPublic])
async def list_bookings(
    status_filter: BookingStatus | None = Query(None, alias="status"),
    breeder_id: str = Depends(get_current_breeder_id),
    service: BookingService = Depends(get_booking_service),
) -> list[BookingAdminPublic]:
    return await service.list_bookings(breeder_id, status_filter)


@admin_router.post("/{booking_id}/confirm", response_model=BookingAdminPublic)
async def confirm_booking(
    booking_id: str,
    breeder_id: str = Depends(get_current_breeder_id),
    service: BookingService = Depends(get_booking_service),
) -> BookingAdminPublic:
    return await service.confirm_booking(breeder_id, booking_id)


@admin_router.post("/{booking_id}/cancel", response_model=BookingAdminPublic)
async def cancel_booking(
    booking_id: str,
    payload: BookingCancel | None = Body(None),
    breeder_id: str = Depends(get_current_breeder_id),
    service: BookingService = Depends(get_booking_service),
) -> BookingAdminPublic:
    reason = payload.reason if payload else None
    return await service.cancel_booking(breeder_id, booking_id, reason)


@admin_router.patch("/{booking_id}", response_model=BookingAdminPublic)
async def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    breeder_id: str = Depends(get_current_breeder_id),
    service: BookingService = Depends(get_booking_service),
) -> BookingAdminPublic:
    return await service.update_notes(breeder_id, booking_id, payload)
