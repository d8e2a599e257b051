"""Booking router - confirmation, provider dashboard, slot availability and admin moderation"""

import logging
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_provider, get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    AppointmentListResponse,
    AppointmentResponse,
    BookingCreate,
    BookingCreatedResponse,
    SlotAvailabilityResponse,
    StatusUpdate,
)
from .service import BookingService, serialize_appointment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])
slots_router = APIRouter(prefix="/providers", tags=["Bookings"])
admin_router = APIRouter(prefix="/admin/bookings", tags=["Admin"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.post("", response_model=BookingCreatedResponse, status_code=201)
async def confirm_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm a booking for the signed-in user"""
    appointment, notices = service.create_booking(data, current_user)
    return BookingCreatedResponse(
        message="Your appointment has been confirmed.",
        appointment=AppointmentResponse(**serialize_appointment(appointment)),
        notices=notices,
    )


@router.get("/provider", response_model=list[AppointmentResponse])
async def list_provider_bookings(
    current_user: User = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Upcoming appointments for the signed-in provider, soonest first"""
    appointments = service.list_provider_upcoming(current_user)
    return [AppointmentResponse(**serialize_appointment(a)) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_booking(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    appointment = service.get_visible_appointment(appointment_id, current_user)
    return AppointmentResponse(**serialize_appointment(appointment))


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_booking_status(
    appointment_id: str,
    data: StatusUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm or cancel an appointment"""
    appointment = service.update_status(appointment_id, data.status, current_user)
    return AppointmentResponse(**serialize_appointment(appointment))


@slots_router.get("/{provider_id}/slots", response_model=SlotAvailabilityResponse)
async def provider_slots(
    provider_id: str,
    day: date = Query(..., alias="date"),
    service: BookingService = Depends(get_booking_service),
):
    """The day's time slots and whether each is still bookable"""
    return SlotAvailabilityResponse(
        providerId=provider_id,
        date=day,
        slots=service.slot_availability(provider_id, day),
    )


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=AppointmentListResponse)
async def admin_list_bookings(
    search: Optional[str] = Query(None, description="Search provider, customer or service names"),
    status: Optional[str] = Query(None, description="pending, confirmed, cancelled or all"),
    sort: Literal["asc", "desc"] = Query("desc"),
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    current_user: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    appointments, total, limit, offset = service.admin_search(search, status, sort, limit, offset)
    return AppointmentListResponse(
        appointments=[AppointmentResponse(**serialize_appointment(a)) for a in appointments],
        total=total,
        limit=limit,
        offset=offset,
    )


@admin_router.delete("/{appointment_id}")
async def admin_delete_booking(
    appointment_id: str,
    current_user: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Remove an appointment and the customer's copy of it"""
    return service.admin_delete(appointment_id, current_user)
