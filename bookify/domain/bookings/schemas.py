"""Booking domain schemas - Pydantic models for validation"""

from datetime import date as date_type
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .slots import validate_time_slot


class BookingCreate(BaseModel):
    """Schema for confirming a booking"""

    providerId: str
    serviceIds: list[str] = Field(..., min_length=1)
    date: date_type
    timeSlot: str
    paymentMethod: Literal["pay_at_venue", "pay_online"] = "pay_at_venue"

    @field_validator("timeSlot")
    @classmethod
    def _slot(cls, v: str) -> str:
        return validate_time_slot(v)


class AppointmentServiceItem(BaseModel):
    id: str
    name: str
    price: str
    duration: str


class AppointmentResponse(BaseModel):
    id: str
    userId: str
    userName: Optional[str] = None
    providerId: str
    providerName: str
    services: list[AppointmentServiceItem]
    totalPrice: float
    date: datetime
    status: str
    paymentMethod: str
    estimatedDuration: str
    createdAt: Optional[datetime] = None


class BookingCreatedResponse(BaseModel):
    message: str
    appointment: AppointmentResponse
    notices: list[str] = []


class AppointmentListResponse(BaseModel):
    appointments: list[AppointmentResponse]
    total: int
    limit: int
    offset: int


class StatusUpdate(BaseModel):
    status: Literal["pending", "confirmed", "cancelled"]


class SlotAvailability(BaseModel):
    timeSlot: str
    startsAt: datetime
    available: bool


class SlotAvailabilityResponse(BaseModel):
    providerId: str
    date: date_type
    slots: list[SlotAvailability]
