"""User router - the signed-in user's profile and appointment calendar"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ..bookings.schemas import AppointmentResponse
from ..bookings.service import BookingService, serialize_appointment
from .schemas import UserResponse, UserUpdate
from .service import UserService, serialize_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse(**serialize_user(current_user))


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = UserService(db).update_profile(current_user, data)
    return UserResponse(**serialize_user(user))


@router.get("/me/appointments", response_model=list[AppointmentResponse])
async def list_my_appointments(
    day: Optional[date] = Query(None, description="Only appointments on this calendar day"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The signed-in user's own appointment copies, earliest first"""
    appointments = BookingService(db).list_user_appointments(current_user, day)
    return [AppointmentResponse(**serialize_appointment(a)) for a in appointments]
