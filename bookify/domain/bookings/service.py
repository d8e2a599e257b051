"""Booking service - Business logic for creating, listing and moderating bookings"""

import html
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import describe_query_error
from ...models import (
    ROLE_ADMIN,
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
    STATUS_PENDING,
    Appointment,
    User,
    UserAppointment,
    generate_id,
)
from ..catalog.pricing import format_duration, total_minutes
from ..providers.service import ProviderService, clamp_page
from .repository import BookingRepository
from .schemas import BookingCreate
from .slots import TIME_SLOTS, combine_date_and_slot

logger = logging.getLogger(__name__)

BOOKING_FAILED_DETAIL = "Booking failed. Could not save your appointment. Please try again."

# cancelled is terminal
ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
    STATUS_CONFIRMED: {STATUS_CANCELLED},
    STATUS_CANCELLED: set(),
}


def serialize_appointment(appointment: Union[Appointment, UserAppointment]) -> dict:
    services = appointment.services or []
    return {
        "id": appointment.id,
        "userId": appointment.user_id,
        "userName": appointment.user_name,
        "providerId": appointment.provider_id,
        "providerName": appointment.provider_name,
        "services": services,
        "totalPrice": appointment.total_price,
        "date": appointment.date,
        "status": appointment.status,
        "paymentMethod": appointment.payment_method,
        "estimatedDuration": format_duration(total_minutes(s.get("duration") for s in services)),
        "createdAt": appointment.created_at,
    }


def build_search_text(provider_name: str, user_name: Optional[str], service_names: list[str]) -> str:
    """Plain lower-cased text; stored names are HTML-escaped and are unescaped here"""
    parts = [provider_name, user_name or "", *service_names]
    return " ".join(html.unescape(part) for part in parts if part).lower()


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.providers = ProviderService(db)

    def create_booking(self, data: BookingCreate, user: User) -> tuple[Appointment, list[str]]:
        """
        Confirm a booking: resolve the services from the provider's catalog,
        combine date and slot, reject a taken slot, then write the global record
        and the user's copy atomically.
        """
        provider = self.providers.get_provider(data.providerId)
        selection = self.providers.select_services(provider.id, data.serviceIds)
        appointment_time = combine_date_and_slot(data.date, data.timeSlot)

        if appointment_time < datetime.now():
            raise HTTPException(status_code=400, detail="Please select a date and time in the future.")

        provider_id = provider.id
        if self.repo.find_conflict(self.db, provider_id, appointment_time):
            raise self._slot_taken(provider_id, appointment_time)

        user_id = user.id
        user_name = user.full_name or user.email
        appointment_id = generate_id()
        appointment_data = {
            "user_id": user_id,
            "user_name": user_name,
            "provider_id": provider_id,
            "provider_name": provider.business_name,
            "services": selection.to_list(),
            "total_price": selection.total_price,
            "date": appointment_time,
            "status": STATUS_CONFIRMED,
            "payment_method": data.paymentMethod,
            "created_at": datetime.now(),
        }
        search_text = build_search_text(
            provider.business_name, user_name, [item.name for item in selection.items]
        )

        try:
            appointment, _ = self.repo.create_booking(
                self.db, appointment_id, search_text, **appointment_data
            )
        except IntegrityError as e:
            self.db.rollback()
            # A concurrent booking won the slot between the check and the commit
            if self.repo.find_conflict(self.db, provider_id, appointment_time):
                raise self._slot_taken(provider_id, appointment_time) from e
            logger.error(f"❌ Error confirming booking for user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=BOOKING_FAILED_DETAIL) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error confirming booking for user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=BOOKING_FAILED_DETAIL) from e

        logger.info(
            f"✅ Booking {appointment.id} confirmed: {user_id} with {provider_id} at {appointment_time.isoformat()}"
        )
        return appointment, selection.notices

    @staticmethod
    def _slot_taken(provider_id: str, appointment_time: datetime) -> HTTPException:
        logger.warning(f"⚠️ Slot {appointment_time.isoformat()} already taken for provider {provider_id}")
        return HTTPException(
            status_code=409,
            detail="This time slot is no longer available. Please choose another time.",
        )

    def slot_availability(self, provider_id: str, day: date) -> list[dict]:
        """Every slot of the day, marked unavailable when an active booking holds it"""
        self.providers.get_provider(provider_id)
        start = datetime.combine(day, datetime.min.time())
        taken = {
            a.date
            for a in self.repo.get_provider_appointments_between(
                self.db, provider_id, start, start + timedelta(days=1)
            )
        }
        now = datetime.now()
        slots = []
        for label in TIME_SLOTS:
            starts_at = combine_date_and_slot(day, label)
            slots.append(
                {
                    "timeSlot": label,
                    "startsAt": starts_at,
                    "available": starts_at not in taken and starts_at >= now,
                }
            )
        return slots

    def list_provider_upcoming(self, user: User) -> list[Appointment]:
        """Upcoming appointments for the calling provider, soonest first"""
        try:
            return self.repo.get_upcoming_for_provider(self.db, user.id, datetime.now())
        except SQLAlchemyError as e:
            self.db.rollback()
            raise describe_query_error(e, "appointments") from e

    def list_user_appointments(self, user: User, day: Optional[date] = None) -> list[UserAppointment]:
        start = end = None
        if day:
            start = datetime.combine(day, datetime.min.time())
            end = start + timedelta(days=1)
        try:
            return self.repo.get_user_appointments(self.db, user.id, start, end)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise describe_query_error(e, "appointments") from e

    def admin_search(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        sort: str = "desc",
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> tuple[list[Appointment], int, int, int]:
        limit, offset = clamp_page(limit, offset)
        try:
            appointments, total = self.repo.search_appointments(
                self.db, search, status, sort, limit, offset
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise describe_query_error(e, "appointments") from e
        return appointments, total, limit, offset

    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def get_visible_appointment(self, appointment_id: str, user: User) -> Appointment:
        """Customers see their own bookings, providers theirs, admins all"""
        appointment = self.get_appointment(appointment_id)
        if user.role != ROLE_ADMIN and user.id not in (appointment.user_id, appointment.provider_id):
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def update_status(self, appointment_id: str, new_status: str, user: User) -> Appointment:
        appointment = self.get_visible_appointment(appointment_id, user)

        is_customer = user.id == appointment.user_id
        is_staff = user.role == ROLE_ADMIN or user.id == appointment.provider_id
        if not is_staff and not (is_customer and new_status == STATUS_CANCELLED):
            raise HTTPException(status_code=403, detail="Customers can only cancel their bookings.")

        if new_status == appointment.status:
            return appointment
        if new_status not in ALLOWED_TRANSITIONS.get(appointment.status, set()):
            raise HTTPException(
                status_code=409,
                detail=f"Cannot change a {appointment.status} appointment to {new_status}.",
            )

        user_copy = self.repo.get_user_copy(self.db, appointment.user_id, appointment.id)
        if user_copy is None:
            logger.warning(f"⚠️ User copy missing for appointment {appointment.id}; updating global record only")

        try:
            appointment = self.repo.update_status(self.db, appointment, user_copy, new_status)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update appointment {appointment_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update appointment. Please try again.") from e

        logger.info(f"🔄 Appointment {appointment.id} -> {new_status} by {user.id}")
        return appointment

    def admin_delete(self, appointment_id: str, admin: User) -> dict:
        """
        Hard-delete the global record, then the user's copy if it exists.
        A missing copy is tolerated.
        """
        appointment = self.get_appointment(appointment_id)
        user_id = appointment.user_id

        try:
            self.repo.delete_appointment(self.db, appointment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error removing appointment {appointment_id}: {e}")
            raise HTTPException(
                status_code=500, detail="Failed to remove appointment. Please try again."
            ) from e

        copy_removed = False
        user_copy = self.repo.get_user_copy(self.db, user_id, appointment_id)
        if user_copy:
            try:
                self.repo.delete_user_copy(self.db, user_copy)
                copy_removed = True
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.warning(f"⚠️ Appointment {appointment_id} removed but user copy was kept: {e}")
        else:
            logger.warning(f"⚠️ User-specific appointment not found: {user_id}/{appointment_id}")

        logger.info(f"🗑️ Admin {admin.id} removed appointment {appointment_id}")
        return {"message": "Appointment has been removed successfully.", "userCopyRemoved": copy_removed}
