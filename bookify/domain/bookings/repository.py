"""Booking repository - Database operations for appointments and per-user copies"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import STATUS_CANCELLED, Appointment, UserAppointment
from ...utils.sanitization import like_pattern


class BookingRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def create_booking(
        db: Session, appointment_id: str, search_text: str, **appointment_data
    ) -> tuple[Appointment, UserAppointment]:
        """
        Write the global appointment and the user's copy under one id in a single
        commit. Callers roll back on failure so neither row survives alone.
        """
        appointment = Appointment(id=appointment_id, search_text=search_text, **appointment_data)
        user_copy = UserAppointment(
            id=appointment_id,
            **{**appointment_data, "services": [dict(s) for s in appointment_data["services"]]},
        )
        db.add(appointment)
        db.add(user_copy)
        db.commit()
        db.refresh(appointment)
        db.refresh(user_copy)
        return appointment, user_copy

    @staticmethod
    def get_appointment(db: Session, appointment_id: str) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_user_copy(db: Session, user_id: str, appointment_id: str) -> Optional[UserAppointment]:
        return (
            db.query(UserAppointment)
            .filter(UserAppointment.id == appointment_id, UserAppointment.user_id == user_id)
            .first()
        )

    @staticmethod
    def find_conflict(db: Session, provider_id: str, when: datetime) -> Optional[Appointment]:
        """An active appointment already holding this provider's slot"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.provider_id == provider_id,
                Appointment.date == when,
                Appointment.status != STATUS_CANCELLED,
            )
            .first()
        )

    @staticmethod
    def get_provider_appointments_between(
        db: Session, provider_id: str, start: datetime, end: datetime
    ) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.provider_id == provider_id,
                Appointment.date >= start,
                Appointment.date < end,
                Appointment.status != STATUS_CANCELLED,
            )
            .all()
        )

    @staticmethod
    def get_upcoming_for_provider(db: Session, provider_id: str, now: datetime) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.provider_id == provider_id, Appointment.date >= now)
            .order_by(Appointment.date.asc())
            .all()
        )

    @staticmethod
    def search_appointments(
        db: Session,
        search: Optional[str] = None,
        status: Optional[str] = None,
        sort: str = "desc",
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Appointment], int]:
        """Search provider, customer and service names; exact status; sort on date"""
        query = db.query(Appointment)

        if search:
            query = query.filter(Appointment.search_text.like(like_pattern(search), escape="\\"))

        if status and status.lower() != "all":
            query = query.filter(Appointment.status == status.lower())

        total = query.count()
        order = Appointment.date.asc() if sort == "asc" else Appointment.date.desc()
        appointments = query.order_by(order).offset(offset).limit(limit).all()
        return appointments, total

    @staticmethod
    def get_user_appointments(
        db: Session,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[UserAppointment]:
        query = db.query(UserAppointment).filter(UserAppointment.user_id == user_id)
        if start:
            query = query.filter(UserAppointment.date >= start)
        if end:
            query = query.filter(UserAppointment.date < end)
        return query.order_by(UserAppointment.date.asc()).all()

    @staticmethod
    def update_status(
        db: Session,
        appointment: Appointment,
        user_copy: Optional[UserAppointment],
        status: str,
    ) -> Appointment:
        """Both copies change in the same commit"""
        appointment.status = status
        if user_copy is not None:
            user_copy.status = status
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def delete_user_copy(db: Session, user_copy: UserAppointment) -> None:
        db.delete(user_copy)
        db.commit()
