import uuid

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

ROLE_USER = "user"
ROLE_SERVICE_PROVIDER = "serviceProvider"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_SERVICE_PROVIDER, ROLE_ADMIN)

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
APPOINTMENT_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED)

PAYMENT_METHODS = ("pay_at_venue", "pay_online")


def generate_id():
    """Generate a document-style string ID"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    # Firebase UID; providers reuse it as their own primary key
    id = Column(String(128), primary_key=True, index=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(32), default=ROLE_USER, nullable=False)
    profile_image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider_profile = relationship("ServiceProvider", back_populates="user", uselist=False)


class ServiceProvider(Base):
    __tablename__ = "service_providers"

    id = Column(String(128), ForeignKey("users.id"), primary_key=True, index=True)
    business_name = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    service_category = Column(String(50), nullable=False, index=True)
    address = Column(String(500), nullable=True)
    phone_number = Column(String(50), nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    rating = Column(String(10), nullable=True)  # e.g. "4.8"
    reviews = Column(String(50), nullable=True)  # e.g. "120 reviews"
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="provider_profile")
    services = relationship(
        "Service",
        back_populates="provider",
        cascade="all, delete-orphan",
        order_by="Service.name",
    )
    gallery = relationship(
        "GalleryImage",
        back_populates="provider",
        cascade="all, delete-orphan",
    )


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    provider_id = Column(
        String(128), ForeignKey("service_providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    price = Column(String(50), nullable=False)  # Free text as entered, e.g. "₹500.50"
    duration = Column(String(50), nullable=False)  # Free text as entered, e.g. "1 hr 30 mins"
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("ServiceProvider", back_populates="services")


class GalleryImage(Base):
    __tablename__ = "gallery_images"

    id = Column(String(36), primary_key=True, default=generate_id)
    provider_id = Column(
        String(128), ForeignKey("service_providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url = Column(String(1000), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("ServiceProvider", back_populates="gallery")


class Appointment(Base):
    """Global booking record, queried by admins and providers"""

    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_provider_date", "provider_id", "date"),
        # One active booking per provider slot; cancelled bookings free it
        Index(
            "uq_appointments_provider_active_slot",
            "provider_id",
            "date",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    # No foreign keys: booking history outlives provider and user removal
    user_id = Column(String(128), nullable=False, index=True)
    user_name = Column(String(255), nullable=True)
    provider_id = Column(String(128), nullable=False, index=True)
    provider_name = Column(String(255), nullable=False)
    services = Column(JSON, nullable=False, default=list)  # [{id, name, price, duration}]
    total_price = Column(Float, nullable=False, default=0.0)
    date = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=STATUS_CONFIRMED, index=True)
    payment_method = Column(String(20), nullable=False, default="pay_at_venue")
    # Lower-cased provider, customer and service names for admin search
    search_text = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class UserAppointment(Base):
    """Per-user copy of an appointment, keyed by the same id as the global record"""

    __tablename__ = "user_appointments"
    __table_args__ = (Index("ix_user_appointments_user_date", "user_id", "date"),)

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    user_name = Column(String(255), nullable=True)
    provider_id = Column(String(128), nullable=False)
    provider_name = Column(String(255), nullable=False)
    services = Column(JSON, nullable=False, default=list)
    total_price = Column(Float, nullable=False, default=0.0)
    date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_CONFIRMED)
    payment_method = Column(String(20), nullable=False, default="pay_at_venue")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
