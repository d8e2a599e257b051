"""
Pytest configuration for the Bookify API.

Environment is set BEFORE any bookify import so the app binds to an in-memory
SQLite database and runs without Redis.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["FIREBASE_PROJECT_ID"] = "bookify-test"
os.environ["ADMIN_EMAILS"] = "admin@bookify.test"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("REDIS_URL", None)

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from bookify.auth import get_current_user
from bookify.database import Base, SessionLocal, engine, get_db
from bookify.main import app
from bookify.models import ROLE_ADMIN, ROLE_SERVICE_PROVIDER, ROLE_USER, Service, ServiceProvider, User


@pytest.fixture
def db():
    """Fresh schema per test on the shared in-memory connection"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Impersonate a user for subsequent requests: login(user)"""

    def _login(user: User):
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


def make_user(db, uid: str, email: str, role: str = ROLE_USER, full_name: str = None) -> User:
    user = User(id=uid, email=email, full_name=full_name or email.split("@")[0].title(), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db):
    return make_user(db, "user-1", "priya@example.com", full_name="Priya Sharma")


@pytest.fixture
def other_customer(db):
    return make_user(db, "user-2", "rahul@example.com", full_name="Rahul Verma")


@pytest.fixture
def admin(db):
    return make_user(db, "admin-1", "admin@bookify.test", role=ROLE_ADMIN, full_name="Admin")


@pytest.fixture
def provider(db):
    """A barber with two services: ₹500 / 1 hr and ₹299.99 / 45 mins"""
    user = make_user(db, "prov-1", "owner@sharpcuts.test", role=ROLE_SERVICE_PROVIDER, full_name="Arjun Mehta")
    profile = ServiceProvider(
        id=user.id,
        business_name="Sharp Cuts",
        full_name="Arjun Mehta",
        email=user.email,
        service_category="barber",
        address="12 MG Road, Bengaluru",
        phone_number="+919876543210",
    )
    profile.services = [
        Service(id="svc-haircut", name="Haircut", price="₹500", duration="1 hr"),
        Service(id="svc-beard", name="Beard Trim", price="₹299.99", duration="45 mins"),
    ]
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def provider_user(db, provider):
    return db.query(User).filter(User.id == provider.id).first()


@pytest.fixture
def next_week() -> date:
    return date.today() + timedelta(days=7)
