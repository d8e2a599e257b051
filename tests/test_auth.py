"""Tests for Firebase ID token verification and role guards"""

import asyncio
import base64
import json
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.x509.oid import NameOID
from fastapi import HTTPException

from bookify import auth
from bookify.models import ROLE_ADMIN, ROLE_USER, User

PROJECT_ID = "bookify-test"


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


@pytest.fixture(scope="module")
def signing_key():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken.test")])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime.now(timezone.utc) - timedelta(days=1))
        .not_valid_after(datetime.now(timezone.utc) + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return key, cert.public_bytes(serialization.Encoding.PEM).decode()


def make_token(key, **overrides) -> str:
    now = int(time.time())
    claims = {
        "aud": PROJECT_ID,
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "sub": "firebase-uid-1",
        "email": "Neha@Example.com",
        "name": "Neha Kapoor",
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    header = _b64(json.dumps({"alg": "RS256", "kid": "key-1"}).encode())
    payload = _b64(json.dumps(claims).encode())
    signature = key.sign(f"{header}.{payload}".encode(), padding.PKCS1v15(), hashes.SHA256())
    return f"{header}.{payload}.{_b64(signature)}"


@pytest.fixture
def google_keys(signing_key):
    with patch.object(auth, "get_google_public_keys", AsyncMock(return_value={"key-1": signing_key[1]})):
        yield signing_key[0]


def verify(token: str) -> dict:
    return asyncio.run(auth.verify_firebase_token(token))


class TestVerifyToken:
    def test_valid_token(self, google_keys):
        claims = verify(make_token(google_keys))
        assert claims["sub"] == "firebase-uid-1"

    @pytest.mark.parametrize(
        "overrides, detail",
        [
            ({"aud": "someone-else"}, "Invalid token audience"),
            ({"iss": "https://evil.example.com"}, "Invalid token issuer"),
            ({"exp": int(time.time()) - 10}, "Token has expired. Please refresh your session."),
        ],
    )
    def test_rejected_claims(self, google_keys, overrides, detail):
        with pytest.raises(HTTPException) as exc_info:
            verify(make_token(google_keys, **overrides))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == detail

    def test_tampered_payload(self, google_keys):
        header, _, signature = make_token(google_keys).split(".")
        forged = _b64(json.dumps({"sub": "someone-else"}).encode())
        with pytest.raises(HTTPException) as exc_info:
            verify(f"{header}.{forged}.{signature}")
        assert exc_info.value.detail == "Invalid token signature"

    def test_malformed_token(self):
        with pytest.raises(HTTPException) as exc_info:
            verify("not-a-jwt")
        assert exc_info.value.status_code == 401


class TestCurrentUser:
    def test_first_request_creates_user(self, client, db, google_keys):
        response = client.get("/users/me", headers={"Authorization": f"Bearer {make_token(google_keys)}"})
        assert response.status_code == 200
        assert response.json()["email"] == "neha@example.com"

        user = db.query(User).filter(User.id == "firebase-uid-1").one()
        assert user.full_name == "Neha Kapoor"
        assert user.role == ROLE_USER

    def test_configured_email_becomes_admin(self, client, db, google_keys):
        token = make_token(google_keys, sub="firebase-admin", email="admin@bookify.test")
        response = client.get("/admin/bookings", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert db.query(User).filter(User.id == "firebase-admin").one().role == ROLE_ADMIN

    def test_missing_header_is_rejected(self, client, db):
        assert client.get("/users/me").status_code in (401, 403)


def test_resolve_role():
    assert auth.resolve_role("ADMIN@bookify.test") == ROLE_ADMIN
    assert auth.resolve_role("someone@example.com", "serviceProvider") == "serviceProvider"
    assert auth.resolve_role("someone@example.com", None) == ROLE_USER
