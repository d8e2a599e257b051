"""Shared validation utilities"""

import re
from typing import Optional
from urllib.parse import urlparse


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to digits with an optional leading '+'.

    Raises:
        ValueError: If fewer than 7 or more than 15 digits remain
    """
    if not phone:
        return phone

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 7 and 15 digits")

    return f"+{digits}" if phone.startswith("+") else digits


def validate_image_url(url: Optional[str]) -> Optional[str]:
    """Only absolute http(s) URLs are accepted for images"""
    if not url:
        return url

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Image URL must be an absolute http(s) URL")

    return url


def validate_required_text(value: str, field: str, max_length: int = 255) -> str:
    """Strip whitespace and reject empty or over-long values"""
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{field} is required")
    if len(value) > max_length:
        raise ValueError(f"{field} must be at most {max_length} characters")
    return value
