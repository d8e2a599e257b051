"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_image_url, validate_required_text


class UserResponse(BaseModel):
    id: str
    fullName: Optional[str] = None
    email: str
    role: str
    profileImageUrl: Optional[str] = None
    createdAt: Optional[datetime] = None


class UserUpdate(BaseModel):
    """Schema for editing the signed-in user's profile"""

    fullName: Optional[str] = None
    profileImageUrl: Optional[str] = None

    @field_validator("fullName")
    @classmethod
    def _full_name(cls, v: Optional[str]) -> Optional[str]:
        return validate_required_text(v, "Full name") if v is not None else v

    @field_validator("profileImageUrl")
    @classmethod
    def _image(cls, v: Optional[str]) -> Optional[str]:
        return validate_image_url(v)
