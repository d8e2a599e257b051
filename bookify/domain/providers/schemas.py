"""Provider domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_image_url, validate_phone, validate_required_text
from ..catalog.categories import validate_category


class ProviderCreate(BaseModel):
    """Schema for registering the current user as a service provider"""

    businessName: str
    fullName: Optional[str] = None
    serviceCategory: str
    address: Optional[str] = None
    phoneNumber: Optional[str] = None
    profileImageUrl: Optional[str] = None

    @field_validator("businessName")
    @classmethod
    def _business_name(cls, v: str) -> str:
        return validate_required_text(v, "Business name")

    @field_validator("serviceCategory")
    @classmethod
    def _category(cls, v: str) -> str:
        return validate_category(v)

    @field_validator("phoneNumber")
    @classmethod
    def _phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)

    @field_validator("profileImageUrl")
    @classmethod
    def _image(cls, v: Optional[str]) -> Optional[str]:
        return validate_image_url(v)


class ProviderUpdate(BaseModel):
    """Schema for updating the provider profile; omitted fields are left alone"""

    businessName: Optional[str] = None
    fullName: Optional[str] = None
    serviceCategory: Optional[str] = None
    address: Optional[str] = None
    phoneNumber: Optional[str] = None
    profileImageUrl: Optional[str] = None

    @field_validator("businessName")
    @classmethod
    def _business_name(cls, v: Optional[str]) -> Optional[str]:
        return validate_required_text(v, "Business name") if v is not None else v

    @field_validator("serviceCategory")
    @classmethod
    def _category(cls, v: Optional[str]) -> Optional[str]:
        return validate_category(v) if v is not None else v

    @field_validator("phoneNumber")
    @classmethod
    def _phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)

    @field_validator("profileImageUrl")
    @classmethod
    def _image(cls, v: Optional[str]) -> Optional[str]:
        return validate_image_url(v)


class ProviderResponse(BaseModel):
    id: str
    businessName: str
    fullName: str
    email: str
    serviceCategory: str
    categoryName: Optional[str] = None
    address: Optional[str] = None
    phoneNumber: Optional[str] = None
    profileImageUrl: Optional[str] = None
    rating: Optional[str] = None
    reviews: Optional[str] = None
    createdAt: Optional[datetime] = None


class ProviderListResponse(BaseModel):
    providers: list[ProviderResponse]
    total: int
    limit: int
    offset: int


class ServiceCreate(BaseModel):
    """Price and duration are kept as typed, e.g. "₹500" and "1 hr 30 mins" """

    name: str
    price: str
    duration: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return validate_required_text(v, "Service name")

    @field_validator("price")
    @classmethod
    def _price(cls, v: str) -> str:
        return validate_required_text(v, "Price", max_length=50)

    @field_validator("duration")
    @classmethod
    def _duration(cls, v: str) -> str:
        return validate_required_text(v, "Duration (e.g., 30 mins)", max_length=50)


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[str] = None
    duration: Optional[str] = None

    @field_validator("name", "price", "duration")
    @classmethod
    def _not_blank(cls, v: Optional[str]) -> Optional[str]:
        return validate_required_text(v, "Field", max_length=255) if v is not None else v


class ServiceResponse(BaseModel):
    id: str
    providerId: str
    name: str
    price: str
    duration: str
    priceValue: float
    durationMinutes: int
    createdAt: Optional[datetime] = None


class GalleryImageCreate(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def _url(cls, v: str) -> str:
        if not v:
            raise ValueError("Image URL is required")
        return validate_image_url(v)


class GalleryImageResponse(BaseModel):
    id: str
    url: str
    createdAt: Optional[datetime] = None


class QuoteRequest(BaseModel):
    """Services picked on the provider page; duplicates are reported, not added twice"""

    serviceIds: list[str] = Field(..., min_length=1)


class SelectedServiceResponse(BaseModel):
    id: str
    name: str
    price: str
    duration: str


class QuoteResponse(BaseModel):
    providerId: str
    services: list[SelectedServiceResponse]
    notices: list[str]
    totalPrice: float
    totalMinutes: int
    estimatedDuration: str
