"""Provider router - directory, provider self-management and admin moderation"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_provider, get_current_user
from ...database import get_db
from ...models import GalleryImage, Service, User
from ..catalog.pricing import parse_duration_minutes, parse_price
from .schemas import (
    GalleryImageCreate,
    GalleryImageResponse,
    ProviderCreate,
    ProviderListResponse,
    ProviderResponse,
    ProviderUpdate,
    QuoteRequest,
    QuoteResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from .service import ProviderService, serialize_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])
admin_router = APIRouter(prefix="/admin/providers", tags=["Admin"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db)


def to_service_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        providerId=service.provider_id,
        name=service.name,
        price=service.price,
        duration=service.duration,
        priceValue=parse_price(service.price),
        durationMinutes=parse_duration_minutes(service.duration),
        createdAt=service.created_at,
    )


def to_image_response(image: GalleryImage) -> GalleryImageResponse:
    return GalleryImageResponse(id=image.id, url=image.url, createdAt=image.created_at)


# ============================================================================
# PUBLIC DIRECTORY
# ============================================================================


@router.get("", response_model=ProviderListResponse)
async def search_providers(
    q: Optional[str] = Query(None, description="Search business name, owner or category"),
    category: Optional[str] = Query(None),
    location: Optional[str] = Query(None, description="Substring of the provider address"),
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    service: ProviderService = Depends(get_provider_service),
):
    """Browse and search the provider directory"""
    return service.search_directory(q, category, location, limit, offset)


# ============================================================================
# CURRENT PROVIDER (registered before /{provider_id} so "me" is not an id)
# ============================================================================


@router.post("/me", response_model=ProviderResponse, status_code=201)
async def register_provider(
    data: ProviderCreate,
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    """Register the current user as a service provider"""
    provider = service.register_provider(data, current_user)
    return ProviderResponse(**serialize_provider(provider))


@router.get("/me", response_model=ProviderResponse)
async def get_own_profile(
    current_user: User = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return ProviderResponse(**serialize_provider(service.get_own_provider(current_user)))


@router.patch("/me", response_model=ProviderResponse)
async def update_own_profile(
    data: ProviderUpdate,
    current_user: User = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    provider = service.update_own_profile(data, current_user)
    return ProviderResponse(**serialize_provider(provider))


@router.post("/me/services", response_model=ServiceResponse, status_code=201)
async def add_service(
    data: ServiceCreate,
    current_user: User = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return to_service_response(service.add_service(data, current_user))


@router.patch("/me/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    current_user: User = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return to_service_response(service.update_service(service_id, data, current_user))


@router.delete("/me/services/{service_id}")
async def delete_service(
    service_id: str,
    current_user: User = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return service.delete_service(service_id, current_user)


@router.post("/me/gallery", response_model=GalleryImageResponse, status_code=201)
async def add_gallery_image(
    data: GalleryImageCreate,
    current_user: User = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return to_image_response(service.add_gallery_image(data.url, current_user))


@router.delete("/me/gallery/{image_id}")
async def delete_gallery_image(
    image_id: str,
    current_user: User = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return service.delete_gallery_image(image_id, current_user)


# ============================================================================
# PROVIDER DETAIL
# ============================================================================


@router.get("/{provider_id}", response_model=ProviderResponse)
async def get_provider(provider_id: str, service: ProviderService = Depends(get_provider_service)):
    return ProviderResponse(**serialize_provider(service.get_provider(provider_id)))


@router.get("/{provider_id}/services", response_model=list[ServiceResponse])
async def list_provider_services(
    provider_id: str, service: ProviderService = Depends(get_provider_service)
):
    """A provider's services, alphabetical"""
    return [to_service_response(s) for s in service.list_services(provider_id)]


@router.get("/{provider_id}/gallery", response_model=list[GalleryImageResponse])
async def list_gallery(provider_id: str, service: ProviderService = Depends(get_provider_service)):
    """A provider's image gallery, newest first"""
    return [to_image_response(img) for img in service.list_gallery(provider_id)]


@router.post("/{provider_id}/quote", response_model=QuoteResponse)
async def quote_services(
    provider_id: str,
    data: QuoteRequest,
    service: ProviderService = Depends(get_provider_service),
):
    """Total price and estimated duration for a selection of the provider's services"""
    selection = service.quote(provider_id, data.serviceIds)
    return QuoteResponse(
        providerId=provider_id,
        services=selection.to_list(),
        notices=selection.notices,
        totalPrice=selection.total_price,
        totalMinutes=selection.total_minutes,
        estimatedDuration=selection.estimated_duration,
    )


# ============================================================================
# ADMIN MODERATION
# ============================================================================


@admin_router.get("", response_model=ProviderListResponse)
async def admin_list_providers(
    search: Optional[str] = Query(None, description="Search business name, owner name or email"),
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    current_user: User = Depends(get_current_admin),
    service: ProviderService = Depends(get_provider_service),
):
    providers, total, limit, offset = service.admin_search_providers(search, limit, offset)
    return ProviderListResponse(
        providers=[ProviderResponse(**serialize_provider(p)) for p in providers],
        total=total,
        limit=limit,
        offset=offset,
    )


@admin_router.get("/{provider_id}/services", response_model=list[ServiceResponse])
async def admin_list_provider_services(
    provider_id: str,
    current_user: User = Depends(get_current_admin),
    service: ProviderService = Depends(get_provider_service),
):
    return [to_service_response(s) for s in service.list_services(provider_id)]


@admin_router.delete("/{provider_id}")
async def admin_delete_provider(
    provider_id: str,
    current_user: User = Depends(get_current_admin),
    service: ProviderService = Depends(get_provider_service),
):
    """Remove a provider, their catalog and gallery, and their provider account"""
    return service.admin_delete_provider(provider_id, current_user)
