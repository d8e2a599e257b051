"""Provider service - Business logic for providers, their catalog and gallery"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...cache import PROVIDER_DIRECTORY_PREFIX, cache, invalidate_provider_directory
from ...config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...models import ROLE_ADMIN, ROLE_SERVICE_PROVIDER, GalleryImage, Service, ServiceProvider, User
from ...utils.sanitization import sanitize_string, sanitize_updates
from ..catalog.categories import get_category
from ..catalog.selection import SelectedService, ServiceSelection
from .repository import ADMIN_SEARCH_FIELDS, DIRECTORY_SEARCH_FIELDS, ProviderRepository
from .schemas import ProviderCreate, ProviderUpdate, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)

PROVIDER_TEXT_FIELDS = ("business_name", "full_name", "address")


def serialize_provider(provider: ServiceProvider) -> dict:
    category = get_category(provider.service_category)
    return {
        "id": provider.id,
        "businessName": provider.business_name,
        "fullName": provider.full_name,
        "email": provider.email,
        "serviceCategory": provider.service_category,
        "categoryName": category["name"] if category else None,
        "address": provider.address,
        "phoneNumber": provider.phone_number,
        "profileImageUrl": provider.profile_image_url,
        "rating": provider.rating,
        "reviews": provider.reviews,
        "createdAt": provider.created_at,
    }


def clamp_page(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    limit = DEFAULT_PAGE_SIZE if not limit or limit < 1 else min(limit, MAX_PAGE_SIZE)
    return limit, max(offset or 0, 0)


class ProviderService:
    """Service layer for provider business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    # Directory
    def search_directory(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> dict:
        """Public directory search; pages are cached when Redis is configured"""
        limit, offset = clamp_page(limit, offset)
        cache_key = (
            f"{PROVIDER_DIRECTORY_PREFIX}:{(search or '').lower()}:{category or ''}:"
            f"{(location or '').lower()}:{limit}:{offset}"
        )
        cached_page = cache.get(cache_key)
        if cached_page is not None:
            return cached_page

        providers, total = self.repo.search_providers(
            self.db, search, category, location, DIRECTORY_SEARCH_FIELDS, limit, offset
        )
        page = {
            "providers": [serialize_provider(p) for p in providers],
            "total": total,
            "limit": limit,
            "offset": offset,
        }
        cache.set(cache_key, page)
        return page

    def admin_search_providers(
        self, search: Optional[str], limit: Optional[int], offset: Optional[int]
    ) -> tuple[list[ServiceProvider], int, int, int]:
        limit, offset = clamp_page(limit, offset)
        providers, total = self.repo.search_providers(
            self.db, search, None, None, ADMIN_SEARCH_FIELDS, limit, offset
        )
        return providers, total, limit, offset

    def get_provider(self, provider_id: str) -> ServiceProvider:
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            raise HTTPException(status_code=404, detail="Service provider not found.")
        return provider

    def get_own_provider(self, user: User) -> ServiceProvider:
        provider = self.repo.get_provider(self.db, user.id)
        if not provider:
            raise HTTPException(
                status_code=404,
                detail="No provider profile found. Register as a service provider first.",
            )
        return provider

    def register_provider(self, data: ProviderCreate, user: User) -> ServiceProvider:
        """Create the provider profile for the current user and switch their role"""
        if user.role == ROLE_ADMIN:
            raise HTTPException(status_code=403, detail="Admin accounts cannot register as providers.")
        if self.repo.get_provider(self.db, user.id):
            raise HTTPException(status_code=409, detail="Provider profile already exists.")

        logger.info(f"🏪 Registering provider profile for user {user.id}")
        provider_data = {
            "business_name": sanitize_string(data.businessName),
            "full_name": sanitize_string(data.fullName or user.full_name or data.businessName),
            "email": user.email,
            "service_category": data.serviceCategory,
            "address": sanitize_string(data.address),
            "phone_number": data.phoneNumber,
            "profile_image_url": data.profileImageUrl,
        }
        try:
            provider = self.repo.create_provider(self.db, user, **provider_data)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to register provider {user.id}: {e}")
            raise HTTPException(
                status_code=500, detail="Failed to create provider profile. Please try again."
            ) from e

        invalidate_provider_directory()
        return provider

    def update_own_profile(self, data: ProviderUpdate, user: User) -> ServiceProvider:
        provider = self.get_own_provider(user)
        updates = sanitize_updates(
            {
                "business_name": data.businessName,
                "full_name": data.fullName,
                "service_category": data.serviceCategory,
                "address": data.address,
                "phone_number": data.phoneNumber,
                "profile_image_url": data.profileImageUrl,
            },
            PROVIDER_TEXT_FIELDS,
        )
        try:
            provider = self.repo.update_provider(self.db, provider, **updates)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update provider {user.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to save profile changes.") from e

        invalidate_provider_directory()
        return provider

    def admin_delete_provider(self, provider_id: str, admin: User) -> dict:
        """
        Hard-delete a provider (services and gallery go with it), then remove the
        linked user row if it is still a provider account. A missing user row is
        not an error.
        """
        provider = self.get_provider(provider_id)
        business_name = provider.business_name
        logger.info(f"🗑️ Admin {admin.id} removing provider {provider_id} ({business_name})")

        try:
            self.repo.delete_provider(self.db, provider)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to remove provider {provider_id}: {e}")
            raise HTTPException(
                status_code=500, detail=f"Failed to remove {business_name}. Please try again."
            ) from e

        user_removed = False
        linked_user = self.repo.get_user(self.db, provider_id)
        if linked_user and linked_user.role == ROLE_SERVICE_PROVIDER:
            try:
                self.repo.delete_user(self.db, linked_user)
                user_removed = True
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.warning(f"⚠️ Provider {provider_id} removed but user row was kept: {e}")
        else:
            logger.warning(f"⚠️ No provider user row found for {provider_id}")

        invalidate_provider_directory()
        return {
            "message": f"{business_name} has been removed successfully.",
            "userRemoved": user_removed,
        }

    # Services
    def list_services(self, provider_id: str) -> list[Service]:
        self.get_provider(provider_id)
        return self.repo.get_services(self.db, provider_id)

    def add_service(self, data: ServiceCreate, user: User) -> Service:
        provider = self.get_own_provider(user)
        try:
            return self.repo.create_service(
                self.db,
                provider.id,
                name=sanitize_string(data.name),
                price=data.price,
                duration=data.duration,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to add service for provider {provider.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to add service. Please try again.") from e

    def update_service(self, service_id: str, data: ServiceUpdate, user: User) -> Service:
        provider = self.get_own_provider(user)
        service = self.repo.get_service(self.db, provider.id, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        updates = {"name": sanitize_string(data.name), "price": data.price, "duration": data.duration}
        try:
            return self.repo.update_service(self.db, service, **updates)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update service {service_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update service. Please try again.") from e

    def delete_service(self, service_id: str, user: User) -> dict:
        provider = self.get_own_provider(user)
        service = self.repo.get_service(self.db, provider.id, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        try:
            self.repo.delete_service(self.db, service)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete service {service_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete service. Please try again.") from e
        return {"message": "Service deleted"}

    def select_services(self, provider_id: str, service_ids: list[str]) -> ServiceSelection:
        """
        Build a selection from the provider's catalog in request order.
        Repeated ids produce notices; ids outside the catalog are a 404.
        """
        found = {s.id: s for s in self.repo.get_services_by_ids(self.db, provider_id, list(set(service_ids)))}
        missing = [sid for sid in service_ids if sid not in found]
        if missing:
            raise HTTPException(
                status_code=404,
                detail=f"Service not found for this provider: {', '.join(dict.fromkeys(missing))}",
            )

        selection = ServiceSelection()
        for sid in service_ids:
            selection.add(SelectedService.from_model(found[sid]))
        return selection

    def quote(self, provider_id: str, service_ids: list[str]) -> ServiceSelection:
        self.get_provider(provider_id)
        return self.select_services(provider_id, service_ids)

    # Gallery
    def list_gallery(self, provider_id: str) -> list[GalleryImage]:
        self.get_provider(provider_id)
        return self.repo.get_gallery(self.db, provider_id)

    def add_gallery_image(self, url: str, user: User) -> GalleryImage:
        provider = self.get_own_provider(user)
        try:
            return self.repo.add_gallery_image(self.db, provider.id, url)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to add gallery image for provider {user.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to add image. Please try again.") from e

    def delete_gallery_image(self, image_id: str, user: User) -> dict:
        provider = self.get_own_provider(user)
        image = self.repo.get_gallery_image(self.db, provider.id, image_id)
        if not image:
            raise HTTPException(status_code=404, detail="Image not found")

        try:
            self.repo.delete_gallery_image(self.db, image)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete gallery image {image_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete image. Please try again.") from e
        return {"message": "Image deleted"}
