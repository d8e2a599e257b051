"""Provider repository - Database operations for providers, services and gallery"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import ROLE_SERVICE_PROVIDER, GalleryImage, Service, ServiceProvider, User
from ...utils.sanitization import like_pattern, sanitize_string

DIRECTORY_SEARCH_FIELDS = ("business_name", "full_name", "service_category")
ADMIN_SEARCH_FIELDS = ("business_name", "full_name", "email")


def _stored_spellings(term: str) -> set[str]:
    """LIKE patterns for the raw term and its HTML-escaped form"""
    return {like_pattern(t) for t in (term, sanitize_string(term)) if t and t.strip()}


class ProviderRepository:
    """Repository for provider database operations"""

    @staticmethod
    def search_providers(
        db: Session,
        search: Optional[str] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
        search_fields: tuple = DIRECTORY_SEARCH_FIELDS,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ServiceProvider], int]:
        """Case-insensitive substring search, exact category, substring location"""
        query = db.query(ServiceProvider)

        if search and search.strip():
            # Text fields are stored HTML-escaped, so match both spellings of the term
            patterns = _stored_spellings(search)
            query = query.filter(
                or_(
                    *[
                        func.lower(getattr(ServiceProvider, f)).like(pattern, escape="\\")
                        for f in search_fields
                        for pattern in patterns
                    ]
                )
            )

        if category and category != "all":
            query = query.filter(ServiceProvider.service_category == category)

        if location and location.strip():
            patterns = _stored_spellings(location)
            query = query.filter(
                or_(*[func.lower(ServiceProvider.address).like(p, escape="\\") for p in patterns])
            )

        total = query.count()
        providers = (
            query.order_by(ServiceProvider.business_name.asc()).offset(offset).limit(limit).all()
        )
        return providers, total

    @staticmethod
    def get_provider(db: Session, provider_id: str) -> Optional[ServiceProvider]:
        return db.query(ServiceProvider).filter(ServiceProvider.id == provider_id).first()

    @staticmethod
    def create_provider(db: Session, user: User, **provider_data) -> ServiceProvider:
        """Create the provider row and flip the user's role in the same commit"""
        provider = ServiceProvider(id=user.id, **provider_data)
        user.role = ROLE_SERVICE_PROVIDER
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def update_provider(db: Session, provider: ServiceProvider, **updates) -> ServiceProvider:
        for key, value in updates.items():
            if value is not None and hasattr(provider, key):
                setattr(provider, key, value)

        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def delete_provider(db: Session, provider: ServiceProvider) -> None:
        """Hard delete; services and gallery images cascade"""
        db.delete(provider)
        db.commit()

    # Service catalog
    @staticmethod
    def get_services(db: Session, provider_id: str) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.provider_id == provider_id)
            .order_by(Service.name.asc())
            .all()
        )

    @staticmethod
    def get_service(db: Session, provider_id: str, service_id: str) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def get_services_by_ids(db: Session, provider_id: str, service_ids: list[str]) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.provider_id == provider_id, Service.id.in_(service_ids))
            .all()
        )

    @staticmethod
    def create_service(db: Session, provider_id: str, **service_data) -> Service:
        service = Service(provider_id=provider_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete_service(db: Session, service: Service) -> None:
        db.delete(service)
        db.commit()

    # Image gallery
    @staticmethod
    def get_gallery(db: Session, provider_id: str) -> list[GalleryImage]:
        return (
            db.query(GalleryImage)
            .filter(GalleryImage.provider_id == provider_id)
            .order_by(GalleryImage.created_at.desc())
            .all()
        )

    @staticmethod
    def get_gallery_image(db: Session, provider_id: str, image_id: str) -> Optional[GalleryImage]:
        return (
            db.query(GalleryImage)
            .filter(GalleryImage.id == image_id, GalleryImage.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def add_gallery_image(db: Session, provider_id: str, url: str) -> GalleryImage:
        image = GalleryImage(provider_id=provider_id, url=url)
        db.add(image)
        db.commit()
        db.refresh(image)
        return image

    @staticmethod
    def delete_gallery_image(db: Session, image: GalleryImage) -> None:
        db.delete(image)
        db.commit()

    # Linked user account
    @staticmethod
    def get_user(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()
