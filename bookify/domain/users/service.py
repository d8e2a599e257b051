"""User service - profile edits for the signed-in user"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import User
from ...utils.sanitization import sanitize_updates
from .repository import UserRepository
from .schemas import UserUpdate

logger = logging.getLogger(__name__)

FIELD_MAP = {"fullName": "full_name", "profileImageUrl": "profile_image_url"}


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "fullName": user.full_name,
        "email": user.email,
        "role": user.role,
        "profileImageUrl": user.profile_image_url,
        "createdAt": user.created_at,
    }


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def update_profile(self, user: User, data: UserUpdate) -> User:
        updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
        if not updates:
            return user

        updates = sanitize_updates(updates, ("full_name",))
        try:
            user = self.repo.update_user(self.db, user, **updates)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update profile for {user.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update profile. Please try again.") from e

        logger.info(f"👤 Profile updated for {user.id}: {', '.join(updates)}")
        return user
