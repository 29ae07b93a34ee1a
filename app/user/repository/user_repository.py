from datetime import datetime, timezone
from typing import Any
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError
from app.core.errors import PersistenceError
from app.user.entities.entity import UserProfile
from app.user.repository.sql_schema.user import UserModel
from app.user.service.user_service import IUserRepository
import logging


# Columns a profile patch may touch
UPDATABLE_FIELDS = {"language_preference", "is_premium", "premium_expires_at"}


def _to_profile(user: UserModel) -> UserProfile:
    return UserProfile(
        id=user.id,
        email=user.email,
        language_preference=user.language_preference or "tr",
        is_premium=bool(user.is_premium),
        premium_expires_at=user.premium_expires_at,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserRepository(IUserRepository):
    def __init__(self, db_session_factory, logger: logging.Logger):
        self.db_session_factory = db_session_factory
        self.logger = logger

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        try:
            async with self.db_session_factory() as session:
                result = await session.execute(select(UserModel).filter(UserModel.id == user_id))
                user = result.scalars().first()
                if not user:
                    return None
                return _to_profile(user)

        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user profile: {e!s}")
            raise PersistenceError("Failed to fetch user profile") from e

    async def create_user_profile(
        self,
        user_id: str,
        email: str,
        language_preference: str = "tr",
        is_premium: bool = False,
    ) -> UserProfile:
        """Create the profile row for an identity that has none yet"""
        try:
            async with self.db_session_factory() as session:
                now = datetime.now(timezone.utc)
                user = UserModel(
                    id=user_id,
                    email=email.strip().lower(),
                    language_preference=language_preference,
                    is_premium=is_premium,
                    created_at=now,
                    updated_at=now,
                )
                session.add(user)
                await session.commit()
                return _to_profile(user)

        except SQLAlchemyError as e:
            self.logger.error(f"Error creating user profile: {e!s}")
            raise PersistenceError("Failed to create user profile") from e

    async def update_user_profile(self, user_id: str, patch: dict[str, Any]) -> UserProfile | None:
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update profile fields: {', '.join(sorted(unknown))}")
        try:
            async with self.db_session_factory() as session:
                result = await session.execute(select(UserModel).filter(UserModel.id == user_id))
                user = result.scalars().first()
                if not user:
                    return None

                for field, value in patch.items():
                    setattr(user, field, value)
                user.updated_at = datetime.now(timezone.utc)
                await session.commit()
                return _to_profile(user)

        except SQLAlchemyError as e:
            self.logger.error(f"Error updating user profile: {e!s}")
            raise PersistenceError("Failed to update user profile") from e
