from abc import ABC, abstractmethod
from typing import Any

from fastapi import HTTPException

from app.user.entities.entity import UserProfile, SUPPORTED_LANGUAGES
import logging


class IUserRepository(ABC):
    @abstractmethod
    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        pass

    @abstractmethod
    async def create_user_profile(
            self,
            user_id: str,
            email: str,
            language_preference: str = "tr",
            is_premium: bool = False,
    ) -> UserProfile:
        pass

    @abstractmethod
    async def update_user_profile(self, user_id: str, patch: dict[str, Any]) -> UserProfile | None:
        """Apply a partial update; returns None when the user does not exist"""
        pass


class UserService:
    def __init__(
            self,
            user_repository: IUserRepository,
            logger: logging.Logger,
    ):
        self.user_repository = user_repository
        self.logger = logger

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        return await self.user_repository.get_user_profile(user_id)

    async def ensure_user_profile(self, user_id: str, email: str) -> UserProfile:
        """
        Return the profile of an authenticated identity, creating it when the
        signup trigger did not.
        """
        profile = await self.user_repository.get_user_profile(user_id)
        if profile:
            return profile

        self.logger.info(f"User {user_id} exists in auth but not in users table, creating profile...")
        return await self.user_repository.create_user_profile(
            user_id=user_id,
            email=email,
            language_preference="tr",
            is_premium=False,
        )

    async def update_language(self, user_id: str, language: str) -> UserProfile:
        if language not in SUPPORTED_LANGUAGES:
            raise HTTPException(status_code=400, detail=f"Unsupported language: {language}")

        profile = await self.user_repository.update_user_profile(user_id, {"language_preference": language})
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")
        self.logger.info(f"Language preference for {user_id} set to {language}")
        return profile
