from typing import Any, Optional
from fastapi import HTTPException

from app.auth.entity.entity import AuthState
from app.chat.service.registry import ChatRegistry
from app.user.api.dto import UpdateLanguageDTO, UserProfileResponseDTO
from app.user.entities.entity import UserProfile
from app.user.service.user_service import UserService
import logging

PREMIUM_MESSAGES = {
    "tr": {
        "already": "Zaten Premium üyesiniz!",
        "unavailable": "Uygulama içi satın alma henüz desteklenmiyor. Premium abonelik yakında kullanıma sunulacak.",
    },
    "en": {
        "already": "You are already a Premium member!",
        "unavailable": "In-app purchases are not supported yet. Premium subscriptions will be available soon.",
    },
}


def _profile_data(profile: UserProfile) -> dict[str, Any]:
    return UserProfileResponseDTO(
        id=profile.id,
        email=profile.email,
        language_preference=profile.language_preference,
        is_premium=profile.is_premium,
        premium_expires_at=profile.premium_expires_at.isoformat() if profile.premium_expires_at else None,
    ).model_dump()


class UserHandler:
    def __init__(self, user_service: UserService, chat_registry: Optional[ChatRegistry], logger: logging.Logger):
        self.user_service = user_service
        self.chat_registry = chat_registry
        self.logger = logger

    async def get_user_profile(self, user_id: str, email: str) -> dict[str, Any]:
        profile = await self.user_service.ensure_user_profile(user_id, email)
        return {
            "status": True,
            "message": "User profile retrieved successfully",
            "data": _profile_data(profile),
        }

    async def update_language(self, user_id: str, body: UpdateLanguageDTO) -> dict[str, Any]:
        profile = await self.user_service.update_language(user_id, body.language)
        if self.chat_registry is not None:
            await self.chat_registry.bind(AuthState(user=profile, language=profile.language_preference))
        return {
            "status": True,
            "message": "Language preference updated successfully",
            "data": _profile_data(profile),
        }

    async def premium_info(self, user_id: str) -> dict[str, Any]:
        """Billing is not implemented; returns the informational notice only"""
        profile = await self.user_service.get_user_profile(user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")

        texts = PREMIUM_MESSAGES.get(profile.language_preference, PREMIUM_MESSAGES["tr"])
        return {
            "status": True,
            "message": texts["already"] if profile.is_premium else texts["unavailable"],
            "data": {"is_premium": profile.is_premium, "purchases_available": False},
        }
