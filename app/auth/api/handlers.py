from typing import Any, Optional
from fastapi import HTTPException

from app.auth.api.dto import (
    EmailVerificationDTO,
    LoginDTO,
    ResendVerificationDTO,
    UserRegisterDTO,
)
from app.auth.entity.entity import AuthSession, AuthState
from app.auth.service.auth_service import AuthService
from app.chat.service.registry import ChatRegistry
import logging


def _token_response(message: str, session: AuthSession, state: AuthState) -> dict[str, Any]:
    return {
        "status": True,
        "message": message,
        "data": {**session.model_dump(), "language": state.language},
    }


class AuthHandler:
    def __init__(self, auth_service: AuthService, chat_registry: Optional[ChatRegistry], logger: logging.Logger):
        self.auth_service = auth_service
        self.chat_registry = chat_registry
        self.logger = logger

    async def _publish(self, state: AuthState) -> None:
        if self.chat_registry is not None and state.user is not None:
            await self.chat_registry.bind(state)

    async def register_user(self, user_data: UserRegisterDTO) -> dict[str, Any]:
        result = await self.auth_service.register_with_email(user_data.email, user_data.password)
        return {
            "status": True,
            "message": result["message"],
            "data": {"requires_verification": True, "email": result["email"]},
        }

    async def verify_email(self, verification_data: EmailVerificationDTO) -> dict[str, Any]:
        session, state = await self.auth_service.verify_email(verification_data.email, verification_data.otp)
        await self._publish(state)
        return _token_response("Email verified successfully", session, state)

    async def resend_verification(self, resend_data: ResendVerificationDTO) -> dict[str, Any]:
        await self.auth_service.resend_verification(resend_data.email)
        return {"status": True, "message": "Verification code sent", "data": None}

    async def login(self, login_data: LoginDTO) -> dict[str, Any]:
        session, state = await self.auth_service.login_with_email(login_data.email, login_data.password)
        await self._publish(state)
        return _token_response("Login successful", session, state)

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        session, state = await self.auth_service.refresh_token(refresh_token)
        await self._publish(state)
        return _token_response("Token refreshed", session, state)

    async def logout(self, access_token: str, user_id: str) -> dict[str, Any]:
        try:
            await self.auth_service.logout(access_token, user_id)
        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Unexpected sign out error: {e!s}")
        # Always clean up chat state on sign out attempt
        if self.chat_registry is not None:
            self.chat_registry.discard(user_id)
        return {"status": True, "message": "Logged out", "data": None}
