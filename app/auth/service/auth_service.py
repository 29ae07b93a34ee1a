from typing import Optional
import logging

from fastapi import HTTPException

from app.auth.entity.entity import AuthEvent, AuthSession, AuthState
from app.core.errors import IdentityProviderError
from app.user.service.user_service import UserService
from pkg.auth_token_client.client import TokenClient
from pkg.supabase_auth.client import SupabaseAuthClient


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    def __init__(
        self,
        auth_client: SupabaseAuthClient,
        user_service: UserService,
        logger: logging.Logger,
        token_client: Optional[TokenClient] = None,
    ):
        self.auth_client = auth_client
        self.user_service = user_service
        self.logger = logger
        # Without a JWT secret tokens are checked against the identity provider
        self.token_client = token_client

    @staticmethod
    def _to_session(data: dict) -> AuthSession:
        user = data.get("user") or {}
        if not data.get("access_token") or not user.get("id"):
            raise HTTPException(status_code=502, detail="Identity provider returned no session")
        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            token_type=data.get("token_type", "bearer"),
            expires_in=int(data.get("expires_in", 3600)),
            user_id=user["id"],
            email=normalize_email(user.get("email", "")),
        )

    async def register_with_email(self, email: str, password: str) -> dict:
        """Sign up; the identity provider emails a verification code"""
        email = normalize_email(email)
        try:
            await self.auth_client.sign_up(email, password)
        except IdentityProviderError as e:
            self.logger.error(f"Sign up error for {email}: {e.message}")
            raise HTTPException(status_code=e.status_code, detail=e.message)

        self.logger.info(f"Sign up successful for {email}, verification pending")
        return {
            "message": "Verification code sent to email. Please verify your email to complete registration.",
            "requires_verification": True,
            "email": email,
        }

    async def verify_email(self, email: str, otp: str) -> tuple[AuthSession, AuthState]:
        """Verify the signup code; a verified signup is also a sign-in"""
        email = normalize_email(email)
        try:
            data = await self.auth_client.verify_otp(email, otp.strip())
        except IdentityProviderError as e:
            self.logger.error(f"Email verification error for {email}: {e.message}")
            raise HTTPException(status_code=e.status_code, detail=e.message)

        session = self._to_session(data)
        state = await self.handle_auth_event(AuthEvent.SIGNED_IN, session.user_id, session.email)
        return session, state

    async def resend_verification(self, email: str) -> None:
        email = normalize_email(email)
        try:
            await self.auth_client.resend(email)
        except IdentityProviderError as e:
            self.logger.error(f"Resend verification error for {email}: {e.message}")
            raise HTTPException(status_code=e.status_code, detail=e.message)
        self.logger.info(f"Verification code re-sent to {email}")

    async def login_with_email(self, email: str, password: str) -> tuple[AuthSession, AuthState]:
        email = normalize_email(email)
        try:
            data = await self.auth_client.sign_in_with_password(email, password)
        except IdentityProviderError as e:
            self.logger.error(f"Sign in error for {email}: {e.message}")
            raise HTTPException(status_code=e.status_code, detail=e.message)

        session = self._to_session(data)
        state = await self.handle_auth_event(AuthEvent.SIGNED_IN, session.user_id, session.email)
        return session, state

    async def refresh_token(self, refresh_token: str) -> tuple[AuthSession, AuthState]:
        try:
            data = await self.auth_client.refresh_session(refresh_token)
        except IdentityProviderError as e:
            self.logger.error(f"Token refresh error: {e.message}")
            raise HTTPException(status_code=401 if e.status_code < 500 else e.status_code, detail=e.message)

        session = self._to_session(data)
        state = await self.handle_auth_event(AuthEvent.TOKEN_REFRESHED, session.user_id, session.email)
        return session, state

    async def logout(self, access_token: str, user_id: str) -> AuthState:
        """Sign out; local state is cleared even when the provider call fails"""
        try:
            await self.auth_client.sign_out(access_token)
            self.logger.info(f"Sign out successful for {user_id}")
        except IdentityProviderError as e:
            self.logger.error(f"Sign out error for {user_id}: {e.message}")
        return await self.handle_auth_event(AuthEvent.SIGNED_OUT, user_id)

    async def verify_token(self, token: str) -> dict:
        """Resolve an access token to {"user_id", "email"}"""
        if self.token_client is not None:
            try:
                payload = self.token_client.decode_token(token)
            except ValueError:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user_id = payload.get("sub")
            email = payload.get("email", "")
        else:
            try:
                user = await self.auth_client.get_user(token)
            except IdentityProviderError:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user_id = (user or {}).get("id")
            email = (user or {}).get("email", "")

        if not user_id:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return {"user_id": user_id, "email": normalize_email(email or "")}

    async def handle_auth_event(self, event: AuthEvent, user_id: str, email: str = "") -> AuthState:
        """
        React to an identity change:
        - SIGNED_IN / TOKEN_REFRESHED → re-fetch the profile (creating it if missing)
        - SIGNED_OUT → empty state
        """
        if event == AuthEvent.SIGNED_OUT:
            self.logger.info(f"User signed out: {user_id}")
            return AuthState()

        self.logger.info(f"Auth state changed ({event.value}) for user: {user_id}")
        profile = await self.user_service.ensure_user_profile(user_id, email)
        return AuthState(user=profile, language=profile.language_preference)
