import httpx
from typing import Optional, Any, Dict
import logging

from app.core.errors import IdentityProviderError


class SupabaseAuthClient:
    """Supabase GoTrue REST API client"""

    def __init__(self, logger: logging.Logger, url: str, anon_key: str, timeout: float = 10.0):
        self.logger = logger
        self.url = f"{url.rstrip('/')}/auth/v1"
        self.anon_key = anon_key
        self.timeout = timeout
        self.logger.info(f"Supabase auth client initialized for {url}")

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Content-Type": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        return (
            data.get("msg")
            or data.get("error_description")
            or data.get("message")
            or data.get("error")
            or f"HTTP {response.status_code}"
        )

    async def _execute(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        access_token: Optional[str] = None,
    ) -> Any:
        """Execute a GoTrue request and return the decoded body (or None for empty replies)"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    f"{self.url}{path}",
                    json=json,
                    params=params,
                    headers=self._headers(access_token),
                )
        except httpx.HTTPError as e:
            self.logger.error(f"Auth request {method} {path} failed: {e}")
            raise IdentityProviderError("Identity provider is unreachable", status_code=503) from e

        if response.status_code >= 400:
            message = self._error_message(response)
            self.logger.warning(f"Auth request {method} {path} rejected: {response.status_code} {message}")
            raise IdentityProviderError(message, status_code=response.status_code)

        if not response.content:
            return None
        return response.json()

    async def sign_up(self, email: str, password: str) -> dict:
        return await self._execute("POST", "/signup", json={"email": email, "password": password})

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        return await self._execute(
            "POST", "/token", params={"grant_type": "password"}, json={"email": email, "password": password}
        )

    async def refresh_session(self, refresh_token: str) -> dict:
        return await self._execute(
            "POST", "/token", params={"grant_type": "refresh_token"}, json={"refresh_token": refresh_token}
        )

    async def verify_otp(self, email: str, token: str, otp_type: str = "signup") -> dict:
        return await self._execute("POST", "/verify", json={"type": otp_type, "email": email, "token": token})

    async def resend(self, email: str, otp_type: str = "signup") -> None:
        await self._execute("POST", "/resend", json={"type": otp_type, "email": email})

    async def sign_out(self, access_token: str) -> None:
        await self._execute("POST", "/logout", access_token=access_token)

    async def get_user(self, access_token: str) -> dict:
        """Current session retrieval: the user the access token belongs to"""
        return await self._execute("GET", "/user", access_token=access_token)
