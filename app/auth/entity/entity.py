from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.user.entities.entity import Language, UserProfile


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class AuthSession(BaseModel):
    """Tokens handed out by the identity provider after sign-in / verification"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
    user_id: str
    email: str


@dataclass(frozen=True)
class AuthState:
    """Who is signed in and which language replies should use"""

    user: Optional[UserProfile] = None
    language: Language = "tr"

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
