from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator


Language = Literal["tr", "en"]
SUPPORTED_LANGUAGES: tuple[str, ...] = ("tr", "en")


class Entity(BaseModel):
    id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class UserProfile(Entity):
    """Profile row kept next to the identity provider's user record."""

    email: str
    language_preference: Language = "tr"
    is_premium: bool = False
    premium_expires_at: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()
