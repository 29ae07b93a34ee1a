from typing import Literal
from pydantic import BaseModel, Field


class UpdateLanguageDTO(BaseModel):
    """Request DTO for changing the reply language"""
    language: Literal["tr", "en"] = Field(..., description="Language used for replies and speech")


class UserProfileResponseDTO(BaseModel):
    """Response DTO for user profile"""
    id: str
    email: str = Field(..., description="User's email address")
    language_preference: str
    is_premium: bool
    premium_expires_at: str | None = None
