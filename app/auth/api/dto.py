from pydantic import BaseModel, constr
from typing import Optional


class UserRegisterDTO(BaseModel):
    """DTO for user registration"""

    email: str
    password: constr(min_length=6, max_length=100)  # type: ignore


class EmailVerificationDTO(BaseModel):
    """DTO for email verification"""

    email: str
    otp: str


class ResendVerificationDTO(BaseModel):
    email: str


class LoginDTO(BaseModel):
    """DTO for user login"""

    email: str
    password: str


class RefreshTokenDTO(BaseModel):
    refresh_token: str


class BaseResponse(BaseModel):
    status: bool
    message: str
    data: dict | None = None


class TokenData(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int
    user_id: str
    email: str
    language: Optional[str] = None


class AuthSuccessResponse(BaseModel):
    status: bool
    message: str
    data: TokenData
