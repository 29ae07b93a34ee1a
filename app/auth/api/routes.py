from fastapi import APIRouter, Depends

from app.auth.api.dto import (
    LoginDTO,
    RefreshTokenDTO,
    ResendVerificationDTO,
    UserRegisterDTO,
    EmailVerificationDTO,
    AuthSuccessResponse,
    BaseResponse,
)
from app.auth.api.dependencies import get_auth_handler, get_current_user
from app.auth.api.handlers import AuthHandler


auth_router = APIRouter(prefix="/auth", tags=["Authentication"])


@auth_router.post("/register", response_model=BaseResponse)
async def register(user_data: UserRegisterDTO, auth_handler: AuthHandler = Depends(get_auth_handler)):
    """Step 1: Register with email and password (identity provider emails a code)"""
    return await auth_handler.register_user(user_data)


@auth_router.post("/verify-email", response_model=AuthSuccessResponse)
async def verify_email(
    verification_data: EmailVerificationDTO, auth_handler: AuthHandler = Depends(get_auth_handler)
):
    """Step 2: Verify the emailed code; returns a session"""
    return await auth_handler.verify_email(verification_data)


@auth_router.post("/resend-verification", response_model=BaseResponse)
async def resend_verification(
    resend_data: ResendVerificationDTO, auth_handler: AuthHandler = Depends(get_auth_handler)
):
    return await auth_handler.resend_verification(resend_data)


@auth_router.post("/login", response_model=AuthSuccessResponse)
async def login(login_data: LoginDTO, auth_handler: AuthHandler = Depends(get_auth_handler)):
    """Login with email and password"""
    return await auth_handler.login(login_data)


@auth_router.post("/refresh", response_model=AuthSuccessResponse)
async def refresh_token(
    refresh_token_dto: RefreshTokenDTO, auth_handler: AuthHandler = Depends(get_auth_handler)
):
    """Refresh access token using refresh token"""
    return await auth_handler.refresh_token(refresh_token_dto.refresh_token)


@auth_router.post("/logout", response_model=BaseResponse)
async def logout(
    current_user: dict = Depends(get_current_user),
    auth_handler: AuthHandler = Depends(get_auth_handler),
):
    """Sign out and drop the user's in-memory chat state"""
    return await auth_handler.logout(current_user["access_token"], current_user["user_id"])
