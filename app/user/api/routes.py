from fastapi import APIRouter, Depends
from app.user.api.dto import UpdateLanguageDTO
from app.user.api.dependencies import get_user_handler
from app.user.api.handlers import UserHandler
from app.auth.api.dependencies import get_current_user

user_router = APIRouter(prefix="/user", tags=["User"])


@user_router.get("/profile")
async def get_profile(
    current_user: dict = Depends(get_current_user),
    user_handler: UserHandler = Depends(get_user_handler)
):
    """Profile of the signed-in user (created on first access if missing)."""
    return await user_handler.get_user_profile(current_user["user_id"], current_user.get("email", ""))


@user_router.patch("/language")
async def update_language(
    body: UpdateLanguageDTO,
    current_user: dict = Depends(get_current_user),
    user_handler: UserHandler = Depends(get_user_handler)
):
    """Switch reply / speech language between Turkish and English."""
    return await user_handler.update_language(current_user["user_id"], body)


@user_router.get("/premium")
async def premium(
    current_user: dict = Depends(get_current_user),
    user_handler: UserHandler = Depends(get_user_handler)
):
    return await user_handler.premium_info(current_user["user_id"])
