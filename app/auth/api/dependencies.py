from typing import Annotated, Optional
from fastapi import Depends, Request, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.auth.api.handlers import AuthHandler
from app.auth.service.auth_service import AuthService


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    """Get auth service from app state."""
    auth_service = getattr(request.app.state, "auth_service", None)
    if auth_service is None:
        raise HTTPException(status_code=503, detail="Auth service not initialized. Check application logs.")
    return auth_service


def get_auth_handler(request: Request) -> AuthHandler:
    """Get auth handler from app state, building it on first use."""
    if hasattr(request.app.state, "auth_handler"):
        return request.app.state.auth_handler
    logger = getattr(request.app.state, "logger", None)
    chat_registry = getattr(request.app.state, "chat_registry", None)
    auth_handler = AuthHandler(get_auth_service(request), chat_registry, logger)
    request.app.state.auth_handler = auth_handler
    return auth_handler


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Dependency to get current authenticated user from the bearer token.

    Usage:
        @router.get("/protected")
        async def protected_route(current_user: dict = Depends(get_current_user)):
            user_id = current_user["user_id"]
            ...
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth_service = get_auth_service(request)
    token = credentials.credentials
    payload = await auth_service.verify_token(token)
    return {**payload, "access_token": token}


# Type aliases for cleaner dependency injection
AuthHandlerDep = Annotated[AuthHandler, Depends(get_auth_handler)]
CurrentUserDep = Annotated[dict, Depends(get_current_user)]
