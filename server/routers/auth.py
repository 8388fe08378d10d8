"""Authentication routes for login, logout and the caller's profile."""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from core.logging import get_logger
from middleware.auth import get_bearer_token, get_user_auth_service, require_auth
from models.auth import Claims
from services.user_auth import UserAuthService

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


@router.post("/login")
async def login(
    request: LoginRequest,
    user_auth: UserAuthService = Depends(get_user_auth_service)
):
    """
    Login with username and password.
    Returns a bearer token backed by a server-side session.
    """
    result = await user_auth.authenticate(request.username, request.password)
    return {
        "success": True,
        "token": result.token,
        "expires_at": result.expires_at.isoformat(),
        "user": result.user.to_profile()
    }


@router.post("/logout")
async def logout(
    request: Request,
    claims: Claims = Depends(require_auth),
    user_auth: UserAuthService = Depends(get_user_auth_service)
):
    """Delete the caller's session; the token stops working immediately."""
    await user_auth.revoke(get_bearer_token(request))
    logger.info("User logged out", username=claims.username)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
async def get_current_user(
    claims: Claims = Depends(require_auth),
    user_auth: UserAuthService = Depends(get_user_auth_service)
):
    """Get current authenticated user."""
    user = await user_auth.get_profile(claims.user_id)
    return {"success": True, "user": user.to_profile()}
