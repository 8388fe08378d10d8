"""Authentication dependencies for route protection.

Protected handlers declare ``claims: Claims = Depends(require_auth)`` (or
``require_admin``) and pass the claims on explicitly to the services that
need the acting user.
"""

from typing import Optional

from fastapi import Depends, Request

from core.container import container
from core.exceptions import ForbiddenError, UnauthorizedError
from models.auth import Claims, ROLE_ADMIN
from services.user_auth import UserAuthService


def get_user_auth_service() -> UserAuthService:
    return container.user_auth_service()


def get_bearer_token(request: Request) -> Optional[str]:
    """Extract the token from ``Authorization: Bearer <token>``."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def require_auth(
    request: Request,
    user_auth: UserAuthService = Depends(get_user_auth_service)
) -> Claims:
    """Dependency for protected routes. Raises 401 if the session is missing or invalid."""
    token = get_bearer_token(request)
    if not token:
        raise UnauthorizedError("Missing bearer token",
                                public_message="Authorization header required")
    return await user_auth.validate(token)


def require_role(role: str):
    """Dependency factory for role-based access control"""
    async def role_checker(claims: Claims = Depends(require_auth)) -> Claims:
        if claims.role != role:
            raise ForbiddenError(f"{claims.username} has role {claims.role}, needs {role}",
                                 public_message=f"{role.capitalize()} access required")
        return claims

    return role_checker


require_admin = require_role(ROLE_ADMIN)
