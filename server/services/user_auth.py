"""User authentication service with JWT handling and server-side sessions."""

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import jwt, JWTError
from sqlalchemy import delete, func
from sqlmodel import select

from core.config import Settings
from core.database import Database
from core.exceptions import InvalidCredentialsError, InvalidTokenError, UserNotFoundError
from core.logging import get_logger
from models.auth import Claims, ROLE_ADMIN, User, UserSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    expires_at: datetime
    user: User


class UserAuthService:
    """Handles login, token validation and session revocation.

    A token is accepted only while its session row exists and has not
    expired; a valid signature alone is not enough.
    """

    def __init__(self, database: Database, settings: Settings):
        self.database = database
        self.settings = settings
        self._algorithm = "HS256"

    async def get_user_count(self) -> int:
        """Get total number of users."""
        async with self.database.get_session() as session:
            result = await session.execute(select(func.count()).select_from(User))
            return result.scalar_one()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get an active user by username."""
        async with self.database.get_session() as session:
            result = await session.execute(
                select(User).where(User.username == username.strip(), User.is_active == True)  # noqa: E712
            )
            return result.scalars().first()

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        async with self.database.get_session() as session:
            return await session.get(User, user_id)

    async def create_user(self, username: str, password: str, email: str = "",
                          role: str = ROLE_ADMIN) -> User:
        user = User.create(username=username, password=password, email=email, role=role)
        async with self.database.get_session() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)

        logger.info("User created", username=user.username, role=user.role)
        return user

    async def ensure_admin(self, username: Optional[str], password: Optional[str]) -> Optional[User]:
        """Seed the first admin account when the users table is empty."""
        if not username or not password:
            return None
        if await self.get_user_count() > 0:
            return None
        return await self.create_user(username=username, password=password, role=ROLE_ADMIN)

    def create_access_token(self, user: User, expires_at: datetime) -> str:
        """Create JWT access token for user."""
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role,
            "exp": expires_at,
            "iat": datetime.now(timezone.utc),
            "jti": secrets.token_hex(8),  # two logins in the same second get distinct tokens
        }
        return jwt.encode(payload, self.settings.jwt_secret_key, algorithm=self._algorithm)

    async def authenticate(self, username: str, password: str) -> LoginResult:
        """Verify credentials, issue a token and persist its session."""
        user = await self.get_user_by_username(username)
        if not user:
            logger.warning("Login for unknown user", username=username)
            raise InvalidCredentialsError(f"Unknown user {username!r}")

        if not user.verify_password(password):
            logger.warning("Invalid password", username=username)
            raise InvalidCredentialsError(f"Bad password for {username!r}")

        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(minutes=self.settings.jwt_expire_minutes)
        token = self.create_access_token(user, expires_at)

        async with self.database.get_session() as session:
            session.add(UserSession(user_id=user.id, token=token, expires_at=expires_at))
            db_user = await session.get(User, user.id)
            db_user.last_login = now
            await session.commit()
            await session.refresh(db_user)

        logger.info("User logged in", username=user.username, role=user.role)
        return LoginResult(token=token, expires_at=expires_at, user=db_user)

    def decode_token(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self._algorithm]
            )
        except JWTError as e:
            logger.debug("Token verification failed", error=str(e))
            raise InvalidTokenError(f"Token rejected: {e}") from e

    async def validate(self, token: str) -> Claims:
        """Return the caller's claims, or raise InvalidTokenError."""
        if not token:
            raise InvalidTokenError("Empty token")

        payload = self.decode_token(token)

        async with self.database.get_session() as session:
            result = await session.execute(
                select(UserSession).where(
                    UserSession.token == token,
                    UserSession.expires_at > datetime.now(timezone.utc)
                )
            )
            if result.scalars().first() is None:
                raise InvalidTokenError("Session revoked or expired")

        try:
            return Claims(
                user_id=int(payload["sub"]),
                username=payload["username"],
                role=payload["role"],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError(f"Malformed claims: {e}") from e

    async def revoke(self, token: str) -> bool:
        """Delete the session row for a token."""
        async with self.database.get_session() as session:
            result = await session.execute(
                delete(UserSession)
                .where(UserSession.token == token)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
        revoked = result.rowcount > 0
        logger.info("Session revoked", revoked=revoked)
        return revoked

    async def get_profile(self, user_id: int) -> User:
        user = await self.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def cleanup_expired_sessions(self) -> int:
        """Remove all expired session rows. Returns count deleted."""
        async with self.database.get_session() as session:
            result = await session.execute(
                delete(UserSession)
                .where(UserSession.expires_at <= datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            await session.commit()
        return result.rowcount
