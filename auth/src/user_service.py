"""
User registration, login and token resolution.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from db.src.connection import DatabaseManager
from auth.src.models import AuthProvider, User
from auth.src.password_hashing import MAX_PASSWORD_BYTES, hash_password, verify_password
from auth.src.token_service import TokenService
from tavern.errors import (
    InternalError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserAlreadyExistsError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserService:
    """Email/password accounts with bearer tokens."""

    def __init__(self, db_manager: DatabaseManager, token_service: TokenService):
        self.db_manager = db_manager
        self.token_service = token_service

    async def register(self, name: str, email: str, password: str) -> Tuple[User, str]:
        """Create an account and return it with a fresh token."""
        name = (name or "").strip()
        email = normalize_email(email)
        if not name:
            raise ValidationFailedError("Name is required")
        if not email or "@" not in email:
            raise ValidationFailedError("A valid email address is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationFailedError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationFailedError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes long"
            )

        try:
            async with self.db_manager.get_async_session() as session:
                existing = await session.execute(select(User.user_id).where(User.email == email))
                if existing.first():
                    raise UserAlreadyExistsError(email)

                user = User(
                    name=name,
                    email=email,
                    password_hash=hash_password(password),
                    provider=AuthProvider.EMAIL.value,
                )
                session.add(user)
                await session.commit()
                await session.refresh(user)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise UserAlreadyExistsError(email)
        except SQLAlchemyError as e:
            logger.error("Error registering user %s: %s", email, e)
            raise InternalError("Failed to register user") from e

        logger.info("Registered user %s", user.user_id)
        return user, self.token_service.issue(user.user_id, user.email)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password or "", user.password_hash or ""):
            logger.info("Failed login attempt for %s", normalize_email(email))
            raise InvalidCredentialsError()
        return user, self.token_service.issue(user.user_id, user.email)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            async with self.db_manager.get_async_session() as session:
                result = await session.execute(
                    select(User).where(User.email == normalize_email(email))
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Error looking up user by email: %s", e)
            raise InternalError("Failed to look up user") from e

    async def get_user(self, user_id: str) -> Optional[User]:
        try:
            async with self.db_manager.get_async_session() as session:
                return await session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Error looking up user %s: %s", user_id, e)
            raise InternalError("Failed to look up user") from e

    async def resolve_token(self, token: Optional[str]) -> User:
        """Return the user a bearer token belongs to, or raise InvalidTokenError."""
        claims = self.token_service.verify(token or "")
        if not claims:
            raise InvalidTokenError()
        user = await self.get_user(str(claims["sub"]))
        if not user:
            raise InvalidTokenError()
        return user
