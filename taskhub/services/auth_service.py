"""
Sign-up, sign-in and refresh-token rotation.

Only the SHA-256 digest of the newest refresh token is kept on the user row.
Issuing a pair replaces it, so a refresh token works exactly once and logout
revokes it by clearing the digest.
"""
from __future__ import annotations

import logging

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import (
    ConflictException,
    InvalidTokenException,
    UnauthorizedException,
)
from taskhub.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    hash_token,
    token_subject,
    verify_password,
)
from taskhub.crud.user import crud_user
from taskhub.models.user import User
from taskhub.schemas.user import Token, UserCreate

logger = logging.getLogger(__name__)


class AuthService:

    async def register_user(
        self, db: AsyncSession, *, user_in: UserCreate
    ) -> tuple[User, Token]:
        # self-registration always yields a plain user
        if await crud_user.email_taken(db, user_in.email):
            raise ConflictException("A user with this email already exists")
        user = await crud_user.create_user(
            db,
            name=user_in.name,
            email=user_in.email,
            hashed_password=hash_password(user_in.password),
        )
        logger.info("Registered user_id=%s", user.id)
        return user, await self._rotate(db, user)

    async def authenticate_user(
        self, db: AsyncSession, *, email: str, password: str
    ) -> tuple[User, Token]:
        user = await crud_user.get_active_by_email(db, email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Rejected login for an unknown or inactive account")
            raise UnauthorizedException("Invalid email or password")
        return user, await self._rotate(db, user)

    async def refresh_access_token(
        self, db: AsyncSession, *, refresh_token: str
    ) -> Token:
        """Trade a live refresh token for a new pair."""
        try:
            user_id = token_subject(decode_refresh_token(refresh_token))
        except JWTError as exc:
            raise InvalidTokenException("Invalid or expired refresh token") from exc

        user = await crud_user.get(db, user_id)
        if user is None or not user.is_active:
            raise UnauthorizedException("User not found or inactive")
        if user.refresh_token_hash != hash_token(refresh_token):
            logger.warning("Replayed or revoked refresh token for user_id=%s", user.id)
            raise InvalidTokenException("Refresh token has been revoked")
        return await self._rotate(db, user)

    async def logout(self, db: AsyncSession, *, user: User) -> None:
        await crud_user.set_refresh_token_hash(db, user=user, token_hash=None)
        logger.info("Revoked refresh token for user_id=%s", user.id)

    async def _rotate(self, db: AsyncSession, user: User) -> Token:
        token = Token(
            access_token=create_access_token(str(user.id), user.role),
            refresh_token=create_refresh_token(str(user.id)),
        )
        await crud_user.set_refresh_token_hash(
            db, user=user, token_hash=hash_token(token.refresh_token)
        )
        return token


auth_service = AuthService()
