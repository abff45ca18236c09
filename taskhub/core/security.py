"""
Credentials: bcrypt password hashes (passlib) and signed JWTs (python-jose).

Two token kinds exist. Access tokens are short-lived, carry the role and are
signed with SECRET_KEY. Refresh tokens live for days, are signed with
REFRESH_SECRET_KEY and are only ever stored as a SHA-256 digest.
"""
from __future__ import annotations

import hashlib
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from taskhub.core.config import settings

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def validate_password_strength(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if password.strip() != password:
        raise ValueError("Password must not start or end with whitespace")
    return password


# ── Tokens ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _TokenKind:
    name: str
    secret_setting: str
    lifetime: timedelta

    @property
    def secret(self) -> str:
        # read on use so tests and reloads see the current settings
        return getattr(settings, self.secret_setting)


ACCESS = _TokenKind(
    "access", "SECRET_KEY", timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
)
REFRESH = _TokenKind(
    "refresh", "REFRESH_SECRET_KEY", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
)


def _encode(kind: _TokenKind, user_id: str, **claims: Any) -> str:
    issued_at = datetime.now(timezone.utc)
    payload = {
        **claims,
        "sub": user_id,
        "type": kind.name,
        "iat": issued_at,
        "exp": issued_at + kind.lifetime,
        "jti": secrets.token_hex(16),
    }
    return jwt.encode(payload, kind.secret, algorithm=settings.ALGORITHM)


def _decode(kind: _TokenKind, token: str) -> dict[str, Any]:
    """Verify signature, expiry and kind. Raises JWTError on any mismatch."""
    payload = jwt.decode(token, kind.secret, algorithms=[settings.ALGORITHM])
    if payload.get("type") != kind.name:
        raise JWTError(f"Expected a {kind.name} token")
    return payload


def create_access_token(user_id: str, role: str) -> str:
    return _encode(ACCESS, user_id, role=role)


def create_refresh_token(user_id: str) -> str:
    return _encode(REFRESH, user_id)


def decode_access_token(token: str) -> dict[str, Any]:
    return _decode(ACCESS, token)


def decode_refresh_token(token: str) -> dict[str, Any]:
    return _decode(REFRESH, token)


def token_subject(payload: dict[str, Any]) -> uuid.UUID:
    """The user id a decoded token was issued to."""
    try:
        return uuid.UUID(str(payload["sub"]))
    except (KeyError, ValueError) as exc:
        raise JWTError("Token subject is not a user id") from exc


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()
