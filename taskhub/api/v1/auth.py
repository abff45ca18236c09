"""
Authentication routes.
POST /auth/register, /auth/login, /auth/refresh, /auth/logout
GET  /auth/me, /auth/verify-token
"""
from fastapi import APIRouter, Request, status

from taskhub.core.config import settings
from taskhub.core.dependencies import CurrentUser, DBSession
from taskhub.core.rate_limit import limiter
from taskhub.schemas.common import ApiResponse, ok
from taskhub.schemas.user import (
    AuthPayload,
    LoginRequest,
    RefreshTokenRequest,
    Token,
    TokenStatus,
    UserCreate,
    UserRead,
)
from taskhub.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(
    user_in: UserCreate,
    db: DBSession,
) -> ApiResponse[AuthPayload]:
    user, tokens = await auth_service.register_user(db, user_in=user_in)
    payload = AuthPayload(**tokens.model_dump(), user=UserRead.model_validate(user))
    return ok(payload, "User registered successfully")


@router.post(
    "/login",
    response_model=ApiResponse[AuthPayload],
    summary="Authenticate and receive JWT token pair",
)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: DBSession,
) -> ApiResponse[AuthPayload]:
    user, tokens = await auth_service.authenticate_user(
        db, email=credentials.email, password=credentials.password
    )
    payload = AuthPayload(**tokens.model_dump(), user=UserRead.model_validate(user))
    return ok(payload, "Login successful")


@router.post(
    "/refresh",
    response_model=ApiResponse[Token],
    summary="Refresh access token using a valid refresh token",
)
async def refresh(
    body: RefreshTokenRequest,
    db: DBSession,
) -> ApiResponse[Token]:
    tokens = await auth_service.refresh_access_token(
        db, refresh_token=body.refresh_token
    )
    return ok(tokens)


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Invalidate the current refresh token",
)
async def logout(
    current_user: CurrentUser,
    db: DBSession,
) -> ApiResponse[None]:
    await auth_service.logout(db, user=current_user)
    return ok(message="Logged out successfully")


@router.get(
    "/me",
    response_model=ApiResponse[UserRead],
    summary="Get the authenticated user's profile",
)
async def me(current_user: CurrentUser) -> ApiResponse[UserRead]:
    return ok(UserRead.model_validate(current_user))


@router.get(
    "/verify-token",
    response_model=ApiResponse[TokenStatus],
    summary="Check that the bearer token is still valid",
)
async def verify_token(current_user: CurrentUser) -> ApiResponse[TokenStatus]:
    return ok(TokenStatus(user=UserRead.model_validate(current_user)), "Token is valid")
