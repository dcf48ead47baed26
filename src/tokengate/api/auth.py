"""Auth API — registration, login, refresh rotation, logout.

Learn: Routes for the token lifecycle:
- POST /auth/register   → create a member account
- POST /auth/login      → email/password → access token in body, both cookies set
- POST /auth/refresh    → refreshToken cookie → rotated pair
- POST /auth/logout     → always 204, cookies cleared, refresh row revoked
- POST /auth/logout-all → revoke every refresh token of the caller
- GET  /auth/me         → current user info

The refresh token never appears in a response body; it only travels as
an HttpOnly cookie.
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.auth.cookies import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from tokengate.auth.dependencies import CurrentIdentity, get_app_settings, get_codec
from tokengate.auth.jwt import TokenCodec
from tokengate.config import Settings
from tokengate.db.engine import get_db
from tokengate.errors import InvalidOrExpiredToken
from tokengate.schemas.auth import (
    AccessTokenResponse,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    UserRead,
)
from tokengate.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_codec),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    return AuthService(db, codec, settings)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Create a new member account."""
    user = await service.register(body)
    return RegisterResponse(user=UserRead.model_validate(user))


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AccessTokenResponse)
async def login(
    body: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """Login with email and password → access token + auth cookies."""
    tokens = await service.login(body.email, body.password)
    set_auth_cookies(response, tokens, settings)
    return AccessTokenResponse(access_token=tokens.access_token)


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(
    response: Response,
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """Exchange the refresh cookie for a new pair. The old value dies here."""
    tokens = await service.refresh(refresh_token)
    set_auth_cookies(response, tokens, settings)
    return AccessTokenResponse(access_token=tokens.access_token)


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", status_code=204)
async def logout(
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """Clear both cookies. Never requires a valid token."""
    await service.logout(refresh_token)
    response = Response(status_code=204)
    clear_auth_cookies(response, settings)
    return response


@router.post("/logout-all", status_code=204)
async def logout_all(
    identity: CurrentIdentity,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """Revoke every session of the caller, then clear this client's cookies."""
    await service.logout_everywhere(identity.id)
    response = Response(status_code=204)
    clear_auth_cookies(response, settings)
    return response


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(identity: CurrentIdentity, service: AuthService = Depends(get_auth_service)):
    """Get the current authenticated user's info."""
    user = await service.get_user(identity.id)
    if not user:
        # Signed for an account that no longer exists.
        raise InvalidOrExpiredToken("User not authenticated")
    return user
