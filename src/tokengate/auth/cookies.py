"""Auth cookies. The names are part of the client contract."""

from datetime import datetime

from starlette.responses import Response

from tokengate.config import Settings
from tokengate.schemas.auth import TokenPair

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# Clients expect an empty value expiring at the epoch. Starlette's
# set_cookie() would quote the empty value and delete_cookie() expires "now".
EPOCH_EXPIRES = "Thu, 01 Jan 1970 00:00:00 GMT"


def set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    """Set both HttpOnly cookies with lifetimes matching the tokens."""
    for name, issued in (
        (ACCESS_COOKIE, tokens.access_token),
        (REFRESH_COOKIE, tokens.refresh_token),
    ):
        seconds = issued.expires_in_ms // 1000
        _write_cookie(response, name, issued.token, seconds, seconds, settings)


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    """Overwrite both cookies with empty values expiring at the epoch."""
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        parts = [f"{name}=", f"Expires={EPOCH_EXPIRES}", "Max-Age=0", "Path=/"]
        if settings.cookie_domain:
            parts.append(f"Domain={settings.cookie_domain}")
        parts.append("HttpOnly")
        if settings.cookie_secure:
            parts.append("Secure")
        parts.append(f"SameSite={settings.cookie_samesite}")
        response.headers.append("set-cookie", "; ".join(parts))


def _write_cookie(
    response: Response,
    name: str,
    value: str,
    max_age: int,
    expires: datetime | int,
    settings: Settings,
) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        expires=expires,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.cookie_samesite,
    )
