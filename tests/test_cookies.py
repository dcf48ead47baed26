"""Cookie helper tests — the exact Set-Cookie headers clients receive."""

from starlette.responses import Response

from tokengate.auth.cookies import clear_auth_cookies
from tokengate.config import Settings


def _cleared(settings: Settings) -> list[str]:
    response = Response(status_code=204)
    clear_auth_cookies(response, settings)
    return response.headers.getlist("set-cookie")


def test_cleared_cookies_have_empty_unquoted_values():
    headers = _cleared(Settings(jwt_secret="x" * 32))

    assert headers == [
        "accessToken=; Expires=Thu, 01 Jan 1970 00:00:00 GMT; Max-Age=0; Path=/; HttpOnly; SameSite=lax",
        "refreshToken=; Expires=Thu, 01 Jan 1970 00:00:00 GMT; Max-Age=0; Path=/; HttpOnly; SameSite=lax",
    ]


def test_cleared_cookies_keep_domain_and_secure_flags():
    settings = Settings(
        jwt_secret="x" * 32,
        cookie_secure=True,
        cookie_domain="example.com",
        cookie_samesite="strict",
    )

    for header in _cleared(settings):
        assert "; Domain=example.com;" in header
        assert "; Secure;" in header
        assert header.endswith("; SameSite=strict")
