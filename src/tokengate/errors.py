"""Error taxonomy for the auth core.

AuthError subclasses map one-to-one onto HTTP responses and are rendered
by the handler registered in create_app(). Anything that is not an
AuthError reaches the error boundary middleware and becomes a generic 500.
"""

from typing import Optional


class ConfigurationError(Exception):
    """The process cannot serve auth routes (e.g. no signing secret)."""


class AuthError(Exception):
    """Base for errors that carry their own HTTP status."""

    status_code: int = 500
    default_detail: str = "Unexpected server error. Please try again later."
    default_headers: Optional[dict[str, str]] = None

    def __init__(
        self,
        detail: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.detail = detail or self.default_detail
        self.headers = headers or self.default_headers
        super().__init__(self.detail)


class InvalidCredentials(AuthError):
    """Unknown email or wrong password at login."""

    status_code = 401
    default_detail = "Invalid email or password"


class InvalidOrExpiredToken(AuthError):
    """Missing, malformed, expired or unknown access/refresh token."""

    status_code = 401
    default_detail = "Invalid or expired token"
    default_headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(AuthError):
    """Authenticated, but the role is not on the route's allow-list."""

    status_code = 403
    default_detail = "Access denied"


class Conflict(AuthError):
    status_code = 409
    default_detail = "Resource already exists"


class UnexpectedError(AuthError):
    status_code = 500
