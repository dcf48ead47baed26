"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to resolve the
caller's identity from the accessToken cookie and to gate routes by role.

verify_token(validity_required=True)  → "hard" auth, 401 without identity
verify_token(validity_required=False) → "soft" auth, identity may be None
require_roles(Role.ADMIN, ...)         → 401 without identity, 403 on role

Both verifier variants are built once, so FastAPI's per-request
dependency cache runs verification only once even when a role gate and a
handler both ask for the identity.
"""

from typing import Annotated, Callable, Optional

import structlog
from fastapi import Cookie, Depends, Request

from tokengate.auth.cookies import ACCESS_COOKIE
from tokengate.auth.jwt import AccessClaims, TokenCodec
from tokengate.config import Settings
from tokengate.db.models import Role
from tokengate.errors import Forbidden, InvalidOrExpiredToken

logger = structlog.get_logger()


def get_codec(request: Request) -> TokenCodec:
    return request.app.state.codec


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _build_verifier(validity_required: bool) -> Callable:
    async def verifier(
        request: Request,
        access_token: Optional[str] = Cookie(None, alias=ACCESS_COOKIE),
        codec: TokenCodec = Depends(get_codec),
    ) -> Optional[AccessClaims]:
        identity: Optional[AccessClaims] = None

        if access_token and access_token.strip():
            verification = codec.inspect(access_token)
            if not verification.valid:
                logger.info(
                    "auth.access_rejected",
                    reason=verification.reason.value,
                    path=request.url.path,
                    required=validity_required,
                )
                if validity_required:
                    raise InvalidOrExpiredToken("Invalid or expired token")
            elif verification.claims.id:
                identity = verification.claims

        request.state.identity = identity

        # Also covers a token that decoded but carried no usable id.
        if validity_required and identity is None:
            raise InvalidOrExpiredToken("User not authenticated")
        return identity

    verifier.__name__ = "verify_token_required" if validity_required else "verify_token_optional"
    return verifier


_VERIFIERS = {True: _build_verifier(True), False: _build_verifier(False)}


def verify_token(validity_required: bool = True) -> Callable:
    """Dependency resolving the access-token cookie to an identity."""
    return _VERIFIERS[validity_required]


def require_roles(*roles: Role | str) -> Callable:
    """Dependency allowing only identities whose role is in the allow-list.

    Role strings are coerced when the route is declared, so a typo fails
    at import time instead of silently denying (or allowing) everyone.
    """
    allowed = frozenset(Role(role) for role in roles)

    async def role_gate(
        identity: Optional[AccessClaims] = Depends(verify_token(validity_required=False)),
    ) -> AccessClaims:
        if identity is None:
            raise InvalidOrExpiredToken("User not authenticated")
        if identity.role not in allowed:
            logger.info(
                "auth.role_denied",
                user_id=identity.id,
                role=identity.role.value,
                allowed=sorted(r.value for r in allowed),
            )
            raise Forbidden("Access denied")
        return identity

    return role_gate


CurrentIdentity = Annotated[AccessClaims, Depends(verify_token())]
OptionalIdentity = Annotated[Optional[AccessClaims], Depends(verify_token(validity_required=False))]
