"""Token issuer — mints access/refresh pairs for an authenticated user.

Learn: The refresh value is 128 bytes from the OS CSPRNG, URL-safe base64
encoded so it travels in a cookie without quoting. Expiries are returned
as expiresInMS so cookie-setting code never hardcodes durations.
"""

import secrets
from datetime import datetime, timezone
from typing import Optional

from tokengate.auth.jwt import AccessClaims, TokenCodec
from tokengate.config import Settings
from tokengate.db.models import Role, TokenType, User
from tokengate.schemas.auth import IssuedToken, TokenPair
from tokengate.services.refresh_store import RefreshTokenStore

TOKEN_TYPE = "Bearer"


def claims_for(user: User) -> AccessClaims:
    return AccessClaims(id=user.id, role=Role(user.role))


class TokenIssuer:
    """Issues access tokens and persists refresh tokens."""

    def __init__(self, codec: TokenCodec, store: RefreshTokenStore, settings: Settings):
        self.codec = codec
        self.store = store
        self.settings = settings

    def issue_access_token_only(
        self, user: User, now: Optional[datetime] = None
    ) -> IssuedToken:
        """Access token without touching the store (session window unchanged)."""
        token = self.codec.sign(claims_for(user), now=now)
        return IssuedToken(
            token=token,
            type=TOKEN_TYPE,
            expires_in_ms=int(self.codec.ttl.total_seconds() * 1000),
        )

    async def issue_tokens(self, user: User) -> TokenPair:
        """Fresh access token plus a stored, single-use refresh token."""
        now = datetime.now(timezone.utc)
        access = self.issue_access_token_only(user, now=now)

        ttl = self.settings.refresh_token_ttl
        refresh_value = secrets.token_urlsafe(self.settings.refresh_token_bytes)
        await self.store.create(
            token=refresh_value,
            user_id=user.id,
            expires_at=now + ttl,
            token_type=TokenType.REFRESH,
        )

        return TokenPair(
            access_token=access,
            refresh_token=IssuedToken(
                token=refresh_value,
                type=TOKEN_TYPE,
                expires_in_ms=int(ttl.total_seconds() * 1000),
            ),
        )
