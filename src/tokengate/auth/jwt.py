"""JWT access token signing and verification.

Learn: The access token is a detached, signed snapshot of {id, role}.
It is never stored server-side, so verification is pure computation:
signature, expiry (with a small leeway for clock skew) and payload shape.

inspect() never raises. It returns a Verification that is either valid
(claims set) or invalid (reason set), and callers decide the policy.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from pydantic import BaseModel, Field, StrictInt, ValidationError

from tokengate.config import Settings
from tokengate.db.models import Role
from tokengate.errors import ConfigurationError

logger = structlog.get_logger()


class AccessClaims(BaseModel):
    """The resolved identity carried by an access token."""

    id: StrictInt = Field(ge=1)
    role: Role

    model_config = {"frozen": True}


class InvalidReason(str, enum.Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    SCHEMA_MISMATCH = "schema_mismatch"


@dataclass(frozen=True)
class Verification:
    claims: Optional[AccessClaims] = None
    reason: Optional[InvalidReason] = None

    @property
    def valid(self) -> bool:
        return self.claims is not None


class TokenCodec:
    """Signs and verifies access tokens with a process-wide secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=1),
        leeway_seconds: int = 0,
    ):
        if not secret or not secret.strip():
            raise ConfigurationError(
                "JWT secret is not configured (set TOKENGATE_JWT_SECRET)"
            )
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self.leeway_seconds = leeway_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl=settings.access_token_ttl,
            leeway_seconds=settings.jwt_leeway_seconds,
        )

    def sign(self, claims: AccessClaims, now: Optional[datetime] = None) -> str:
        """Create a compact JWT for the given identity."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "id": claims.id,
            "role": claims.role.value,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def inspect(self, token: Optional[str]) -> Verification:
        """Verify a token and report why it failed, if it did."""
        if not token or not token.strip():
            return Verification(reason=InvalidReason.MISSING)

        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                leeway=self.leeway_seconds,
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("auth.token_expired")
            return Verification(reason=InvalidReason.EXPIRED)
        except jwt.InvalidSignatureError:
            logger.warning("auth.token_decode_failed", reason="bad signature")
            return Verification(reason=InvalidReason.BAD_SIGNATURE)
        except jwt.InvalidTokenError as e:
            logger.warning("auth.token_decode_failed", reason=str(e))
            return Verification(reason=InvalidReason.MALFORMED)

        try:
            claims = AccessClaims.model_validate(
                {"id": decoded.get("id"), "role": decoded.get("role")}
            )
        except ValidationError as e:
            logger.warning(
                "auth.token_schema_mismatch",
                errors=[err["loc"] for err in e.errors()],
            )
            return Verification(reason=InvalidReason.SCHEMA_MISMATCH)

        return Verification(claims=claims)

    def verify(self, token: Optional[str]) -> Optional[AccessClaims]:
        """Decoded identity, or None for any invalid token."""
        return self.inspect(token).claims
