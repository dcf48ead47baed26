"""Auth service — registration, login, refresh rotation and logout.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database. Cookies are the
route's concern; this layer only deals in users, tokens and rows.

Refresh is a small state machine over one stored row:
  missing value / unknown row  → 401
  row found but expired        → row deleted, 401
  row found, owner gone        → row deleted, 401
  row found and valid          → row deleted, new pair issued
The lookup and the delete are one statement (RefreshTokenStore.consume),
so a value can be accepted at most once even under concurrent requests.
"""

from typing import Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.auth.issuer import TokenIssuer
from tokengate.auth.jwt import TokenCodec
from tokengate.auth.password import dummy_hash, hash_password, verify_password
from tokengate.config import Settings
from tokengate.db.models import Role, User
from tokengate.errors import Conflict, InvalidCredentials, InvalidOrExpiredToken
from tokengate.schemas.auth import RegisterRequest, TokenPair
from tokengate.services.refresh_store import RefreshTokenStore

logger = structlog.get_logger()


class AuthService:
    """Business logic for the token lifecycle."""

    def __init__(self, db: AsyncSession, codec: TokenCodec, settings: Settings):
        self.db = db
        self.settings = settings
        self.store = RefreshTokenStore(db)
        self.issuer = TokenIssuer(codec, self.store, settings)

    # ─── Users ──────────────────────────────────────────

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalars().first()

    async def find_registration_conflict(self, data: RegisterRequest) -> Optional[str]:
        """Which unique field of a registration is already taken, if any."""
        result = await self.db.execute(
            select(User).where(or_(User.email == data.email, User.pseudo == data.pseudo))
        )
        existing = result.scalars().first()
        if existing is None:
            return None
        return "Email" if existing.email == data.email else "Pseudo"

    async def register(self, data: RegisterRequest) -> User:
        field = await self.find_registration_conflict(data)
        if field:
            raise Conflict(f"{field} already registered")

        user = User(
            pseudo=data.pseudo,
            email=data.email,
            password_hash=hash_password(data.password, rounds=self.settings.bcrypt_rounds),
            role=Role.MEMBER.value,
            avatar=data.avatar or None,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent registration took the email or pseudo after the check.
            await self.db.rollback()
            logger.info("auth.register_conflict", pseudo=data.pseudo)
            field = await self.find_registration_conflict(data)
            raise Conflict(f"{field or 'Email or pseudo'} already registered")
        await self.db.refresh(user)
        logger.info("auth.user_registered", user_id=user.id)
        return user

    # ─── Login ──────────────────────────────────────────

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid credentials, else raise InvalidCredentials."""
        user = await self.get_user_by_email(email)
        password_hash = user.password_hash if user else dummy_hash(self.settings.bcrypt_rounds)
        password_ok = verify_password(password, password_hash)

        if not user or not password_ok:
            logger.info("auth.login_failed", known_user=user is not None)
            raise InvalidCredentials()
        return user

    async def login(self, email: str, password: str) -> TokenPair:
        user = await self.authenticate(email, password)
        tokens = await self.issuer.issue_tokens(user)
        await self.db.commit()
        logger.info("auth.login_succeeded", user_id=user.id)
        return tokens

    # ─── Refresh (rotation) ─────────────────────────────

    async def refresh(self, refresh_token: Optional[str]) -> TokenPair:
        if not refresh_token or not refresh_token.strip():
            raise InvalidOrExpiredToken("Refresh token missing")

        consumed = await self.store.consume(refresh_token)
        if consumed is None:
            logger.info("auth.refresh_rejected", reason="unknown")
            raise InvalidOrExpiredToken("Invalid or expired refresh token")

        if consumed.is_expired():
            await self.db.commit()
            logger.info("auth.refresh_rejected", reason="expired", user_id=consumed.user_id)
            raise InvalidOrExpiredToken("Invalid or expired refresh token")

        user = await self.get_user(consumed.user_id)
        if user is None:
            await self.db.commit()
            logger.warning("auth.refresh_rejected", reason="user_missing", user_id=consumed.user_id)
            raise InvalidOrExpiredToken("Invalid or expired refresh token")

        tokens = await self.issuer.issue_tokens(user)
        await self.db.commit()
        logger.info("auth.refresh_succeeded", user_id=user.id)
        return tokens

    # ─── Logout ─────────────────────────────────────────

    async def logout(self, refresh_token: Optional[str]) -> bool:
        """Best-effort revocation of the presented refresh token.

        Logout must succeed whatever state the store is in, so a store
        failure is logged and reported as "nothing revoked".
        """
        if not refresh_token or not refresh_token.strip():
            return False
        try:
            deleted = await self.store.delete(refresh_token)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning("auth.logout_revoke_failed", error=str(e))
            return False
        if deleted:
            logger.info("auth.logout_revoked")
        return deleted

    async def logout_everywhere(self, user_id: int) -> int:
        """Revoke every refresh token of a user."""
        count = await self.store.delete_for_user(user_id)
        await self.db.commit()
        logger.info("auth.sessions_revoked", user_id=user_id, count=count)
        return count
