"""Refresh token store — persistence for opaque refresh tokens.

Learn: Every mutation is a single statement keyed by token value or user
id, so correctness rests on the database's own row-level atomicity.

consume() is the one place that needs a transactional guarantee: it
deletes the row and returns it in one DELETE ... RETURNING. Two requests
racing with the same value cannot both get the row back; the loser sees
None, exactly as if the token had never existed.

The store never commits. The caller owns the transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.db.models import RefreshToken, TokenType, as_utc, utcnow


@dataclass(frozen=True)
class ConsumedToken:
    """Snapshot of a refresh-token row removed by consume()."""

    user_id: int
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at <= (now or utcnow())


class RefreshTokenStore:
    """Refresh-token rows, looked up by exact token value and type."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        token: str,
        user_id: int,
        expires_at: datetime,
        token_type: TokenType = TokenType.REFRESH,
    ) -> RefreshToken:
        row = RefreshToken(
            token=token,
            user_id=user_id,
            token_type=token_type.value,
            expires_at=expires_at,
        )
        self.db.add(row)
        await self.db.flush()
        return row

    async def find(
        self, token: str, token_type: TokenType = TokenType.REFRESH
    ) -> Optional[RefreshToken]:
        result = await self.db.execute(
            select(RefreshToken).where(
                RefreshToken.token == token,
                RefreshToken.token_type == token_type.value,
            )
        )
        return result.scalars().first()

    async def consume(
        self, token: str, token_type: TokenType = TokenType.REFRESH
    ) -> Optional[ConsumedToken]:
        """Atomically delete the row for this value and return what it held.

        Expired rows are consumed too; checking expiry is the caller's job,
        and the row is gone either way.
        """
        result = await self.db.execute(
            delete(RefreshToken)
            .where(
                RefreshToken.token == token,
                RefreshToken.token_type == token_type.value,
            )
            .returning(RefreshToken.user_id, RefreshToken.expires_at)
            .execution_options(synchronize_session=False)
        )
        row = result.first()
        if row is None:
            return None
        return ConsumedToken(user_id=row.user_id, expires_at=as_utc(row.expires_at))

    async def delete(self, token: str) -> bool:
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def delete_for_user(self, user_id: int) -> int:
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Remove rows that can no longer be used."""
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= (now or utcnow()))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def list_for_user(self, user_id: int) -> list[RefreshToken]:
        result = await self.db.execute(
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at)
        )
        return list(result.scalars().all())
