"""User directory routes.

Learn: Two access patterns on top of the auth dependencies:
- GET /users       → admin only (role gate)
- GET /users/{id}  → soft auth; anonymous callers get the public profile,
                     the user themself and admins also see the email
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.auth.dependencies import OptionalIdentity, require_roles
from tokengate.db.engine import get_db
from tokengate.db.models import Role, User
from tokengate.schemas.auth import PublicUserRead, UserRead

router = APIRouter(prefix="/users")


@router.get(
    "",
    response_model=list[UserRead],
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def list_users(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


@router.get("/{user_id}", response_model=PublicUserRead)
async def get_user(user_id: int, identity: OptionalIdentity, db: AsyncSession = Depends(get_db)):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    profile = PublicUserRead.model_validate(user)
    can_see_email = identity is not None and (
        identity.id == user.id or identity.role == Role.ADMIN
    )
    if not can_see_email:
        profile = profile.model_copy(update={"email": None})
    return profile
