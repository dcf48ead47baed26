"""Pydantic schemas for registration, login and issued tokens.

Learn: Pydantic v2 models validate request/response data. Token payloads
are serialized with camelCase aliases (accessToken, expiresInMS) because
that is the shape browser clients already consume.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tokengate.db.models import Role

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ─── Registration / login ───────────────────────────────

class RegisterRequest(BaseModel):
    pseudo: str = Field(..., min_length=2, max_length=50)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)
    confirm: str
    avatar: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm:
            raise ValueError("Password confirmation does not match")
        return self


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


# ─── Users ──────────────────────────────────────────────

class UserRead(BaseModel):
    id: int
    pseudo: str
    email: str
    role: Role
    avatar: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PublicUserRead(BaseModel):
    """Profile as seen by other users; email only for self/admin."""
    id: int
    pseudo: str
    role: Role
    avatar: Optional[str] = None
    email: Optional[str] = None

    model_config = {"from_attributes": True}


class RegisterResponse(BaseModel):
    user: UserRead


# ─── Tokens ─────────────────────────────────────────────

class IssuedToken(BaseModel):
    token: str
    type: str = "Bearer"
    expires_in_ms: int = Field(alias="expiresInMS")

    model_config = ConfigDict(populate_by_name=True)


class TokenPair(BaseModel):
    access_token: IssuedToken = Field(alias="accessToken")
    refresh_token: IssuedToken = Field(alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class AccessTokenResponse(BaseModel):
    """Body of login/refresh. The refresh token only travels as a cookie."""
    access_token: IssuedToken = Field(alias="accessToken")

    model_config = ConfigDict(populate_by_name=True)
