"""Test fixtures — one app and one SQLite database file per test.

Learn: Every test builds its own app through create_app() with explicit
Settings (a per-test secret and database), so nothing leaks between tests
through module globals. Tables are created with create_all instead of
Alembic; the models are the single source of truth for both.

ASGITransport does not run the lifespan, so Redis is never initialised and
the rate limiter stays out of the way.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tokengate.auth.jwt import AccessClaims
from tokengate.auth.password import hash_password
from tokengate.config import Settings
from tokengate.db.engine import create_schema
from tokengate.db.models import Role, User
from tokengate.main import create_app
from tokengate.services.refresh_store import RefreshTokenStore

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
TEST_PASSWORD = "P4$$w0rdtest"
TEST_ROUNDS = 4


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tokengate.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=TEST_ROUNDS,
        environment="development",
    )


@pytest_asyncio.fixture()
async def app(settings):
    app = create_app(settings)
    await create_schema(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    """A session of the test's own, next to the ones the app opens per request."""
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture()
def codec(app):
    return app.state.codec


@pytest.fixture()
def make_user(db_session):
    async def _make(
        email: str = "john@doe.io",
        password: str = TEST_PASSWORD,
        role: Role = Role.MEMBER,
        pseudo: str | None = None,
    ) -> User:
        user = User(
            pseudo=pseudo or email.split("@")[0],
            email=email,
            password_hash=hash_password(password, rounds=TEST_ROUNDS),
            role=role.value,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_refresh_token(db_session):
    async def _make(user: User, token: str = "12345", expires_in: timedelta = timedelta(days=7)):
        row = await RefreshTokenStore(db_session).create(
            token=token,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + expires_in,
        )
        await db_session.commit()
        return row

    return _make


@pytest.fixture()
def auth_headers(codec):
    """Cookie header carrying a freshly signed access token for a user."""

    def _headers(user: User, role: Role | None = None) -> dict[str, str]:
        claims = AccessClaims(id=user.id, role=role or Role(user.role))
        return {"Cookie": f"accessToken={codec.sign(claims)}"}

    return _headers
