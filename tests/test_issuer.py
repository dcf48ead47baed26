"""Token issuer tests."""

import base64

import pytest

from tokengate.auth.issuer import TokenIssuer
from tokengate.db.models import Role
from tokengate.services.refresh_store import RefreshTokenStore


@pytest.mark.asyncio
async def test_issue_tokens_persists_refresh_row(db_session, codec, settings, make_user):
    user = await make_user(role=Role.ADMIN)
    store = RefreshTokenStore(db_session)

    tokens = await TokenIssuer(codec, store, settings).issue_tokens(user)
    await db_session.commit()

    assert tokens.access_token.type == "Bearer"
    assert tokens.access_token.expires_in_ms == 60 * 60 * 1000
    assert tokens.refresh_token.expires_in_ms == 7 * 24 * 60 * 60 * 1000

    claims = codec.verify(tokens.access_token.token)
    assert claims.id == user.id
    assert claims.role == Role.ADMIN

    row = await store.find(tokens.refresh_token.token)
    assert row is not None
    assert row.user_id == user.id


@pytest.mark.asyncio
async def test_refresh_value_is_128_random_bytes(db_session, codec, settings, make_user):
    user = await make_user()
    issuer = TokenIssuer(codec, RefreshTokenStore(db_session), settings)

    first = (await issuer.issue_tokens(user)).refresh_token.token
    second = (await issuer.issue_tokens(user)).refresh_token.token

    assert first != second
    padded = first + "=" * (-len(first) % 4)
    assert len(base64.urlsafe_b64decode(padded)) == 128


@pytest.mark.asyncio
async def test_access_token_only_stores_nothing(db_session, codec, settings, make_user):
    user = await make_user()
    store = RefreshTokenStore(db_session)

    issued = TokenIssuer(codec, store, settings).issue_access_token_only(user)

    assert codec.verify(issued.token).id == user.id
    assert await store.list_for_user(user.id) == []


@pytest.mark.asyncio
async def test_issued_token_serializes_with_client_field_names(db_session, codec, settings, make_user):
    user = await make_user()
    issued = TokenIssuer(codec, RefreshTokenStore(db_session), settings).issue_access_token_only(user)

    body = issued.model_dump(by_alias=True)
    assert set(body) == {"token", "type", "expiresInMS"}
