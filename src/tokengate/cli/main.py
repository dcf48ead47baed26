"""tokengate CLI — maintenance commands over users and refresh tokens.

Usage:
    tokengate purge-expired                  # Delete expired refresh tokens
    tokengate sessions john@doe.io           # List a user's refresh tokens
    tokengate revoke-sessions john@doe.io    # Log a user out everywhere
    tokengate set-role john@doe.io admin     # Change a user's role
    tokengate mint-token john@doe.io         # Print a 1h access token

Reads the same TOKENGATE_* environment as the server.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.auth.issuer import TokenIssuer
from tokengate.auth.jwt import TokenCodec
from tokengate.config import Settings, get_settings
from tokengate.db.engine import build_engine, build_session_factory
from tokengate.db.models import Role, User, as_utc
from tokengate.errors import ConfigurationError
from tokengate.logging import configure_logging
from tokengate.services.refresh_store import RefreshTokenStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _with_session(settings: Settings, fn):
    """Open an engine for one command, run fn(session), dispose the engine."""
    engine = build_engine(settings)
    try:
        async with build_session_factory(engine)() as session:
            return await fn(session)
    finally:
        await engine.dispose()


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.pass_context
def cli(ctx: click.Context):
    """tokengate — manage sessions and users from the command line."""
    if ctx.obj is None:
        ctx.obj = get_settings()
    configure_logging(ctx.obj)


@cli.command("purge-expired")
@click.pass_obj
def purge_expired(settings: Settings):
    """Delete refresh tokens whose expiry has passed."""

    async def _purge(session: AsyncSession) -> int:
        count = await RefreshTokenStore(session).purge_expired()
        await session.commit()
        return count

    count = _run(_with_session(settings, _purge))
    click.echo(f"Deleted {count} expired refresh token(s)")


@cli.command("revoke-sessions")
@click.argument("email")
@click.pass_obj
def revoke_sessions(settings: Settings, email: str):
    """Delete every refresh token of a user (logout everywhere)."""

    async def _revoke(session: AsyncSession) -> int | None:
        store = RefreshTokenStore(session)
        user = await _find_user(session, email)
        if user is None:
            return None
        count = await store.delete_for_user(user.id)
        await session.commit()
        return count

    count = _run(_with_session(settings, _revoke))
    if count is None:
        _fail(f"no user with email {email}")
    click.echo(f"Revoked {count} session(s) for {email}")


@cli.command("sessions")
@click.argument("email")
@click.pass_obj
def sessions(settings: Settings, email: str):
    """List a user's refresh tokens (one line per logged-in device)."""

    async def _list(session: AsyncSession):
        user = await _find_user(session, email)
        if user is None:
            return None
        return await RefreshTokenStore(session).list_for_user(user.id)

    rows = _run(_with_session(settings, _list))
    if rows is None:
        _fail(f"no user with email {email}")
    if not rows:
        click.echo(f"No sessions for {email}")
        return
    for row in rows:
        state = click.style("expired", fg="yellow") if row.is_expired else "active"
        click.echo(f"{row.id:>6}  {row.token[:8]}...  expires {as_utc(row.expires_at):%Y-%m-%d %H:%M}Z  {state}")


@cli.command("set-role")
@click.argument("email")
@click.argument("role", type=click.Choice([r.value for r in Role]))
@click.pass_obj
def set_role(settings: Settings, email: str, role: str):
    """Change a user's role. Takes effect on their next token issuance."""

    async def _set(session: AsyncSession) -> bool:
        user = await _find_user(session, email)
        if user is None:
            return False
        user.role = Role(role).value
        await session.commit()
        return True

    if not _run(_with_session(settings, _set)):
        _fail(f"no user with email {email}")
    click.echo(f"{email} is now {role}")


@cli.command("mint-token")
@click.argument("email")
@click.pass_obj
def mint_token(settings: Settings, email: str):
    """Print an access token for a user without opening a session.

    No refresh token is stored, so the session window is not extended.
    """
    try:
        codec = TokenCodec.from_settings(settings)
    except ConfigurationError as e:
        _fail(str(e))

    async def _mint(session: AsyncSession) -> str | None:
        user = await _find_user(session, email)
        if user is None:
            return None
        issuer = TokenIssuer(codec, RefreshTokenStore(session), settings)
        return issuer.issue_access_token_only(user).token

    token = _run(_with_session(settings, _mint))
    if token is None:
        _fail(f"no user with email {email}")
    click.echo(token)


async def _find_user(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalars().first()


if __name__ == "__main__":
    cli()
