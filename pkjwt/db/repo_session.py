"""Repository for server-side browser sessions."""

import secrets

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pkjwt.db.models_session import AuthSessionEntity
from pkjwt.oidc.types import EstablishedLogin, PendingLogin

SESSION_ID_BYTES = 32


def generate_session_id() -> str:
    """Generate an unguessable session identifier for the cookie."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


async def get_auth_session(
    session: AsyncSession, session_id: str
) -> AuthSessionEntity | None:
    """Look up a session by cookie value."""
    stmt = select(AuthSessionEntity).where(AuthSessionEntity.id == session_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_auth_session(session: AsyncSession) -> AuthSessionEntity:
    """Persist a new, empty session."""
    entity = AuthSessionEntity(id=generate_session_id())
    session.add(entity)
    await session.flush()
    return entity


async def store_pending_login(
    session: AsyncSession, entity: AuthSessionEntity, pending: PendingLogin
) -> None:
    """Remember the one-time values of a login attempt, replacing older ones."""
    entity.state = pending.state
    entity.nonce = pending.nonce
    entity.code_verifier = pending.code_verifier
    await session.flush()


def get_pending_login(entity: AuthSessionEntity) -> PendingLogin | None:
    """Return the pending login values, or None if no login is in progress."""
    if not entity.state or not entity.nonce or not entity.code_verifier:
        return None
    return PendingLogin(
        state=entity.state,
        nonce=entity.nonce,
        code_verifier=entity.code_verifier,
    )


async def establish_login(
    session: AsyncSession, entity: AuthSessionEntity, login: EstablishedLogin
) -> None:
    """Store tokens and claims and consume the one-time login values."""
    entity.id_token = login.id_token
    entity.access_token = login.access_token
    entity.claims = login.claims
    entity.state = None
    entity.nonce = None
    entity.code_verifier = None
    await session.flush()


async def delete_auth_session(session: AsyncSession, session_id: str) -> None:
    """Remove a session (logout)."""
    stmt = delete(AuthSessionEntity).where(AuthSessionEntity.id == session_id)
    await session.execute(stmt)
    await session.flush()
