"""Persists the signed-in identity so a restart resumes the session."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from filebox.models.stored_session import StoredSession
from filebox.services.auth_session import Identity

logger = logging.getLogger(__name__)

CURRENT = "current"


class SessionStore:
    """Single-row session persistence backed by SQLite."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load(self) -> Identity | None:
        async with self._session_factory() as db:
            row = (
                await db.execute(select(StoredSession).where(StoredSession.id == CURRENT))
            ).scalar_one_or_none()
        if row is None:
            return None
        return Identity(
            uid=row.uid,
            email=row.email,
            id_token=row.id_token,
            refresh_token=row.refresh_token,
        )

    async def save(self, identity: Identity) -> None:
        async with self._session_factory() as db:
            row = await db.get(StoredSession, CURRENT)
            if row is None:
                row = StoredSession(id=CURRENT)
                db.add(row)
            row.uid = identity.uid
            row.email = identity.email
            row.id_token = identity.id_token
            row.refresh_token = identity.refresh_token
            await db.commit()
        logger.debug("Session stored for uid=%s", identity.uid)

    async def clear(self) -> None:
        async with self._session_factory() as db:
            await db.execute(delete(StoredSession))
            await db.commit()
        logger.debug("Stored session cleared")
