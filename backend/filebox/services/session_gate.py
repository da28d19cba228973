"""Session gate — turns identity changes into catalog attach / load / clear."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Protocol

if TYPE_CHECKING:
    from filebox.services.auth_session import Identity, IdentityListener
    from filebox.services.catalog import FileCatalog

logger = logging.getLogger(__name__)


class IdentityStream(Protocol):
    def subscribe(self, callback: IdentityListener) -> Callable[[], None]: ...


class SessionGate:
    """Subscribes once to the identity stream and keeps the catalog in step."""

    def __init__(self, auth: IdentityStream, catalog: FileCatalog):
        self._auth = auth
        self._catalog = catalog
        self._unsubscribe: Callable[[], None] | None = None
        self._loaded_for: str | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_authenticated(self) -> bool:
        return self._catalog.identity is not None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._auth.subscribe(self._on_identity)
        logger.info("Session gate started")

    async def close(self) -> None:
        """Unsubscribe and wait for any load this gate started."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.wait_idle()
        logger.info("Session gate stopped")

    async def wait_idle(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _on_identity(self, identity: Identity | None) -> None:
        if identity is None:
            self._loaded_for = None
            self._catalog.clear()
            return

        self._catalog.attach(identity)
        if self._loaded_for == identity.uid:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop — initial load for uid=%s skipped", identity.uid)
            return

        self._loaded_for = identity.uid
        task = loop.create_task(self._catalog.load())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
