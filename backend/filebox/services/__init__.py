"""Service wiring — builds the auth session, catalog and gate for one app."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from filebox.config import Settings
    from filebox.services.accounts import AccountController
    from filebox.services.auth_session import FirebaseAuthSession
    from filebox.services.catalog import FileCatalog
    from filebox.services.session_gate import SessionGate

logger = logging.getLogger(__name__)


@dataclass
class Services:
    auth: FirebaseAuthSession
    catalog: FileCatalog
    gate: SessionGate
    accounts: AccountController


async def init_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> Services:
    """Create the provider clients and wire them to the catalog."""
    from filebox.services.accounts import AccountController
    from filebox.services.auth_session import FirebaseAuthSession
    from filebox.services.catalog import FileCatalog
    from filebox.services.object_store import FirebaseObjectStore
    from filebox.services.session_gate import SessionGate
    from filebox.services.session_store import SessionStore

    if not settings.api_key or not settings.storage_bucket:
        logger.warning(
            "Firebase project not configured (FILEBOX_API_KEY / FILEBOX_STORAGE_BUCKET) — "
            "provider calls will fail"
        )

    auth = FirebaseAuthSession(
        api_key=settings.api_key,
        auth_url=settings.auth_url,
        token_url=settings.token_url,
        session_store=SessionStore(session_factory),
        timeout=settings.request_timeout_seconds,
    )
    store = FirebaseObjectStore(
        bucket=settings.storage_bucket,
        base_url=settings.storage_url,
        token_provider=auth.get_id_token,
        timeout=settings.request_timeout_seconds,
        page_size=settings.list_page_size,
    )
    catalog = FileCatalog(
        store,
        upload_root=settings.upload_root,
        collision_policy=settings.collision_policy,
    )
    gate = SessionGate(auth, catalog)
    gate.start()
    await auth.restore()

    logger.info("Services initialized (bucket=%s)", settings.storage_bucket or "-")
    return Services(
        auth=auth,
        catalog=catalog,
        gate=gate,
        accounts=AccountController(auth),
    )


async def shutdown_services(services: Services) -> None:
    """Stop listening for identity changes and let pending loads settle."""
    await services.gate.close()
