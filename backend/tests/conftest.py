"""Test fixtures — in-memory object store, fake auth stream, SQLite session store, API client."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from filebox.models.base import Base
from filebox.services import Services
from filebox.services.accounts import AccountController
from filebox.services.auth_session import Identity
from filebox.services.catalog import FileCatalog
from filebox.services.errors import NotFound, ProviderUnavailable
from filebox.services.object_store import StoredObject
from filebox.services.session_gate import SessionGate


def make_identity(uid: str = "u1") -> Identity:
    return Identity(
        uid=uid,
        email=f"{uid}@example.com",
        id_token=f"id-{uid}",
        refresh_token=f"rt-{uid}",
    )


class InMemoryObjectStore:
    """Object store double with failure injection and pausable calls."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.holds: dict[str, asyncio.Event] = {}
        self.started: dict[str, asyncio.Event] = {}

    def fail(self, op: str, key: str = "*", error: Exception | None = None) -> None:
        self.failures[(op, key)] = error or ProviderUnavailable(f"{op} {key} failed")

    def heal(self) -> None:
        self.failures.clear()

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)

    def hold(self, op: str) -> asyncio.Event:
        """Make every `op` call wait until the returned event is set."""
        self.holds[op] = asyncio.Event()
        self.started[op] = asyncio.Event()
        return self.holds[op]

    async def wait_started(self, op: str) -> None:
        await self.started.setdefault(op, asyncio.Event()).wait()

    async def _enter(self, op: str, key: str) -> None:
        self.calls.append((op, key))
        self.started.setdefault(op, asyncio.Event()).set()
        hold = self.holds.get(op)
        if hold is not None:
            await hold.wait()
        await asyncio.sleep(0)
        error = self.failures.get((op, key)) or self.failures.get((op, "*"))
        if error is not None:
            raise error

    async def list(self, prefix: str) -> list[StoredObject]:
        snapshot = [
            StoredObject(key=key)
            for key in self.objects
            if key.startswith(prefix) and "/" not in key[len(prefix):]
        ]
        await self._enter("list", prefix)
        return snapshot

    async def upload(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        await self._enter("upload", key)
        self.objects[key] = data
        self.content_types[key] = content_type

    async def get_locator(self, key: str) -> str:
        await self._enter("get_locator", key)
        if key not in self.objects:
            raise NotFound(key)
        return f"memory://{key}"

    async def download(self, locator: str) -> bytes:
        await self._enter("download", locator)
        key = locator.removeprefix("memory://")
        if key not in self.objects:
            raise NotFound(key)
        return self.objects[key]

    async def delete(self, key: str) -> None:
        await self._enter("delete", key)
        if key not in self.objects:
            raise NotFound(key)
        del self.objects[key]


class FakeAuthSession:
    """Identity stream double; sign-in/out just emit."""

    def __init__(self, identity: Identity | None = None):
        self.identity = identity
        self._listeners = []

    def subscribe(self, callback):
        self._listeners.append(callback)
        callback(self.identity)

        def _unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, identity: Identity | None) -> None:
        self.identity = identity
        for callback in list(self._listeners):
            callback(identity)

    async def sign_up(self, email: str, password: str) -> Identity:
        return await self.sign_in(email, password)

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = make_identity(email.split("@")[0])
        self.emit(identity)
        return identity

    async def sign_out(self) -> None:
        self.emit(None)


@pytest.fixture
def store():
    return InMemoryObjectStore()


@pytest.fixture
def catalog(store):
    return FileCatalog(store)


@pytest.fixture
def signed_in(catalog):
    """Catalog attached to uid ``u1``."""
    catalog.attach(make_identity("u1"))
    return catalog


@pytest.fixture
def fake_auth():
    return FakeAuthSession()


@pytest_asyncio.fixture
async def session_factory():
    """Async in-memory SQLite session factory."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def services(fake_auth, catalog):
    gate = SessionGate(fake_auth, catalog)
    gate.start()
    return Services(
        auth=fake_auth,
        catalog=catalog,
        gate=gate,
        accounts=AccountController(fake_auth),
    )


@pytest_asyncio.fixture
async def client(services):
    """Async test client with fake services wired in."""
    from filebox.main import create_app

    app = create_app()
    app.state.services = services

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    await services.gate.close()
