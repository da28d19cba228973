"""Test health check endpoints."""

import pytest
from httpx import AsyncClient

from conftest import make_identity


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "filebox"
    assert data["authenticated"] is False
    assert "version" in data


@pytest.mark.asyncio
async def test_health_reports_session(client: AsyncClient, fake_auth, services):
    fake_auth.emit(make_identity("u1"))
    await services.gate.wait_idle()

    resp = await client.get("/api/health")
    assert resp.json()["authenticated"] is True


@pytest.mark.asyncio
async def test_ping(client: AsyncClient):
    resp = await client.get("/api/ping")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
