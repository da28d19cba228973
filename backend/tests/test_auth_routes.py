"""Tests for auth routes — sign-in drives the catalog through the session gate."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from filebox.services import errors
from filebox.services.errors import AuthError, ProviderUnavailable


@pytest.mark.asyncio
async def test_me_signed_out(client: AsyncClient):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_sign_in_loads_catalog(client: AsyncClient, services, store):
    store.objects = {"uploads/u1/a.jpg": b"1", "uploads/u2/b.jpg": b"2"}

    resp = await client.post("/api/auth/signin", json={"email": "u1@example.com", "password": "secret1"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Signed in."
    await services.gate.wait_idle()

    me = await client.get("/api/auth/me")
    assert me.json() == {"uid": "u1", "email": "u1@example.com"}

    files = await client.get("/api/files")
    assert [r["id"] for r in files.json()["records"]] == ["uploads/u1/a.jpg"]


@pytest.mark.asyncio
async def test_sign_out_clears_catalog(client: AsyncClient, services, store):
    store.objects = {"uploads/u1/a.jpg": b"1"}
    await client.post("/api/auth/signin", json={"email": "u1@example.com", "password": "secret1"})
    await services.gate.wait_idle()

    resp = await client.post("/api/auth/signout")
    assert resp.status_code == 200

    files = await client.get("/api/files")
    assert files.json() == {"busy": False, "records": []}
    assert (await client.get("/api/auth/me")).json() is None


@pytest.mark.asyncio
async def test_sign_up_password_mismatch(client: AsyncClient):
    resp = await client.post(
        "/api/auth/signup",
        json={"email": "n@example.com", "password": "secret1", "confirm_password": "secret2"},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Passwords do not match."


@pytest.mark.asyncio
async def test_sign_up_signs_in(client: AsyncClient, services):
    resp = await client.post(
        "/api/auth/signup",
        json={"email": "new@example.com", "password": "secret1", "confirm_password": "secret1"},
    )
    assert resp.status_code == 200
    await services.gate.wait_idle()
    assert services.gate.is_authenticated is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, status_code, detail",
    [
        (AuthError(errors.INVALID_CREDENTIALS), 400, "Invalid email or password."),
        (AuthError(errors.TOO_MANY_REQUESTS), 429, "Too many sign-in attempts. Try again later."),
        (ProviderUnavailable("offline"), 502, "Could not sign in. Check your email and password."),
    ],
)
async def test_sign_in_errors(client: AsyncClient, fake_auth, error, status_code, detail):
    fake_auth.sign_in = AsyncMock(side_effect=error)

    resp = await client.post("/api/auth/signin", json={"email": "a@example.com", "password": "x"})
    assert resp.status_code == status_code
    assert resp.json()["detail"] == detail
