"""Tests for the admin authentication boundary."""
import pytest
from httpx import AsyncClient

from tests.conftest import ADMIN_HEADERS, BAD_ADMIN_HEADERS


@pytest.mark.asyncio
async def test_login_returns_token(client: AsyncClient):
    resp = await client.post(
        "/api/admin/login", json={"username": "admin", "password": "test-password"}
    )
    assert resp.status_code == 200
    assert resp.json()["token"] == "test-admin-token"


@pytest.mark.asyncio
async def test_login_rejects_bad_password(client: AsyncClient):
    resp = await client.post(
        "/api/admin/login", json={"username": "admin", "password": "nope"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_status_reflects_token(client: AsyncClient):
    resp = await client.get("/api/admin/status", headers=ADMIN_HEADERS)
    assert resp.json() == {"is_admin": True}

    resp = await client.get("/api/admin/status")
    assert resp.json() == {"is_admin": False}


@pytest.mark.asyncio
async def test_logout_is_stateless(client: AsyncClient):
    resp = await client.post("/api/admin/logout")
    assert resp.status_code == 200
    assert resp.json()["success"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/admin/case-studies"),
        ("get", "/api/admin/content/sections"),
        ("get", "/api/contact/submissions"),
        ("get", "/api/admin/knowledge-base/documents"),
        ("post", "/api/admin/ai/sessions"),
    ],
)
async def test_admin_routes_require_token(client: AsyncClient, method: str, path: str):
    resp = await getattr(client, method)(path)
    assert resp.status_code == 401

    resp = await getattr(client, method)(path, headers=BAD_ADMIN_HEADERS)
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_public_routes_do_not_require_token(client: AsyncClient):
    resp = await client.get("/api/portfolio/case-studies")
    assert resp.status_code == 200
    assert resp.json() == []
