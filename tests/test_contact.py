"""Tests for the contact form and its admin views."""
import pytest
from httpx import AsyncClient

from tests.conftest import ADMIN_HEADERS

VALID_SUBMISSION = {
    "name": "Jordan Lee",
    "email": "jordan@example.com",
    "company": "Acme",
    "message": "I would like to talk about a product strategy engagement.",
}


@pytest.mark.asyncio
async def test_submit_contact(client: AsyncClient):
    resp = await client.post("/api/contact", json=VALID_SUBMISSION)
    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Thank you for your message! I will get back to you soon."
    assert isinstance(data["id"], int)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field,value",
    [
        ("name", "J"),
        ("email", "not-an-email"),
        ("email", "jo@example..com"),
        ("email", "@example.com"),
        ("message", "too short"),
    ],
)
async def test_submit_contact_validation(client: AsyncClient, field: str, value: str):
    payload = {**VALID_SUBMISSION, field: value}
    resp = await client.post("/api/contact", json=payload)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_project_type_defaults(client: AsyncClient):
    await client.post("/api/contact", json=VALID_SUBMISSION)
    resp = await client.get("/api/contact/submissions", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    rows = resp.json()
    assert len(rows) == 1
    assert rows[0]["project_type"] == "General Inquiry"


@pytest.mark.asyncio
async def test_export_csv(client: AsyncClient):
    await client.post("/api/contact", json=VALID_SUBMISSION)
    resp = await client.get("/api/contact/submissions/export", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0] == "id,name,email,company,project_type,message,submitted_at"
    assert "jordan@example.com" in lines[1]


@pytest.mark.asyncio
async def test_delete_submission(client: AsyncClient):
    resp = await client.post("/api/contact", json=VALID_SUBMISSION)
    submission_id = resp.json()["id"]

    resp = await client.delete(
        f"/api/contact/submissions/{submission_id}", headers=ADMIN_HEADERS
    )
    assert resp.status_code == 204

    resp = await client.delete(
        f"/api/contact/submissions/{submission_id}", headers=ADMIN_HEADERS
    )
    assert resp.status_code == 404
