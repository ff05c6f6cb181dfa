"""Tests for knowledge-base upload, listing, analysis and search."""
import pytest
from httpx import AsyncClient

from tests.conftest import ADMIN_HEADERS

KB = "/api/admin/knowledge-base"

RESUME_TEXT = (
    "Senior product manager with ten years of experience leading platform teams. "
    "Launched an analytics product that increased revenue by 40 percent. "
    "Skilled in leadership, strategy and machine learning products."
)

ANALYSIS_REPLY = (
    "SUMMARY: Experienced product leader with a strong platform background.\n"
    'KEY_INSIGHTS: {"skills": ["leadership", "strategy"], "achievements": ["40% revenue growth"]}'
)


async def _upload(client: AsyncClient, name: str, body: bytes, category: str = "resume"):
    return await client.post(
        f"{KB}/upload",
        headers=ADMIN_HEADERS,
        data={"category": category},
        files=[("files", (name, body, "text/plain"))],
    )


@pytest.mark.asyncio
async def test_upload_txt_with_analysis(client: AsyncClient, llm_reply):
    prompts = llm_reply(ANALYSIS_REPLY)

    resp = await _upload(client, "resume.txt", RESUME_TEXT.encode())
    assert resp.status_code == 201
    data = resp.json()
    assert data["uploaded"] == 1
    assert data["failed"] == 0
    result = data["results"][0]
    assert result["status"] == "processed"
    assert result["summary"] == "Experienced product leader with a strong platform background."
    assert "resume document" in prompts[0]

    resp = await client.get(f"{KB}/documents/{result['document_id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    doc = resp.json()
    assert doc["content_text"] == RESUME_TEXT
    assert doc["content_type"] == "txt"
    assert doc["has_embedding"] is False
    assert doc["key_insights"]["skills"] == ["leadership", "strategy"]
    assert doc["metadata_json"]["word_count"] == len(RESUME_TEXT.split())


@pytest.mark.asyncio
async def test_upload_without_llm_keeps_document(client: AsyncClient):
    resp = await _upload(client, "notes.txt", RESUME_TEXT.encode(), category="career_plan")
    assert resp.status_code == 201
    result = resp.json()["results"][0]
    assert result["status"] == "processed"
    assert result["summary"] == "Document uploaded successfully. Analysis pending."

    resp = await client.get(f"{KB}/documents/{result['document_id']}/analysis", headers=ADMIN_HEADERS)
    assert resp.json()["key_insights"]["status"] == "analysis_failed"


@pytest.mark.asyncio
async def test_upload_empty_file_marks_failed(client: AsyncClient):
    resp = await _upload(client, "empty.txt", b"   ")
    assert resp.status_code == 201
    data = resp.json()
    assert data["uploaded"] == 0
    assert data["failed"] == 1
    assert data["results"][0]["status"] == "failed"
    assert data["results"][0]["error"].startswith("Failed to process document")


@pytest.mark.asyncio
async def test_upload_unsupported_type(client: AsyncClient):
    resp = await client.post(
        f"{KB}/upload",
        headers=ADMIN_HEADERS,
        data={"category": "resume"},
        files=[("files", ("photo.png", b"\x89PNG", "image/png"))],
    )
    assert resp.status_code == 400
    assert "Unsupported file type" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_upload_too_large(client: AsyncClient, monkeypatch):
    from app.config import settings

    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 10)
    resp = await _upload(client, "big.txt", b"x" * 100)
    assert resp.status_code == 413


@pytest.mark.asyncio
async def test_list_stats_and_delete(client: AsyncClient):
    await _upload(client, "a.txt", RESUME_TEXT.encode(), category="resume")
    await _upload(client, "b.txt", RESUME_TEXT.encode(), category="cover_letter")

    resp = await client.get(f"{KB}/documents", headers=ADMIN_HEADERS)
    assert len(resp.json()) == 2

    resp = await client.get(f"{KB}/documents", params={"category": "resume"}, headers=ADMIN_HEADERS)
    docs = resp.json()
    assert [d["original_name"] for d in docs] == ["a.txt"]

    resp = await client.get(f"{KB}/stats", headers=ADMIN_HEADERS)
    stats = resp.json()
    assert stats["total_documents"] == 2
    assert stats["embedded_documents"] == 0
    assert stats["by_category"] == {"resume": 1, "cover_letter": 1}
    assert stats["by_status"] == {"processed": 2}

    resp = await client.delete(f"{KB}/documents/{docs[0]['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 204
    resp = await client.get(f"{KB}/documents/{docs[0]['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_categories_seeded_once(client: AsyncClient):
    resp = await client.get(f"{KB}/categories", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    names = {c["name"] for c in resp.json()}
    assert {"resume", "interview_transcript", "career_plan"} <= names
    assert len(names) == 6

    resp = await client.post(f"{KB}/categories/initialize", headers=ADMIN_HEADERS)
    assert len(resp.json()) == 6


@pytest.mark.asyncio
async def test_search_falls_back_to_keywords(client: AsyncClient):
    await _upload(client, "resume.txt", RESUME_TEXT.encode())

    resp = await client.get(f"{KB}/search", params={"q": "leadership strategy"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["query"] == "leadership strategy"
    assert data["results"][0]["match_type"] == "keyword"
    assert data["results"][0]["original_name"] == "resume.txt"
    assert data["context"] == ""


@pytest.mark.asyncio
async def test_analyze_document(client: AsyncClient, llm_reply):
    resp = await _upload(client, "resume.txt", RESUME_TEXT.encode())
    doc_id = resp.json()["results"][0]["document_id"]

    llm_reply(
        "Overall Score (1-10): 8\n\n"
        "Strengths:\n- Clear impact metrics\n- Leadership scope\n\n"
        "Areas for Improvement:\n- Add a skills section\n"
    )
    resp = await client.post(
        f"{KB}/documents/{doc_id}/analyze",
        json={"analysis_type": "resume_analysis"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    analysis = resp.json()
    assert analysis["score"] == 8
    assert analysis["strengths"] == ["Clear impact metrics", "Leadership scope"]
    assert analysis["improvements"] == ["Add a skills section"]
    assert analysis["model_used"] == "test-model"

    resp = await client.get(f"{KB}/documents/{doc_id}/analyses", headers=ADMIN_HEADERS)
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_analyze_without_llm_returns_503(client: AsyncClient):
    resp = await _upload(client, "resume.txt", RESUME_TEXT.encode())
    doc_id = resp.json()["results"][0]["document_id"]

    resp = await client.post(f"{KB}/documents/{doc_id}/analyze", json={}, headers=ADMIN_HEADERS)
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_analyze_missing_document(client: AsyncClient):
    resp = await client.post(f"{KB}/documents/999/analyze", json={}, headers=ADMIN_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_embed_job_status_idle(client: AsyncClient):
    resp = await client.get(f"{KB}/embed-all/status", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["phase"] in {"idle", "completed", "failed"}
