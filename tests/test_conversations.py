"""Tests for the career-assistant conversation endpoints."""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import ConversationMemory, ConversationSession, KnowledgeBaseDocument
from app.services.conversation_manager import ConversationManager
from tests.conftest import ADMIN_HEADERS

BASE = "/api/admin/ai"


async def _start(client: AsyncClient, **body) -> dict:
    resp = await client.post(f"{BASE}/sessions", json=body or None, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    return resp.json()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_sessions_require_admin(client: AsyncClient):
    resp = await client.post(f"{BASE}/sessions")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_start_session_reuses_active_session(client: AsyncClient):
    first = await _start(client)
    assert first["user_id"] == "admin"
    assert first["session_type"] == "career_assistant"
    assert first["total_messages"] == 0
    assert first["is_active"] is True

    again = await _start(client)
    assert again["id"] == first["id"]

    other = await _start(client, session_type="interview_prep")
    assert other["id"] != first["id"]


@pytest.mark.asyncio
async def test_ended_session_is_not_reused(client: AsyncClient):
    first = await _start(client)
    resp = await client.post(f"{BASE}/sessions/{first['id']}/end", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    second = await _start(client)
    assert second["id"] != first["id"]


@pytest.mark.asyncio
async def test_unknown_session_404(client: AsyncClient):
    resp = await client.post(
        f"{BASE}/sessions/999/messages", json={"message": "hi"}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Session 999 not found"


# ---------------------------------------------------------------------------
# Chat turns
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_message_without_llm_stores_nothing(client: AsyncClient, db_session: AsyncSession):
    session = await _start(client)
    resp = await client.post(
        f"{BASE}/sessions/{session['id']}/messages",
        json={"message": "Help me improve my resume"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 503

    count = await db_session.scalar(select(func.count(ConversationMemory.id)))
    assert count == 0


@pytest.mark.asyncio
async def test_message_turn_stores_memories_and_summary(client: AsyncClient, llm_reply):
    prompts = llm_reply("Sure, let's tighten the summary section.")
    session = await _start(client)
    sid = session["id"]

    resp = await client.post(
        f"{BASE}/sessions/{sid}/messages",
        json={"message": "Help me improve my resume for remote work roles."},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    reply = resp.json()
    assert reply["role"] == "assistant"
    assert reply["content"] == "Sure, let's tighten the summary section."
    assert reply["model_used"] == "test-model"
    assert reply["session_id"] == sid
    assert "session_context" in reply["context_used"]
    assert prompts == ["Help me improve my resume for remote work roles."]

    history = (await client.get(f"{BASE}/sessions/{sid}/history", headers=ADMIN_HEADERS)).json()
    assert [m["memory_type"] for m in history] == ["user_input", "assistant_response"]
    assert history[0]["importance_score"] == 6
    assert history[1]["importance_score"] == 4

    stats = (await client.get(f"{BASE}/sessions/{sid}/stats", headers=ADMIN_HEADERS)).json()
    assert stats["session"]["total_messages"] == 2
    assert stats["session"]["context_summary"] == "Discussed: resume"
    # user + assistant + remote-work preference + resume goal
    assert stats["total_memories"] == 4
    assert stats["top_memories"][0]["memory_type"] == "goal"

    by_type = (await client.get(f"{BASE}/sessions/{sid}/memories/stats", headers=ADMIN_HEADERS)).json()
    assert by_type["by_type"] == {
        "user_input": 1,
        "assistant_response": 1,
        "preference": 1,
        "goal": 1,
    }


@pytest.mark.asyncio
async def test_second_turn_sends_running_summary(client: AsyncClient, llm_reply):
    prompts = llm_reply("Noted.")
    session = await _start(client)
    url = f"{BASE}/sessions/{session['id']}/messages"

    await client.post(url, json={"message": "Review my resume"}, headers=ADMIN_HEADERS)
    await client.post(url, json={"message": "What next?"}, headers=ADMIN_HEADERS)

    assert prompts[1] == "[Previous conversation context: Discussed: resume]\n\nWhat next?"


@pytest.mark.asyncio
async def test_memories_query_and_cleanup(client: AsyncClient, llm_reply):
    llm_reply("Happy to help.")
    session = await _start(client)
    sid = session["id"]
    await client.post(
        f"{BASE}/sessions/{sid}/messages",
        json={"message": "I want to become a product director."},
        headers=ADMIN_HEADERS,
    )

    resp = await client.get(
        f"{BASE}/sessions/{sid}/memories", params={"query": "director", "limit": 1},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()[0]["content"] == "Career goal: a product director"

    summary = (await client.get(f"{BASE}/sessions/{sid}/memories/summary", headers=ADMIN_HEADERS)).json()
    assert summary["summary"].startswith("goal: Career goal: a product director")

    resp = await client.delete(
        f"{BASE}/sessions/{sid}/memories", params={"days_old": 30}, headers=ADMIN_HEADERS
    )
    assert resp.json()["deleted"] == 0


# ---------------------------------------------------------------------------
# Insights & profile
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_insight_preview(client: AsyncClient):
    resp = await client.post(
        f"{BASE}/insights/preview",
        json={"user_message": "I prefer startups with strong python teams."},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    insights = resp.json()
    assert {"memory_type": "preference", "content": "prefer startups with strong python teams", "importance": 7} in insights
    assert any(i["content"] == "Has experience with python" for i in insights)


@pytest.mark.asyncio
async def test_profile_upsert(client: AsyncClient):
    resp = await client.get(f"{BASE}/profile", headers=ADMIN_HEADERS)
    assert resp.status_code == 404

    resp = await client.put(
        f"{BASE}/profile",
        json={"career_stage": "Senior", "target_roles": ["VP Product"]},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["communication_style"] == "professional"

    resp = await client.put(
        f"{BASE}/profile", json={"communication_style": "direct"}, headers=ADMIN_HEADERS
    )
    data = resp.json()
    assert data["career_stage"] == "Senior"
    assert data["target_roles"] == ["VP Product"]
    assert data["communication_style"] == "direct"

    other = await client.get(f"{BASE}/profile", headers={**ADMIN_HEADERS, "X-User-Id": "guest"})
    assert other.status_code == 404


@pytest.mark.asyncio
async def test_profile_feeds_system_prompt(client: AsyncClient, monkeypatch):
    from app.services.llm import LLMClient, LLMCompletion

    systems = []

    async def _complete(self, prompt, system="", max_tokens=0, temperature=0.3):
        systems.append(system)
        return LLMCompletion(text="ok", provider="anthropic", model_used="claude")

    monkeypatch.setattr(LLMClient, "complete", _complete)
    await client.put(f"{BASE}/profile", json={"target_roles": ["CTO"]}, headers=ADMIN_HEADERS)
    session = await _start(client)
    resp = await client.post(
        f"{BASE}/sessions/{session['id']}/messages", json={"message": "hello"}, headers=ADMIN_HEADERS
    )

    assert "user_profile" in resp.json()["context_used"]
    assert "- Target Roles: CTO" in systems[0]


@pytest.mark.asyncio
async def test_attached_documents_reach_the_prompt(
    client: AsyncClient, db_session: AsyncSession, monkeypatch
):
    from app.services.llm import LLMClient, LLMCompletion

    document = KnowledgeBaseDocument(
        filename="stored-brief.txt",
        original_name="brief.txt",
        content_type="txt",
        category="notes",
        size=40,
        status="processed",
        content_text="Quarterly roadmap for the data platform.",
        summary="Roadmap for the data platform.",
        tags=[],
    )
    db_session.add(document)
    await db_session.commit()

    systems = []

    async def _complete(self, prompt, system="", max_tokens=0, temperature=0.3):
        systems.append(system)
        return LLMCompletion(text="Looks solid.", provider="ollama", model_used="test-model")

    monkeypatch.setattr(LLMClient, "complete", _complete)
    session = await _start(client)
    resp = await client.post(
        f"{BASE}/sessions/{session['id']}/messages",
        json={"message": "hello", "attached_documents": [document.id, document.id]},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    assert "knowledge_base" in resp.json()["context_used"]
    assert systems[0].count("- notes: Roadmap for the data platform.") == 1

    history = (
        await client.get(f"{BASE}/sessions/{session['id']}/history", headers=ADMIN_HEADERS)
    ).json()
    assert history[0]["related_documents"] == [document.id]
    assert history[1]["related_documents"] == [document.id]


# ---------------------------------------------------------------------------
# Session cleanup
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cleanup_old_sessions(db_session: AsyncSession):
    old = datetime.now(timezone.utc) - timedelta(days=60)
    stale = ConversationSession(user_id="admin", is_active=False, last_activity=old, total_messages=0)
    idle_active = ConversationSession(user_id="admin", is_active=True, last_activity=old, total_messages=0)
    recent = ConversationSession(user_id="admin", is_active=False, total_messages=0)
    db_session.add_all([stale, idle_active, recent])
    await db_session.flush()
    db_session.add(ConversationMemory(session_id=stale.id, memory_type="fact", content="old"))
    await db_session.flush()

    deleted = await ConversationManager().cleanup_old_sessions(db_session, days_old=30)
    assert deleted == 1

    remaining = (await db_session.execute(select(ConversationSession.id))).scalars().all()
    assert sorted(remaining) == sorted([idle_active.id, recent.id])
    assert await db_session.scalar(select(func.count(ConversationMemory.id))) == 0


@pytest.mark.asyncio
async def test_cleanup_endpoint(client: AsyncClient):
    resp = await client.post(f"{BASE}/sessions/cleanup", params={"days_old": 30}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"deleted": 0, "message": "Deleted 0 inactive session(s) older than 30 days."}
