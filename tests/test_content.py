"""Tests for the admin CMS CRUD routes, content sections and public portfolio reads."""
import pytest
from httpx import AsyncClient

from tests.conftest import ADMIN_HEADERS


def _case_study(**overrides) -> dict:
    data = {
        "title": "Scaling the Platform Team",
        "challenge": "Releases took two weeks.",
        "approach": "Introduced trunk-based development.",
        "solution": "Automated the release pipeline.",
        "impact": "Daily releases.",
        "metrics": ["14x faster releases"],
        "technologies": ["Python", "Kubernetes"],
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Case studies
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_case_study_derives_slug(client: AsyncClient):
    resp = await client.post(
        "/api/admin/case-studies", json=_case_study(), headers=ADMIN_HEADERS
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["slug"] == "scaling-the-platform-team"
    assert data["status"] == "draft"
    assert data["technologies"] == ["Python", "Kubernetes"]


@pytest.mark.asyncio
async def test_duplicate_slug_conflicts(client: AsyncClient):
    resp = await client.post(
        "/api/admin/case-studies", json=_case_study(slug="same"), headers=ADMIN_HEADERS
    )
    assert resp.status_code == 201

    resp = await client.post(
        "/api/admin/case-studies",
        json=_case_study(title="Other", slug="same"),
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_update_and_delete_case_study(client: AsyncClient):
    resp = await client.post(
        "/api/admin/case-studies", json=_case_study(), headers=ADMIN_HEADERS
    )
    case_id = resp.json()["id"]

    resp = await client.patch(
        f"/api/admin/case-studies/{case_id}",
        json={"subtitle": "From weeks to hours", "featured": True},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["subtitle"] == "From weeks to hours"
    assert data["featured"] is True
    assert data["title"] == "Scaling the Platform Team"

    resp = await client.delete(f"/api/admin/case-studies/{case_id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 204

    resp = await client.get(f"/api/admin/case-studies/{case_id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_patch_null_required_field_rejected(client: AsyncClient):
    resp = await client.post(
        "/api/admin/case-studies", json=_case_study(), headers=ADMIN_HEADERS
    )
    case_id = resp.json()["id"]

    resp = await client.patch(
        f"/api/admin/case-studies/{case_id}",
        json={"challenge": None},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 422

    resp = await client.get(f"/api/admin/case-studies/{case_id}", headers=ADMIN_HEADERS)
    assert resp.json()["challenge"] == "Releases took two weeks."

    # Optional columns can still be cleared
    resp = await client.patch(
        f"/api/admin/case-studies/{case_id}",
        json={"subtitle": None},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["subtitle"] is None


@pytest.mark.asyncio
async def test_patch_null_rejected_on_core_value(client: AsyncClient):
    resp = await client.post(
        "/api/admin/core-values",
        json={"title": "Ownership", "description": "Finish what you start."},
        headers=ADMIN_HEADERS,
    )
    value_id = resp.json()["id"]

    resp = await client.patch(
        f"/api/admin/core-values/{value_id}",
        json={"title": None},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_non_ascii_titles_get_distinct_slugs(client: AsyncClient):
    slugs = []
    for _ in range(2):
        resp = await client.post(
            "/api/admin/case-studies", json=_case_study(title="日本語"), headers=ADMIN_HEADERS
        )
        assert resp.status_code == 201
        slugs.append(resp.json()["slug"])

    assert all(s.startswith("case-study-") for s in slugs)
    assert slugs[0] != slugs[1]


@pytest.mark.asyncio
async def test_public_case_studies_only_published(client: AsyncClient):
    await client.post(
        "/api/admin/case-studies",
        json=_case_study(title="Draft Work"),
        headers=ADMIN_HEADERS,
    )
    await client.post(
        "/api/admin/case-studies",
        json=_case_study(title="Second", status="published", display_order=2),
        headers=ADMIN_HEADERS,
    )
    await client.post(
        "/api/admin/case-studies",
        json=_case_study(title="First", status="published", display_order=1),
        headers=ADMIN_HEADERS,
    )

    resp = await client.get("/api/portfolio/case-studies")
    assert resp.status_code == 200
    assert [c["title"] for c in resp.json()] == ["First", "Second"]

    resp = await client.get("/api/portfolio/case-studies/first")
    assert resp.status_code == 200

    resp = await client.get("/api/portfolio/case-studies/draft-work")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Other CMS tables
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_experience_timeline_ordering(client: AsyncClient):
    for order, year in [(2, "2020"), (1, "2023")]:
        resp = await client.post(
            "/api/admin/experience",
            json={"year": year, "title": "Lead", "company": "Acme", "order_index": order},
            headers=ADMIN_HEADERS,
        )
        assert resp.status_code == 201

    resp = await client.get("/api/portfolio/experience")
    assert [e["year"] for e in resp.json()] == ["2023", "2020"]


@pytest.mark.asyncio
async def test_images_filtered_by_section(client: AsyncClient):
    for section, active in [("hero", True), ("hero", False), ("about", True)]:
        await client.post(
            "/api/admin/images",
            json={
                "section": section,
                "image_url": f"/img/{section}.png",
                "alt_text": section,
                "is_active": active,
            },
            headers=ADMIN_HEADERS,
        )

    resp = await client.get("/api/portfolio/images", params={"section": "hero"})
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_seo_by_page(client: AsyncClient):
    resp = await client.post(
        "/api/admin/seo",
        json={"page": "home", "title": "Home", "description": "Portfolio home"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201

    resp = await client.get("/api/portfolio/seo/home")
    assert resp.status_code == 200
    assert resp.json()["robots_directive"] == "index,follow"

    resp = await client.get("/api/portfolio/seo/missing")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_core_values_crud(client: AsyncClient):
    resp = await client.post(
        "/api/admin/core-values",
        json={"title": "Ownership", "description": "Own outcomes."},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    assert resp.json()["icon"] == "target"

    resp = await client.get("/api/portfolio/core-values")
    assert [v["title"] for v in resp.json()] == ["Ownership"]


async def _skill_category(client: AsyncClient, name: str, order: int) -> int:
    resp = await client.post(
        "/api/admin/skill-categories",
        json={"name": name, "order_index": order},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.mark.asyncio
async def test_skills_grouped_by_category(client: AsyncClient):
    platforms = await _skill_category(client, "Platforms", 2)
    leadership = await _skill_category(client, "Leadership", 1)
    for category_id, name, order in [
        (platforms, "Kubernetes", 0),
        (leadership, "Hiring", 1),
        (leadership, "Coaching", 0),
    ]:
        resp = await client.post(
            "/api/admin/skills",
            json={"category_id": category_id, "name": name, "order_index": order},
            headers=ADMIN_HEADERS,
        )
        assert resp.status_code == 201
        assert resp.json()["proficiency_level"] == 5

    resp = await client.get("/api/portfolio/skills")
    assert resp.status_code == 200
    groups = resp.json()
    assert [g["name"] for g in groups] == ["Leadership", "Platforms"]
    assert [s["name"] for s in groups[0]["skills"]] == ["Coaching", "Hiring"]


@pytest.mark.asyncio
async def test_skill_proficiency_out_of_range(client: AsyncClient):
    category_id = await _skill_category(client, "Leadership", 0)
    resp = await client.post(
        "/api/admin/skills",
        json={"category_id": category_id, "name": "Hiring", "proficiency_level": 11},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_deleting_skill_category_removes_its_skills(client: AsyncClient):
    category_id = await _skill_category(client, "Leadership", 0)
    await client.post(
        "/api/admin/skills",
        json={"category_id": category_id, "name": "Hiring"},
        headers=ADMIN_HEADERS,
    )

    resp = await client.delete(
        f"/api/admin/skill-categories/{category_id}", headers=ADMIN_HEADERS
    )
    assert resp.status_code == 204

    resp = await client.get("/api/admin/skills", headers=ADMIN_HEADERS)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_metrics_ordering_and_unique_name(client: AsyncClient):
    for name, value, order in [("teams", "12", 2), ("years", "15+", 1)]:
        resp = await client.post(
            "/api/admin/metrics",
            json={
                "metric_name": name,
                "metric_value": value,
                "metric_label": f"{name} label",
                "display_order": order,
            },
            headers=ADMIN_HEADERS,
        )
        assert resp.status_code == 201

    resp = await client.get("/api/portfolio/metrics")
    assert [m["metric_value"] for m in resp.json()] == ["15+", "12"]

    resp = await client.post(
        "/api/admin/metrics",
        json={"metric_name": "teams", "metric_value": "3", "metric_label": "dup"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 409


# ---------------------------------------------------------------------------
# Content sections
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_save_bumps_version_and_records_history(client: AsyncClient):
    for headline in ["Hello", "Hello again"]:
        resp = await client.put(
            "/api/admin/content/sections/hero",
            json={"content": {"headline": headline}, "change_summary": headline},
            headers=ADMIN_HEADERS,
        )
        assert resp.status_code == 200

    data = resp.json()
    assert data["version"] == 2
    assert data["status"] == "draft"
    assert data["name"] == "Hero"
    assert data["published_content"] is None

    resp = await client.get(
        "/api/admin/content/sections/hero/versions", headers=ADMIN_HEADERS
    )
    versions = resp.json()
    assert [v["version"] for v in versions] == [2, 1]
    assert versions[0]["created_by"] == "admin"


@pytest.mark.asyncio
async def test_publish_exposes_content_publicly(client: AsyncClient):
    await client.put(
        "/api/admin/content/sections/about",
        json={"content": {"body": "v1"}},
        headers=ADMIN_HEADERS,
    )

    resp = await client.get("/api/portfolio/content/about")
    assert resp.status_code == 404

    resp = await client.post(
        "/api/admin/content/sections/about/publish", headers=ADMIN_HEADERS
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "published"

    # A later draft does not change what the public sees
    await client.put(
        "/api/admin/content/sections/about",
        json={"content": {"body": "v2"}},
        headers=ADMIN_HEADERS,
    )

    resp = await client.get("/api/portfolio/content/about")
    assert resp.status_code == 200
    assert resp.json()["content"] == {"body": "v1"}

    resp = await client.get("/api/portfolio/content")
    assert [s["id"] for s in resp.json()] == ["about"]


@pytest.mark.asyncio
async def test_publish_unknown_section(client: AsyncClient):
    resp = await client.post(
        "/api/admin/content/sections/nope/publish", headers=ADMIN_HEADERS
    )
    assert resp.status_code == 404
