"""Tests for /api/user: authorship claims, dashboard and recommendations."""
import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.models.database_models import Paper, PaperStatus
from paperforum.services.author_claim import calculate_name_similarity
from paperforum.utils.helpers import utcnow


async def _imported_paper(db: AsyncSession, owner_id: int, authors: list, title: str = "Imported") -> int:
    paper = Paper(
        title=title,
        abstract="Imported abstract",
        authors=authors,
        author_ids=[owner_id],
        research_field="Physics",
        keywords=[],
        status=PaperStatus.PUBLISHED.value,
        is_published=True,
        published_at=utcnow(),
        created_by=owner_id,
        story_data={},
    )
    db.add(paper)
    await db.commit()
    return paper.id


# ---------------------------------------------------------------------------
# Name similarity
# ---------------------------------------------------------------------------

def test_similarity_identical_names():
    assert calculate_name_similarity("Jane Smith", "jane smith") == 1.0


def test_similarity_counts_against_longer_name():
    assert calculate_name_similarity("Jane Smith", "Dr. Jane Smith") == pytest.approx(2 / 3)


def test_similarity_accepts_partial_tokens():
    assert calculate_name_similarity("Jan Smith", "Jane Smith") == 1.0


def test_similarity_empty():
    assert calculate_name_similarity("", "Jane Smith") == 0.0
    assert calculate_name_similarity("", "") == 0.0


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_potential_claims(client: AsyncClient, db_session: AsyncSession, register):
    importer = await register(email="importer@example.com", name="Import Bot")
    jane = await register(email="jane@example.com", name="Jane Smith")

    match = await _imported_paper(db_session, importer["id"], ["Jane Smith", "Li Wei"], "Match")
    await _imported_paper(db_session, importer["id"], ["Dr. Jane Smith"], "Below threshold")
    await _imported_paper(db_session, importer["id"], ["Ken Thompson"], "Unrelated")

    resp = await client.get("/api/user/potential-claims", headers=jane["headers"])
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == [match]


@pytest.mark.asyncio
async def test_claim_authorship(client: AsyncClient, db_session: AsyncSession, register):
    importer = await register(email="importer@example.com", name="Import Bot")
    jane = await register(email="jane@example.com", name="Jane Smith")

    first = await _imported_paper(db_session, importer["id"], ["Dr. Jane Smith", "Li Wei"])
    await _imported_paper(db_session, importer["id"], ["Ken Thompson"])

    resp = await client.post(
        "/api/user/claim-authorship",
        json={"author_name": "jane smith", "orcid": "0000-0002-1825-0097"},
        headers=jane["headers"],
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["claimed_papers"] == 1
    assert data["message"] == "Successfully claimed authorship of 1 papers"

    result = await db_session.execute(
        select(Paper.author_ids).where(Paper.id == first).execution_options(populate_existing=True)
    )
    assert result.scalar_one() == [importer["id"], jane["id"]]

    profile = (await client.get("/api/auth/me", headers=jane["headers"])).json()
    assert profile["orcid"] == "0000-0002-1825-0097"

    # already linked papers are not claimed twice
    resp = await client.post(
        "/api/user/claim-authorship", json={"author_name": "Jane Smith"}, headers=jane["headers"]
    )
    assert resp.json()["claimed_papers"] == 0

    resp = await client.get("/api/user/potential-claims", headers=jane["headers"])
    assert resp.json() == []


@pytest.mark.asyncio
async def test_claim_requires_author_name(client: AsyncClient, register):
    user = await register()
    resp = await client.post(
        "/api/user/claim-authorship", json={"author_name": "   "}, headers=user["headers"]
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Author name is required"


# ---------------------------------------------------------------------------
# Dashboard / recommendations
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_dashboard(client: AsyncClient, register, create_paper):
    owner = await register(email="owner@example.com")
    reader = await register(email="reader@example.com")
    published = await create_paper(owner["headers"], title="Published")
    await create_paper(owner["headers"], title="Draft", status="draft")

    await client.post(f"/api/papers/{published['id']}/view")
    await client.post(f"/api/papers/{published['id']}/view")
    await client.post(f"/api/bookmarks/{published['id']}", headers=owner["headers"])
    await client.post(f"/api/bookmarks/{published['id']}", headers=reader["headers"])

    resp = await client.get("/api/user/dashboard", headers=owner["headers"])
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_papers"] == 2
    assert data["published_papers"] == 1
    assert data["draft_papers"] == 1
    assert data["total_views"] == 2
    assert data["bookmarks"] == 1
    assert data["unread_notifications"] == 1
    assert {p["title"] for p in data["recent_papers"]} == {"Published", "Draft"}


@pytest.mark.asyncio
async def test_recommendations_follow_interactions(client: AsyncClient, register, create_paper):
    owner = await register(email="owner@example.com")
    reader = await register(email="reader@example.com")
    physics = await create_paper(owner["headers"], title="Qubits", research_field="Physics")
    other_physics = await create_paper(owner["headers"], title="Lasers", research_field="Physics")
    await create_paper(owner["headers"], title="Soil", research_field="Agriculture")

    # no history: falls back to trending, which includes every fresh paper
    resp = await client.get("/api/user/recommendations", headers=reader["headers"])
    assert len(resp.json()) == 3

    await client.post(
        "/api/interactions",
        json={"paper_id": physics["id"], "interaction_type": "like"},
        headers=reader["headers"],
    )

    resp = await client.get("/api/user/recommendations", headers=reader["headers"])
    ids = [p["id"] for p in resp.json()]
    assert sorted(ids) == sorted([physics["id"], other_physics["id"]])
    # the liked paper gained engagement
    assert ids[0] == physics["id"]
