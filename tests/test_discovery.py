"""Tests for interactions, trending topics and journals."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.models.database_models import Journal
from paperforum.services.analytics import interaction_weight, update_trending_topics


def test_interaction_weights():
    assert interaction_weight("view") == 1
    assert interaction_weight("like") == 3
    assert interaction_weight("save") == 4
    assert interaction_weight("share") == 5
    assert interaction_weight("comment") == 6
    assert interaction_weight("something-else") == 1


@pytest.mark.asyncio
async def test_record_interaction(client: AsyncClient, register, create_paper):
    owner = await register()
    paper = await create_paper(owner["headers"])

    resp = await client.post(
        "/api/interactions",
        json={"paper_id": paper["id"], "interaction_type": "share", "metadata": {"channel": "email"}},
        headers=owner["headers"],
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["interaction_type"] == "share"
    assert data["paper_id"] == paper["id"]

    updated = (await client.get(f"/api/papers/{paper['id']}")).json()
    assert updated["engagement_score"] == 5


@pytest.mark.asyncio
async def test_record_interaction_validation(client: AsyncClient, register):
    user = await register()

    resp = await client.post(
        "/api/interactions",
        json={"paper_id": 999999, "interaction_type": "like"},
        headers=user["headers"],
    )
    assert resp.status_code == 404

    resp = await client.post(
        "/api/interactions",
        json={"paper_id": 1, "interaction_type": "teleport"},
        headers=user["headers"],
    )
    assert resp.status_code == 422

    resp = await client.post("/api/interactions", json={"paper_id": 1, "interaction_type": "like"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_trending_topics(client: AsyncClient, db_session: AsyncSession, register, create_paper):
    owner = await register(email="owner@example.com")
    reader = await register(email="reader@example.com")
    physics = await create_paper(owner["headers"], research_field="Physics")
    await create_paper(owner["headers"], research_field="Physics")
    biology = await create_paper(owner["headers"], research_field="Biology")

    for _ in range(3):
        await client.post(f"/api/papers/{physics['id']}/view")
    await client.post(
        f"/api/papers/{biology['id']}/comments", json={"content": "Neat"}, headers=reader["headers"]
    )
    await client.post(
        f"/api/papers/{biology['id']}/comments", json={"content": "Agreed"}, headers=reader["headers"]
    )

    assert await update_trending_topics(db_session) == 2
    await db_session.commit()

    resp = await client.get("/api/trending-topics")
    assert resp.status_code == 200
    topics = resp.json()
    # Biology: 2 comments * 3 = 6; Physics: 3 views
    assert [(t["topic"], t["momentum"]) for t in topics] == [("Biology", 6), ("Physics", 3)]
    assert len(topics[1]["related_paper_ids"]) == 2

    # recomputing updates the existing rows
    assert await update_trending_topics(db_session) == 2
    await db_session.commit()
    assert len((await client.get("/api/trending-topics")).json()) == 2


@pytest.mark.asyncio
async def test_list_journals(client: AsyncClient, db_session: AsyncSession):
    db_session.add_all(
        [
            Journal(name="Physical Review X", slug="physical-review-x"),
            Journal(name="Cell", slug="cell", issn="0092-8674"),
        ]
    )
    await db_session.commit()

    resp = await client.get("/api/journals")
    assert resp.status_code == 200
    assert [j["name"] for j in resp.json()] == ["Cell", "Physical Review X"]
