"""Tests for paper discussion threads and public reviews."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_comment_thread_and_notification(client: AsyncClient, register, create_paper):
    owner = await register(email="owner@example.com")
    reader = await register(email="reader@example.com", name="Curious Reader")
    paper = await create_paper(owner["headers"], title="Tidal Energy")

    resp = await client.post(
        f"/api/papers/{paper['id']}/comments",
        json={"content": "<b>Great</b> work"},
        headers=reader["headers"],
    )
    assert resp.status_code == 201
    comment = resp.json()
    assert comment["content"] == "Great work"
    assert comment["user_id"] == reader["id"]
    assert comment["parent_id"] is None

    resp = await client.post(
        f"/api/papers/{paper['id']}/comments",
        json={"content": "Thanks!", "parent_id": comment["id"]},
        headers=owner["headers"],
    )
    assert resp.status_code == 201
    reply = resp.json()

    resp = await client.get(f"/api/papers/{paper['id']}/comments")
    assert [c["id"] for c in resp.json()] == [comment["id"], reply["id"]]

    # publish + reader's comment; the owner's own reply does not notify
    notifications = (await client.get("/api/notifications", headers=owner["headers"])).json()
    types = [n["type"] for n in notifications["notifications"]]
    assert sorted(types) == ["new_comment", "paper_published"]
    new_comment = next(n for n in notifications["notifications"] if n["type"] == "new_comment")
    assert "Curious Reader" in new_comment["message"]
    assert new_comment["entity_id"] == paper["id"]


@pytest.mark.asyncio
async def test_reply_parent_must_belong_to_paper(client: AsyncClient, register, create_paper):
    owner = await register()
    first = await create_paper(owner["headers"], title="First")
    second = await create_paper(owner["headers"], title="Second")

    comment = (
        await client.post(
            f"/api/papers/{first['id']}/comments", json={"content": "On first"}, headers=owner["headers"]
        )
    ).json()

    resp = await client.post(
        f"/api/papers/{second['id']}/comments",
        json={"content": "Wrong thread", "parent_id": comment["id"]},
        headers=owner["headers"],
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_comment_requires_auth_and_published_paper(client: AsyncClient, register, create_paper):
    owner = await register()
    draft = await create_paper(owner["headers"], status="draft")

    resp = await client.post(f"/api/papers/{draft['id']}/comments", json={"content": "Hello"})
    assert resp.status_code == 401

    resp = await client.post(
        f"/api/papers/{draft['id']}/comments", json={"content": "Hello"}, headers=owner["headers"]
    )
    assert resp.status_code == 404

    resp = await client.get(f"/api/papers/{draft['id']}/comments")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_empty_comment_rejected(client: AsyncClient, register, create_paper):
    owner = await register()
    paper = await create_paper(owner["headers"])
    resp = await client.post(
        f"/api/papers/{paper['id']}/comments", json={"content": ""}, headers=owner["headers"]
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_reviews(client: AsyncClient, register, create_paper):
    owner = await register(email="owner@example.com")
    reviewer = await register(email="reviewer@example.com", name="Peer Reviewer")
    paper = await create_paper(owner["headers"])

    resp = await client.post(
        f"/api/papers/{paper['id']}/reviews",
        json={"content": "Solid methodology", "rating": 6},
        headers=reviewer["headers"],
    )
    assert resp.status_code == 422

    resp = await client.post(
        f"/api/papers/{paper['id']}/reviews",
        json={"content": "Solid methodology", "rating": 4, "recommendation": "accept"},
        headers=reviewer["headers"],
    )
    assert resp.status_code == 201
    review = resp.json()
    assert review["rating"] == 4
    assert review["is_public"] is True

    resp = await client.get(f"/api/papers/{paper['id']}/reviews")
    assert [r["id"] for r in resp.json()] == [review["id"]]

    count = (await client.get("/api/notifications/unread-count", headers=owner["headers"])).json()
    assert count["count"] == 2
