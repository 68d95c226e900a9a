"""Tests for /api/bookmarks."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_bookmark_lifecycle(client: AsyncClient, register, create_paper):
    owner = await register(email="owner@example.com")
    reader = await register(email="reader@example.com")
    paper = await create_paper(owner["headers"], title="Bookmarked Paper")

    resp = await client.post(f"/api/bookmarks/{paper['id']}", headers=reader["headers"])
    assert resp.status_code == 200
    assert resp.json()["message"] == "Bookmark added successfully"

    # adding twice keeps a single bookmark
    resp = await client.post(f"/api/bookmarks/{paper['id']}", headers=reader["headers"])
    assert resp.status_code == 200

    bookmarks = (await client.get("/api/bookmarks", headers=reader["headers"])).json()
    assert len(bookmarks) == 1
    assert bookmarks[0]["paper_id"] == paper["id"]
    assert bookmarks[0]["paper"]["title"] == "Bookmarked Paper"

    status = (await client.get(f"/api/bookmarks/{paper['id']}/status", headers=reader["headers"])).json()
    assert status == {"paper_id": paper["id"], "bookmarked": True}

    resp = await client.delete(f"/api/bookmarks/{paper['id']}", headers=reader["headers"])
    assert resp.status_code == 200
    assert resp.json()["message"] == "Bookmark removed successfully"

    status = (await client.get(f"/api/bookmarks/{paper['id']}/status", headers=reader["headers"])).json()
    assert status["bookmarked"] is False


@pytest.mark.asyncio
async def test_bookmarks_are_per_user(client: AsyncClient, register, create_paper):
    owner = await register(email="owner@example.com")
    reader = await register(email="reader@example.com")
    paper = await create_paper(owner["headers"])

    await client.post(f"/api/bookmarks/{paper['id']}", headers=reader["headers"])

    assert (await client.get("/api/bookmarks", headers=owner["headers"])).json() == []


@pytest.mark.asyncio
async def test_bookmark_missing_or_private_paper(client: AsyncClient, register, create_paper):
    owner = await register(email="owner@example.com")
    reader = await register(email="reader@example.com")
    draft = await create_paper(owner["headers"], status="draft")

    resp = await client.post("/api/bookmarks/999999", headers=reader["headers"])
    assert resp.status_code == 404

    resp = await client.post(f"/api/bookmarks/{draft['id']}", headers=reader["headers"])
    assert resp.status_code == 404

    # the author may bookmark their own draft
    resp = await client.post(f"/api/bookmarks/{draft['id']}", headers=owner["headers"])
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_bookmarks_require_auth(client: AsyncClient):
    assert (await client.get("/api/bookmarks")).status_code == 401
    assert (await client.post("/api/bookmarks/1")).status_code == 401
