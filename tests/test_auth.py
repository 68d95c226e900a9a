"""Tests for registration, login, lockout and bearer-token boundaries."""
import pytest
from httpx import AsyncClient

from paperforum.services.security import create_access_token


@pytest.mark.asyncio
async def test_register_returns_user_and_token(client: AsyncClient):
    resp = await client.post(
        "/api/auth/register",
        json={"email": "Ada@Example.com", "password": "password123", "name": "Ada Lovelace"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["user"]["email"] == "ada@example.com"
    assert data["user"]["name"] == "Ada Lovelace"
    assert "password" not in data["user"]
    assert data["token"]


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, register):
    await register(email="dup@example.com")
    resp = await client.post(
        "/api/auth/register",
        json={"email": "DUP@example.com", "password": "password123", "name": "Someone Else"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already exists"


@pytest.mark.asyncio
async def test_register_rejects_short_password(client: AsyncClient):
    resp = await client.post(
        "/api/auth/register",
        json={"email": "short@example.com", "password": "abc", "name": "Short"},
    )
    assert resp.status_code == 400
    assert "at least 8 characters" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_register_rejects_invalid_email(client: AsyncClient):
    resp = await client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "password123", "name": "Nobody"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_register_strips_html_from_name(client: AsyncClient):
    resp = await client.post(
        "/api/auth/register",
        json={"email": "html@example.com", "password": "password123", "name": "<b>Grace</b> Hopper"},
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["name"] == "Grace Hopper"


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, register):
    user = await register(email="login@example.com")
    resp = await client.post(
        "/api/auth/login",
        json={"email": "LOGIN@example.com", "password": "password123"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["id"] == user["id"]
    assert data["token"]


@pytest.mark.asyncio
async def test_password_with_angle_brackets_is_kept_verbatim(client: AsyncClient, register):
    await register(email="brackets@example.com", password="my<secret>pass123")
    resp = await client.post(
        "/api/auth/login",
        json={"email": "brackets@example.com", "password": "my<secret>pass123"},
    )
    assert resp.status_code == 200

    resp = await client.post(
        "/api/auth/login",
        json={"email": "brackets@example.com", "password": "mypass123"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_wrong_password_reports_remaining_attempts(client: AsyncClient, register):
    await register(email="wrong@example.com")
    resp = await client.post(
        "/api/auth/login",
        json={"email": "wrong@example.com", "password": "not-the-password"},
    )
    assert resp.status_code == 401
    detail = resp.json()["detail"]
    assert detail["message"] == "Invalid credentials"
    assert detail["remaining_attempts"] == 4


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient):
    resp = await client.post(
        "/api/auth/login",
        json={"email": "ghost@example.com", "password": "password123"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_locks_after_five_failures(client: AsyncClient, register):
    await register(email="locked@example.com")
    for _ in range(5):
        resp = await client.post(
            "/api/auth/login",
            json={"email": "locked@example.com", "password": "bad-password"},
        )
        assert resp.status_code == 401

    # even the right password is refused while locked
    resp = await client.post(
        "/api/auth/login",
        json={"email": "locked@example.com", "password": "password123"},
    )
    assert resp.status_code == 429
    detail = resp.json()["detail"]
    assert detail["remaining_time"] > 0


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Access token required"


@pytest.mark.asyncio
async def test_me_rejects_invalid_token(client: AsyncClient):
    resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.token"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_me_rejects_expired_token(client: AsyncClient, register):
    user = await register(email="expired@example.com")
    token = create_access_token(user["id"], "expired@example.com", expires_hours=-1)
    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_me_returns_profile(client: AsyncClient, register):
    user = await register(email="me@example.com", name="Marie Curie")
    resp = await client.get("/api/auth/me", headers=user["headers"])
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == "me@example.com"
    assert data["name"] == "Marie Curie"
    assert data["orcid"] is None


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, register):
    user = await register(email="profile@example.com", name="Rosalind Franklin")
    resp = await client.put(
        "/api/auth/profile",
        json={"name": None, "affiliation": "King's College London", "bio": "X-ray crystallography"},
        headers=user["headers"],
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Rosalind Franklin"
    assert data["affiliation"] == "King's College London"
    assert data["bio"] == "X-ray crystallography"


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, register):
    user = await register(email="change@example.com")

    resp = await client.post(
        "/api/auth/change-password",
        json={"current_password": "wrong-password", "new_password": "new-password-1"},
        headers=user["headers"],
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/api/auth/change-password",
        json={"current_password": "password123", "new_password": "new-password-1"},
        headers=user["headers"],
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    resp = await client.post(
        "/api/auth/login",
        json={"email": "change@example.com", "password": "new-password-1"},
    )
    assert resp.status_code == 200
