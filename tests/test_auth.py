"""
Authentication endpoint tests.
Covers: register, login, refresh rotation, logout, me and verify-token.
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import TEST_PASSWORD, auth_headers
from taskhub.core.security import create_refresh_token
from taskhub.models.user import User

pytestmark = pytest.mark.asyncio


async def _login(client: AsyncClient, email: str, password: str = TEST_PASSWORD) -> dict:
    response = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestRegister:
    async def test_register_success(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "New User", "email": "NewUser@Example.com", "password": "newpass1"},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["role"] == "user"
        assert "hashedPassword" not in data["user"]
        assert data["accessToken"]
        assert data["refreshToken"]
        assert data["tokenType"] == "bearer"

    async def test_register_cannot_choose_role(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "name": "Sneaky",
                "email": "sneaky@example.com",
                "password": "newpass1",
                "role": "admin",
            },
        )
        assert response.status_code == 201
        assert response.json()["data"]["user"]["role"] == "user"

    async def test_register_duplicate_email(
        self, client: AsyncClient, user_a: User
    ) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Another Alice", "email": "alice@example.com", "password": "newpass1"},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    async def test_register_short_password(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Weak", "email": "weak@example.com", "password": "12345"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["errors"]

    async def test_register_invalid_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Someone", "email": "not-an-email", "password": "validpass"},
        )
        assert response.status_code == 400


class TestLogin:
    async def test_login_success(self, client: AsyncClient, user_a: User) -> None:
        data = await _login(client, "alice@example.com")
        assert data["user"]["id"] == str(user_a.id)
        assert data["accessToken"]

    async def test_login_wrong_password(self, client: AsyncClient, user_a: User) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "wrong-password"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    async def test_login_unknown_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 401


class TestTokens:
    async def test_refresh_rotates_token(self, client: AsyncClient, user_a: User) -> None:
        tokens = await _login(client, "alice@example.com")
        response = await client.post(
            "/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
        )
        assert response.status_code == 200
        rotated = response.json()["data"]
        assert rotated["refreshToken"] != tokens["refreshToken"]

        response = await client.post(
            "/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
        )
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"

    async def test_refresh_with_access_token_rejected(
        self, client: AsyncClient, user_a: User
    ) -> None:
        tokens = await _login(client, "alice@example.com")
        response = await client.post(
            "/api/v1/auth/refresh", json={"refreshToken": tokens["accessToken"]}
        )
        assert response.status_code == 401

    async def test_refresh_token_never_issued(
        self, client: AsyncClient, user_a: User
    ) -> None:
        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refreshToken": create_refresh_token(str(user_a.id))},
        )
        assert response.status_code == 401

    async def test_logout_revokes_refresh_token(
        self, client: AsyncClient, user_a: User
    ) -> None:
        tokens = await _login(client, "alice@example.com")
        response = await client.post(
            "/api/v1/auth/logout",
            headers={"Authorization": f"Bearer {tokens['accessToken']}"},
        )
        assert response.status_code == 200
        response = await client.post(
            "/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
        )
        assert response.status_code == 401


class TestCurrentUser:
    async def test_me(self, client: AsyncClient, user_a: User) -> None:
        response = await client.get("/api/v1/auth/me", headers=auth_headers(user_a))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["email"] == "alice@example.com"
        assert data["name"] == "Alice Creator"

    async def test_verify_token(self, client: AsyncClient, user_a: User) -> None:
        response = await client.get(
            "/api/v1/auth/verify-token", headers=auth_headers(user_a)
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["valid"] is True
        assert data["user"]["id"] == str(user_a.id)

    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    async def test_garbage_token(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"}
        )
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"

    async def test_deactivated_user_rejected(
        self, client: AsyncClient, user_a: User, db
    ) -> None:
        user_a.is_active = False
        await db.commit()
        response = await client.get("/api/v1/auth/me", headers=auth_headers(user_a))
        assert response.status_code == 401


async def test_unknown_route_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/v1/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "message": "Route not found",
        "code": "HTTP_ERROR",
    }


async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
