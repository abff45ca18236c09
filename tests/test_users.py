"""
User management endpoint tests.
Covers: admin listing/creation/updates, self profile updates, self-deletion
protection and the cleanup that follows an account deletion.
"""
from __future__ import annotations

import os
import uuid

import pytest
from httpx import AsyncClient

from conftest import TEST_PASSWORD, auth_headers, create_task, pdf_file
from taskhub.models.user import User

pytestmark = pytest.mark.asyncio


class TestListUsers:
    async def test_admin_lists_users(
        self, client: AsyncClient, admin: User, user_a: User, user_b: User
    ) -> None:
        response = await client.get(
            "/api/v1/users",
            params={"sortBy": "name", "sortOrder": "asc"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert [u["name"] for u in data["users"]] == [
            "Admin User",
            "Alice Creator",
            "Bob Assignee",
        ]
        assert data["pagination"]["totalItems"] == 3

    async def test_search_and_role_filter(
        self, client: AsyncClient, admin: User, user_a: User, user_b: User
    ) -> None:
        headers = auth_headers(admin)
        response = await client.get("/api/v1/users", params={"search": "bob"}, headers=headers)
        assert [u["email"] for u in response.json()["data"]["users"]] == ["bob@example.com"]

        response = await client.get("/api/v1/users", params={"role": "admin"}, headers=headers)
        assert [u["email"] for u in response.json()["data"]["users"]] == ["admin@example.com"]

    async def test_regular_user_forbidden(self, client: AsyncClient, user_a: User) -> None:
        response = await client.get("/api/v1/users", headers=auth_headers(user_a))
        assert response.status_code == 403


class TestGetUser:
    async def test_self_and_admin_can_read(
        self, client: AsyncClient, user_a: User, admin: User
    ) -> None:
        for reader in (user_a, admin):
            response = await client.get(
                f"/api/v1/users/{user_a.id}", headers=auth_headers(reader)
            )
            assert response.status_code == 200
            assert response.json()["data"]["email"] == "alice@example.com"

    async def test_other_user_forbidden(
        self, client: AsyncClient, user_a: User, user_b: User
    ) -> None:
        response = await client.get(
            f"/api/v1/users/{user_a.id}", headers=auth_headers(user_b)
        )
        assert response.status_code == 403

    async def test_unknown_user(self, client: AsyncClient, admin: User) -> None:
        response = await client.get(
            f"/api/v1/users/{uuid.uuid4()}", headers=auth_headers(admin)
        )
        assert response.status_code == 404


class TestAdminManagement:
    async def test_admin_creates_user_with_role(
        self, client: AsyncClient, admin: User
    ) -> None:
        response = await client.post(
            "/api/v1/users",
            json={
                "name": "Second Admin",
                "email": "second@example.com",
                "password": "adminpass",
                "role": "admin",
            },
            headers=auth_headers(admin),
        )
        assert response.status_code == 201, response.text
        assert response.json()["data"]["role"] == "admin"

    async def test_non_admin_cannot_create_user(
        self, client: AsyncClient, user_a: User
    ) -> None:
        response = await client.post(
            "/api/v1/users",
            json={"name": "Nope", "email": "nope@example.com", "password": "nopenope"},
            headers=auth_headers(user_a),
        )
        assert response.status_code == 403

    async def test_admin_updates_user(
        self, client: AsyncClient, admin: User, user_a: User
    ) -> None:
        response = await client.put(
            f"/api/v1/users/{user_a.id}",
            json={"name": "Alice Renamed", "role": "admin"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Alice Renamed"
        assert data["role"] == "admin"
        assert data["email"] == "alice@example.com"

    async def test_admin_update_duplicate_email(
        self, client: AsyncClient, admin: User, user_a: User, user_b: User
    ) -> None:
        response = await client.put(
            f"/api/v1/users/{user_a.id}",
            json={"email": "bob@example.com"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409


class TestProfile:
    async def test_update_name_and_email(self, client: AsyncClient, user_a: User) -> None:
        response = await client.put(
            "/api/v1/users/profile",
            json={"name": "Alice Cooper", "email": "alice.cooper@example.com"},
            headers=auth_headers(user_a),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Alice Cooper"
        assert data["email"] == "alice.cooper@example.com"

    async def test_password_change_requires_current_password(
        self, client: AsyncClient, user_a: User
    ) -> None:
        response = await client.put(
            "/api/v1/users/profile",
            json={"password": "brandnew1"},
            headers=auth_headers(user_a),
        )
        assert response.status_code == 400

    async def test_password_change_with_wrong_current_password(
        self, client: AsyncClient, user_a: User
    ) -> None:
        response = await client.put(
            "/api/v1/users/profile",
            json={"password": "brandnew1", "currentPassword": "not-it"},
            headers=auth_headers(user_a),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Current password is incorrect"

    async def test_password_change(self, client: AsyncClient, user_a: User) -> None:
        response = await client.put(
            "/api/v1/users/profile",
            json={"password": "brandnew1", "currentPassword": TEST_PASSWORD},
            headers=auth_headers(user_a),
        )
        assert response.status_code == 200

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "brandnew1"},
        )
        assert response.status_code == 200

    async def test_email_taken(
        self, client: AsyncClient, user_a: User, user_b: User
    ) -> None:
        response = await client.put(
            "/api/v1/users/profile",
            json={"email": "bob@example.com"},
            headers=auth_headers(user_a),
        )
        assert response.status_code == 409


class TestDeleteUser:
    async def test_user_cannot_delete_self(self, client: AsyncClient, user_a: User) -> None:
        response = await client.delete(
            f"/api/v1/users/{user_a.id}", headers=auth_headers(user_a)
        )
        assert response.status_code == 400
        assert response.json()["code"] == "SELF_DELETION_FORBIDDEN"

    async def test_admin_cannot_delete_self(self, client: AsyncClient, admin: User) -> None:
        response = await client.delete(
            f"/api/v1/users/{admin.id}", headers=auth_headers(admin)
        )
        assert response.status_code == 400
        assert response.json()["code"] == "SELF_DELETION_FORBIDDEN"

        response = await client.get("/api/v1/auth/me", headers=auth_headers(admin))
        assert response.status_code == 200

    async def test_non_admin_cannot_delete_others(
        self, client: AsyncClient, user_a: User, user_b: User
    ) -> None:
        response = await client.delete(
            f"/api/v1/users/{user_b.id}", headers=auth_headers(user_a)
        )
        assert response.status_code == 403

    async def test_delete_unknown_user(self, client: AsyncClient, admin: User) -> None:
        response = await client.delete(
            f"/api/v1/users/{uuid.uuid4()}", headers=auth_headers(admin)
        )
        assert response.status_code == 404

    async def test_delete_purges_created_tasks_and_unassigns_others(
        self,
        client: AsyncClient,
        admin: User,
        user_a: User,
        user_b: User,
        storage,
    ) -> None:
        owned = await create_task(client, user_b, title="Bob's own", files=[pdf_file()])
        assigned = await create_task(client, user_a, title="For Bob", assignedTo=user_b.id)
        assert len(os.listdir(storage.root)) == 1

        response = await client.delete(
            f"/api/v1/users/{user_b.id}", headers=auth_headers(admin)
        )
        assert response.status_code == 200

        response = await client.get(
            f"/api/v1/tasks/{owned['id']}", headers=auth_headers(admin)
        )
        assert response.status_code == 404
        assert os.listdir(storage.root) == []

        response = await client.get(
            f"/api/v1/tasks/{assigned['id']}", headers=auth_headers(user_a)
        )
        assert response.status_code == 200
        assert response.json()["data"]["assignedTo"] is None

        response = await client.get("/api/v1/auth/me", headers=auth_headers(user_b))
        assert response.status_code == 401

    async def test_delete_keeps_documents_uploaded_to_other_tasks(
        self,
        client: AsyncClient,
        admin: User,
        user_a: User,
        user_b: User,
        storage,
    ) -> None:
        task = await create_task(client, user_a, title="Shared", assignedTo=user_b.id)
        response = await client.put(
            f"/api/v1/tasks/{task['id']}",
            files=[pdf_file("from-bob.pdf")],
            headers=auth_headers(user_b),
        )
        assert response.status_code == 200
        document = response.json()["data"]["documents"][0]

        response = await client.delete(
            f"/api/v1/users/{user_b.id}", headers=auth_headers(admin)
        )
        assert response.status_code == 200

        response = await client.get(
            f"/api/v1/tasks/{task['id']}", headers=auth_headers(user_a)
        )
        [kept] = response.json()["data"]["documents"]
        assert kept["id"] == document["id"]
        assert kept["uploadedBy"] is None
        assert os.listdir(storage.root) == [document["filename"]]

        response = await client.get(
            f"/api/v1/tasks/{task['id']}/documents/{document['id']}/download",
            headers=auth_headers(user_a),
        )
        assert response.status_code == 200
