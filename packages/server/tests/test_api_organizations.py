"""
End-to-end tests for organization and membership routes.
"""

from __future__ import annotations

import uuid

import pytest

from todo_api_shared.schemas.common import Role

from helpers import bearer, register, token_for


@pytest.fixture
async def owner_token(services):
    await register(services, "owner")
    return await token_for(services, "owner")


async def create_org(client, token, slug="acme"):
    resp = await client.post("/api/v1/orgs", json={"name": "Acme", "slug": slug}, headers=bearer(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestOrganizations:
    @pytest.mark.asyncio
    async def test_create_list_get(self, client, owner_token):
        org = await create_org(client, owner_token, slug="Acme-Corp")
        assert org["slug"] == "acme-corp"

        resp = await client.get("/api/v1/orgs", headers=bearer(owner_token))
        assert resp.status_code == 200
        assert [o["id"] for o in resp.json()["data"]] == [org["id"]]

        resp = await client.get(f"/api/v1/orgs/{org['id']}", headers=bearer(owner_token))
        assert resp.status_code == 200
        assert resp.json()["name"] == "Acme"

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, client, owner_token):
        await create_org(client, owner_token)
        resp = await client.post("/api/v1/orgs", json={"name": "B", "slug": "ACME"}, headers=bearer(owner_token))
        assert resp.status_code == 409
        assert resp.json()["code"] == "SLUG_ALREADY_EXISTS"

    @pytest.mark.asyncio
    async def test_invalid_slug(self, client, owner_token):
        resp = await client.post("/api/v1/orgs", json={"name": "B", "slug": "-bad-"}, headers=bearer(owner_token))
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client):
        resp = await client.get("/api/v1/orgs")
        assert resp.status_code == 401


class TestMembers:
    @pytest.mark.asyncio
    async def test_add_list_update_remove(self, client, services, owner_token):
        org = await create_org(client, owner_token)
        bob = await register(services, "bob")

        resp = await client.post(
            f"/api/v1/orgs/{org['id']}/members",
            json={"user_id": str(bob.id), "role": "member"},
            headers=bearer(owner_token),
        )
        assert resp.status_code == 201
        membership = resp.json()
        assert membership["role"] == "member"

        resp = await client.get(f"/api/v1/orgs/{org['id']}/members", headers=bearer(owner_token))
        assert len(resp.json()["data"]) == 2

        resp = await client.patch(
            f"/api/v1/orgs/{org['id']}/members/{membership['id']}",
            json={"role": "admin"},
            headers=bearer(owner_token),
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"

        resp = await client.delete(
            f"/api/v1/orgs/{org['id']}/members/{membership['id']}", headers=bearer(owner_token)
        )
        assert resp.status_code == 204

    @pytest.mark.asyncio
    async def test_duplicate_member(self, client, services, owner_token):
        org = await create_org(client, owner_token)
        owner = await services.users.get_by_username("owner")
        resp = await client.post(
            f"/api/v1/orgs/{org['id']}/members",
            json={"user_id": str(owner.id), "role": "viewer"},
            headers=bearer(owner_token),
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "USER_ALREADY_MEMBER"

    @pytest.mark.asyncio
    async def test_last_owner_over_http(self, client, services, owner_token):
        org = await create_org(client, owner_token)
        resp = await client.get(f"/api/v1/orgs/{org['id']}/members", headers=bearer(owner_token))
        [me] = resp.json()["data"]

        resp = await client.delete(f"/api/v1/orgs/{org['id']}/members/{me['id']}", headers=bearer(owner_token))
        assert resp.status_code == 400
        assert resp.json()["code"] == "CANNOT_REMOVE_LAST_OWNER"

        resp = await client.patch(
            f"/api/v1/orgs/{org['id']}/members/{me['id']}",
            json={"role": "viewer"},
            headers=bearer(owner_token),
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "CANNOT_CHANGE_LAST_OWNER"

    @pytest.mark.asyncio
    async def test_admin_cannot_change_roles(self, client, services, owner_token):
        org = await create_org(client, owner_token)
        admin = await register(services, "adam")
        await services.organizations.add_member(uuid.UUID(org["id"]), admin.id, Role.ADMIN)
        admin_token = await token_for(services, "adam")

        resp = await client.get(f"/api/v1/orgs/{org['id']}/members", headers=bearer(admin_token))
        owner_membership = next(m for m in resp.json()["data"] if m["role"] == "owner")
        resp = await client.patch(
            f"/api/v1/orgs/{org['id']}/members/{owner_membership['id']}",
            json={"role": "viewer"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == "MISSING_PERMISSION"

    @pytest.mark.asyncio
    async def test_membership_of_other_org(self, client, services, owner_token):
        org = await create_org(client, owner_token, slug="one")
        other = await create_org(client, owner_token, slug="two")
        resp = await client.get(f"/api/v1/orgs/{other['id']}/members", headers=bearer(owner_token))
        [other_membership] = resp.json()["data"]

        resp = await client.delete(
            f"/api/v1/orgs/{org['id']}/members/{other_membership['id']}", headers=bearer(owner_token)
        )
        assert resp.status_code == 404
        assert resp.json()["code"] == "MEMBERSHIP_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_admin_cannot_add_owner(self, client, services, owner_token):
        org = await create_org(client, owner_token)
        admin = await register(services, "ada")
        await services.organizations.add_member(uuid.UUID(org["id"]), admin.id, Role.ADMIN)
        admin_token = await token_for(services, "ada")
        newcomer = await register(services, "ned")
        url = f"/api/v1/orgs/{org['id']}/members"

        resp = await client.post(
            url, json={"user_id": str(newcomer.id), "role": "owner"}, headers=bearer(admin_token)
        )
        assert resp.status_code == 403
        assert resp.json() == {
            "message": "Missing required permission: org:members:update-role",
            "code": "MISSING_PERMISSION",
        }

        resp = await client.post(
            url, json={"user_id": str(newcomer.id), "role": "admin"}, headers=bearer(admin_token)
        )
        assert resp.status_code == 201

    @pytest.mark.asyncio
    async def test_owner_can_add_owner(self, client, services, owner_token):
        org = await create_org(client, owner_token)
        newcomer = await register(services, "olga")
        resp = await client.post(
            f"/api/v1/orgs/{org['id']}/members",
            json={"user_id": str(newcomer.id), "role": "owner"},
            headers=bearer(owner_token),
        )
        assert resp.status_code == 201
        assert resp.json()["role"] == "owner"
