"""
HTTP tests for the v1 API.

Each test gets a fresh in-memory store wired in through dependency overrides.
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.store import MemoryDocumentStore, get_store
from app.main import app

ADMIN = {"Authorization": "Bearer founder"}
JOINER = {"Authorization": "Bearer joiner"}


@pytest.fixture
async def client():
    store = MemoryDocumentStore()
    await store.open()

    async def override_store():
        return store

    app.dependency_overrides[get_store] = override_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    await store.close()


async def _create_org(client: AsyncClient, name: str = "Acme Robotics") -> str:
    resp = await client.post("/api/v1/orgs", json={"name": name}, headers=ADMIN)
    assert resp.status_code == 201
    return resp.json()["eid"]


class TestIdentity:
    async def test_anonymous_sign_in(self, client: AsyncClient):
        resp = await client.post("/auth/anonymous")
        assert resp.status_code == 201
        data = resp.json()
        assert data["identity_id"].startswith("anon-")
        assert data["token_type"] == "bearer"

    async def test_missing_identity_is_401(self, client: AsyncClient):
        resp = await client.post("/api/v1/orgs", json={"name": "Acme"})
        assert resp.status_code == 401

    async def test_malformed_identity_is_401(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/orgs", json={"name": "Acme"}, headers={"Authorization": "Token abc"}
        )
        assert resp.status_code == 401


class TestOrganizations:
    async def test_create_and_view(self, client: AsyncClient):
        eid = await _create_org(client)
        resp = await client.get(f"/api/v1/orgs/{eid}/view", headers=ADMIN)
        assert resp.status_code == 200
        view = resp.json()
        assert view["is_administrator"] is True
        assert view["role_name"] == "Owner"
        assert view["members"][0]["identity_id"] == "founder"
        assert view["pending_count"] == 0

    async def test_search(self, client: AsyncClient):
        eid = await _create_org(client)
        resp = await client.get("/api/v1/orgs/search", params={"q": "robot"})
        assert resp.status_code == 200
        assert [i["eid"] for i in resp.json()["data"]] == [eid]

        resp = await client.get("/api/v1/orgs/search", params={"q": "r"})
        assert resp.json()["data"] == []

    async def test_unknown_org_error_format(self, client: AsyncClient):
        resp = await client.get("/api/v1/orgs/NX-0000-Q/view", headers=ADMIN)
        assert resp.status_code == 404
        error = resp.json()["error"]
        assert error["code"] == "UNKNOWN_TARGET"
        assert error["status"] == 404
        assert "NX-0000-Q" in error["message"]

    async def test_blank_name_is_422(self, client: AsyncClient):
        resp = await client.post("/api/v1/orgs", json={"name": ""}, headers=ADMIN)
        assert resp.status_code == 422


class TestJoinFlow:
    async def test_full_join_flow(self, client: AsyncClient):
        eid = await _create_org(client)
        base = f"/api/v1/orgs/{eid}"

        resp = await client.post(
            f"{base}/roles", json={"name": "Manager", "privileges": ["READ", "WRITE"]}, headers=ADMIN
        )
        assert resp.status_code == 201

        resp = await client.post(
            f"{base}/folders",
            json={"name": "Payroll", "allowed_roles": ["Manager"]},
            headers=ADMIN,
        )
        assert resp.status_code == 201
        folder_id = resp.json()["id"]

        resp = await client.post(f"{base}/requests", json={"display_name": "Field Agent"}, headers=JOINER)
        assert resp.status_code == 202
        request_id = resp.json()["id"]
        assert request_id == f"{eid}_joiner"

        # Only administrators see the queue
        resp = await client.get(f"{base}/requests", headers=JOINER)
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "ACCESS_DENIED"

        resp = await client.get(f"{base}/requests", headers=ADMIN)
        assert [r["requester_id"] for r in resp.json()["data"]] == ["joiner"]

        resp = await client.get(f"{base}/resources/{folder_id}/access", headers=JOINER)
        assert resp.json() == {"resource_id": folder_id, "allowed": False}

        resp = await client.post(
            f"{base}/requests/{request_id}/approve", json={"role_name": "Manager"}, headers=ADMIN
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["request"]["status"] == "APPROVED"
        assert body["membership"]["privileges"] == ["READ", "WRITE"]

        resp = await client.get(f"{base}/resources/{folder_id}/access", headers=JOINER)
        assert resp.json()["allowed"] is True

        resp = await client.get(f"{base}/folders", headers=JOINER)
        assert [f["id"] for f in resp.json()] == [folder_id]

        resp = await client.post(
            f"{base}/requests/{request_id}/approve", json={"role_name": "Manager"}, headers=ADMIN
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "REQUEST_NOT_PENDING"

    async def test_role_edits(self, client: AsyncClient):
        eid = await _create_org(client)
        base = f"/api/v1/orgs/{eid}/roles"
        await client.post(base, json={"name": "Auditor", "privileges": ["BILLING"]}, headers=ADMIN)

        resp = await client.put(
            f"{base}/Auditor/privileges", json={"privileges": ["READ"]}, headers=ADMIN
        )
        assert resp.json()["privileges"] == ["READ"]

        resp = await client.post(f"{base}/Auditor/toggle", json={"privilege": "EXECUTE"}, headers=ADMIN)
        assert resp.json()["privileges"] == ["READ", "EXECUTE"]

        resp = await client.post(base, json={"name": "Auditor", "privileges": ["READ"]}, headers=ADMIN)
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "DUPLICATE_ROLE"

        resp = await client.post(base, json={"name": "Empty", "privileges": []}, headers=ADMIN)
        assert resp.status_code == 422

        resp = await client.put(
            f"{base}/Ghost/privileges", json={"privileges": ["READ"]}, headers=ADMIN
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "UNKNOWN_ROLE"

    async def test_add_member_and_database(self, client: AsyncClient):
        eid = await _create_org(client)
        base = f"/api/v1/orgs/{eid}"
        await client.post(f"{base}/roles", json={"name": "Viewer", "privileges": ["READ"]}, headers=ADMIN)

        resp = await client.post(
            f"{base}/members",
            json={"identity_id": "joiner", "display_name": "Joiner", "role_name": "Viewer"},
            headers=ADMIN,
        )
        assert resp.status_code == 201

        resp = await client.post(f"{base}/databases", json={"name": "Orders"}, headers=ADMIN)
        assert resp.status_code == 201
        db_id = resp.json()["id"]

        resp = await client.get(f"{base}/resources/{db_id}/access", headers=JOINER)
        assert resp.json()["allowed"] is False

        resp = await client.get(f"{base}/view", headers=JOINER)
        view = resp.json()
        assert view["databases"] == []
        assert view["effective_privileges"] == ["READ"]

    async def test_join_bootstrap_org(self, client: AsyncClient):
        resp = await client.post("/api/v1/orgs/NX-8820-A/requests", json={}, headers=JOINER)
        assert resp.status_code == 202
        assert resp.json()["display_name"] == "Node_join"
