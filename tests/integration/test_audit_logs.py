from __future__ import annotations

import pytest

pytestmark = pytest.mark.asyncio


async def test_guarded_requests_are_recorded(
    async_client, admin_headers, auth_headers, create_user, create_workspace, add_member, settle
) -> None:
    alice = await create_user("alice@example.com")
    bob = await create_user("bob@example.com")
    workspace_id = await create_workspace(alice)
    await add_member(workspace_id, alice, "bob@example.com")

    denied = await async_client.delete(
        f"/api/v1/workspaces/{workspace_id}/users/{alice}",
        headers={**auth_headers(bob), "User-Agent": "agora-tests/1.0"},
    )
    assert denied.status_code == 403
    await settle()

    response = await async_client.get(
        "/api/v1/audit-logs", params={"user_id": bob}, headers=admin_headers
    )
    assert response.status_code == 200
    entries = response.json()
    assert len(entries) == 1
    entry = entries[0]
    assert entry["user_id"] == bob
    assert entry["workspace_id"] == workspace_id
    assert entry["actions"] == ["workspaces.users.remove"]
    assert entry["is_successful"] is False
    assert entry["user_agent"] == "agora-tests/1.0"

    successes = await async_client.get(
        "/api/v1/audit-logs",
        params={"user_id": alice, "workspace_id": workspace_id},
        headers=admin_headers,
    )
    assert [item["actions"] for item in successes.json()] == [["workspaces.users.add"]]
    assert successes.json()[0]["is_successful"] is True


async def test_requests_without_declared_actions_are_not_recorded(
    async_client, admin_headers, auth_headers, create_user, settle
) -> None:
    alice = await create_user("alice@example.com")

    await async_client.get("/api/v1/me/permissions", headers=auth_headers(alice))
    await settle()

    response = await async_client.get(
        "/api/v1/audit-logs", params={"user_id": alice}, headers=admin_headers
    )
    assert response.json() == []


async def test_audit_log_requires_permission(async_client, auth_headers, create_user) -> None:
    alice = await create_user("alice@example.com")

    response = await async_client.get("/api/v1/audit-logs", headers=auth_headers(alice))

    assert response.status_code == 403
