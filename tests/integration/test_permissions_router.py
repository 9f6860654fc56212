from __future__ import annotations

import pytest

pytestmark = pytest.mark.asyncio


async def test_admin_reads_and_replaces_global_permissions(
    async_client, admin_headers, auth_headers, create_user
) -> None:
    alice = await create_user("alice@example.com")
    bob = await create_user("bob@example.com", permissions=[])

    before = await async_client.get(f"/api/v1/users/{alice}/permissions", headers=admin_headers)
    assert before.status_code == 200
    assert before.json()["roles"] == ["user"]
    assert before.json()["permissions"] == ["workspaces.create", "workspaces.read"]

    denied = await async_client.get(f"/api/v1/users/{bob}/permissions", headers=auth_headers(alice))
    assert denied.status_code == 403

    updated = await async_client.put(
        f"/api/v1/users/{alice}/permissions",
        json={"roles": ["user"], "permissions": ["users.read"]},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["permissions"] == ["users.read"]

    allowed = await async_client.get(f"/api/v1/users/{bob}/permissions", headers=auth_headers(alice))
    assert allowed.status_code == 200
    assert allowed.json()["permissions"] == []


async def test_explicit_empty_permissions_block_workspace_creation(
    async_client, auth_headers, create_user
) -> None:
    bob = await create_user("bob@example.com", permissions=[])

    response = await async_client.post(
        "/api/v1/workspaces", json={"name": "Nope"}, headers=auth_headers(bob)
    )

    assert response.status_code == 403


async def test_update_requires_exactly_one_role(async_client, admin_headers, create_user) -> None:
    alice = await create_user("alice@example.com")

    for roles in ([], ["user", "super_admin"], ["owner"]):
        response = await async_client.put(
            f"/api/v1/users/{alice}/permissions",
            json={"roles": roles, "permissions": []},
            headers=admin_headers,
        )
        assert response.status_code == 422


async def test_me_permissions_for_super_admin(async_client, admin_headers, admin_id) -> None:
    response = await async_client.get("/api/v1/me/permissions", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == admin_id
    assert body["roles"] == ["super_admin"]
    assert body["permissions"] == []


async def test_workspace_member_permissions(
    async_client, auth_headers, create_user, create_workspace, add_member
) -> None:
    alice = await create_user("alice@example.com")
    bob = await create_user("bob@example.com")
    carol = await create_user("carol@example.com")
    workspace_id = await create_workspace(alice)
    await add_member(workspace_id, alice, "bob@example.com")
    url = f"/api/v1/workspaces/{workspace_id}/users/{bob}/permissions"

    updated = await async_client.put(
        url,
        json={"roles": ["user"], "permissions": ["wiki.read"]},
        headers=auth_headers(alice),
    )
    assert updated.status_code == 200
    assert updated.json() == {
        "user_id": bob,
        "workspace_id": workspace_id,
        "roles": ["user"],
        "permissions": ["wiki.read"],
    }

    read_back = await async_client.get(url, headers=auth_headers(alice))
    assert read_back.json()["permissions"] == ["wiki.read"]

    # bob no longer holds workspaces.read inside the workspace
    own_read = await async_client.get(url, headers=auth_headers(bob))
    assert own_read.status_code == 403

    not_member = await async_client.put(
        f"/api/v1/workspaces/{workspace_id}/users/{carol}/permissions",
        json={"roles": ["user"], "permissions": []},
        headers=auth_headers(alice),
    )
    assert not_member.status_code == 404

    outsider = await async_client.get(url, headers=auth_headers(carol))
    assert outsider.status_code == 404
