from __future__ import annotations

import httpx
import pytest

from agora_api.common.ids import generate_id
from agora_api.models import DeploymentStatus

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def running(create_user, create_workspace, seed_deployment):
    alice = await create_user("alice@example.com")
    workspace_id = await create_workspace(alice)
    deployment_id = await seed_deployment(workspace_id, alice)
    return alice, workspace_id, deployment_id


async def test_request_is_forwarded_with_prefix_stripped(
    async_client, auth_headers, backend, running
) -> None:
    alice, workspace_id, deployment_id = running

    response = await async_client.post(
        f"/proxy/{deployment_id}/api/items?page=2&sort=name",
        content=b"payload",
        headers={**auth_headers(alice), "Content-Type": "text/plain", "X-Trace": "t-1"},
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert response.headers["x-backend"] == "1"
    assert len(backend.requests) == 1
    forwarded = backend.requests[0]
    assert forwarded.method == "POST"
    assert forwarded.url.host == f"agora-{deployment_id}.agora-{workspace_id}.svc.test"
    assert forwarded.url.path == "/api/items"
    assert forwarded.url.query == b"page=2&sort=name"
    assert forwarded.content == b"payload"
    assert forwarded.headers["x-trace"] == "t-1"
    assert forwarded.headers["host"] == forwarded.url.host


async def test_bare_deployment_path_maps_to_root(
    async_client, auth_headers, backend, running
) -> None:
    alice, _, deployment_id = running

    response = await async_client.get(f"/proxy/{deployment_id}", headers=auth_headers(alice))

    assert response.status_code == 200
    assert backend.requests[0].url.path == "/"


async def test_upper_case_deployment_id_is_stripped_as_sent(
    async_client, auth_headers, backend, running
) -> None:
    alice, _, deployment_id = running

    response = await async_client.get(
        f"/proxy/{deployment_id.upper()}/api/items", headers=auth_headers(alice)
    )

    assert response.status_code == 200
    assert backend.requests[0].url.path == "/api/items"


async def test_platform_credentials_are_not_forwarded(
    async_client, auth_headers, backend, running
) -> None:
    alice, _, deployment_id = running

    response = await async_client.get(
        f"/proxy/{deployment_id}/search?q=a%20b&access_token=abc&page=2",
        headers={**auth_headers(alice), "X-Trace": "t-2"},
    )

    assert response.status_code == 200
    forwarded = backend.requests[0]
    assert "authorization" not in forwarded.headers
    assert forwarded.headers["x-trace"] == "t-2"
    assert forwarded.url.query == b"q=a%20b&page=2"


async def test_backend_status_and_body_pass_through(
    async_client, auth_headers, backend, running
) -> None:
    alice, _, deployment_id = running
    backend.status_code = 418
    backend.body = b"teapot"
    backend.headers = [("content-type", "text/plain")]

    response = await async_client.get(
        f"/proxy/{deployment_id}/brew", headers=auth_headers(alice)
    )

    assert response.status_code == 418
    assert response.content == b"teapot"


async def test_deployment_that_is_not_running_is_refused(
    async_client, auth_headers, backend, create_user, create_workspace, seed_deployment
) -> None:
    alice = await create_user("alice@example.com")
    workspace_id = await create_workspace(alice)
    deployment_id = await seed_deployment(workspace_id, alice, DeploymentStatus.CREATING)

    response = await async_client.get(f"/proxy/{deployment_id}/", headers=auth_headers(alice))

    assert response.status_code == 409
    assert backend.requests == []


async def test_unknown_and_malformed_deployments(
    async_client, auth_headers, backend, running
) -> None:
    alice, _, _ = running

    unknown = await async_client.get(f"/proxy/{generate_id()}/x", headers=auth_headers(alice))
    malformed = await async_client.get("/proxy/not-an-id/x", headers=auth_headers(alice))

    assert unknown.status_code == 404
    assert malformed.status_code == 400
    assert backend.requests == []


async def test_outsiders_and_anonymous_callers_never_reach_the_backend(
    async_client, auth_headers, backend, create_user, running
) -> None:
    _, _, deployment_id = running
    mallory = await create_user("mallory@example.com")

    outsider = await async_client.get(f"/proxy/{deployment_id}/", headers=auth_headers(mallory))
    anonymous = await async_client.get(f"/proxy/{deployment_id}/")

    assert outsider.status_code == 404
    assert anonymous.status_code == 401
    assert backend.requests == []


async def test_member_without_proxy_action_is_forbidden(
    async_client, auth_headers, backend, create_user, add_member, running
) -> None:
    alice, workspace_id, deployment_id = running
    bob = await create_user("bob@example.com")
    await add_member(workspace_id, alice, "bob@example.com")
    restricted = await async_client.put(
        f"/api/v1/workspaces/{workspace_id}/users/{bob}/permissions",
        json={"roles": ["user"], "permissions": ["deployments.read"]},
        headers=auth_headers(alice),
    )
    assert restricted.status_code == 200

    response = await async_client.get(f"/proxy/{deployment_id}/", headers=auth_headers(bob))

    assert response.status_code == 403
    assert backend.requests == []


async def test_unreachable_backend_is_a_generic_bad_gateway(
    async_client, auth_headers, backend, running
) -> None:
    alice, _, deployment_id = running
    backend.fail_with = httpx.ConnectError("connection refused by 10.0.0.7")

    response = await async_client.get(f"/proxy/{deployment_id}/", headers=auth_headers(alice))

    assert response.status_code == 502
    body = response.json()
    assert body["detail"] == "Proxy Error"
    assert "10.0.0.7" not in response.text


async def test_proxied_requests_are_audited(
    async_client, admin_headers, auth_headers, running, settle
) -> None:
    alice, workspace_id, deployment_id = running

    await async_client.get(f"/proxy/{deployment_id}/", headers=auth_headers(alice))
    await settle()

    response = await async_client.get(
        "/api/v1/audit-logs",
        params={"user_id": alice, "workspace_id": workspace_id},
        headers=admin_headers,
    )
    proxied = [entry for entry in response.json() if entry["actions"] == ["deployments.proxy"]]
    assert len(proxied) == 1
    assert proxied[0]["is_successful"] is True
