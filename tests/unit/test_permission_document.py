from __future__ import annotations

from agora_api.core.rbac import Action, AdminGrant, ExplicitGrant, GlobalRole, WorkspaceRole
from agora_api.features.authorization.document import (
    PermissionDocument,
    global_grant,
    workspace_grant,
)

USER_ID = "0190a5b2-7c3d-7e4f-8a9b-0c1d2e3f4a5b"
WORKSPACE_ID = "0190a5b2-0000-7000-8000-000000000001"


def test_admin_roles_never_store_actions() -> None:
    assert global_grant(GlobalRole.SUPER_ADMIN, [Action.READ_USER]) == AdminGrant()
    assert workspace_grant(WorkspaceRole.WORKSPACE_ADMIN, [Action.READ_WIKI]) == AdminGrant()
    assert global_grant(GlobalRole.USER, []) == ExplicitGrant()


def test_load_drops_unknown_actions() -> None:
    document = PermissionDocument.load(
        user_id=USER_ID,
        global_data={"role": "user", "permissions": ["workspaces.read", "retired.action"]},
        workspaces_data={
            WORKSPACE_ID: {"role": "workspace_admin", "permissions": []},
        },
        version=3,
    )

    assert document.global_grant == ExplicitGrant.of([Action.READ_WORKSPACE])
    assert document.workspace(WORKSPACE_ID) == AdminGrant()
    assert document.version == 3
    assert not document.is_super_admin


def test_dump_matches_stored_shape() -> None:
    document = PermissionDocument(
        user_id=USER_ID,
        global_grant=ExplicitGrant.of([Action.READ_WORKSPACE, Action.CREATE_WORKSPACE]),
        workspaces={WORKSPACE_ID: ExplicitGrant.of([Action.READ_WIKI])},
    )

    assert document.dump_global() == {
        "role": "user",
        "permissions": ["workspaces.create", "workspaces.read"],
    }
    assert document.dump_workspaces() == {
        WORKSPACE_ID: {"role": "user", "permissions": ["wiki.read"]},
    }


def test_with_and_without_workspace_return_new_documents() -> None:
    document = PermissionDocument(user_id=USER_ID, global_grant=ExplicitGrant())

    joined = document.with_workspace(WORKSPACE_ID, AdminGrant())
    left = joined.without_workspace(WORKSPACE_ID)

    assert document.workspaces == {}
    assert joined.workspace(WORKSPACE_ID) == AdminGrant()
    assert left.workspaces == {}
    assert left.without_workspace(WORKSPACE_ID) is left
