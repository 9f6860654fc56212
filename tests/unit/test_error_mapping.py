from __future__ import annotations

import pytest
from fastapi import HTTPException

from agora_api.common.exceptions import status_for_exception
from agora_api.common.ids import InvalidIdError, parse_id
from agora_api.features.authorization.exceptions import (
    AccessDeniedError,
    PermissionsNotFoundError,
    WorkspaceNotFoundError,
)
from agora_api.features.deployments.exceptions import DeploymentNotRunningError
from agora_api.features.proxy.exceptions import BackendUnavailableError
from agora_api.features.workspaces.exceptions import MinOneAdminInWorkspaceError
from agora_api.models import DeploymentStatus


@pytest.mark.parametrize(
    ("exc", "status_code"),
    [
        (InvalidIdError("id", "x"), 400),
        (AccessDeniedError(), 403),
        (WorkspaceNotFoundError("w"), 404),
        (MinOneAdminInWorkspaceError("w"), 409),
        (DeploymentNotRunningError("d", DeploymentStatus.FAILED), 409),
        (BackendUnavailableError("d"), 502),
        (PermissionsNotFoundError("u"), 500),
        (HTTPException(status_code=405), 405),
        (RuntimeError("boom"), 500),
    ],
)
def test_status_for_exception(exc: Exception, status_code: int) -> None:
    assert status_for_exception(exc) == status_code


def test_parse_id_canonicalizes() -> None:
    value = "0190A5B2-7C3D-7E4F-8A9B-0C1D2E3F4A5B"

    assert parse_id(f"  {value} ") == value.lower()
    with pytest.raises(InvalidIdError):
        parse_id("0190a5b2")
    with pytest.raises(InvalidIdError):
        parse_id(42)
