"""Route guards backed by the authorization engine."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request

from agora_api.api.deps import CurrentUserIdDep, get_authorization_service
from agora_api.common.ids import parse_id
from agora_api.core.rbac import Action

from .exceptions import AccessDeniedError
from .service import AccessDecision, AuthorizationService

AuthorizationServiceDep = Annotated[AuthorizationService, Depends(get_authorization_service)]


def require_actions(
    *actions: Action,
    workspace_param: str | None = "workspace_id",
) -> Callable[..., Awaitable[AccessDecision]]:
    """Return a dependency that admits the caller only if ``actions`` are granted.

    When the route declares ``workspace_param`` in its path the check runs
    against that workspace's grant, otherwise against the global grant. The
    declared actions, the workspace and the admin flag are left on
    ``request.state`` for the audit recorder.
    """

    required = frozenset(actions)

    async def dependency(
        request: Request,
        user_id: CurrentUserIdDep,
        service: AuthorizationServiceDep,
    ) -> AccessDecision:
        request.state.required_actions = required
        workspace_id: str | None = None
        if workspace_param is not None and workspace_param in request.path_params:
            workspace_id = parse_id(request.path_params[workspace_param], field=workspace_param)
            request.state.workspace_id = workspace_id

        decision = await service.can(user_id, required, workspace_id=workspace_id)
        request.state.is_admin = decision.is_admin
        if not decision.granted:
            raise AccessDeniedError()
        return decision

    return dependency


__all__ = ["AuthorizationServiceDep", "require_actions"]
