"""Authorization engine and permission-document mutations.

``check_access`` answers "may user U perform actions A, optionally inside
workspace W?" from the user's permission document. SuperAdmin and
WorkspaceAdmin grants short-circuit to granted; explicit grants are expanded
through :func:`effective_actions` before the subset test, and the stored set
is never modified by a check.

Every mutation is a read-modify-write of one document guarded by its
``version`` column. A lost race re-reads and re-applies the mutation, so
concurrent writers to the same user never silently discard each other.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from sqlalchemy.ext.asyncio import AsyncSession

from agora_api.common.logging import log_context
from agora_api.core.rbac import (
    DEFAULT_USER_ACTIONS,
    Action,
    GlobalRole,
    Grant,
    WorkspaceRole,
    effective_actions,
    is_satisfied,
)

from .document import PermissionDocument, global_grant, stored_actions, workspace_grant
from .exceptions import (
    ConcurrentUpdateError,
    PermissionsNotFoundError,
    UserNotInWorkspaceError,
    WorkspaceNotFoundError,
)
from .repository import PermissionsRepository

logger = logging.getLogger(__name__)

DEFAULT_WRITE_ATTEMPTS = 5

Mutation = Callable[[PermissionDocument], PermissionDocument | None]


@dataclass(frozen=True, slots=True)
class AccessDecision:
    granted: bool
    is_admin: bool


def _decide(grant: Grant, required: frozenset[Action]) -> AccessDecision:
    if grant.is_admin:
        return AccessDecision(granted=True, is_admin=True)
    granted = is_satisfied(required, effective_actions(stored_actions(grant)))
    return AccessDecision(granted=granted, is_admin=False)


class AuthorizationService:
    """Read and write permission documents for one database session."""

    def __init__(
        self,
        *,
        session: AsyncSession,
        max_write_attempts: int = DEFAULT_WRITE_ATTEMPTS,
    ) -> None:
        self._session = session
        self._repo = PermissionsRepository(session)
        self._max_write_attempts = max_write_attempts

    # ------------- reads -----------------

    async def get_document(self, user_id: str) -> PermissionDocument:
        document = await self._repo.find_one(user_id)
        if document is None:
            raise PermissionsNotFoundError(user_id)
        return document

    async def check_access(
        self,
        user_id: str,
        required: Iterable[Action],
        *,
        workspace_id: str | None = None,
    ) -> AccessDecision:
        """Evaluate ``required`` against the user's global or workspace grant.

        Raises :class:`PermissionsNotFoundError` when the user has no document
        and :class:`UserNotInWorkspaceError` when ``workspace_id`` is given but
        the user holds no entry for it.
        """

        required_set = frozenset(required)
        document = await self.get_document(user_id)

        if document.is_super_admin:
            decision = AccessDecision(granted=True, is_admin=True)
        elif workspace_id is None:
            decision = _decide(document.global_grant, required_set)
        else:
            grant = document.workspace(workspace_id)
            if grant is None:
                raise UserNotInWorkspaceError(user_id, workspace_id)
            decision = _decide(grant, required_set)

        if not decision.granted:
            logger.debug(
                "authorization.check.denied",
                extra=log_context(
                    user_id=user_id,
                    workspace_id=workspace_id,
                    required=sorted(action.value for action in required_set),
                ),
            )
        return decision

    async def can(
        self,
        user_id: str,
        required: Iterable[Action],
        *,
        workspace_id: str | None = None,
    ) -> AccessDecision:
        """Route-guard variant of :meth:`check_access`.

        A missing workspace entry is reported as :class:`WorkspaceNotFoundError`
        so a non-member cannot tell a hidden workspace from a missing one.
        """

        try:
            return await self.check_access(user_id, required, workspace_id=workspace_id)
        except UserNotInWorkspaceError as exc:
            raise WorkspaceNotFoundError(exc.workspace_id) from exc

    async def find_workspace_admin_user_ids(self, workspace_id: str) -> list[str]:
        user_ids = await self._repo.find_user_ids_in_workspace(workspace_id)
        documents = await self._repo.find_many(user_ids)
        return sorted(
            document.user_id
            for document in documents
            if (grant := document.workspace(workspace_id)) is not None and grant.is_admin
        )

    # ------------- mutations -----------------

    async def create_document(
        self,
        user_id: str,
        role: GlobalRole,
        permissions: Iterable[Action] | None = None,
    ) -> PermissionDocument:
        """Create the user's document; a second call returns the existing one.

        ``permissions=None`` gives a regular user the default global actions.
        An explicit (possibly empty) set is stored as given. SuperAdmin
        documents never store actions.
        """

        existing = await self._repo.find_one(user_id)
        if existing is not None:
            logger.info(
                "authorization.document.exists",
                extra=log_context(user_id=user_id, role=existing.global_role.value),
            )
            return existing

        actions = DEFAULT_USER_ACTIONS if permissions is None else permissions
        document = await self._repo.create(
            PermissionDocument(user_id=user_id, global_grant=global_grant(role, actions))
        )
        logger.info(
            "authorization.document.created",
            extra=log_context(user_id=user_id, role=role.value),
        )
        return document

    async def delete_document(self, user_id: str) -> bool:
        deleted = await self._repo.delete(user_id)
        logger.info(
            "authorization.document.deleted",
            extra=log_context(user_id=user_id, found=deleted),
        )
        return deleted

    async def set_global_permissions(
        self,
        user_id: str,
        role: GlobalRole,
        permissions: Iterable[Action] = (),
    ) -> PermissionDocument:
        grant = global_grant(role, permissions)
        document = await self._mutate(user_id, lambda doc: doc.with_global(grant))
        logger.info(
            "authorization.global.updated",
            extra=log_context(user_id=user_id, role=role.value),
        )
        return document

    async def set_workspace_permissions(
        self,
        user_id: str,
        workspace_id: str,
        role: WorkspaceRole,
        permissions: Iterable[Action] = (),
    ) -> PermissionDocument:
        grant = workspace_grant(role, permissions)

        def _apply(doc: PermissionDocument) -> PermissionDocument:
            if doc.workspace(workspace_id) is None:
                raise UserNotInWorkspaceError(user_id, workspace_id)
            return doc.with_workspace(workspace_id, grant)

        document = await self._mutate(user_id, _apply)
        logger.info(
            "authorization.workspace.updated",
            extra=log_context(user_id=user_id, workspace_id=workspace_id, role=role.value),
        )
        return document

    async def add_workspace_entry(
        self,
        user_id: str,
        workspace_id: str,
        role: WorkspaceRole,
        permissions: Iterable[Action] = (),
    ) -> PermissionDocument:
        """Upsert the user's entry for ``workspace_id``.

        A missing document raises :class:`PermissionsNotFoundError` so the
        event layer redelivers instead of dropping the grant.
        """

        grant = workspace_grant(role, permissions)

        def _apply(doc: PermissionDocument) -> PermissionDocument | None:
            if doc.workspace(workspace_id) == grant:
                return None
            return doc.with_workspace(workspace_id, grant)

        document = await self._mutate(user_id, _apply)
        logger.info(
            "authorization.workspace.entry_added",
            extra=log_context(user_id=user_id, workspace_id=workspace_id, role=role.value),
        )
        return document

    async def remove_workspace_entry(self, user_id: str, workspace_id: str) -> bool:
        """Drop the user's entry; absent entries and documents are a no-op."""

        removed = False

        def _apply(doc: PermissionDocument) -> PermissionDocument | None:
            nonlocal removed
            if doc.workspace(workspace_id) is None:
                removed = False
                return None
            removed = True
            return doc.without_workspace(workspace_id)

        try:
            await self._mutate(user_id, _apply)
        except PermissionsNotFoundError:
            removed = False
        logger.info(
            "authorization.workspace.entry_removed",
            extra=log_context(user_id=user_id, workspace_id=workspace_id, found=removed),
        )
        return removed

    async def remove_all_workspace_entries(self, workspace_id: str) -> int:
        """Remove ``workspace_id`` from every document that references it.

        Documents are updated one at a time; there is no cross-document
        atomicity.
        """

        removed = 0
        for user_id in await self._repo.find_user_ids_in_workspace(workspace_id):
            if await self.remove_workspace_entry(user_id, workspace_id):
                removed += 1
        logger.info(
            "authorization.workspace.entries_removed",
            extra=log_context(workspace_id=workspace_id, count=removed),
        )
        return removed

    # ------------- internals -----------------

    async def _mutate(
        self,
        user_id: str,
        mutation: Mutation,
    ) -> PermissionDocument:
        for attempt in range(1, self._max_write_attempts + 1):
            current = await self._repo.find_one(user_id)
            if current is None:
                raise PermissionsNotFoundError(user_id)

            updated = mutation(current)
            if updated is None or updated == current:
                return current
            if await self._repo.replace(updated):
                return replace(updated, version=updated.version + 1)
            logger.debug(
                "authorization.document.write_conflict",
                extra=log_context(user_id=user_id, attempt=attempt),
            )
        raise ConcurrentUpdateError(user_id, self._max_write_attempts)


__all__ = ["AccessDecision", "AuthorizationService"]
