"""Static RBAC policy definitions (implication rules, default grants)."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from .types import Action

# Coarse resource action -> the finer actions it implies.
IMPLICATIONS: dict[Action, tuple[Action, ...]] = {
    Action.CREATE_WIKI: (Action.CREATE_WIKI_SECTION, Action.CREATE_WIKI_PAGE),
    Action.READ_WIKI: (Action.READ_WIKI_SECTION, Action.READ_WIKI_PAGE),
    Action.UPDATE_WIKI: (Action.UPDATE_WIKI_SECTION, Action.UPDATE_WIKI_PAGE),
    Action.DELETE_WIKI: (Action.DELETE_WIKI_SECTION, Action.DELETE_WIKI_PAGE),
}

# Global grant given to a regular user when the caller supplies none.
DEFAULT_USER_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.CREATE_WORKSPACE,
        Action.READ_WORKSPACE,
    }
)

# Workspace grant given to a member added by a workspace admin.
DEFAULT_IN_WORKSPACE_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.READ_WORKSPACE,
        Action.CREATE_DEPLOYMENT,
        Action.READ_DEPLOYMENT,
        Action.UPDATE_DEPLOYMENT,
        Action.DELETE_DEPLOYMENT,
        Action.PROXY_DEPLOYMENT,
        Action.CREATE_WIKI,
        Action.READ_WIKI,
        Action.UPDATE_WIKI,
        Action.DELETE_WIKI,
        Action.CREATE_PROJECT,
        Action.READ_PROJECT,
        Action.UPDATE_PROJECT,
        Action.DELETE_PROJECT,
        Action.CREATE_PROJECT_LANE,
        Action.READ_PROJECT_LANE,
        Action.UPDATE_PROJECT_LANE,
        Action.DELETE_PROJECT_LANE,
        Action.CREATE_PROJECT_TASK,
        Action.READ_PROJECT_TASK,
        Action.UPDATE_PROJECT_TASK,
        Action.DELETE_PROJECT_TASK,
    }
)


def effective_actions(actions: Iterable[Action]) -> frozenset[Action]:
    """Return ``actions`` closed under :data:`IMPLICATIONS`.

    Pure: the input is never modified and a new frozenset is returned, so
    ``effective_actions(effective_actions(p)) == effective_actions(p)``.
    """

    expanded = set(actions)
    queue = deque(expanded)
    while queue:
        action = queue.popleft()
        for implied in IMPLICATIONS.get(action, ()):
            if implied not in expanded:
                expanded.add(implied)
                queue.append(implied)
    return frozenset(expanded)


def is_satisfied(required: Iterable[Action], granted: Iterable[Action]) -> bool:
    """Return whether every required action is granted.

    An empty requirement or an empty grant never passes.
    """

    required_set = frozenset(required)
    granted_set = frozenset(granted)
    if not required_set or not granted_set:
        return False
    return required_set <= granted_set


__all__ = [
    "DEFAULT_IN_WORKSPACE_ACTIONS",
    "DEFAULT_USER_ACTIONS",
    "IMPLICATIONS",
    "effective_actions",
    "is_satisfied",
]
