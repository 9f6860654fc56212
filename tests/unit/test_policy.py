from __future__ import annotations

from agora_api.core.rbac import (
    DEFAULT_IN_WORKSPACE_ACTIONS,
    IMPLICATIONS,
    Action,
    effective_actions,
    is_satisfied,
)


def test_coarse_wiki_action_implies_section_and_page() -> None:
    expanded = effective_actions({Action.READ_WIKI})

    assert expanded == {Action.READ_WIKI, Action.READ_WIKI_SECTION, Action.READ_WIKI_PAGE}


def test_fine_action_does_not_imply_coarse_action() -> None:
    expanded = effective_actions({Action.READ_WIKI_PAGE})

    assert expanded == {Action.READ_WIKI_PAGE}
    assert not is_satisfied({Action.READ_WIKI}, expanded)


def test_effective_actions_is_idempotent_and_pure() -> None:
    stored = {Action.CREATE_WIKI, Action.DELETE_WIKI, Action.READ_PROJECT}
    snapshot = set(stored)

    once = effective_actions(stored)

    assert effective_actions(once) == once
    assert stored == snapshot


def test_every_implication_is_contained_in_the_closure() -> None:
    for coarse, implied in IMPLICATIONS.items():
        assert set(implied) <= effective_actions({coarse})


def test_empty_requirement_or_grant_is_denied() -> None:
    assert not is_satisfied(set(), {Action.READ_WORKSPACE})
    assert not is_satisfied({Action.READ_WORKSPACE}, set())
    assert not is_satisfied(set(), set())


def test_requirement_must_be_a_subset() -> None:
    granted = effective_actions(DEFAULT_IN_WORKSPACE_ACTIONS)

    assert is_satisfied({Action.READ_WIKI_PAGE, Action.PROXY_DEPLOYMENT}, granted)
    assert not is_satisfied({Action.PROXY_DEPLOYMENT, Action.DELETE_WORKSPACE}, granted)


def test_default_member_grant_excludes_workspace_administration() -> None:
    assert Action.ADD_WORKSPACE_USER not in DEFAULT_IN_WORKSPACE_ACTIONS
    assert Action.REMOVE_WORKSPACE_USER not in DEFAULT_IN_WORKSPACE_ACTIONS
    assert Action.DELETE_WORKSPACE not in DEFAULT_IN_WORKSPACE_ACTIONS
