"""Tests for the pull request lifecycle decision (pure function)."""

from __future__ import annotations

from fakes import dep, record

from deprefresh.engines.group_refresh.decider import decide
from deprefresh.engines.group_refresh.merger import merge_changes
from deprefresh.engines.group_refresh.models import (
    Change,
    CloseReason,
    Decision,
    ExistingPullRequest,
    PullRequestAction,
)


def _change(*pins: tuple[str, str]) -> Change:
    return Change(updated_dependencies=[dep(n, v) for n, v in pins], group_name="backend")


class TestClose:
    def test_group_without_members_closes_as_empty(self):
        decision = decide(Change(), record("backend", ("alpha", "1.1")), member_count=0)
        assert decision == Decision(PullRequestAction.CLOSE, CloseReason.DEPENDENCY_GROUP_EMPTY)

    def test_group_without_members_and_no_pr(self):
        decision = decide(Change(), None, member_count=0)
        assert decision.reason is CloseReason.DEPENDENCY_GROUP_EMPTY

    def test_nothing_updatable_closes_as_no_longer_possible(self):
        decision = decide(Change(), record("backend", ("alpha", "1.1")), member_count=2)
        assert decision == Decision(
            PullRequestAction.CLOSE, CloseReason.UPDATE_NO_LONGER_POSSIBLE
        )


class TestCreate:
    def test_no_existing_pr_creates(self):
        assert decide(_change(("alpha", "1.1")), None, member_count=1) == Decision(
            PullRequestAction.CREATE
        )


class TestExistingPullRequest:
    def test_same_names_same_versions_updates_in_place(self):
        existing = record("backend", ("alpha", "1.1"), ("beta", "2.0"))
        decision = decide(_change(("alpha", "1.1"), ("beta", "2.0")), existing, member_count=2)
        assert decision.action is PullRequestAction.UPDATE
        assert decision.reason is None

    def test_update_in_place_ignores_order(self):
        existing = record("backend", ("beta", "2.0"), ("alpha", "1.1"))
        decision = decide(_change(("alpha", "1.1"), ("beta", "2.0")), existing, member_count=2)
        assert decision.action is PullRequestAction.UPDATE

    def test_version_moved_supersedes(self):
        existing = record("backend", ("A", "1.1"), ("B", "2.0"))
        decision = decide(_change(("A", "1.1"), ("B", "2.1")), existing, member_count=2)
        assert decision == Decision(PullRequestAction.SUPERSEDE)

    def test_different_names_replace(self):
        existing = record("backend", ("A", "1.1"), ("B", "2.0"))
        decision = decide(_change(("A", "1.1"), ("C", "3.0")), existing, member_count=3)
        assert decision == Decision(PullRequestAction.REPLACE, CloseReason.DEPENDENCIES_CHANGED)

    def test_added_dependency_replaces(self):
        existing = record("backend", ("A", "1.1"))
        decision = decide(_change(("A", "1.1"), ("B", "2.0")), existing, member_count=2)
        assert decision.action is PullRequestAction.REPLACE

    def test_removed_dependency_replaces(self):
        existing = record("backend", ("A", "1.1"), ("B", "2.0"))
        decision = decide(_change(("A", "1.1")), existing, member_count=2)
        assert decision.action is PullRequestAction.REPLACE

    def test_names_compare_case_insensitively(self):
        existing = record("backend", ("Django", "5.0"))
        decision = decide(_change(("django", "5.0")), existing, member_count=1)
        assert decision.action is PullRequestAction.UPDATE


class TestMultiDirectoryRecord:
    def _record(self):
        return ExistingPullRequest(
            group_name="backend",
            dependencies=(("A", "2.0", "/d1"), ("A", "1.8", "/d2")),
        )

    def test_rerun_updates_in_place(self):
        merged = merge_changes(
            [
                Change(updated_dependencies=[dep("A", "2.0", directory="/d1")]),
                Change(updated_dependencies=[dep("A", "1.8", directory="/d2")]),
            ]
        )
        decision = decide(merged, self._record(), member_count=2)
        assert decision.action is PullRequestAction.UPDATE

    def test_first_directory_version_is_the_target(self):
        assert self._record().versions == {"a": "2.0"}

    def test_first_directory_moved_supersedes(self):
        decision = decide(_change(("A", "2.1")), self._record(), member_count=2)
        assert decision.action is PullRequestAction.SUPERSEDE


class TestDecisionText:
    def test_str_includes_reason(self):
        decision = Decision(PullRequestAction.CLOSE, CloseReason.DEPENDENCIES_CHANGED)
        assert str(decision) == "close (dependencies changed)"
        assert str(Decision(PullRequestAction.CREATE)) == "create"
