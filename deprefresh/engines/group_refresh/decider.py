"""Pull request lifecycle decision — pure function, no I/O."""

from __future__ import annotations

from deprefresh.engines.group_refresh.models import (
    Change,
    CloseReason,
    Decision,
    ExistingPullRequest,
    PullRequestAction,
)


def decide(
    change: Change,
    existing: ExistingPullRequest | None,
    member_count: int,
) -> Decision:
    """Choose what to do with the group's pull request.

    - nothing to update, group has no members   → close (dependency group empty)
    - nothing to update                         → close (update no longer possible)
    - no open PR                                → create
    - dependency names differ                   → replace (close, then create)
    - names and target versions all match       → update in place
    - same names, some target version moved     → supersede (create only; the
      backend marks the old PR superseded once the new one exists)

    Dependency names compare case-insensitively since several ecosystems
    treat them that way.
    """
    if change.is_empty:
        if member_count == 0:
            return Decision(PullRequestAction.CLOSE, CloseReason.DEPENDENCY_GROUP_EMPTY)
        return Decision(PullRequestAction.CLOSE, CloseReason.UPDATE_NO_LONGER_POSSIBLE)

    if existing is None:
        return Decision(PullRequestAction.CREATE)

    new_names = {name.lower() for name in change.dependency_names}
    old_names = {name.lower() for name in existing.dependency_names}
    if new_names != old_names:
        return Decision(PullRequestAction.REPLACE, CloseReason.DEPENDENCIES_CHANGED)

    old_versions = existing.versions
    if all(old_versions.get(d.name.lower()) == d.version for d in change.updated_dependencies):
        return Decision(PullRequestAction.UPDATE)

    return Decision(PullRequestAction.SUPERSEDE)
