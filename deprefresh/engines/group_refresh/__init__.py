"""Group refresh engine — reconcile grouped dependency-update pull requests."""

from deprefresh.engines.group_refresh.applicability import applies_to
from deprefresh.engines.group_refresh.compiler import ChangeCompiler
from deprefresh.engines.group_refresh.decider import decide
from deprefresh.engines.group_refresh.merger import merge_changes
from deprefresh.engines.group_refresh.models import (
    Change,
    CloseReason,
    Decision,
    Dependency,
    DependencyFile,
    DependencyGroup,
    ExistingPullRequest,
    PullRequestAction,
    RefreshResult,
    RequirementsUnlock,
)
from deprefresh.engines.group_refresh.requirements import requirements_to_unlock
from deprefresh.engines.group_refresh.runner import GroupRefreshRunner
from deprefresh.engines.group_refresh.snapshot import DependencySnapshot

__all__ = [
    "Change",
    "ChangeCompiler",
    "CloseReason",
    "Decision",
    "Dependency",
    "DependencyFile",
    "DependencyGroup",
    "DependencySnapshot",
    "ExistingPullRequest",
    "GroupRefreshRunner",
    "PullRequestAction",
    "RefreshResult",
    "RequirementsUnlock",
    "applies_to",
    "decide",
    "merge_changes",
    "requirements_to_unlock",
]
