"""Data models for the group refresh engine.

These are pure data structures — no I/O, no collaborator references.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

AppliesTo = Literal["version-updates", "security-updates"]
DependencyType = Literal["production", "development"]


class RequirementsUnlock(str, Enum):
    """How far declared requirements must be relaxed for an update."""

    NONE = "none"
    OWN = "own"
    ALL = "all"
    UPDATE_NOT_POSSIBLE = "update_not_possible"


class PullRequestAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    SUPERSEDE = "supersede"
    CLOSE = "close"


class CloseReason(str, Enum):
    DEPENDENCY_GROUP_EMPTY = "dependency_group_empty"
    UPDATE_NO_LONGER_POSSIBLE = "update_no_longer_possible"
    DEPENDENCIES_CHANGED = "dependencies_changed"

    def humanize(self) -> str:
        return self.value.replace("_", " ")


@dataclass
class Dependency:
    """A single dependency as parsed from (or updated in) a manifest."""

    name: str
    version: str | None
    directory: str = "/"
    previous_version: str | None = None
    top_level: bool = True
    production: bool = True
    requirements: list[dict[str, Any]] = field(default_factory=list)
    previous_requirements: list[dict[str, Any]] | None = None


@dataclass(frozen=True)
class DependencyFile:
    """A manifest or lockfile, scoped to the directory it was fetched from."""

    name: str
    content: str
    directory: str = "/"

    @property
    def key(self) -> tuple[str, str]:
        return (self.directory, self.name)


@dataclass(frozen=True)
class DependencyGroup:
    """A named, predicate-defined subset of a project's dependencies."""

    name: str
    applies_to: AppliesTo = "version-updates"
    patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    dependency_type: DependencyType | None = None

    def contains(self, dependency: Dependency) -> bool:
        """Return True if *dependency* is a member of this group.

        Patterns are shell-style globs matched case-insensitively; an empty
        pattern list matches every dependency.
        """
        name = dependency.name.lower()
        if self.patterns and not any(_glob(name, p) for p in self.patterns):
            return False
        if any(_glob(name, p) for p in self.exclude_patterns):
            return False
        if self.dependency_type == "production" and not dependency.production:
            return False
        if self.dependency_type == "development" and dependency.production:
            return False
        return True


def _glob(name: str, pattern: str) -> bool:
    return fnmatch.fnmatchcase(name, pattern.lower())


@dataclass
class Change:
    """The dependency upgrades and file edits computed for one group.

    An empty ``updated_dependencies`` list means nothing could be updated;
    such a change may only ever lead to a close.
    """

    updated_dependencies: list[Dependency] = field(default_factory=list)
    updated_files: list[DependencyFile] = field(default_factory=list)
    grouped_update: bool = True
    group_name: str | None = None

    @property
    def dependency_names(self) -> list[str]:
        return [d.name for d in self.updated_dependencies]

    @property
    def is_empty(self) -> bool:
        return not self.updated_dependencies


@dataclass(frozen=True)
class ExistingPullRequest:
    """What the currently open PR for a group claims to update (read-only)."""

    group_name: str
    dependencies: tuple[tuple[str, str | None, str | None], ...]

    @property
    def dependency_names(self) -> list[str]:
        return [name for name, _, _ in self.dependencies]

    @property
    def versions(self) -> dict[str, str | None]:
        """Target version per lowercased name.

        A multi-directory PR lists a dependency once per directory; the first
        entry wins, matching how per-directory changes are merged.
        """
        versions: dict[str, str | None] = {}
        for name, version, _ in self.dependencies:
            versions.setdefault(name.lower(), version)
        return versions


@dataclass(frozen=True)
class Decision:
    action: PullRequestAction
    reason: CloseReason | None = None

    def __str__(self) -> str:
        if self.reason is None:
            return self.action.value
        return f"{self.action.value} ({self.reason.humanize()})"


@dataclass
class RefreshResult:
    """Outcome of refreshing a single group."""

    group_name: str
    decision: Decision | None = None
    change: Change | None = None
    error: str | None = None
