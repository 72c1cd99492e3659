"""Interfaces the group refresh engine depends on.

The engine never imports a concrete ecosystem or gateway; everything below is
injected into :class:`~deprefresh.engines.group_refresh.runner.GroupRefreshRunner`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from deprefresh.engines.group_refresh.models import (
    Change,
    CloseReason,
    Dependency,
    DependencyFile,
    ExistingPullRequest,
    RequirementsUnlock,
)


@runtime_checkable
class FileFetcher(Protocol):
    async def fetch(self, directory: str) -> tuple[list[DependencyFile], str | None]:
        """Return the dependency files of *directory* and the base commit SHA."""
        ...


@runtime_checkable
class DependencyParser(Protocol):
    def parse(self, files: Sequence[DependencyFile]) -> list[Dependency]: ...


@runtime_checkable
class UpdateChecker(Protocol):
    """Per-dependency oracle answering whether and how it can be updated."""

    async def up_to_date(self) -> bool: ...

    def requirements_unlocked_or_can_be(self) -> bool: ...

    async def can_update(self, requirements_to_unlock: RequirementsUnlock) -> bool: ...

    async def updated_dependencies(
        self, requirements_to_unlock: RequirementsUnlock
    ) -> list[Dependency]: ...


class UpdateCheckerFactory(Protocol):
    def __call__(
        self, dependency: Dependency, files: Sequence[DependencyFile]
    ) -> UpdateChecker: ...


@runtime_checkable
class FileUpdater(Protocol):
    def update(
        self,
        dependencies: Sequence[Dependency],
        files: Sequence[DependencyFile],
    ) -> list[DependencyFile]:
        """Return the files whose content changed for *dependencies*."""
        ...


@runtime_checkable
class ServiceGateway(Protocol):
    """Hosting-side commit point and source of existing-PR metadata."""

    async def create_pull_request(self, change: Change, base_commit_sha: str | None) -> None: ...

    async def update_pull_request(self, change: Change, base_commit_sha: str | None) -> None: ...

    async def close_pull_request(
        self, dependency_names: Sequence[str], reason: CloseReason
    ) -> None: ...

    def existing_pull_request(self, group_name: str) -> ExistingPullRequest | None: ...

    async def capture_exception(
        self, error: BaseException, group_name: str | None = None
    ) -> None: ...

    async def record_update_job_error(
        self, error_type: str, error_details: dict[str, str] | None = None
    ) -> None: ...
