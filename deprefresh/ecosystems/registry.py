"""Ecosystem registry — look up collaborators by package manager."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from deprefresh.engines.group_refresh.collaborators import (
    DependencyParser,
    FileFetcher,
    FileUpdater,
    UpdateCheckerFactory,
)


@runtime_checkable
class Ecosystem(Protocol):
    """Bundle of collaborators that every ecosystem must provide."""

    package_manager: str

    def file_fetcher(self, repo_root: Path) -> FileFetcher: ...

    def parser(self) -> DependencyParser: ...

    def checker_factory(self) -> UpdateCheckerFactory: ...

    def file_updater(self) -> FileUpdater: ...

    async def close(self) -> None: ...


ECOSYSTEM_REGISTRY: dict[str, Ecosystem] = {}


def register_ecosystem(ecosystem: Ecosystem) -> None:
    """Register an ecosystem instance by its package_manager."""
    ECOSYSTEM_REGISTRY[ecosystem.package_manager] = ecosystem


def get_ecosystem(package_manager: str) -> Ecosystem:
    """Return the ecosystem for *package_manager*.

    Raises KeyError listing the registered package managers if unknown.
    """
    try:
        return ECOSYSTEM_REGISTRY[package_manager]
    except KeyError:
        known = ", ".join(sorted(ECOSYSTEM_REGISTRY)) or "none"
        raise KeyError(
            f"unsupported package manager {package_manager!r} (registered: {known})"
        ) from None
