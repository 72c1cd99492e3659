"""pip ecosystem — requirements files resolved against PyPI."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from deprefresh.ecosystems.pip.checker import PypiClient, PypiUpdateChecker
from deprefresh.ecosystems.pip.fetcher import LocalFileFetcher
from deprefresh.ecosystems.pip.parser import RequirementsParser
from deprefresh.ecosystems.pip.updater import RequirementsFileUpdater
from deprefresh.ecosystems.registry import register_ecosystem
from deprefresh.engines.group_refresh.collaborators import UpdateCheckerFactory
from deprefresh.engines.group_refresh.models import Dependency, DependencyFile


class PipEcosystem:
    package_manager = "pip"

    def __init__(self) -> None:
        self._client: PypiClient | None = None

    def file_fetcher(self, repo_root: Path) -> LocalFileFetcher:
        return LocalFileFetcher(repo_root)

    def parser(self) -> RequirementsParser:
        return RequirementsParser()

    def checker_factory(self) -> UpdateCheckerFactory:
        if self._client is None:
            self._client = PypiClient()
        client = self._client

        def _factory(
            dependency: Dependency, files: Sequence[DependencyFile]
        ) -> PypiUpdateChecker:
            return PypiUpdateChecker(dependency, files, client)

        return _factory

    def file_updater(self) -> RequirementsFileUpdater:
        return RequirementsFileUpdater()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


register_ecosystem(PipEcosystem())

__all__ = [
    "LocalFileFetcher",
    "PipEcosystem",
    "PypiClient",
    "PypiUpdateChecker",
    "RequirementsFileUpdater",
    "RequirementsParser",
]
