"""PyPI-backed update checker for requirements-file dependencies."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

import httpx
import structlog
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

from deprefresh.engines.group_refresh.models import (
    Dependency,
    DependencyFile,
    RequirementsUnlock,
)
from deprefresh.exceptions import UpdateCheckError

log = structlog.get_logger("deprefresh.ecosystems.pip")

DEFAULT_INDEX_URL = "https://pypi.org/pypi"


class PypiClient:
    """Look up the latest release of a project on the PyPI JSON API.

    Results are cached for the client's lifetime, so one job asks PyPI at
    most once per project.
    """

    def __init__(self, index_url: str | None = None) -> None:
        resolved_url = index_url or os.environ.get("DEPREFRESH_PYPI_URL", DEFAULT_INDEX_URL)
        self._client = httpx.AsyncClient(base_url=resolved_url.rstrip("/"), timeout=30.0)
        self._cache: dict[str, Version | None] = {}

    async def close(self) -> None:
        await self._client.aclose()

    async def latest_version(self, name: str) -> Version | None:
        key = canonicalize_name(name)
        if key not in self._cache:
            self._cache[key] = latest_release(await self._fetch(key))
        return self._cache[key]

    async def _fetch(self, name: str) -> dict[str, Any]:
        try:
            resp = await self._client.get(f"/{name}/json")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpdateCheckError(
                f"could not fetch releases of {name}: {exc}", dependency_name=name
            ) from exc
        return resp.json()


def latest_release(project: dict[str, Any]) -> Version | None:
    """Highest non-prerelease, non-yanked version in a PyPI project document."""
    best: Version | None = None
    for raw, artifacts in (project.get("releases") or {}).items():
        try:
            version = Version(raw)
        except InvalidVersion:
            continue
        if version.is_prerelease or version.is_devrelease:
            continue
        if artifacts and all(a.get("yanked") for a in artifacts):
            continue
        if best is None or version > best:
            best = version
    return best


class PypiUpdateChecker:
    """Update checker for one requirements-file dependency.

    Exact ``==`` pins have to be rewritten for any update, so they need the
    ``own`` unlock. There is no dependency graph in a requirements file, so
    ``all`` never succeeds where ``own`` does not. Arbitrary equality
    (``===``) pins are treated as locked.
    """

    def __init__(
        self,
        dependency: Dependency,
        files: Sequence[DependencyFile],
        client: PypiClient,
    ) -> None:
        self.dependency = dependency
        self.files = files
        self._client = client

    async def latest_version(self) -> Version | None:
        return await self._client.latest_version(self.dependency.name)

    def current_version(self) -> Version | None:
        if self.dependency.version is None:
            return None
        try:
            return Version(self.dependency.version)
        except InvalidVersion:
            return None

    async def up_to_date(self) -> bool:
        current = self.current_version()
        if current is None:
            # Unpinned: nothing in the files records a version to bump.
            return True
        latest = await self.latest_version()
        return latest is None or latest <= current

    def requirements_unlocked_or_can_be(self) -> bool:
        return not any(
            (req.get("requirement") or "").startswith("===")
            for req in self.dependency.requirements
        )

    async def can_update(self, requirements_to_unlock: RequirementsUnlock) -> bool:
        current = self.current_version()
        latest = await self.latest_version()
        if current is None or latest is None or latest <= current:
            return False
        if requirements_to_unlock is RequirementsUnlock.NONE:
            return all(
                _allows(req.get("requirement"), latest) for req in self.dependency.requirements
            )
        return requirements_to_unlock in (RequirementsUnlock.OWN, RequirementsUnlock.ALL)

    async def updated_dependencies(
        self, requirements_to_unlock: RequirementsUnlock
    ) -> list[Dependency]:
        latest = await self.latest_version()
        if latest is None or requirements_to_unlock is RequirementsUnlock.UPDATE_NOT_POSSIBLE:
            return []

        dep = self.dependency
        if requirements_to_unlock is RequirementsUnlock.NONE:
            requirements = [dict(r) for r in dep.requirements]
        else:
            requirements = [_pin(r, str(latest)) for r in dep.requirements]

        log.debug(
            "pip.update_found",
            dependency=dep.name,
            current=dep.version,
            latest=str(latest),
            unlock=requirements_to_unlock.value,
        )
        return [
            Dependency(
                name=dep.name,
                version=str(latest),
                directory=dep.directory,
                previous_version=dep.version,
                top_level=dep.top_level,
                production=dep.production,
                requirements=requirements,
                previous_requirements=[dict(r) for r in dep.requirements],
            )
        ]


def _allows(requirement: str | None, version: Version) -> bool:
    if not requirement:
        return True
    try:
        return SpecifierSet(requirement).contains(version, prereleases=True)
    except InvalidSpecifier:
        return False


def _pin(requirement: dict[str, Any], version: str) -> dict[str, Any]:
    pinned = dict(requirement)
    if (requirement.get("requirement") or "").startswith("=="):
        pinned["requirement"] = f"=={version}"
    return pinned
