"""Tests for the pip ecosystem collaborators."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fakes import dep, req_file
from packaging.version import Version

from deprefresh.ecosystems import get_ecosystem
from deprefresh.ecosystems.pip import (
    LocalFileFetcher,
    PipEcosystem,
    PypiClient,
    PypiUpdateChecker,
    RequirementsFileUpdater,
    RequirementsParser,
)
from deprefresh.ecosystems.pip.checker import latest_release
from deprefresh.engines.group_refresh.models import DependencyFile, RequirementsUnlock
from deprefresh.exceptions import DependencyParseError, FileFetchError, FileUpdateError


# ── parser ───────────────────────────────────────────────────────────────


class TestRequirementsParser:
    def test_parses_pins_ranges_and_extras(self):
        content = (
            "# core\n"
            "requests==2.31.0\n"
            "Django>=4.2,<5  # web\n"
            "uvicorn[standard]==0.29.0\n"
            "attrs\n"
            "-r base.txt\n"
            "--index-url https://example.org/simple\n"
            "pywin32==306; sys_platform == 'win32'\n"
        )
        deps = RequirementsParser().parse([DependencyFile("requirements.txt", content)])

        by_name = {d.name: d for d in deps}
        assert list(by_name) == ["requests", "Django", "uvicorn", "attrs", "pywin32"]
        assert by_name["requests"].version == "2.31.0"
        assert by_name["Django"].version is None
        assert by_name["Django"].requirements[0]["requirement"] == ">=4.2,<5"
        assert by_name["uvicorn"].version == "0.29.0"
        assert by_name["attrs"].requirements[0]["requirement"] is None
        assert by_name["pywin32"].version == "306"

    def test_dev_files_are_not_production(self):
        dev_file = req_file(("pytest", "8.0"), name="requirements-dev.txt")
        deps = RequirementsParser().parse([dev_file])
        assert deps[0].production is False
        assert deps[0].requirements[0]["groups"] == ["dev-dependencies"]

    def test_same_dependency_in_two_files_merged(self):
        files = [
            req_file(("Flask", "3.0.0")),
            DependencyFile("requirements-test.txt", "flask>=3\n"),
        ]
        deps = RequirementsParser().parse(files)

        assert len(deps) == 1
        assert deps[0].production is True
        assert [r["file"] for r in deps[0].requirements] == [
            "requirements.txt",
            "requirements-test.txt",
        ]

    def test_directory_carried_over(self):
        deps = RequirementsParser().parse([req_file(("alpha", "1.0"), directory="/api")])
        assert deps[0].directory == "/api"

    def test_url_and_path_requirements_skipped(self):
        content = "pkg @ https://example.org/pkg.whl\n./vendor/lib\nalpha==1.0\n"
        deps = RequirementsParser().parse([DependencyFile("requirements.txt", content)])
        assert [d.name for d in deps] == ["alpha"]

    def test_unparseable_line(self):
        with pytest.raises(DependencyParseError, match="cannot parse requirement"):
            RequirementsParser().parse([DependencyFile("requirements.txt", "??? nope\n")])


# ── updater ──────────────────────────────────────────────────────────────


class TestRequirementsFileUpdater:
    def test_rewrites_pins(self):
        files = [DependencyFile("requirements.txt", "Alpha_Pkg==1.0  # pinned\nbeta==1.0\n")]
        updated = RequirementsFileUpdater().update(
            [dep("alpha-pkg", "2.0", previous_version="1.0")], files
        )
        assert updated == [
            DependencyFile("requirements.txt", "Alpha_Pkg==2.0  # pinned\nbeta==1.0\n")
        ]

    def test_only_changed_files_returned(self):
        files = [req_file(("alpha", "1.0")), req_file(("beta", "1.0"), name="requirements-dev.txt")]
        updated = RequirementsFileUpdater().update(
            [dep("alpha", "2.0", previous_version="1.0")], files
        )
        assert [f.name for f in updated] == ["requirements.txt"]

    def test_does_not_touch_longer_versions(self):
        files = [DependencyFile("requirements.txt", "alpha==1.0.1\n")]
        with pytest.raises(FileUpdateError):
            RequirementsFileUpdater().update(
                [dep("alpha", "2.0", previous_version="1.0")], files
            )

    def test_several_dependencies_in_one_file(self):
        files = [req_file(("alpha", "1.0"), ("beta", "1.0"))]
        updated = RequirementsFileUpdater().update(
            [
                dep("alpha", "2.0", previous_version="1.0"),
                dep("beta", "3.0", previous_version="1.0"),
            ],
            files,
        )
        assert updated[0].content == "alpha==2.0\nbeta==3.0\n"


# ── checker ──────────────────────────────────────────────────────────────


def _release(yanked=False):
    return [{"filename": "pkg.tar.gz", "yanked": yanked}]


class TestLatestRelease:
    def test_skips_prereleases_and_yanked(self):
        project = {
            "releases": {
                "1.0": _release(),
                "1.1": _release(),
                "2.0": _release(yanked=True),
                "2.1rc1": _release(),
                "not-a-version": _release(),
            }
        }
        assert latest_release(project) == Version("1.1")

    def test_no_releases(self):
        assert latest_release({"releases": {}}) is None


def _checker(version="1.0", requirement="==1.0", latest="2.0"):
    client = AsyncMock(spec=PypiClient)
    client.latest_version = AsyncMock(return_value=Version(latest) if latest else None)
    dependency = dep("alpha", version)
    dependency.requirements = [{"file": "requirements.txt", "requirement": requirement}]
    return PypiUpdateChecker(dependency, [], client)


class TestPypiUpdateChecker:
    @pytest.mark.anyio
    async def test_up_to_date(self):
        assert await _checker(latest="1.0").up_to_date()
        assert not await _checker(latest="2.0").up_to_date()

    @pytest.mark.anyio
    async def test_unpinned_dependency_is_up_to_date(self):
        checker = _checker(version=None, requirement=">=1")
        assert await checker.up_to_date()
        checker._client.latest_version.assert_not_called()

    def test_arbitrary_equality_is_locked(self):
        assert _checker().requirements_unlocked_or_can_be()
        assert not _checker(requirement="===1.0").requirements_unlocked_or_can_be()

    @pytest.mark.anyio
    async def test_exact_pin_needs_own_unlock(self):
        checker = _checker()
        assert not await checker.can_update(RequirementsUnlock.NONE)
        assert await checker.can_update(RequirementsUnlock.OWN)

    @pytest.mark.anyio
    async def test_range_allows_update_without_unlock(self):
        checker = _checker(requirement=">=1.0,<3")
        assert await checker.can_update(RequirementsUnlock.NONE)

    @pytest.mark.anyio
    async def test_updated_dependencies_repins(self):
        (updated,) = await _checker().updated_dependencies(RequirementsUnlock.OWN)

        assert updated.version == "2.0"
        assert updated.previous_version == "1.0"
        assert updated.requirements[0]["requirement"] == "==2.0"
        assert updated.previous_requirements[0]["requirement"] == "==1.0"

    @pytest.mark.anyio
    async def test_update_not_possible_gives_nothing(self):
        checker = _checker()
        assert await checker.updated_dependencies(RequirementsUnlock.UPDATE_NOT_POSSIBLE) == []

    @pytest.mark.anyio
    async def test_client_caches_per_project(self):
        client = PypiClient(index_url="https://pypi.test/pypi")
        project = {"releases": {"1.0": _release()}}
        with patch.object(client, "_fetch", new_callable=AsyncMock, return_value=project) as fetch:
            assert await client.latest_version("Alpha_Pkg") == Version("1.0")
            assert await client.latest_version("alpha-pkg") == Version("1.0")
        fetch.assert_called_once_with("alpha-pkg")
        await client.close()


# ── fetcher ──────────────────────────────────────────────────────────────


class TestLocalFileFetcher:
    @pytest.mark.anyio
    async def test_fetches_requirements_files(self, tmp_path):
        (tmp_path / "api" / "requirements").mkdir(parents=True)
        (tmp_path / "api" / "requirements.txt").write_text("alpha==1.0\n")
        (tmp_path / "api" / "requirements" / "dev.txt").write_text("pytest==8.0\n")
        (tmp_path / "api" / "setup.cfg").write_text("")

        with patch(
            "deprefresh.ecosystems.pip.fetcher.head_commit_sha",
            new_callable=AsyncMock,
            return_value="deadbeef",
        ):
            files, sha = await LocalFileFetcher(tmp_path).fetch("/api")

        assert [f.name for f in files] == ["requirements.txt", "requirements/dev.txt"]
        assert all(f.directory == "/api" for f in files)
        assert sha == "deadbeef"

    @pytest.mark.anyio
    async def test_missing_directory(self, tmp_path):
        with pytest.raises(FileFetchError, match="not found"):
            await LocalFileFetcher(tmp_path).fetch("/nope")

    @pytest.mark.anyio
    async def test_no_requirements_files(self, tmp_path):
        with pytest.raises(FileFetchError, match="no requirements files"):
            await LocalFileFetcher(tmp_path).fetch("/")


# ── registry ─────────────────────────────────────────────────────────────


class TestRegistry:
    def test_pip_registered(self):
        assert isinstance(get_ecosystem("pip"), PipEcosystem)

    def test_unknown_package_manager(self):
        with pytest.raises(KeyError, match="registered: pip"):
            get_ecosystem("cargo")

    @pytest.mark.anyio
    async def test_checker_factory_shares_client(self):
        ecosystem = PipEcosystem()
        factory = ecosystem.checker_factory()

        first = factory(dep("alpha"), [])
        second = ecosystem.checker_factory()(dep("beta"), [])

        assert isinstance(first, PypiUpdateChecker)
        assert first._client is second._client
        await ecosystem.close()
