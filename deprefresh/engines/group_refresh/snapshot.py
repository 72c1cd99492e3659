"""DependencySnapshot — the job-scoped view of dependencies and groups."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from deprefresh.engines.group_refresh.collaborators import DependencyParser, FileFetcher
from deprefresh.engines.group_refresh.models import Dependency, DependencyFile, DependencyGroup
from deprefresh.job import GroupConfig, Job

log = structlog.get_logger("deprefresh.engine")


class DependencySnapshot:
    """Dependencies per directory, configured groups, and the handled-name set.

    Built once at job start and discarded at job end. Not safe to share
    between concurrent refreshes: the directory cursor and handled set are
    mutated while a group compiles.
    """

    def __init__(
        self,
        job: Job,
        dependencies: dict[str, list[Dependency]],
        files: dict[str, list[DependencyFile]],
        base_commit_sha: str | None = None,
    ) -> None:
        self.job = job
        self.base_commit_sha = base_commit_sha
        self._dependencies = dependencies
        self._files = files
        self._directories = list(dependencies)
        self._current_directory = self._directories[0] if self._directories else "/"
        self._handled: set[str] = set()

        group_type = "security-updates" if job.security_updates_only else "version-updates"
        self._groups: list[DependencyGroup] = [
            _group_from_config(cfg) for cfg in job.dependency_groups if cfg.applies_to == group_type
        ]

    @classmethod
    async def create(
        cls,
        job: Job,
        fetcher: FileFetcher,
        parser: DependencyParser,
    ) -> DependencySnapshot:
        """Fetch and parse every configured directory, in order."""
        dependencies: dict[str, list[Dependency]] = {}
        files: dict[str, list[DependencyFile]] = {}
        base_commit_sha: str | None = None
        for directory in job.directories:
            dir_files, sha = await fetcher.fetch(directory)
            if base_commit_sha is None:
                base_commit_sha = sha
            files[directory] = list(dir_files)
            dependencies[directory] = list(parser.parse(dir_files))
            log.debug(
                "snapshot.directory_parsed",
                directory=directory,
                files=len(dir_files),
                dependencies=len(dependencies[directory]),
            )
        return cls(job, dependencies, files, base_commit_sha)

    # ── groups ───────────────────────────────────────────────────────────

    @property
    def groups(self) -> list[DependencyGroup]:
        return list(self._groups)

    def find_group(self, name: str | None) -> DependencyGroup | None:
        if name is None:
            return None
        for group in self._groups:
            if group.name == name:
                return group
        return None

    @property
    def job_group(self) -> DependencyGroup | None:
        return self.find_group(self.job.dependency_group_to_refresh)

    def group_members(self, group: DependencyGroup) -> list[Dependency]:
        """Unhandled members of *group* in the current directory."""
        return [
            dep
            for dep in self.dependencies
            if group.contains(dep) and not self.is_handled(dep.name)
        ]

    def member_count(self, group: DependencyGroup) -> int:
        """Members of *group* across every directory, handled or not."""
        return sum(
            1 for deps in self._dependencies.values() for dep in deps if group.contains(dep)
        )

    # ── handled dependencies ─────────────────────────────────────────────

    def add_handled_dependencies(self, names: str | Iterable[str]) -> None:
        if isinstance(names, str):
            names = [names]
        self._handled.update(names)

    @property
    def handled_dependencies(self) -> frozenset[str]:
        return frozenset(self._handled)

    def is_handled(self, name: str) -> bool:
        return name in self._handled

    def resolve_names(self, names: Iterable[str]) -> list[str]:
        """Spell *names* the way the parser did, matching case-insensitively.

        Names from pull request records may differ in case from the parsed
        ones; unknown names are kept as given.
        """
        known = {
            dep.name.lower(): dep.name for deps in self._dependencies.values() for dep in deps
        }
        return [known.get(name.lower(), name) for name in names]

    # ── directory cursor ─────────────────────────────────────────────────

    @property
    def directories(self) -> list[str]:
        return list(self._directories)

    @property
    def current_directory(self) -> str:
        return self._current_directory

    @current_directory.setter
    def current_directory(self, directory: str) -> None:
        if directory not in self._dependencies:
            raise ValueError(f"directory {directory!r} is not part of this snapshot")
        self._current_directory = directory

    @property
    def dependencies(self) -> list[Dependency]:
        return list(self._dependencies.get(self._current_directory, []))

    @property
    def files(self) -> Sequence[DependencyFile]:
        return list(self._files.get(self._current_directory, []))


def _group_from_config(cfg: GroupConfig) -> DependencyGroup:
    return DependencyGroup(
        name=cfg.name,
        applies_to=cfg.applies_to,
        patterns=tuple(cfg.rules.patterns),
        exclude_patterns=tuple(cfg.rules.exclude_patterns),
        dependency_type=cfg.rules.dependency_type,
    )
