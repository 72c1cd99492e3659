"""ChangeCompiler — compute a group's change across every directory."""

from __future__ import annotations

import dataclasses

import structlog

from deprefresh.engines.group_refresh.collaborators import FileUpdater, UpdateCheckerFactory
from deprefresh.engines.group_refresh.merger import merge_changes
from deprefresh.engines.group_refresh.models import (
    Change,
    Dependency,
    DependencyFile,
    DependencyGroup,
    RequirementsUnlock,
)
from deprefresh.engines.group_refresh.requirements import requirements_to_unlock
from deprefresh.engines.group_refresh.snapshot import DependencySnapshot


class ChangeCompiler:
    """Drive update checkers and the file updater for one group.

    Directories are compiled sequentially, in configured order, because the
    merge keeps the first directory's version of a repeated dependency. Any
    collaborator exception propagates and discards every directory compiled
    so far.
    """

    def __init__(
        self,
        snapshot: DependencySnapshot,
        checker_factory: UpdateCheckerFactory,
        file_updater: FileUpdater,
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._checker_factory = checker_factory
        self._file_updater = file_updater
        self._log = logger or structlog.get_logger("deprefresh.engine")

    async def compile(self, group: DependencyGroup) -> Change:
        """Return the merged change for *group* and mark its dependencies handled."""
        changes: list[Change] = []
        for directory in self._snapshot.directories:
            self._snapshot.current_directory = directory
            changes.append(await self.compile_directory(group))

        change = merge_changes(changes)
        self._snapshot.add_handled_dependencies(change.dependency_names)
        self._log.info(
            "compiler.group_compiled",
            group=group.name,
            directories=len(changes),
            dependencies=change.dependency_names,
            files=len(change.updated_files),
        )
        return change

    async def compile_directory(self, group: DependencyGroup) -> Change:
        """Compile *group* for the snapshot's current directory only."""
        directory = self._snapshot.current_directory
        original_files = list(self._snapshot.files)
        working: dict[tuple[str, str], DependencyFile] = {f.key: f for f in original_files}
        updated: list[Dependency] = []
        updated_names: set[str] = set()

        for dependency in self._snapshot.group_members(group):
            if dependency.name in updated_names:
                continue
            checker = self._checker_factory(dependency, list(working.values()))

            if await checker.up_to_date():
                self._log.debug(
                    "compiler.dependency_up_to_date",
                    group=group.name,
                    directory=directory,
                    dependency=dependency.name,
                )
                continue

            level = await requirements_to_unlock(checker)
            if level is RequirementsUnlock.UPDATE_NOT_POSSIBLE:
                self._log.info(
                    "compiler.update_not_possible",
                    group=group.name,
                    directory=directory,
                    dependency=dependency.name,
                    version=dependency.version,
                )
                continue

            new_deps = [
                dataclasses.replace(d, directory=directory)
                for d in await checker.updated_dependencies(level)
                if d.name not in updated_names
            ]
            if not new_deps:
                continue

            for dep_file in self._file_updater.update(new_deps, list(working.values())):
                working[dep_file.key] = dep_file

            for dep in new_deps:
                updated_names.add(dep.name)
                updated.append(dep)
            self._log.debug(
                "compiler.dependency_updated",
                group=group.name,
                directory=directory,
                dependency=dependency.name,
                unlock=level.value,
                updated=[f"{d.name}@{d.version}" for d in new_deps],
            )

        return Change(
            updated_dependencies=updated,
            updated_files=_changed_files(original_files, working),
            group_name=group.name,
        )


def _changed_files(
    original: list[DependencyFile],
    working: dict[tuple[str, str], DependencyFile],
) -> list[DependencyFile]:
    """Files in *working* that differ from (or are absent from) *original*."""
    before = {f.key: f.content for f in original}
    return [f for key, f in working.items() if before.get(key) != f.content]
