"""Merge per-directory changes into one grouped change."""

from __future__ import annotations

from collections.abc import Sequence

from deprefresh.engines.group_refresh.models import Change, Dependency, DependencyFile


def merge_changes(changes: Sequence[Change]) -> Change:
    """Combine one :class:`Change` per directory into a single change.

    *changes* must be in directory iteration order. Dependencies are
    de-duplicated by name and the first directory to touch a dependency wins.
    Files are keyed by ``(directory, name)``, so the same path in two
    directories is kept twice; a repeated key keeps its first position and
    takes the last content.
    """
    if not changes:
        return Change()
    if len(changes) == 1:
        return changes[0]

    first = changes[0]
    dependencies: list[Dependency] = []
    seen: set[str] = set()
    files: dict[tuple[str, str], DependencyFile] = {}

    for change in changes:
        for dep in change.updated_dependencies:
            if dep.name in seen:
                continue
            seen.add(dep.name)
            dependencies.append(dep)
        for dep_file in change.updated_files:
            files[dep_file.key] = dep_file

    return Change(
        updated_dependencies=dependencies,
        updated_files=list(files.values()),
        grouped_update=first.grouped_update,
        group_name=first.group_name,
    )
