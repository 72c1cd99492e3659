"""Rewrite exact pins in requirements files."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Sequence

from deprefresh.engines.group_refresh.models import Dependency, DependencyFile
from deprefresh.exceptions import FileUpdateError


class RequirementsFileUpdater:
    """Replace ``name==old`` with ``name==new`` for each updated dependency."""

    def update(
        self,
        dependencies: Sequence[Dependency],
        files: Sequence[DependencyFile],
    ) -> list[DependencyFile]:
        updated: dict[tuple[str, str], DependencyFile] = {}
        for dep in dependencies:
            if not dep.previous_version or dep.previous_version == dep.version:
                continue
            pattern = _pin_pattern(dep.name, dep.previous_version)
            changed = False
            for dep_file in files:
                current = updated.get(dep_file.key, dep_file)
                content = pattern.sub(lambda m, v=dep.version: f"{m.group(1)}{v}", current.content)
                if content != current.content:
                    updated[dep_file.key] = dataclasses.replace(current, content=content)
                    changed = True
            if not changed:
                raise FileUpdateError(
                    f"no pin of {dep.name}=={dep.previous_version} found to update",
                    dependency_name=dep.name,
                )
        return list(updated.values())


def _pin_pattern(name: str, version: str) -> re.Pattern[str]:
    # pip treats '-', '_' and '.' in names as equivalent
    parts = [re.escape(p) for p in re.split(r"[-_.]+", name)]
    name_re = r"[-_.]+".join(parts)
    return re.compile(
        rf"^(\s*{name_re}\s*(?:\[[^\]]*\])?\s*==\s*){re.escape(version)}(?=\s|$|;|,|#)",
        re.IGNORECASE | re.MULTILINE,
    )
