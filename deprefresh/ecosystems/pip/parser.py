"""Parser for pip requirements files."""

from __future__ import annotations

import re
from collections.abc import Sequence

from packaging.utils import canonicalize_name

from deprefresh.engines.group_refresh.models import Dependency, DependencyFile
from deprefresh.exceptions import DependencyParseError

# Matches: package_name, optional [extras], then the version specifier(s)
_REQ_RE = re.compile(
    r"^([A-Za-z0-9]([A-Za-z0-9._-]*[A-Za-z0-9])?)"  # package name
    r"\s*(\[[^\]]*\])?"  # extras
    r"\s*"
    r"(.*)?$",  # everything after name = requirement
)

_EXACT_VERSION_RE = re.compile(r"^==\s*([^\s,*]+)$")

_DEV_FILE_RE = re.compile(r"(dev|test|lint|docs)", re.IGNORECASE)


class RequirementsParser:
    """Turn requirements files into :class:`Dependency` records.

    A dependency listed in several files of one directory becomes a single
    record with one requirement entry per file; its version comes from the
    first exact ``==`` pin seen.
    """

    def parse(self, files: Sequence[DependencyFile]) -> list[Dependency]:
        by_name: dict[str, Dependency] = {}

        for dep_file in files:
            production = not _DEV_FILE_RE.search(dep_file.name)
            for raw_line in dep_file.content.splitlines():
                line = _strip_line(raw_line)
                if not line or line.startswith(("-r", "-c", "-e", "--")):
                    continue

                if "://" in line or line.startswith((".", "/")):
                    # URL and local path requirements carry no version to bump
                    continue

                m = _REQ_RE.match(line)
                if not m:
                    raise DependencyParseError(
                        f"{dep_file.name}: cannot parse requirement {raw_line.strip()!r}"
                    )

                name = m.group(1)
                requirement = (m.group(4) or "").strip() or None
                resolved: str | None = None
                if requirement:
                    exact = _EXACT_VERSION_RE.match(requirement)
                    if exact:
                        resolved = exact.group(1)

                entry = {
                    "file": dep_file.name,
                    "requirement": requirement,
                    "groups": ["dependencies" if production else "dev-dependencies"],
                }
                key = canonicalize_name(name)
                existing = by_name.get(key)
                if existing is None:
                    by_name[key] = Dependency(
                        name=name,
                        version=resolved,
                        directory=dep_file.directory,
                        production=production,
                        requirements=[entry],
                    )
                    continue
                existing.requirements.append(entry)
                existing.production = existing.production or production
                if existing.version is None:
                    existing.version = resolved

        return list(by_name.values())


def _strip_line(raw_line: str) -> str:
    """Drop comments and environment markers."""
    line = raw_line.split(" #", 1)[0].strip()
    if line.startswith("#"):
        return ""
    return line.split(";", 1)[0].strip()
