"""Read requirements files from a local checkout."""

from __future__ import annotations

import asyncio
from pathlib import Path

from deprefresh.engines.group_refresh.models import DependencyFile
from deprefresh.exceptions import FileFetchError

FILE_PATTERNS = ["requirements*.txt", "requirements/*.txt"]


class LocalFileFetcher:
    """Fetch dependency files of a directory inside *repo_root*."""

    def __init__(self, repo_root: Path, file_patterns: list[str] | None = None) -> None:
        self._repo_root = repo_root
        self._patterns = file_patterns or FILE_PATTERNS

    async def fetch(self, directory: str) -> tuple[list[DependencyFile], str | None]:
        base = self._repo_root / directory.strip("/")
        if not base.is_dir():
            raise FileFetchError(f"directory {directory} not found in {self._repo_root}")

        files: list[DependencyFile] = []
        seen: set[Path] = set()
        for pattern in self._patterns:
            for hit in sorted(base.glob(pattern)):
                if not hit.is_file() or hit in seen:
                    continue
                seen.add(hit)
                files.append(
                    DependencyFile(
                        name=hit.relative_to(base).as_posix(),
                        content=hit.read_text(encoding="utf-8", errors="replace"),
                        directory=directory,
                    )
                )

        if not files:
            raise FileFetchError(f"no requirements files found in {directory}")
        return files, await head_commit_sha(self._repo_root)


async def head_commit_sha(repo_root: Path) -> str | None:
    """Return ``git rev-parse HEAD`` for *repo_root*, or None outside a git checkout."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "-C",
            str(repo_root),
            "rev-parse",
            "HEAD",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        return None
    stdout, _ = await proc.communicate()
    if proc.returncode != 0:
        return None
    return stdout.decode().strip() or None
