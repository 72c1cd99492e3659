"""Job definition — the read-only input of a refresh run.

Job files use the service's kebab-case keys::

    {
      "id": "1234",
      "package-manager": "pip",
      "source": {"provider": "github", "repo": "org/app", "directories": ["/", "/docs"]},
      "dependencies": ["requests", "urllib3"],
      "dependency-group-to-refresh": "python-packages",
      "dependency-groups": [
        {"name": "python-packages", "rules": {"patterns": ["*"]}}
      ],
      "existing-group-pull-requests": [
        {
          "dependency-group-name": "python-packages",
          "dependencies": [
            {"dependency-name": "requests", "dependency-version": "2.32.0", "directory": "/"}
          ]
        }
      ],
      "updating-a-pull-request": true
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from deprefresh.exceptions import JobConfigError


class _KebabModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class JobSource(_KebabModel):
    provider: str = "github"
    repo: str
    directory: str = "/"
    directories: list[str] | None = None
    branch: str | None = None

    @field_validator("directory", mode="before")
    @classmethod
    def _normalize_directory(cls, v: str | None) -> str:
        return _normalize_dir(v or "/")

    @field_validator("directories", mode="before")
    @classmethod
    def _normalize_directories(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return [_normalize_dir(d) for d in v]


class GroupRules(_KebabModel):
    patterns: list[str] = Field(default_factory=list)
    exclude_patterns: list[str] = Field(default_factory=list, alias="exclude-patterns")
    dependency_type: Literal["production", "development"] | None = Field(
        default=None, alias="dependency-type"
    )


class GroupConfig(_KebabModel):
    name: str
    applies_to: Literal["version-updates", "security-updates"] = Field(
        default="version-updates", alias="applies-to"
    )
    rules: GroupRules = Field(default_factory=GroupRules)


class ExistingPullRequestDependency(_KebabModel):
    dependency_name: str = Field(alias="dependency-name")
    dependency_version: str | None = Field(default=None, alias="dependency-version")
    directory: str | None = None


class ExistingGroupPullRequest(_KebabModel):
    dependency_group_name: str = Field(alias="dependency-group-name")
    dependencies: list[ExistingPullRequestDependency] = Field(default_factory=list)


class Job(_KebabModel):
    id: str
    package_manager: str = Field(alias="package-manager")
    source: JobSource
    dependencies: list[str] | None = None
    dependency_group_to_refresh: str | None = Field(
        default=None, alias="dependency-group-to-refresh"
    )
    dependency_groups: list[GroupConfig] = Field(
        default_factory=list, alias="dependency-groups"
    )
    existing_group_pull_requests: list[ExistingGroupPullRequest] = Field(
        default_factory=list, alias="existing-group-pull-requests"
    )
    security_updates_only: bool = Field(default=False, alias="security-updates-only")
    updating_a_pull_request: bool = Field(default=False, alias="updating-a-pull-request")
    experiments: dict[str, bool] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: str | int) -> str:
        return str(v)

    @classmethod
    def from_file(cls, path: Path) -> Job:
        """Load and validate a job file; raise :class:`JobConfigError` on failure."""
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise JobConfigError(f"cannot read job file {path}: {exc}") from exc
        # The service wraps jobs in {"job": {...}}
        if isinstance(raw, dict) and "job" in raw:
            raw = raw["job"]
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise JobConfigError(f"invalid job file {path}: {exc}") from exc

    @property
    def directories(self) -> list[str]:
        """Directories to process, in configured order."""
        return list(self.source.directories or [self.source.directory])

    @property
    def multi_directory(self) -> bool:
        return bool(self.source.directories) and len(self.source.directories or []) > 1

    def experiment_enabled(self, name: str) -> bool:
        return bool(self.experiments.get(name, False))


def _normalize_dir(directory: str) -> str:
    directory = "/" + directory.strip().strip("/")
    return directory
