"""Service — the gateway between the refresh engine and the hosting backend."""

from __future__ import annotations

import traceback
from collections.abc import Sequence
from typing import Any, Protocol

import structlog

from deprefresh.engines.group_refresh.models import (
    Change,
    CloseReason,
    Dependency,
    DependencyFile,
    ExistingPullRequest,
)
from deprefresh.job import ExistingGroupPullRequest, Job


class _Client(Protocol):
    async def post(self, endpoint: str, data: dict[str, Any]) -> None: ...


class Service:
    """Implements the engine's ``ServiceGateway`` on top of an API client.

    Existing pull request records come from the job payload, which the
    backend fills with the live open-PR state when it schedules the job.
    """

    def __init__(
        self,
        client: _Client,
        job: Job,
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._client = client
        self._job = job
        self._log = logger or structlog.get_logger("deprefresh.service")

    # ── pull requests ──────────────────────────────────────────────────────

    async def create_pull_request(self, change: Change, base_commit_sha: str | None) -> None:
        data: dict[str, Any] = {
            "dependencies": [_dependency_payload(d) for d in change.updated_dependencies],
            "updated-dependency-files": [_file_payload(f) for f in change.updated_files],
            "base-commit-sha": base_commit_sha,
            "grouped-update": change.grouped_update,
        }
        if change.group_name:
            data["dependency-group"] = {"name": change.group_name}
        await self._client.post("create_pull_request", data)

    async def update_pull_request(self, change: Change, base_commit_sha: str | None) -> None:
        data: dict[str, Any] = {
            "dependency-names": change.dependency_names,
            "updated-dependency-files": [_file_payload(f) for f in change.updated_files],
            "base-commit-sha": base_commit_sha,
        }
        if change.group_name:
            data["dependency-group"] = {"name": change.group_name}
        await self._client.post("update_pull_request", data)

    async def close_pull_request(
        self, dependency_names: Sequence[str], reason: CloseReason
    ) -> None:
        await self._client.post(
            "close_pull_request",
            {"dependency-names": list(dependency_names), "reason": reason.value},
        )

    def existing_pull_request(self, group_name: str) -> ExistingPullRequest | None:
        for pr in self._job.existing_group_pull_requests:
            if pr.dependency_group_name == group_name:
                return _existing_record(pr)
        return None

    # ── errors ─────────────────────────────────────────────────────────────

    async def record_update_job_error(
        self, error_type: str, error_details: dict[str, str] | None = None
    ) -> None:
        await self._client.post(
            "record_update_job_error",
            {"error-type": error_type, "error-details": error_details},
        )

    async def capture_exception(
        self, error: BaseException, group_name: str | None = None
    ) -> None:
        self._log.warning(
            "service.exception_captured",
            error_class=type(error).__name__,
            error=str(error),
            group=group_name,
        )
        details: dict[str, Any] = {
            "error-class": type(error).__name__,
            "error-message": str(error),
            "error-backtrace": "".join(traceback.format_exception(error))[-4000:],
            "package-manager": self._job.package_manager,
            "job-id": self._job.id,
        }
        if group_name:
            details["job-dependency-group"] = group_name
        await self._client.post(
            "record_update_job_unknown_error",
            {"error-type": "unknown_error", "error-details": details},
        )


def _existing_record(pr: ExistingGroupPullRequest) -> ExistingPullRequest:
    return ExistingPullRequest(
        group_name=pr.dependency_group_name,
        dependencies=tuple(
            (d.dependency_name, d.dependency_version, d.directory) for d in pr.dependencies
        ),
    )


def _dependency_payload(dep: Dependency) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": dep.name,
        "version": dep.version,
        "previous-version": dep.previous_version,
        "requirements": dep.requirements,
        "previous-requirements": dep.previous_requirements,
        "directory": dep.directory,
    }
    return {k: v for k, v in payload.items() if v is not None}


def _file_payload(dep_file: DependencyFile) -> dict[str, Any]:
    return {
        "name": dep_file.name,
        "content": dep_file.content,
        "directory": dep_file.directory,
        "type": "file",
    }
