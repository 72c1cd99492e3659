"""GroupRefreshRunner — reconcile a group's pull request with the project."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from deprefresh.engines.group_refresh.collaborators import (
    FileUpdater,
    ServiceGateway,
    UpdateCheckerFactory,
)
from deprefresh.engines.group_refresh.compiler import ChangeCompiler
from deprefresh.engines.group_refresh.decider import decide
from deprefresh.engines.group_refresh.error_handler import ErrorHandler
from deprefresh.engines.group_refresh.models import (
    Change,
    CloseReason,
    Decision,
    DependencyGroup,
    ExistingPullRequest,
    PullRequestAction,
    RefreshResult,
)
from deprefresh.engines.group_refresh.snapshot import DependencySnapshot
from deprefresh.exceptions import GatewayError, GroupNotFoundError


class GroupRefreshRunner:
    """Refresh grouped pull requests for one job.

    Collaborators are injected; the runner holds no state beyond the
    snapshot it was given, and every durable effect goes through *service*.
    """

    def __init__(
        self,
        snapshot: DependencySnapshot,
        service: ServiceGateway,
        checker_factory: UpdateCheckerFactory,
        file_updater: FileUpdater,
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._service = service
        self._log = logger or structlog.get_logger("deprefresh.engine")
        self._compiler = ChangeCompiler(
            snapshot, checker_factory, file_updater, logger=self._log
        )
        self._errors = ErrorHandler(service, logger=self._log)

    # ── public ───────────────────────────────────────────────────────────

    async def refresh(self, group_name: str | None = None) -> RefreshResult:
        """Refresh the PR of *group_name* (default: the job's group).

        Collaborator and gateway failures are reported and re-raised; a group
        missing from the configuration is reported and closed instead.
        """
        job = self._snapshot.job
        group_name = group_name or job.dependency_group_to_refresh
        group = self._snapshot.find_group(group_name)
        if group is None:
            return await self._close_missing_group(group_name)

        self._log.info(
            "refresh.started",
            repo=job.source.repo,
            group=group.name,
            directories=self._snapshot.directories,
        )
        existing = self._service.existing_pull_request(group.name)
        member_count = self._snapshot.member_count(group)

        try:
            if member_count == 0:
                # Members were removed from the project or are no longer
                # allowed by the config, so the group is no longer actionable.
                self._log.warning("refresh.group_empty", group=group.name)
                change = Change(group_name=group.name)
            else:
                self._claim_sibling_dependencies(group)
                change = await self._compiler.compile(group)

            decision = decide(change, existing, member_count)
            self._log.info(
                "refresh.decision",
                group=group.name,
                action=decision.action.value,
                reason=decision.reason.value if decision.reason else None,
                dependencies=change.dependency_names,
            )
            await self._apply(decision, change, group, existing)
        except Exception as exc:
            await self._errors.handle_job_error(exc, group.name)
            raise

        return RefreshResult(group_name=group.name, decision=decision, change=change)

    async def refresh_many(self, group_names: Iterable[str]) -> list[RefreshResult]:
        """Refresh several groups in order; a failed group does not stop the rest."""
        results: list[RefreshResult] = []
        for name in group_names:
            try:
                results.append(await self.refresh(name))
            except Exception as exc:
                self._log.error("refresh.group_failed", group=name, exc_info=True)
                results.append(RefreshResult(group_name=name, error=str(exc)))
        return results

    # ── internal ─────────────────────────────────────────────────────────

    def _claim_sibling_dependencies(self, group: DependencyGroup) -> None:
        """Mark dependencies in other groups' open PRs as handled.

        Uses live PR state only, so a dependency becomes available to another
        group again once its PR is merged or closed.
        """
        for other in self._snapshot.groups:
            if other.name == group.name:
                continue
            existing = self._service.existing_pull_request(other.name)
            if existing is None:
                continue
            claimed = self._snapshot.resolve_names(existing.dependency_names)
            self._snapshot.add_handled_dependencies(claimed)
            self._log.debug(
                "refresh.claimed_by_sibling",
                group=group.name,
                sibling=other.name,
                dependencies=claimed,
            )

    async def _apply(
        self,
        decision: Decision,
        change: Change,
        group: DependencyGroup,
        existing: ExistingPullRequest | None,
    ) -> None:
        sha = self._snapshot.base_commit_sha
        action = decision.action

        if action is PullRequestAction.CLOSE:
            await self._close(group.name, existing, decision.reason)
        elif action is PullRequestAction.REPLACE:
            self._log.info("refresh.dependencies_changed", group=group.name)
            await self._close(group.name, existing, CloseReason.DEPENDENCIES_CHANGED)
            self._log.info("refresh.creating_pull_request", group=group.name)
            await self._service.create_pull_request(change, sha)
        elif action is PullRequestAction.UPDATE:
            self._log.info("refresh.updating_pull_request", group=group.name)
            await self._service.update_pull_request(change, sha)
        elif action is PullRequestAction.SUPERSEDE:
            # The existing PR stays open until the backend marks it superseded.
            self._log.info("refresh.target_versions_changed", group=group.name)
            self._log.info("refresh.creating_pull_request", group=group.name)
            await self._service.create_pull_request(change, sha)
        else:
            self._log.info("refresh.creating_pull_request", group=group.name)
            await self._service.create_pull_request(change, sha)

    async def _close(
        self,
        group_name: str | None,
        existing: ExistingPullRequest | None,
        reason: CloseReason | None,
    ) -> None:
        reason = reason or CloseReason.DEPENDENCY_GROUP_EMPTY
        names = self._pull_request_dependency_names(group_name, existing)
        if not names:
            self._log.info("refresh.nothing_to_close", group=group_name, reason=reason.value)
            return
        self._log.info(
            "refresh.closing_pull_request",
            group=group_name,
            dependencies=names,
            reason=reason.humanize(),
        )
        await self._service.close_pull_request(names, reason)

    def _pull_request_dependency_names(
        self, group_name: str | None, existing: ExistingPullRequest | None
    ) -> list[str]:
        if existing is not None and existing.dependency_names:
            return existing.dependency_names
        job = self._snapshot.job
        if group_name == job.dependency_group_to_refresh:
            return list(job.dependencies or [])
        return []

    async def _close_missing_group(self, group_name: str | None) -> RefreshResult:
        self._log.warning(
            "refresh.group_missing",
            group=group_name or "unknown",
            message="group has been removed from the update config",
        )
        try:
            await self._service.capture_exception(
                GroupNotFoundError(group_name), group_name=group_name
            )
        except GatewayError:
            self._log.warning("refresh.error_report_failed", group=group_name, exc_info=True)

        existing = self._service.existing_pull_request(group_name) if group_name else None
        decision = Decision(PullRequestAction.CLOSE, CloseReason.DEPENDENCY_GROUP_EMPTY)
        await self._close(group_name, existing, decision.reason)
        return RefreshResult(
            group_name=group_name or "unknown",
            decision=decision,
            change=Change(group_name=group_name),
        )
