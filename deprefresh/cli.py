"""CLI entry point: deprefresh.

Subcommands:
    deprefresh create-job -o job.json                 # Generate a job template
    deprefresh groups job.json --repo-dir .           # Show groups and members
    deprefresh run job.json --repo-dir . --dry-run    # Refresh the job's group
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from deprefresh.core.logging import job_log_context, setup_logging
from deprefresh.ecosystems import get_ecosystem
from deprefresh.ecosystems.registry import Ecosystem
from deprefresh.engines.group_refresh import (
    DependencySnapshot,
    GroupRefreshRunner,
    RefreshResult,
    applies_to,
)
from deprefresh.engines.group_refresh.error_handler import ErrorHandler
from deprefresh.exceptions import CollaboratorError, DepRefreshError, JobConfigError
from deprefresh.job import Job
from deprefresh.service import ApiClient, RecordingApiClient, Service

_JOB_TEMPLATE = {
    "id": "1",
    "package-manager": "pip",
    "source": {"provider": "github", "repo": "org/repo", "directories": ["/"]},
    "dependencies": ["requests"],
    "dependency-group-to-refresh": "python-packages",
    "dependency-groups": [
        {"name": "python-packages", "applies-to": "version-updates", "rules": {"patterns": ["*"]}}
    ],
    "existing-group-pull-requests": [
        {
            "dependency-group-name": "python-packages",
            "dependencies": [
                {"dependency-name": "requests", "dependency-version": "2.32.0", "directory": "/"}
            ],
        }
    ],
    "updating-a-pull-request": True,
}


def _load_job(job_file: str) -> Job:
    try:
        return Job.from_file(Path(job_file))
    except JobConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _load_ecosystem(job: Job) -> Ecosystem:
    try:
        return get_ecosystem(job.package_manager)
    except KeyError as e:
        click.echo(f"Error: {e.args[0]}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """deprefresh: keep grouped dependency-update pull requests in sync."""
    setup_logging("DEBUG" if verbose else None)


@main.command("create-job")
@click.option("-o", "--output", default="job.json", help="Output file path")
def create_job(output: str) -> None:
    """Generate a job template JSON file."""
    Path(output).write_text(json.dumps(_JOB_TEMPLATE, indent=2) + "\n")
    click.echo(f"Job template written to {output}")
    click.echo("Edit the file, then run: deprefresh run " + output)


@main.command("groups")
@click.argument("job_file", type=click.Path(exists=True))
@click.option("--repo-dir", default=".", type=click.Path(exists=True, file_okay=False))
def groups(job_file: str, repo_dir: str) -> None:
    """List the job's dependency groups and how many dependencies each matches."""
    job = _load_job(job_file)
    ecosystem = _load_ecosystem(job)

    async def _snapshot() -> DependencySnapshot:
        return await DependencySnapshot.create(
            job, ecosystem.file_fetcher(Path(repo_dir)), ecosystem.parser()
        )

    try:
        snapshot = asyncio.run(_snapshot())
    except DepRefreshError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not snapshot.groups:
        click.echo("No dependency groups configured.")
        return
    for group in snapshot.groups:
        marker = "*" if group.name == job.dependency_group_to_refresh else " "
        existing = _existing_names(job, group.name)
        suffix = f"  open PR: {', '.join(existing)}" if existing else ""
        click.echo(f"{marker} {group.name}  ({snapshot.member_count(group)} members){suffix}")


def _existing_names(job: Job, group_name: str) -> list[str]:
    for pr in job.existing_group_pull_requests:
        if pr.dependency_group_name == group_name:
            return [d.dependency_name for d in pr.dependencies]
    return []


@main.command("run")
@click.argument("job_file", type=click.Path(exists=True))
@click.option("--repo-dir", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--group", "group_names", multiple=True, help="Group to refresh (repeatable)")
@click.option("--dry-run", is_flag=True, help="Record service calls instead of sending them")
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
def run(
    job_file: str,
    repo_dir: str,
    group_names: tuple[str, ...],
    dry_run: bool,
    as_json: bool,
) -> None:
    """Refresh the job's grouped pull request (or the groups given with --group)."""
    job = _load_job(job_file)
    if not group_names and not applies_to(job):
        click.echo(
            "Error: job does not ask to refresh a grouped pull request "
            "(needs dependencies and dependency-group-to-refresh)",
            err=True,
        )
        sys.exit(1)
    ecosystem = _load_ecosystem(job)

    try:
        results = asyncio.run(
            _refresh(job, ecosystem, Path(repo_dir), list(group_names), dry_run)
        )
    except Exception as e:
        click.echo(f"Error: refresh failed: {e}", err=True)
        sys.exit(1)

    _print_results(results, as_json)
    if any(r.error for r in results):
        sys.exit(1)


async def _refresh(
    job: Job,
    ecosystem: Ecosystem,
    repo_dir: Path,
    group_names: list[str],
    dry_run: bool,
) -> list[RefreshResult]:
    client = RecordingApiClient(job.id) if dry_run else ApiClient(job.id)
    service = Service(client, job)
    with job_log_context(job):
        try:
            return await _refresh_groups(job, ecosystem, service, repo_dir, group_names)
        finally:
            await client.close()
            await ecosystem.close()


async def _refresh_groups(
    job: Job,
    ecosystem: Ecosystem,
    service: Service,
    repo_dir: Path,
    group_names: list[str],
) -> list[RefreshResult]:
    try:
        snapshot = await DependencySnapshot.create(
            job, ecosystem.file_fetcher(repo_dir), ecosystem.parser()
        )
    except CollaboratorError as e:
        await ErrorHandler(service).handle_job_error(e, job.dependency_group_to_refresh)
        raise

    runner = GroupRefreshRunner(
        snapshot, service, ecosystem.checker_factory(), ecosystem.file_updater()
    )
    if group_names:
        return await runner.refresh_many(group_names)
    return [await runner.refresh()]


def _print_results(results: list[RefreshResult], as_json: bool) -> None:
    if as_json:
        rows = [
            {
                "group": r.group_name,
                "action": r.decision.action.value if r.decision else None,
                "reason": r.decision.reason.value if r.decision and r.decision.reason else None,
                "dependencies": [
                    {"name": d.name, "version": d.version, "previous-version": d.previous_version}
                    for d in (r.change.updated_dependencies if r.change else [])
                ],
                "error": r.error,
            }
            for r in results
        ]
        click.echo(json.dumps(rows, indent=2))
        return

    for r in results:
        if r.error:
            click.echo(f"{r.group_name}: failed ({r.error})")
            continue
        click.echo(f"{r.group_name}: {r.decision}")
        for dep in r.change.updated_dependencies if r.change else []:
            click.echo(f"    {dep.name} {dep.previous_version or '?'} -> {dep.version}")


if __name__ == "__main__":
    main()
