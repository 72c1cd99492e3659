"""Decide whether a job should be handled as a grouped PR refresh."""

from __future__ import annotations

from deprefresh.job import Job

GROUPED_SECURITY_UPDATES_DISABLED = "grouped_security_updates_disabled"


def applies_to(job: Job) -> bool:
    """Return True if *job* asks to refresh an existing grouped pull request."""
    # Without the PR's dependencies and the group that created it there is
    # nothing to reconcile against.
    if not job.dependencies:
        return False
    if not job.dependency_group_to_refresh:
        return False
    if job.security_updates_only and job.experiment_enabled(GROUPED_SECURITY_UPDATES_DISABLED):
        return False

    if job.multi_directory:
        return True

    if job.security_updates_only:
        if len(job.dependencies) > 1:
            return True
        return any(g.applies_to == "security-updates" for g in job.dependency_groups)

    return job.updating_a_pull_request
