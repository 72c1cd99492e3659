"""Pick the least invasive requirements unlock for a dependency."""

from __future__ import annotations

from deprefresh.engines.group_refresh.collaborators import UpdateChecker
from deprefresh.engines.group_refresh.models import RequirementsUnlock


async def requirements_to_unlock(checker: UpdateChecker) -> RequirementsUnlock:
    """Return the smallest :class:`RequirementsUnlock` that makes an update possible.

    Order matters, first match wins:

    1. requirements cannot (or need not) be loosened → ``none`` when an update
       is possible without touching them, else ``update_not_possible``;
    2. ``own`` — loosen only this dependency's requirement;
    3. ``all`` — loosen transitively related requirements too;
    4. ``update_not_possible``.
    """
    if not checker.requirements_unlocked_or_can_be():
        if await checker.can_update(RequirementsUnlock.NONE):
            return RequirementsUnlock.NONE
        return RequirementsUnlock.UPDATE_NOT_POSSIBLE
    if await checker.can_update(RequirementsUnlock.OWN):
        return RequirementsUnlock.OWN
    if await checker.can_update(RequirementsUnlock.ALL):
        return RequirementsUnlock.ALL
    return RequirementsUnlock.UPDATE_NOT_POSSIBLE
