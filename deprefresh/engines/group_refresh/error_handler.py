"""Report refresh failures to the service."""

from __future__ import annotations

import structlog

from deprefresh.engines.group_refresh.collaborators import ServiceGateway
from deprefresh.exceptions import CollaboratorError, GatewayError

UNKNOWN_ERROR = "unknown_error"


class ErrorHandler:
    """Translate exceptions into service error records.

    Known collaborator errors are recorded with their ``error_type``; anything
    else is captured as an exception and recorded as ``unknown_error``.
    Reporting itself must never mask the original failure, so a gateway
    error raised while reporting is only logged.
    """

    def __init__(
        self,
        service: ServiceGateway,
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._service = service
        self._log = logger or structlog.get_logger("deprefresh.engine")

    async def handle_job_error(self, error: BaseException, group_name: str | None) -> None:
        if isinstance(error, CollaboratorError):
            error_type = error.error_type
            details = error.details()
        else:
            error_type = UNKNOWN_ERROR
            details = {"message": str(error), "error-class": type(error).__name__}
        if group_name:
            details["dependency-group"] = group_name

        self._log.error(
            "refresh.job_error",
            group=group_name,
            error_type=error_type,
            error=str(error),
        )

        try:
            if error_type == UNKNOWN_ERROR:
                await self._service.capture_exception(error, group_name=group_name)
            await self._service.record_update_job_error(error_type, details)
        except GatewayError:
            self._log.warning("refresh.error_report_failed", group=group_name, exc_info=True)
