"""Custom exceptions for deprefresh."""


class DepRefreshError(Exception):
    """Base exception for all deprefresh errors."""


class JobConfigError(DepRefreshError):
    """Raised when a job file cannot be read or fails validation."""


class GroupNotFoundError(DepRefreshError):
    """Raised (and reported, never propagated) when a job names a removed group."""

    def __init__(self, group_name: str | None):
        self.group_name = group_name
        super().__init__(
            f"Attempted to refresh a missing group: '{group_name or 'unknown'}'"
        )


class CollaboratorError(DepRefreshError):
    """Raised when an upstream collaborator fails during compilation."""

    error_type = "unknown_error"

    def __init__(self, message: str, *, dependency_name: str | None = None):
        self.dependency_name = dependency_name
        super().__init__(message)

    def details(self) -> dict[str, str]:
        details = {"message": str(self)}
        if self.dependency_name:
            details["dependency-name"] = self.dependency_name
        return details


class FileFetchError(CollaboratorError):
    """Raised when dependency files cannot be fetched for a directory."""

    error_type = "dependency_file_not_found"


class DependencyParseError(CollaboratorError):
    """Raised when a dependency file cannot be parsed."""

    error_type = "dependency_file_not_parseable"


class UpdateCheckError(CollaboratorError):
    """Raised when the latest version of a dependency cannot be resolved."""

    error_type = "dependency_resolution_failed"


class FileUpdateError(CollaboratorError):
    """Raised when updated file contents cannot be produced."""

    error_type = "dependency_file_not_updatable"


class GatewayError(DepRefreshError):
    """Raised when the service API rejects a call or stays unreachable."""

    def __init__(self, endpoint: str, status_code: int | None, message: str):
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(f"{endpoint} failed ({status_code or 'no response'}): {message}")
