"""Service gateway — hosting-side commit points of a refresh run."""

from deprefresh.service.api_client import ApiClient, RecordingApiClient
from deprefresh.service.service import Service

__all__ = ["ApiClient", "RecordingApiClient", "Service"]
