"""Async client for the update-job service API, with retries."""

from __future__ import annotations

import asyncio
import os
from typing import Any

import httpx
import structlog

from deprefresh.exceptions import GatewayError

log = structlog.get_logger("deprefresh.service")

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds


class ApiClient:
    """Thin async wrapper around ``{api_url}/update_jobs/{job_id}/...``."""

    def __init__(
        self,
        job_id: str,
        api_url: str | None = None,
        token: str | None = None,
    ) -> None:
        self.job_id = job_id
        resolved_url = api_url or os.environ.get("DEPREFRESH_API_URL", "http://localhost:3000")
        resolved_token = token or os.environ.get("DEPREFRESH_JOB_TOKEN")
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if resolved_token:
            headers["Authorization"] = resolved_token
        self._client = httpx.AsyncClient(
            base_url=resolved_url.rstrip("/"),
            headers=headers,
            timeout=30.0,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def post(self, endpoint: str, data: dict[str, Any]) -> None:
        """POST ``{"data": data}`` to *endpoint* of the current job."""
        path = f"/update_jobs/{self.job_id}/{endpoint}"
        await self._post_with_retry(endpoint, path, {"data": data})

    # ── internal ───────────────────────────────────────────────────────────

    async def _post_with_retry(self, endpoint: str, path: str, body: dict[str, Any]) -> None:
        """POST with exponential backoff on 5xx and timeout errors.

        4xx responses are not retried. Raises :class:`GatewayError` once the
        request fails for good.
        """
        last_status: int | None = None
        last_message = ""
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.post(path, json=body)
                if resp.status_code < 400:
                    return
                if resp.status_code < 500:
                    raise GatewayError(endpoint, resp.status_code, resp.text[:200])

                log.warning(
                    "api.server_error",
                    endpoint=endpoint,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_status = resp.status_code
                last_message = resp.text[:200]
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                log.warning(
                    "api.transport_error",
                    endpoint=endpoint,
                    error=str(exc),
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_status = None
                last_message = str(exc) or type(exc).__name__

            if attempt < _MAX_RETRIES - 1:
                delay = _RETRY_BASE_DELAY * (2**attempt)
                await asyncio.sleep(delay)

        raise GatewayError(endpoint, last_status, last_message)


class RecordingApiClient:
    """In-memory stand-in for :class:`ApiClient` used for dry runs.

    Keeps every call as ``(endpoint, data)`` instead of sending it.
    """

    def __init__(self, job_id: str = "dry-run") -> None:
        self.job_id = job_id
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def post(self, endpoint: str, data: dict[str, Any]) -> None:
        log.info("api.recorded", endpoint=endpoint)
        self.calls.append((endpoint, data))

    def endpoints(self) -> list[str]:
        return [endpoint for endpoint, _ in self.calls]

    async def close(self) -> None:
        pass
