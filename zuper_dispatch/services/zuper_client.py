"""Async HTTP client for the Zuper FSM REST API.

Every call is a single best-effort request: no retries, no timeout, no
backoff.  Credentials are resolved per call (see
:mod:`zuper_dispatch.services.credentials`) so one client instance serves
many tenants.

All requests carry the API key in the ``x-api-key`` header.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import httpx

from zuper_dispatch.config import Settings, get_settings
from zuper_dispatch.services.credentials import (
    ZuperCredentials,
    ZuperError,
    current_zuper_context,
    resolve_credentials,
)
from zuper_dispatch.services.metrics import metrics

logger = logging.getLogger(__name__)


class ZuperAPIError(ZuperError):
    """Raised when the Zuper API answers with a non-2xx status."""

    def __init__(self, status_code: int, response_text: str):
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(f"Zuper API error ({status_code}): {response_text}")


class ZuperDomainError(ZuperError):
    """Raised when a 2xx response carries ``type: "error"`` in its envelope."""

    def __init__(self, message: str, payload: Any = None):
        self.payload = payload
        super().__init__(message)


def ensure_success(result: Any, action: str) -> Any:
    """Raise :class:`ZuperDomainError` if *result* is an error envelope.

    Some endpoints (notably ``/api/jobs/assign``) answer 200 even when the
    operation failed, so the status code alone is not enough.
    """
    if isinstance(result, dict) and result.get("type") == "error":
        detail = result.get("message") or result.get("title") or "Unknown error"
        raise ZuperDomainError(f"{action} failed: {detail}", payload=result)
    return result


class ZuperClient:
    """Thin wrapper around the Zuper REST API."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings or get_settings()
        self._client = httpx.AsyncClient(timeout=None, transport=transport)

    @property
    def settings(self) -> Settings:
        return self._settings

    def credentials(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> ZuperCredentials:
        """Resolve credentials: parameters > ambient context > settings."""
        return resolve_credentials(
            api_key,
            base_url,
            context=current_zuper_context(),
            settings=self._settings,
        )

    async def request(
        self,
        endpoint: str,
        credentials: ZuperCredentials,
        method: str = "GET",
        *,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Perform one request and return the parsed JSON body unmodified.

        GET requests never carry a body, even if one is supplied.

        Returns ``None`` for a 2xx response without a body.

        Raises:
            ZuperAPIError: for any non-2xx response, or a 2xx body that is
                not JSON.
        """
        method = method.upper()
        operation = f"{method} {endpoint}"
        json_body = body if body and method != "GET" else None

        logger.debug("Zuper request: %s", operation)
        with metrics.track("zuper", operation):
            response = await self._client.request(
                method,
                f"{credentials.base_url}{endpoint}",
                headers={
                    "x-api-key": credentials.api_key,
                    "Content-Type": "application/json",
                },
                params=params,
                json=json_body,
            )
            if not response.is_success:
                raise ZuperAPIError(
                    response.status_code, response.text or response.reason_phrase,
                )
        if not response.content.strip():
            # 204 and other empty 2xx answers (some PUT endpoints)
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ZuperAPIError(response.status_code, f"invalid JSON body: {response.text[:200]}") from e

    async def aclose(self) -> None:
        await self._client.aclose()


# ── Module-level singleton (thread-safe) ────────────────────────────
_client: ZuperClient | None = None
_client_lock = threading.Lock()


def get_zuper_client() -> ZuperClient:
    """Return a module-level ZuperClient singleton.

    Uses double-checked locking so that the lock is only acquired during
    the first initialisation.
    """
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = ZuperClient()
    return _client


async def close_zuper_client() -> None:
    """Close and forget the singleton (server shutdown)."""
    global _client
    with _client_lock:
        client, _client = _client, None
    if client is not None:
        await client.aclose()


def configure_zuper_client(settings: Settings) -> ZuperClient:
    """Make the singleton use *settings* and return it.

    A current client built from equal settings is kept as is. Otherwise it
    is replaced; call :func:`close_zuper_client` first to release its
    connections.
    """
    global _client
    with _client_lock:
        if _client is None or _client.settings != settings:
            if _client is not None:
                logger.debug("Replacing the Zuper client for new settings")
            _client = ZuperClient(settings)
        return _client
