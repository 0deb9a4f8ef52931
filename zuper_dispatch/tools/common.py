"""Shared plumbing for the Zuper LangChain tools.

Every tool:
  1. validates its arguments against a pydantic ``args_schema`` that extends
     :class:`CredentialsInput`,
  2. maps its parameters onto the Zuper field names,
  3. makes one (or a small fixed number of) request(s) via :func:`call_zuper`,
  4. wraps the result in the ``{status, data, message?}`` envelope.

Failures are raised, never swallowed; the agent's ToolNode turns them into
tool-result messages for the LLM.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

from zuper_dispatch.services.zuper_client import get_zuper_client

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50

JobStatus = Literal["scheduled", "in_progress", "completed", "cancelled", "on_hold"]
JobPriority = Literal["low", "medium", "high", "urgent"]


class CredentialsInput(BaseModel):
    """Optional per-call Zuper credentials."""

    api_key: str | None = Field(
        None,
        description=(
            "Zuper API key (x-api-key header). If not provided, uses the "
            "request context or the ZUPER_API_KEY environment default."
        ),
    )
    base_url: str | None = Field(
        None,
        description=(
            "Zuper base URL (e.g. https://us.zuperpro.com). If not provided, "
            "uses the request context or the ZUPER_BASE_URL environment default."
        ),
    )


class PageInput(CredentialsInput):
    page: int = Field(DEFAULT_PAGE, ge=1, description="Page number for pagination")
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=500, description="Number of results per page")


class Address(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class LineItem(BaseModel):
    description: str
    quantity: float = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    tax_rate: float | None = Field(None, ge=0)


def compact(mapping: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop ``None`` values and turn pydantic models into plain JSON data."""
    return {k: _jsonable(v) for k, v in (mapping or {}).items() if v is not None}


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return compact(value)
    return value


async def call_zuper(
    endpoint: str,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    method: str = "GET",
    params: Mapping[str, Any] | None = None,
    body: Any = None,
) -> Any:
    """Resolve credentials and issue one Zuper request."""
    client = get_zuper_client()
    credentials = client.credentials(api_key, base_url)
    return await client.request(
        endpoint,
        credentials,
        method,
        params=compact(params) or None,
        body=body,
    )


def page_params(page: int, limit: int, **filters: Any) -> dict[str, Any]:
    return compact({"page": page, "limit": limit, **filters})


def records(result: Any) -> list[Any]:
    """Return the ``data`` list of a Zuper list response (empty if absent)."""
    data = result.get("data") if isinstance(result, dict) else None
    return data if isinstance(data, list) else []


def created_uid(result: Any, key: str) -> str | None:
    data = result.get("data") if isinstance(result, dict) else None
    if not isinstance(data, dict):
        return None
    return data.get("uid") or data.get(key)


def envelope(data: Any, message: str | None = None, **extra: Any) -> dict[str, Any]:
    """Uniform tool result: ``{"status": "success", "data": ..., "message"?: ...}``."""
    result: dict[str, Any] = {"status": "success", "data": data}
    if message:
        result["message"] = message
    result.update(extra)
    return result


def list_envelope(result: Any) -> dict[str, Any]:
    return envelope(result, count=len(records(result)))
