"""LangChain tools for Zuper time-off requests (availability checks)."""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.tools import tool
from pydantic import Field

from zuper_dispatch.tools.common import CredentialsInput, PageInput, call_zuper, envelope, page_params, records

logger = logging.getLogger(__name__)

TIMEOFF_ENDPOINT = "/api/timesheets/request/timeoff"


class ListTimeOffInput(PageInput):
    user_uid: str | None = Field(None, description="Filter by specific user UID")
    team_uid: str | None = Field(None, description="Filter by specific team UID")
    from_date: str | None = Field(None, description="From date (YYYY-MM-DD), typically the job's scheduled start date")
    to_date: str | None = Field(None, description="To date (YYYY-MM-DD), typically the job's scheduled end date")


class TimeOffAvailabilityInput(CredentialsInput):
    user_uid: str = Field(..., description="User to check")
    start_date: str = Field(..., description="Start date in ISO 8601 format")
    end_date: str = Field(..., description="End date in ISO 8601 format")


def trim_time_off(request: dict[str, Any]) -> dict[str, Any]:
    user = request.get("user") if isinstance(request.get("user"), dict) else {}
    name = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    return {
        "user_uid": user.get("user_uid"),
        "user_name": name,
        "request_from": request.get("request_from"),
        "request_to": request.get("request_to"),
        "status": request.get("status"),
    }


@tool("list_time_off_requests", args_schema=ListTimeOffInput)
async def list_time_off_requests(
    user_uid: str | None = None,
    team_uid: str | None = None,
    from_date: str | None = None,
    to_date: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List time-off requests in a date range to see which users are
    unavailable. Filter by the job's scheduled dates."""
    params = page_params(
        page,
        limit,
        **{
            "filter.user_uid": user_uid,
            "filter.team_uid": team_uid,
            "filter.from_date": from_date,
            "filter.to_date": to_date,
        },
    )
    result = await call_zuper(TIMEOFF_ENDPOINT, api_key=api_key, base_url=base_url, params=params)
    requests = [trim_time_off(r) for r in records(result) if isinstance(r, dict)]
    logger.debug("Found %d time-off request(s)", len(requests))
    return envelope(requests, count=len(requests))


@tool("check_time_off_availability", args_schema=TimeOffAvailabilityInput)
async def check_time_off_availability(
    user_uid: str,
    start_date: str,
    end_date: str,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """Check whether a user is available (not on time-off) during a date range."""
    result = await call_zuper(
        f"{TIMEOFF_ENDPOINT}/availability",
        api_key=api_key,
        base_url=base_url,
        params={"user_uid": user_uid, "start_date": start_date, "end_date": end_date},
    )
    available = bool(result.get("available")) if isinstance(result, dict) else False
    return envelope(result, available=available)
