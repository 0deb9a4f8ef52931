"""LangChain tools for Zuper timesheets."""

from __future__ import annotations

from langchain_core.tools import tool
from pydantic import Field

from zuper_dispatch.tools.common import CredentialsInput, PageInput, call_zuper, envelope, list_envelope, page_params


class ListTimesheetsInput(PageInput):
    user_uid: str | None = Field(None, description="Filter by specific user")
    start_date: str | None = Field(None, description="Start date in ISO 8601 format")
    end_date: str | None = Field(None, description="End date in ISO 8601 format")


class TimesheetSummaryInput(CredentialsInput):
    user_uid: str = Field(..., description="User identifier")
    start_date: str = Field(..., description="Start date in ISO 8601 format")
    end_date: str = Field(..., description="End date in ISO 8601 format")


@tool("list_timesheets", args_schema=ListTimesheetsInput)
async def list_timesheets(
    user_uid: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """Get timesheets for users within a date range."""
    result = await call_zuper(
        "/api/timesheets",
        api_key=api_key,
        base_url=base_url,
        params=page_params(page, limit, user_uid=user_uid, start_date=start_date, end_date=end_date),
    )
    return list_envelope(result)


@tool("get_timesheet_summary", args_schema=TimesheetSummaryInput)
async def get_timesheet_summary(
    user_uid: str,
    start_date: str,
    end_date: str,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """Get a user's timesheet summary (working hours) for a date range."""
    result = await call_zuper(
        "/api/timesheets/summary",
        api_key=api_key,
        base_url=base_url,
        params={"user_uid": user_uid, "start_date": start_date, "end_date": end_date},
    )
    return envelope(result)
