"""LangChain tools for Zuper users (technicians)."""

from __future__ import annotations

import logging
from typing import Any, Literal

from langchain_core.tools import tool
from pydantic import Field

from zuper_dispatch.services.ranking import select_primary_team
from zuper_dispatch.services.zuper_client import get_zuper_client
from zuper_dispatch.tools.common import (
    CredentialsInput,
    PageInput,
    call_zuper,
    envelope,
    page_params,
    records,
)

logger = logging.getLogger(__name__)


class UserUidInput(CredentialsInput):
    user_uid: str = Field(..., description="Unique identifier of the user")


class ListUsersInput(PageInput):
    status: Literal["active", "inactive"] | None = Field(None, description="Filter by user status")


def trim_user(user: dict[str, Any]) -> dict[str, Any]:
    """Keep only the fields the dispatcher needs from a user record."""
    team = user.get("team") if isinstance(user.get("team"), dict) else {}
    return {
        "user_uid": user.get("user_uid"),
        "first_name": user.get("first_name"),
        "last_name": user.get("last_name"),
        "email": user.get("email"),
        "mobile": user.get("mobile_phone_number"),
        "is_active": user.get("is_active"),
        "team_uid": user.get("team_uid") or team.get("team_uid"),
    }


@tool("get_user", args_schema=UserUidInput)
async def get_user(user_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific user by UID."""
    result = await call_zuper(f"/api/user/{user_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_users", args_schema=ListUsersInput)
async def list_users(
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List technicians with essential fields only (user_uid, name, email,
    mobile, is_active, team_uid)."""
    result = await call_zuper(
        "/api/user/all",
        api_key=api_key,
        base_url=base_url,
        params=page_params(page, limit, status=status),
    )
    users = [trim_user(u) for u in records(result) if isinstance(u, dict)]
    return envelope(users, count=len(users))


@tool("get_user_skills", args_schema=UserUidInput)
async def get_user_skills(user_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Get the skills assigned to a specific user for job matching."""
    result = await call_zuper(f"/api/users/{user_uid}/skill", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("get_user_teams", args_schema=UserUidInput)
async def get_user_teams(user_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Get all teams a user belongs to, including the primary_team_uid to use
    as team_uid when assigning this user to a job."""
    result = await call_zuper(f"/api/user/{user_uid}/teams", api_key=api_key, base_url=base_url)
    teams = [
        {"team_uid": t.get("team_uid"), "team_name": t.get("team_name")}
        for t in records(result)
        if isinstance(t, dict)
    ]
    rule = get_zuper_client().settings.primary_team_rule
    primary = select_primary_team(teams, rule)
    logger.debug("User %s belongs to %d team(s), primary=%s", user_uid, len(teams), primary)
    return envelope({"user_uid": user_uid, "teams": teams, "primary_team_uid": primary})
