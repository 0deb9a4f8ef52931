"""LangChain tools for Zuper teams."""

from __future__ import annotations

from typing import Any

from langchain_core.tools import tool
from pydantic import Field

from zuper_dispatch.tools.common import CredentialsInput, PageInput, call_zuper, envelope, page_params, records


class TeamUidInput(CredentialsInput):
    team_uid: str = Field(..., description="Unique identifier of the team")


def user_team_mapping(teams: list[dict[str, Any]]) -> dict[str, str]:
    """Map each member's user uid to its team uid (a later team wins)."""
    mapping: dict[str, str] = {}
    for team in teams:
        for member in team.get("users") or []:
            if isinstance(member, dict) and member.get("user_uid"):
                mapping[member["user_uid"]] = team.get("team_uid")
    return mapping


@tool("get_team", args_schema=TeamUidInput)
async def get_team(team_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific team by UID."""
    result = await call_zuper(f"/api/team/{team_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_teams", args_schema=PageInput)
async def list_teams(
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List all teams with their member uids, plus a user_team_mapping
    (user_uid -> team_uid) for building assignment payloads."""
    result = await call_zuper(
        "/api/team", api_key=api_key, base_url=base_url, params=page_params(page, limit),
    )
    teams = [t for t in records(result) if isinstance(t, dict)]
    data = [
        {
            "team_uid": t.get("team_uid"),
            "team_name": t.get("team_name"),
            "user_uids": [u.get("user_uid") for u in t.get("users") or [] if isinstance(u, dict)],
        }
        for t in teams
    ]
    return envelope(data, count=len(data), user_team_mapping=user_team_mapping(teams))
