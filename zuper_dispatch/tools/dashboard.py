"""Composite dashboard tool."""

from __future__ import annotations

from langchain_core.tools import tool

from zuper_dispatch.services.dashboard import fetch_dashboard
from zuper_dispatch.services.zuper_client import get_zuper_client
from zuper_dispatch.tools.common import CredentialsInput, envelope


@tool("get_dashboard_summary", args_schema=CredentialsInput)
async def get_dashboard_summary(api_key: str | None = None, base_url: str | None = None) -> dict:
    """Get an overview of jobs, customers and invoices (totals and recent
    counts). Fails as a whole if any of the three reads fails."""
    client = get_zuper_client()
    summary = await fetch_dashboard(client, client.credentials(api_key, base_url))
    return envelope(summary.as_dict(), summary.render())
