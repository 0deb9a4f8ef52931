"""Tool registries.

``ALL_TOOLS`` is the full catalog (exposed via ``GET /api/tools``);
``DISPATCHER_TOOLS`` is the subset bound to the dispatcher agent.
"""

from __future__ import annotations

from langchain_core.tools import BaseTool

from zuper_dispatch.tools import (
    assets,
    contracts,
    customers,
    dashboard,
    invoices,
    jobs,
    parts,
    properties,
    quotes,
    teams,
    timeoff,
    timesheets,
    users,
)

ALL_TOOLS: list[BaseTool] = [
    jobs.create_job,
    jobs.get_job,
    jobs.list_jobs,
    jobs.update_job,
    jobs.assign_job,
    jobs.unassign_job,
    jobs.assisted_scheduling,
    users.get_user,
    users.list_users,
    users.get_user_skills,
    users.get_user_teams,
    teams.get_team,
    teams.list_teams,
    customers.create_customer,
    customers.get_customer,
    customers.list_customers,
    invoices.create_invoice,
    invoices.get_invoice,
    invoices.list_invoices,
    properties.create_property,
    properties.get_property,
    assets.create_asset,
    assets.get_asset,
    assets.list_assets,
    parts.create_part,
    parts.get_part,
    parts.list_parts,
    contracts.create_service_contract,
    contracts.get_service_contract,
    contracts.list_service_contracts,
    quotes.create_quote,
    quotes.get_quote,
    quotes.list_quotes,
    timesheets.list_timesheets,
    timesheets.get_timesheet_summary,
    timeoff.list_time_off_requests,
    timeoff.check_time_off_availability,
    dashboard.get_dashboard_summary,
]

TOOLS_BY_NAME: dict[str, BaseTool] = {t.name: t for t in ALL_TOOLS}

DISPATCHER_TOOL_NAMES = (
    "assisted_scheduling",
    "assign_job",
    "unassign_job",
    "get_job",
    "list_jobs",
    "update_job",
    "list_users",
    "get_user",
    "get_user_skills",
    "get_user_teams",
    "list_teams",
    "get_team",
    "list_time_off_requests",
    "check_time_off_availability",
)

DISPATCHER_TOOLS: list[BaseTool] = [TOOLS_BY_NAME[name] for name in DISPATCHER_TOOL_NAMES]
