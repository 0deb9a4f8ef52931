"""LangChain tools for Zuper jobs: CRUD, assignment and assisted scheduling."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Literal

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from zuper_dispatch.services.zuper_client import ZuperDomainError, ensure_success
from zuper_dispatch.tools.common import (
    CredentialsInput,
    JobPriority,
    JobStatus,
    PageInput,
    call_zuper,
    compact,
    created_uid,
    envelope,
    list_envelope,
    page_params,
)

logger = logging.getLogger(__name__)

ASSIGN_ENDPOINT = "/api/jobs/assign"

AssignmentType = Literal["ASSIGN", "UNASSIGN"]


# ── Schemas ──────────────────────────────────────────────────────────


class Assignee(BaseModel):
    user_uid: str = Field(..., description="User UID")
    team_uid: str = Field(..., description="Team UID the user belongs to (use primary_team_uid from get_user_teams)")


class CreateJobInput(CredentialsInput):
    customer_uid: str = Field(..., description="Unique identifier of the customer for this job")
    job_title: str = Field(..., min_length=1, description="Title or name of the job")
    job_description: str | None = Field(None, description="Description of the job")
    property_uid: str | None = Field(None, description="Property/location identifier for the job")
    scheduled_start_time: str | None = Field(None, description="Scheduled start time in ISO 8601 format")
    scheduled_end_time: str | None = Field(None, description="Scheduled end time in ISO 8601 format")
    priority: JobPriority | None = Field(None, description="Priority level of the job")
    assigned_to: list[str] | None = Field(None, description="User UIDs to assign to this job")


class JobUidInput(CredentialsInput):
    job_uid: str = Field(..., description="Unique identifier of the job")


class ListJobsInput(PageInput):
    status: JobStatus | None = Field(None, description="Filter jobs by status")


class JobUpdates(BaseModel):
    job_title: str | None = None
    job_description: str | None = None
    status: JobStatus | None = None
    priority: JobPriority | None = None
    scheduled_start_time: str | None = None
    scheduled_end_time: str | None = None
    notes: str | None = Field(None, description="Free-text notes, e.g. assignment reasoning or slot hand-over")


class UpdateJobInput(JobUidInput):
    updates: JobUpdates = Field(..., description="Fields to update")


class AssignJobInput(JobUidInput):
    users: list[Assignee] = Field(default_factory=list, description="Users to (un)assign, each with user_uid and team_uid")
    teams: list[str] = Field(default_factory=list, description="Team UIDs to (un)assign")
    update_all_jobs: bool = Field(False, description="Whether to update all jobs in a recurring series")
    notify_users: bool = Field(False, description="Whether to notify the users")


class AssistedSchedulingInput(CredentialsInput):
    from_date: str = Field(..., description="Start of the scheduling window (YYYY-MM-DD HH:mm:ss, e.g. '2025-10-06 00:00:00')")
    to_date: str = Field(..., description="End of the scheduling window (YYYY-MM-DD HH:mm:ss, e.g. '2025-10-13 23:59:59')")
    job_uid: str | None = Field(None, description="Job UID to schedule")
    job_category: str | None = Field(None, description="Job category")
    job_duration: int | None = Field(None, gt=0, description="Job duration in minutes")
    service_territory: str | None = Field(None, description="Service territory")
    zipcode: str | None = Field(None, description="Customer zipcode for location-based scheduling")
    timezone: str | None = Field(None, description="Timezone (e.g. 'America/New_York')")
    skillset_uid: str | None = Field(None, description="Required skillset UID")
    team_uid: str | None = Field(None, description="Filter by team UID")
    user_uid: str | None = Field(None, description="Filter by specific user UID")
    customer_uid: str | None = Field(None, description="Customer UID")
    favorite_user: bool | None = Field(None, description="Prioritize the customer's favorite users")
    user_type: str | None = Field(None, description="User type filter")
    consider_holidays: bool | None = Field(None, description="Consider company holidays")
    consider_only_user_shifts: bool | None = Field(None, description="Only schedule during users' defined shifts")


# ── Helpers ──────────────────────────────────────────────────────────


def build_assignment_payload(
    job_uid: str,
    assignment_type: AssignmentType,
    users: Iterable[Assignee | dict[str, Any]] = (),
    teams: Iterable[str] = (),
    *,
    update_all_jobs: bool = False,
    notify_users: bool = False,
) -> dict[str, Any]:
    """Build the ``/api/jobs/assign`` body.

    ``users`` and ``teams`` keys are only present when non-empty.
    """
    payload: dict[str, Any] = {
        "job_uid": job_uid,
        "type": assignment_type,
        "update_all_jobs": update_all_jobs,
        "notify_users": notify_users,
    }
    assignees = [Assignee.model_validate(u) for u in users]
    if assignees:
        payload["users"] = [
            {"user_uid": a.user_uid, "team_uid": a.team_uid} for a in assignees
        ]
    teams = list(teams)
    if teams:
        payload["teams"] = teams
    return payload


# ── Tools ────────────────────────────────────────────────────────────


@tool("create_job", args_schema=CreateJobInput)
async def create_job(api_key: str | None = None, base_url: str | None = None, **fields: Any) -> dict:
    """Create a new job/work order in Zuper FSM with customer, property, and service details."""
    result = await call_zuper(
        "/api/jobs", api_key=api_key, base_url=base_url, method="POST", body=compact(fields),
    )
    return envelope(result, f"Job created successfully with ID: {created_uid(result, 'job_uid')}")


@tool("get_job", args_schema=JobUidInput)
async def get_job(job_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific job by its UID (schedule, status, assignees, category)."""
    result = await call_zuper(f"/api/jobs/{job_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_jobs", args_schema=ListJobsInput)
async def list_jobs(
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List jobs with optional filtering by status. Useful for workload analysis."""
    result = await call_zuper(
        "/api/jobs",
        api_key=api_key,
        base_url=base_url,
        params=page_params(page, limit, status=status),
    )
    return list_envelope(result)


@tool("update_job", args_schema=UpdateJobInput)
async def update_job(
    job_uid: str,
    updates: JobUpdates,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """Update an existing job with new information (title, status, priority, schedule, notes)."""
    result = await call_zuper(
        f"/api/jobs/{job_uid}",
        api_key=api_key,
        base_url=base_url,
        method="PUT",
        body=compact(JobUpdates.model_validate(updates).model_dump()),
    )
    return envelope(result, f"Job {job_uid} updated successfully")


@tool("assign_job", args_schema=AssignJobInput)
async def assign_job(
    job_uid: str,
    users: list[Assignee] | None = None,
    teams: list[str] | None = None,
    update_all_jobs: bool = False,
    notify_users: bool = False,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """Assign technicians (each with user_uid AND team_uid) or teams to a job.

    The assignment is verified by re-reading the job; it only counts as
    successful when this tool returns status "success".
    """
    payload = build_assignment_payload(
        job_uid, "ASSIGN", users or [], teams or [],
        update_all_jobs=update_all_jobs, notify_users=notify_users,
    )
    item_count = len(payload.get("users", [])) + len(payload.get("teams", []))
    logger.info("Assigning %d user(s)/team(s) to job %s", item_count, job_uid)

    result = await call_zuper(
        ASSIGN_ENDPOINT, api_key=api_key, base_url=base_url, method="POST", body=payload,
    )
    ensure_success(result, "Assignment")

    job = await call_zuper(f"/api/jobs/{job_uid}", api_key=api_key, base_url=base_url)
    job_data = job.get("data") if isinstance(job, dict) else None
    assigned = (job_data or {}).get("assigned_to") or []
    if not assigned:
        raise ZuperDomainError(
            f"Assignment verification failed: job {job_uid} has no assigned users",
            payload=job,
        )

    logger.info("Verified job %s now has %d assignee(s)", job_uid, len(assigned))
    return envelope(
        {"assignment": result, "assigned_to": assigned},
        f"Successfully assigned {item_count} user(s)/team(s) to job {job_uid}",
    )


@tool("unassign_job", args_schema=AssignJobInput)
async def unassign_job(
    job_uid: str,
    users: list[Assignee] | None = None,
    teams: list[str] | None = None,
    update_all_jobs: bool = False,
    notify_users: bool = False,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """Unassign technicians (each with user_uid and team_uid) or teams from a job."""
    payload = build_assignment_payload(
        job_uid, "UNASSIGN", users or [], teams or [],
        update_all_jobs=update_all_jobs, notify_users=notify_users,
    )
    item_count = len(payload.get("users", [])) + len(payload.get("teams", []))
    result = await call_zuper(
        ASSIGN_ENDPOINT, api_key=api_key, base_url=base_url, method="POST", body=payload,
    )
    ensure_success(result, "Unassignment")
    return envelope(result, f"Successfully unassigned {item_count} user(s)/team(s) from job {job_uid}")


@tool("assisted_scheduling", args_schema=AssistedSchedulingInput)
async def assisted_scheduling(
    from_date: str,
    to_date: str,
    api_key: str | None = None,
    base_url: str | None = None,
    **filters: Any,
) -> dict:
    """Get scheduling recommendations from Zuper based on availability, skills,
    location, holidays, shifts and workload. Returns optimal time slots and
    user suggestions for a job. Call this first when dispatching."""
    result = await call_zuper(
        "/api/assisted_scheduling",
        api_key=api_key,
        base_url=base_url,
        params={"from_date": from_date, "to_date": to_date, **filters},
    )
    return envelope(result, "Retrieved scheduling recommendations")
