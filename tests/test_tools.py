"""Tests for the Zuper LangChain tools.

Tools are invoked through ``ainvoke`` so argument validation, defaults and
the endpoint/parameter mapping are exercised exactly as the agent sees them.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from pydantic import ValidationError

from zuper_dispatch.config import Settings
from zuper_dispatch.services.credentials import MissingCredentialsError, ZuperContext, use_zuper_context
from zuper_dispatch.services.zuper_client import ZuperAPIError, ZuperClient, ZuperDomainError
from zuper_dispatch.tools.catalog import ALL_TOOLS, DISPATCHER_TOOLS, TOOLS_BY_NAME
from zuper_dispatch.tools.customers import create_customer
from zuper_dispatch.tools.dashboard import get_dashboard_summary
from zuper_dispatch.tools.jobs import (
    assign_job,
    assisted_scheduling,
    build_assignment_payload,
    get_job,
    list_jobs,
    unassign_job,
    update_job,
)
from zuper_dispatch.tools.parts import create_part, list_parts
from zuper_dispatch.tools.teams import list_teams
from zuper_dispatch.tools.timeoff import check_time_off_availability, list_time_off_requests
from zuper_dispatch.tools.users import get_user_teams, list_users


def run(tool, args):
    return asyncio.run(tool.ainvoke(args))


# ── Assignment payload ───────────────────────────────────────────────


class TestBuildAssignmentPayload:
    def test_users_only_has_no_teams_key(self):
        payload = build_assignment_payload("J1", "ASSIGN", [{"user_uid": "u1", "team_uid": "t1"}], [])
        assert payload == {
            "job_uid": "J1",
            "type": "ASSIGN",
            "update_all_jobs": False,
            "notify_users": False,
            "users": [{"user_uid": "u1", "team_uid": "t1"}],
        }

    def test_teams_only_has_no_users_key(self):
        payload = build_assignment_payload("J1", "UNASSIGN", [], ["t9"], notify_users=True)
        assert payload["teams"] == ["t9"]
        assert payload["type"] == "UNASSIGN"
        assert payload["notify_users"] is True
        assert "users" not in payload

    def test_user_without_team_rejected(self):
        with pytest.raises(ValidationError):
            build_assignment_payload("J1", "ASSIGN", [{"user_uid": "u1"}])


# ── Jobs ─────────────────────────────────────────────────────────────


class TestJobTools:
    def test_list_jobs_defaults(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs", {"data": [{"job_uid": "J1"}, {"job_uid": "J2"}]})
        result = run(list_jobs, {})
        assert result["status"] == "success"
        assert result["count"] == 2
        params = fake_zuper.last("GET", "/api/jobs").url.params
        assert params["page"] == "1"
        assert params["limit"] == "50"
        assert "status" not in params

    def test_list_jobs_status_filter(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs", {"data": []})
        run(list_jobs, {"status": "scheduled", "limit": 10})
        params = fake_zuper.last("GET", "/api/jobs").url.params
        assert params["status"] == "scheduled"
        assert params["limit"] == "10"

    def test_list_jobs_rejects_bad_limit(self, zuper_client):
        with pytest.raises(ValidationError):
            run(list_jobs, {"limit": 0})

    def test_get_job_returns_full_body(self, zuper_client, fake_zuper):
        job = {"data": {"job_uid": "J1", "job_title": "Boiler", "custom_fields": [{"a": 1}]}}
        fake_zuper.add("GET", "/api/jobs/J1", job)
        assert run(get_job, {"job_uid": "J1"}) == {"status": "success", "data": job}

    def test_update_job_sends_only_given_fields(self, zuper_client, fake_zuper):
        fake_zuper.add("PUT", "/api/jobs/J1", {"type": "success"})
        result = run(update_job, {"job_uid": "J1", "updates": {"priority": "high", "notes": "slot 1: Ada"}})
        body = fake_zuper.body(fake_zuper.last("PUT", "/api/jobs/J1"))
        assert body == {"priority": "high", "notes": "slot 1: Ada"}
        assert result["message"] == "Job J1 updated successfully"

    def test_assisted_scheduling_passes_filters(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/assisted_scheduling", {"data": []})
        run(assisted_scheduling, {
            "from_date": "2025-10-06 00:00:00",
            "to_date": "2025-10-13 23:59:59",
            "job_uid": "J1",
            "consider_holidays": True,
        })
        params = fake_zuper.last("GET", "/api/assisted_scheduling").url.params
        assert params["from_date"] == "2025-10-06 00:00:00"
        assert params["job_uid"] == "J1"
        assert params["consider_holidays"] == "true"
        assert "zipcode" not in params


class TestAssignJob:
    ARGS = {"job_uid": "J1", "users": [{"user_uid": "u1", "team_uid": "t1"}]}

    def test_assign_then_verify(self, zuper_client, fake_zuper):
        fake_zuper.add("POST", "/api/jobs/assign", {"type": "success", "message": "Assigned"})
        fake_zuper.add("GET", "/api/jobs/J1", {"data": {"assigned_to": [{"user_uid": "u1"}]}})

        result = run(assign_job, self.ARGS)

        assert result["status"] == "success"
        assert result["data"]["assigned_to"] == [{"user_uid": "u1"}]
        body = fake_zuper.body(fake_zuper.last("POST", "/api/jobs/assign"))
        assert body == {
            "job_uid": "J1",
            "type": "ASSIGN",
            "update_all_jobs": False,
            "notify_users": False,
            "users": [{"user_uid": "u1", "team_uid": "t1"}],
        }

    def test_error_envelope_raises(self, zuper_client, fake_zuper):
        fake_zuper.add("POST", "/api/jobs/assign", {"type": "error", "message": "User not in team"})
        with pytest.raises(ZuperDomainError, match="Assignment failed: User not in team"):
            run(assign_job, self.ARGS)
        # no verification read after a failed assignment
        assert not any(r.method == "GET" for r in fake_zuper.requests)

    def test_verification_failure_raises(self, zuper_client, fake_zuper):
        fake_zuper.add("POST", "/api/jobs/assign", {"type": "success"})
        fake_zuper.add("GET", "/api/jobs/J1", {"data": {"assigned_to": []}})
        with pytest.raises(ZuperDomainError, match="verification failed"):
            run(assign_job, self.ARGS)

    def test_http_error_propagates(self, zuper_client, fake_zuper):
        fake_zuper.add("POST", "/api/jobs/assign", "bad request", status=400)
        with pytest.raises(ZuperAPIError):
            run(assign_job, self.ARGS)

    def test_unassign_uses_unassign_type(self, zuper_client, fake_zuper):
        fake_zuper.add("POST", "/api/jobs/assign", {"type": "success"})
        result = run(unassign_job, {"job_uid": "J1", "teams": ["t1"]})
        body = fake_zuper.body(fake_zuper.last("POST", "/api/jobs/assign"))
        assert body["type"] == "UNASSIGN"
        assert body["teams"] == ["t1"]
        assert "users" not in body
        assert "unassigned 1" in result["message"]


# ── Credentials through tools ────────────────────────────────────────


class TestToolCredentials:
    def test_explicit_parameters_override(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs/J1", {"data": {}})
        run(get_job, {"job_uid": "J1", "api_key": "param-key"})
        assert fake_zuper.last("GET", "/api/jobs/J1").headers["x-api-key"] == "param-key"

    def test_ambient_context_used(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs/J1", {"data": {}})

        async def call():
            with use_zuper_context(ZuperContext(api_key="ctx-key")):
                return await get_job.ainvoke({"job_uid": "J1"})

        asyncio.run(call())
        assert fake_zuper.last("GET", "/api/jobs/J1").headers["x-api-key"] == "ctx-key"

    def test_missing_credentials_raise(self, fake_zuper, monkeypatch):
        client = ZuperClient(Settings())
        monkeypatch.setattr("zuper_dispatch.services.zuper_client._client", client)
        with pytest.raises(MissingCredentialsError):
            run(get_job, {"job_uid": "J1"})


# ── Users / teams / time-off ─────────────────────────────────────────


class TestUserTools:
    def test_list_users_trims_records(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/user/all", {"data": [{
            "user_uid": "u1",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
            "mobile_phone_number": "+100",
            "is_active": True,
            "team": {"team_uid": "t1"},
            "designation": "Senior",
            "address": {"city": "London"},
        }]})
        result = run(list_users, {})
        assert result["count"] == 1
        assert result["data"] == [{
            "user_uid": "u1",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
            "mobile": "+100",
            "is_active": True,
            "team_uid": "t1",
        }]

    def test_get_user_teams_primary_is_first(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/user/u1/teams", {"data": [
            {"team_uid": "t2", "team_name": "Plumbing", "extra": 1},
            {"team_uid": "t1", "team_name": "Electrical"},
        ]})
        result = run(get_user_teams, {"user_uid": "u1"})
        assert result["data"] == {
            "user_uid": "u1",
            "teams": [
                {"team_uid": "t2", "team_name": "Plumbing"},
                {"team_uid": "t1", "team_name": "Electrical"},
            ],
            "primary_team_uid": "t2",
        }

    def test_get_user_teams_alphabetical_rule(self, fake_zuper, monkeypatch):
        settings = Settings(zuper_api_key="k", zuper_base_url="https://zuper.test", primary_team_rule="alphabetical")
        client = ZuperClient(settings, transport=httpx.MockTransport(fake_zuper.handler))
        monkeypatch.setattr("zuper_dispatch.services.zuper_client._client", client)
        fake_zuper.add("GET", "/api/user/u1/teams", {"data": [
            {"team_uid": "t2", "team_name": "Plumbing"},
            {"team_uid": "t1", "team_name": "Electrical"},
        ]})
        assert run(get_user_teams, {"user_uid": "u1"})["data"]["primary_team_uid"] == "t1"

    def test_get_user_teams_without_teams(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/user/u1/teams", {"data": []})
        assert run(get_user_teams, {"user_uid": "u1"})["data"]["primary_team_uid"] is None

    def test_list_teams_builds_user_mapping(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/team", {"data": [
            {"team_uid": "t1", "team_name": "A", "users": [{"user_uid": "u1"}, {"user_uid": "u2"}]},
            {"team_uid": "t2", "team_name": "B", "users": [{"user_uid": "u3"}]},
            {"team_uid": "t3", "team_name": "Empty"},
        ]})
        result = run(list_teams, {})
        assert result["count"] == 3
        assert result["user_team_mapping"] == {"u1": "t1", "u2": "t1", "u3": "t2"}
        assert result["data"][0] == {"team_uid": "t1", "team_name": "A", "user_uids": ["u1", "u2"]}
        assert result["data"][2]["user_uids"] == []

    def test_time_off_filters_and_trimming(self, zuper_client, fake_zuper):
        path = "/api/timesheets/request/timeoff"
        fake_zuper.add("GET", path, {"data": [{
            "user": {"user_uid": "u1", "first_name": "Ada", "last_name": "Lovelace"},
            "request_from": "2025-10-09",
            "request_to": "2025-10-10",
            "status": "APPROVED",
            "reason": "holiday",
        }]})
        result = run(list_time_off_requests, {"user_uid": "u1", "from_date": "2025-10-09"})
        params = fake_zuper.last("GET", path).url.params
        assert params["filter.user_uid"] == "u1"
        assert params["filter.from_date"] == "2025-10-09"
        assert "filter.team_uid" not in params
        assert result["data"] == [{
            "user_uid": "u1",
            "user_name": "Ada Lovelace",
            "request_from": "2025-10-09",
            "request_to": "2025-10-10",
            "status": "APPROVED",
        }]

    def test_availability_defaults_to_false(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/timesheets/request/timeoff/availability", {"data": {}})
        result = run(check_time_off_availability, {
            "user_uid": "u1", "start_date": "2025-10-09", "end_date": "2025-10-10",
        })
        assert result["available"] is False


# ── Create tools ─────────────────────────────────────────────────────


class TestCreateTools:
    def test_create_customer_body(self, zuper_client, fake_zuper):
        fake_zuper.add("POST", "/api/customers", {"data": {"customer_uid": "C1"}})
        result = run(create_customer, {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "address": {"city": "London"},
            "api_key": "param-key",
        })
        request = fake_zuper.last("POST", "/api/customers")
        assert fake_zuper.body(request) == {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "address": {"city": "London"},
        }
        assert request.headers["x-api-key"] == "param-key"
        assert result["message"] == "Customer created successfully with ID: C1"

    def test_create_customer_rejects_bad_email(self, zuper_client):
        with pytest.raises(ValidationError):
            run(create_customer, {"first_name": "A", "last_name": "B", "email": "nope"})

    def test_create_part_maps_type(self, zuper_client, fake_zuper):
        fake_zuper.add("POST", "/api/product", {"data": {"uid": "P1"}})
        run(create_part, {"part_name": "Valve", "part_type": "part"})
        assert fake_zuper.body(fake_zuper.last("POST", "/api/product")) == {"part_name": "Valve", "type": "part"}

    def test_list_parts_maps_type_filter(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/product", {"data": []})
        run(list_parts, {"part_type": "service"})
        assert fake_zuper.last("GET", "/api/product").url.params["type"] == "service"


# ── Dashboard tool ───────────────────────────────────────────────────


class TestDashboardTool:
    def test_summary(self, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs", {"data": [{}] * 3, "total_records": 42})
        fake_zuper.add("GET", "/api/customers", {"data": [{}], "total_records": 7})
        fake_zuper.add("GET", "/api/invoice", {"data": []})
        result = run(get_dashboard_summary, {})
        assert result["data"]["jobs"] == {"total": 42, "recent": 3}
        assert result["data"]["customers"] == {"total": 7, "recent": 1}
        assert result["data"]["invoices"] == {"total": 0, "recent": 0}
        assert "Total Jobs: 42" in result["message"]


# ── Catalog ──────────────────────────────────────────────────────────


class TestCatalog:
    def test_tool_names_are_unique(self):
        names = [t.name for t in ALL_TOOLS]
        assert len(names) == len(set(names)) == len(TOOLS_BY_NAME)

    def test_every_tool_accepts_credentials(self):
        for t in ALL_TOOLS:
            fields = t.args_schema.model_fields
            assert "api_key" in fields and "base_url" in fields, t.name

    def test_every_tool_has_a_description(self):
        assert all(t.description for t in ALL_TOOLS)

    def test_dispatcher_subset(self):
        names = {t.name for t in DISPATCHER_TOOLS}
        assert {"assisted_scheduling", "assign_job", "get_user_teams", "list_time_off_requests"} <= names
        assert "create_invoice" not in names
        assert len(DISPATCHER_TOOLS) == 14
