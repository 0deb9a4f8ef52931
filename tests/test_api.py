"""Tests for the FastAPI endpoints."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from zuper_dispatch.config import Settings
from zuper_dispatch.server import app, create_app
from zuper_dispatch.services.credentials import MissingCredentialsError, current_zuper_context
from zuper_dispatch.services.zuper_client import ZuperAPIError, get_zuper_client
from zuper_dispatch.tools.users import get_user_teams


@pytest.fixture
def mock_agent():
    """Create a mock agent and attach it to app state (mirrors the lifespan)."""
    agent = MagicMock()
    agent.ainvoke = AsyncMock(
        return_value={"messages": [AIMessage(content="Assigned Ada Lovelace to job J1.")]},
    )
    app.state.agent = agent
    yield agent
    app.state.agent = None


@pytest.fixture
def client(mock_agent):
    """FastAPI test client with the mock agent wired up."""
    return TestClient(app)


def _thread_id(agent) -> str:
    return agent.ainvoke.call_args.kwargs["config"]["configurable"]["thread_id"]


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "zuper-dispatch"
        assert data["details"] == {"agent_ready": True}

    def test_health_without_agent(self):
        app.state.agent = None
        response = TestClient(app).get("/api/health")
        assert response.json()["details"] == {"agent_ready": False}


class TestChatEndpoint:
    def test_chat_returns_response(self, client):
        response = client.post("/api/chat", json={"message": "Assign J1", "session_id": "s-1"})
        assert response.status_code == 200
        data = response.json()
        assert data["reply"] == "Assigned Ada Lovelace to job J1."
        assert data["session_id"] == "s-1"

    def test_chat_passes_session_id(self, client, mock_agent):
        client.post("/api/chat", json={"message": "Hi!", "session_id": "my-unique-session"})
        assert _thread_id(mock_agent) == "my-unique-session"

    def test_chat_validates_empty_message(self, client):
        response = client.post("/api/chat", json={"message": "", "session_id": "s"})
        assert response.status_code == 422

    def test_chat_validates_missing_session(self, client):
        response = client.post("/api/chat", json={"message": "Hello!"})
        assert response.status_code == 422

    def test_chat_handles_agent_error(self, client, mock_agent):
        mock_agent.ainvoke.side_effect = RuntimeError("LLM exploded with secret sk-123")
        response = client.post("/api/chat", json={"message": "Hi", "session_id": "s"})
        assert response.status_code == 500
        assert "sk-123" not in response.text
        assert response.json()["detail"] == "An internal error occurred. Please try again."

    def test_chat_empty_agent_reply(self, client, mock_agent):
        mock_agent.ainvoke.return_value = {"messages": []}
        response = client.post("/api/chat", json={"message": "Hi", "session_id": "s"})
        assert response.status_code == 500

    def test_chat_without_agent_is_503(self):
        app.state.agent = None
        response = TestClient(app).post("/api/chat", json={"message": "Hi", "session_id": "s"})
        assert response.status_code == 503


class TestDispatchEndpoints:
    def test_assign_single_job(self, client, mock_agent):
        response = client.post("/api/jobs/J1/assign", json={"preferred_date": "2025-10-09"})
        assert response.status_code == 200
        data = response.json()
        assert data["reply"] == "Assigned Ada Lovelace to job J1."
        assert data["thread_id"].startswith("dispatch-")
        prompt = mock_agent.ainvoke.call_args.args[0]["messages"][0].content
        assert "J1" in prompt and "2025-10-09" in prompt

    def test_assign_without_body(self, client):
        assert client.post("/api/jobs/J1/assign").status_code == 200

    def test_batch_requires_jobs(self, client):
        assert client.post("/api/jobs/assign-batch", json={"job_uids": []}).status_code == 422

    def test_batch(self, client, mock_agent):
        response = client.post("/api/jobs/assign-batch", json={"job_uids": ["J1", "J2"], "optimize": False})
        assert response.status_code == 200
        prompt = mock_agent.ainvoke.call_args.args[0]["messages"][0].content
        assert "J1, J2" in prompt

    def test_auto_assign_nothing_to_do(self, client, mock_agent, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs", {"data": [{"job_uid": "J1", "assigned_to": ["u1"]}]})
        response = client.post("/api/jobs/auto-assign")
        assert response.json() == {"assigned": False, "reply": "No unassigned jobs found.", "thread_id": None}
        mock_agent.ainvoke.assert_not_called()

    def test_header_credentials_reach_the_agent_run(self, client, mock_agent, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs", {"data": [{"job_uid": "J7"}]})
        response = client.post("/api/jobs/auto-assign", headers={"X-Zuper-Api-Key": "tenant-key"})
        assert response.json()["assigned"] is True
        assert fake_zuper.last("GET", "/api/jobs").headers["x-api-key"] == "tenant-key"

    def test_identity_headers_fill_the_context(self, client, mock_agent, caplog):
        seen = []

        async def capture(*args, **kwargs):
            seen.append(current_zuper_context())
            return {"messages": [AIMessage(content="ok")]}

        mock_agent.ainvoke.side_effect = capture
        with caplog.at_level(logging.INFO, logger="zuper_dispatch.dispatcher"):
            client.post("/api/jobs/J1/assign", headers={"X-Zuper-Tenant-Id": "t-9", "X-Zuper-User-Id": "u-3"})

        assert (seen[0].tenant_id, seen[0].user_id, seen[0].api_key) == ("t-9", "u-3", None)
        assert "for tenant=t-9 user=u-3" in caplog.text

    def test_assign_without_agent_is_503(self):
        app.state.agent = None
        assert TestClient(app).post("/api/jobs/J1/assign").status_code == 503


class TestErrorMapping:
    def test_missing_credentials_is_400(self, client, mock_agent):
        mock_agent.ainvoke.side_effect = MissingCredentialsError("Zuper API key is required.")
        response = client.post("/api/jobs/J1/assign")
        assert response.status_code == 400
        assert "API key is required" in response.json()["detail"]

    def test_upstream_error_is_502(self, client, mock_agent):
        mock_agent.ainvoke.side_effect = ZuperAPIError(404, "Job not found")
        response = client.post("/api/jobs/J1/assign")
        assert response.status_code == 502
        assert response.json()["detail"] == "Zuper API error (404): Job not found"


class TestRecommendationEndpoint:
    def test_ranking(self, client, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs/J9", {"data": {"job_uid": "J9", "job_title": "Leak"}})
        fake_zuper.add("GET", "/api/jobs", {"data": [{"status": "scheduled", "assigned_to": ["A"]}]})
        fake_zuper.add("GET", "/api/user/all", {"data": [
            {"user_uid": "A", "first_name": "Ada", "status": "active"},
            {"user_uid": "B", "first_name": "Bob", "status": "active"},
        ]})
        data = client.get("/api/jobs/J9/recommendation").json()
        assert data["job_title"] == "Leak"
        assert data["recommended"] == {"user_uid": "B", "name": "Bob", "score": 120, "workload": 0}
        assert data["alternatives"][0]["user_uid"] == "A"
        assert data["alternatives"][0]["score"] == 110

    def test_works_without_agent(self, zuper_client, fake_zuper):
        app.state.agent = None
        fake_zuper.add("GET", "/api/jobs/J9", {"data": {}})
        fake_zuper.add("GET", "/api/jobs", {"data": []})
        fake_zuper.add("GET", "/api/user/all", {"data": []})
        response = TestClient(app).get("/api/jobs/J9/recommendation")
        assert response.status_code == 200
        assert response.json()["recommended"] is None

    def test_upstream_failure(self, client, zuper_client, fake_zuper):
        response = client.get("/api/jobs/missing/recommendation")
        assert response.status_code == 502


class TestDashboardEndpoint:
    def test_dashboard(self, client, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs", {"data": [{}], "total_records": 5})
        fake_zuper.add("GET", "/api/customers", {"data": []})
        fake_zuper.add("GET", "/api/invoice", {"data": [{}, {}]})
        response = client.get("/api/dashboard", headers={"X-Zuper-Api-Key": "tenant-key"})
        assert response.status_code == 200
        data = response.json()
        assert data["jobs"] == {"total": 5, "recent": 1}
        assert data["invoices"] == {"total": 2, "recent": 2}
        assert "Total Jobs: 5" in data["text"]
        assert all(r.headers["x-api-key"] == "tenant-key" for r in fake_zuper.requests)


class TestCatalogEndpoints:
    def test_tools(self, client):
        tools = {t["name"]: t for t in client.get("/api/tools").json()}
        assert tools["assign_job"]["dispatcher"] is True
        assert tools["create_invoice"]["dispatcher"] is False

    def test_prompts(self, client):
        prompts = {p["name"]: p for p in client.get("/api/prompts").json()}
        args = {a["name"]: a["required"] for a in prompts["smart-dispatch"]["arguments"]}
        assert args == {"job_uid": True, "priority_level": False}

    def test_render_prompt(self, client):
        response = client.post("/api/prompts/smart-dispatch", json={"arguments": {"job_uid": "J1"}})
        assert response.status_code == 200
        assert "Assign job J1" in response.json()["text"]

    def test_render_prompt_missing_argument(self, client):
        response = client.post("/api/prompts/smart-dispatch", json={"arguments": {}})
        assert response.status_code == 422

    def test_render_unknown_prompt(self, client):
        assert client.post("/api/prompts/nope").status_code == 404

    def test_resources(self, client):
        uris = [r["uri"] for r in client.get("/api/resources").json()]
        assert "zuper://dashboard" in uris

    def test_read_resource(self, client, zuper_client, fake_zuper):
        fake_zuper.add("GET", "/api/jobs", {"data": [{"job_uid": "J1", "job_title": "Boiler"}]})
        response = client.get("/api/resources/read", params={"uri": "zuper://jobs"})
        assert response.status_code == 200
        assert "Title: Boiler" in response.json()["text"]

    def test_read_unknown_resource(self, client):
        response = client.get("/api/resources/read", params={"uri": "zuper://nope"})
        assert response.status_code == 404


class TestMiddleware:
    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated(self, client):
        assert client.get("/api/health").headers["X-Request-ID"]

    def test_root(self, client):
        assert client.get("/").json()["service"] == "Zuper Dispatch Agent"


class TestAppFactory:
    def test_lifespan_without_model_key_disables_agent(self):
        application = create_app(Settings(zuper_api_key="k", zuper_base_url="https://zuper.test"))
        with TestClient(application) as test_client:
            assert application.state.agent is None
            assert test_client.get("/api/health").json()["details"] == {"agent_ready": False}
            assert test_client.post("/api/jobs/J1/assign").status_code == 503

    def test_lifespan_builds_agent(self, settings):
        application = create_app(settings)
        with TestClient(application) as test_client:
            assert test_client.get("/api/health").json()["details"] == {"agent_ready": True}

    def test_settings_reach_zuper_requests(self, fake_zuper):
        application = create_app(Settings(
            zuper_api_key="app-key",
            zuper_base_url="https://app.zuper.test",
            primary_team_rule="alphabetical",
        ))
        fake_zuper.add("GET", "/api/jobs", {"data": []})
        fake_zuper.add("GET", "/api/customers", {"data": []})
        fake_zuper.add("GET", "/api/invoice", {"data": []})
        fake_zuper.add("GET", "/api/user/u1/teams", {"data": [
            {"team_uid": "t2", "team_name": "Plumbing"},
            {"team_uid": "t1", "team_name": "Electrical"},
        ]})
        with TestClient(application) as test_client:
            zuper = get_zuper_client()
            zuper._client = httpx.AsyncClient(transport=httpx.MockTransport(fake_zuper.handler))

            assert test_client.get("/api/dashboard").status_code == 200
            teams = asyncio.run(get_user_teams.ainvoke({"user_uid": "u1"}))

        assert {r.headers["x-api-key"] for r in fake_zuper.requests} == {"app-key"}
        assert {r.url.host for r in fake_zuper.requests} == {"app.zuper.test"}
        assert teams["data"]["primary_team_uid"] == "t1"
