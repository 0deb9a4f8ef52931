"""FastAPI route definitions for the Zuper dispatch API."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from zuper_dispatch.api.schemas import (
    AssignJobRequest,
    AutoAssignResponse,
    BatchAssignRequest,
    Candidate,
    ChatRequest,
    ChatResponse,
    DashboardResponse,
    DispatchResponse,
    HealthResponse,
    PromptArgumentInfo,
    PromptInfo,
    RecommendationResponse,
    RenderPromptRequest,
    RenderPromptResponse,
    ResourceContent,
    ResourceInfo,
    ToolInfo,
)
from zuper_dispatch.dispatcher import (
    auto_assign_unassigned,
    batch_dispatch_jobs,
    dispatch_job,
    recommend_assignment,
    run_agent,
)
from zuper_dispatch.prompts import PROMPT_TEMPLATES, render_prompt
from zuper_dispatch.resources import RESOURCES, read_resource
from zuper_dispatch.services.credentials import MissingCredentialsError, ZuperContext, use_zuper_context
from zuper_dispatch.services.dashboard import fetch_dashboard
from zuper_dispatch.services.ranking import RankedCandidate
from zuper_dispatch.services.zuper_client import ZuperAPIError, ZuperDomainError, get_zuper_client
from zuper_dispatch.tools.catalog import ALL_TOOLS, DISPATCHER_TOOL_NAMES

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_agent(request: Request):
    """Retrieve the compiled dispatcher graph from app state (set in the lifespan)."""
    agent = getattr(request.app.state, "agent", None)
    if agent is None:
        raise HTTPException(
            status_code=503,
            detail="The dispatcher is still starting up or is not configured. Please try again later.",
        )
    return agent


def zuper_context(
    x_zuper_api_key: str | None = Header(None),
    x_zuper_base_url: str | None = Header(None),
    x_zuper_user_id: str | None = Header(None),
    x_zuper_tenant_id: str | None = Header(None),
    x_zuper_organization_id: str | None = Header(None),
) -> ZuperContext | None:
    """Per-request Zuper context from headers; ``None`` falls back to settings."""
    context = ZuperContext(
        api_key=x_zuper_api_key,
        base_url=x_zuper_base_url,
        user_id=x_zuper_user_id,
        tenant_id=x_zuper_tenant_id,
        organization_id=x_zuper_organization_id,
    )
    if context == ZuperContext():
        return None
    return context


@contextmanager
def _translate_errors(request: Request, action: str) -> Iterator[None]:
    """Map integration failures to HTTP errors without leaking internals."""
    request_id = getattr(request.state, "request_id", "?")
    try:
        yield
    except HTTPException:
        raise
    except MissingCredentialsError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (ZuperAPIError, ZuperDomainError) as e:
        logger.warning("[%s] %s failed upstream: %s", request_id, action, e)
        raise HTTPException(status_code=502, detail=str(e)) from e
    except Exception as e:
        logger.exception("[%s] Error during %s", request_id, action)
        raise HTTPException(
            status_code=500,
            detail="An internal error occurred. Please try again.",
        ) from e


def _candidate(c: RankedCandidate) -> Candidate:
    return Candidate(user_uid=c.user_uid, name=c.display_name, score=c.score, workload=c.workload)


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    agent_ready = getattr(request.app.state, "agent", None) is not None
    return HealthResponse(details={"agent_ready": agent_ready})


@router.post("/jobs/{job_uid}/assign", response_model=DispatchResponse)
async def assign_job(
    job_uid: str,
    http_request: Request,
    body: AssignJobRequest | None = None,
    context: ZuperContext | None = Depends(zuper_context),
):
    """Ask the dispatcher to pick a technician for one job and assign it."""
    agent = _get_agent(http_request)
    preferred_date = body.preferred_date if body else None
    with _translate_errors(http_request, f"assign {job_uid}"):
        result = await dispatch_job(agent, job_uid, preferred_date=preferred_date, context=context)
    return DispatchResponse(reply=result.text, thread_id=result.thread_id)


@router.post("/jobs/assign-batch", response_model=DispatchResponse)
async def assign_batch(
    body: BatchAssignRequest,
    http_request: Request,
    context: ZuperContext | None = Depends(zuper_context),
):
    agent = _get_agent(http_request)
    with _translate_errors(http_request, "batch assign"):
        result = await batch_dispatch_jobs(agent, body.job_uids, optimize=body.optimize, context=context)
    return DispatchResponse(reply=result.text, thread_id=result.thread_id)


@router.post("/jobs/auto-assign", response_model=AutoAssignResponse)
async def auto_assign(http_request: Request, context: ZuperContext | None = Depends(zuper_context)):
    """Dispatch every job that currently has no assignees."""
    agent = _get_agent(http_request)
    with _translate_errors(http_request, "auto assign"):
        result = await auto_assign_unassigned(agent, context=context)
    if result is None:
        return AutoAssignResponse(assigned=False, reply="No unassigned jobs found.")
    return AutoAssignResponse(assigned=True, reply=result.text, thread_id=result.thread_id)


@router.get("/jobs/{job_uid}/recommendation", response_model=RecommendationResponse)
async def job_recommendation(
    job_uid: str,
    http_request: Request,
    context: ZuperContext | None = Depends(zuper_context),
):
    """Workload-based technician ranking for a job (no LLM involved)."""
    with _translate_errors(http_request, f"recommend {job_uid}"):
        job, recommendation = await recommend_assignment(job_uid, context=context)
    return RecommendationResponse(
        job_uid=job_uid,
        job_title=job.get("job_title"),
        recommended=_candidate(recommendation.top) if recommendation.top else None,
        alternatives=[_candidate(c) for c in recommendation.alternatives],
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    http_request: Request,
    context: ZuperContext | None = Depends(zuper_context),
):
    """Talk to the dispatcher; ``session_id`` keeps the conversation thread."""
    agent = _get_agent(http_request)
    with _translate_errors(http_request, "chat"):
        result = await run_agent(agent, request.message, context=context, thread_id=request.session_id)
    if not result.text:
        raise HTTPException(status_code=500, detail="Agent produced no response.")
    return ChatResponse(reply=result.text, session_id=request.session_id)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(http_request: Request, context: ZuperContext | None = Depends(zuper_context)):
    client = get_zuper_client()
    with _translate_errors(http_request, "dashboard"):
        with use_zuper_context(context):
            credentials = client.credentials()
        summary = await fetch_dashboard(client, credentials)
    return DashboardResponse(**summary.as_dict(), text=summary.render())


@router.get("/tools", response_model=list[ToolInfo])
async def list_tools():
    return [
        ToolInfo(name=t.name, description=t.description, dispatcher=t.name in DISPATCHER_TOOL_NAMES)
        for t in ALL_TOOLS
    ]


@router.get("/prompts", response_model=list[PromptInfo])
async def list_prompts():
    return [
        PromptInfo(
            name=t.name,
            description=t.description,
            arguments=[
                PromptArgumentInfo(name=a.name, description=a.description, required=a.required)
                for a in t.arguments
            ],
        )
        for t in PROMPT_TEMPLATES.values()
    ]


@router.post("/prompts/{name}", response_model=RenderPromptResponse)
async def get_prompt(name: str, body: RenderPromptRequest | None = None):
    if name not in PROMPT_TEMPLATES:
        raise HTTPException(status_code=404, detail=f"Unknown prompt: {name}")
    try:
        text = render_prompt(name, **(body.arguments if body else {}))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return RenderPromptResponse(name=name, text=text)


@router.get("/resources", response_model=list[ResourceInfo])
async def list_resources():
    return [
        ResourceInfo(uri=r.uri, name=r.name, description=r.description, mime_type=r.mime_type)
        for r in RESOURCES
    ]


@router.get("/resources/read", response_model=ResourceContent)
async def get_resource(
    http_request: Request,
    uri: str = Query(..., description="Resource URI, e.g. zuper://jobs"),
    context: ZuperContext | None = Depends(zuper_context),
):
    if uri not in {r.uri for r in RESOURCES}:
        raise HTTPException(status_code=404, detail=f"Unknown resource: {uri}")
    with _translate_errors(http_request, f"read {uri}"):
        with use_zuper_context(context):
            text = await read_resource(uri)
    return ResourceContent(uri=uri, text=text)
