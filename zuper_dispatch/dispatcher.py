"""High-level dispatch operations.

Each agent-backed operation builds a request prompt, runs the dispatcher
graph on a fresh thread under the caller's Zuper context and returns the
model's final text.  ``recommend_assignment`` is the LLM-free fallback: it
reads Zuper directly and applies the workload ranking.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import HumanMessage

from zuper_dispatch.prompts import build_batch_prompt, build_dispatch_prompt, build_preferences_prompt
from zuper_dispatch.services.credentials import ZuperContext, use_zuper_context
from zuper_dispatch.services.ranking import (
    Recommendation,
    count_open_jobs,
    find_unassigned_jobs,
    rank_candidates,
    recommend,
)
from zuper_dispatch.services.zuper_client import ZuperClient, get_zuper_client

logger = logging.getLogger(__name__)

AUTO_ASSIGN_LIMIT = 50
WORKLOAD_SAMPLE_LIMIT = 500


@dataclass(frozen=True)
class DispatchPreferences:
    preferred_technician: str | None = None
    preferred_date: str | None = None
    required_skills: list[str] = field(default_factory=list)
    max_workload: int | None = None


@dataclass(frozen=True)
class DispatchResult:
    text: str
    thread_id: str


def _final_text(result: dict) -> str:
    messages = result.get("messages") or []
    if not messages:
        return ""
    content = messages[-1].content
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return content


async def run_agent(
    agent,
    prompt: str,
    *,
    context: ZuperContext | None = None,
    thread_id: str | None = None,
) -> DispatchResult:
    """Send *prompt* to the agent under *context* and return its final answer.

    A new thread id is generated unless one is given (``/chat`` sessions).
    """
    thread_id = thread_id or f"dispatch-{uuid.uuid4()}"
    if context is not None:
        logger.info("Agent run %s for %s", thread_id, context.caller)
    with use_zuper_context(context):
        result = await agent.ainvoke(
            {"messages": [HumanMessage(content=prompt)]},
            config={"configurable": {"thread_id": thread_id}},
        )
    return DispatchResult(text=_final_text(result), thread_id=thread_id)


async def dispatch_job(
    agent,
    job_uid: str,
    *,
    preferred_date: str | None = None,
    context: ZuperContext | None = None,
) -> DispatchResult:
    logger.info("Dispatching job %s", job_uid)
    return await run_agent(agent, build_dispatch_prompt(job_uid, preferred_date), context=context)


async def batch_dispatch_jobs(
    agent,
    job_uids: Sequence[str],
    *,
    optimize: bool = True,
    context: ZuperContext | None = None,
) -> DispatchResult:
    logger.info("Batch dispatching %d job(s)", len(job_uids))
    return await run_agent(agent, build_batch_prompt(job_uids, optimize), context=context)


async def dispatch_with_preferences(
    agent,
    job_uid: str,
    preferences: DispatchPreferences,
    *,
    context: ZuperContext | None = None,
) -> DispatchResult:
    logger.info("Dispatching job %s with preferences %s", job_uid, preferences)
    prompt = build_preferences_prompt(
        job_uid,
        preferred_technician=preferences.preferred_technician,
        preferred_date=preferences.preferred_date,
        required_skills=preferences.required_skills,
        max_workload=preferences.max_workload,
    )
    return await run_agent(agent, prompt, context=context)


async def auto_assign_unassigned(
    agent,
    *,
    context: ZuperContext | None = None,
    client: ZuperClient | None = None,
    limit: int = AUTO_ASSIGN_LIMIT,
) -> DispatchResult | None:
    """Dispatch every currently unassigned job, or return ``None`` if there are none."""
    client = client or get_zuper_client()
    with use_zuper_context(context):
        credentials = client.credentials()
        result = await client.request("/api/jobs", credentials, params={"page": 1, "limit": limit})

    jobs = [j for j in (result.get("data") if isinstance(result, dict) else None) or [] if isinstance(j, dict)]
    unassigned = find_unassigned_jobs(jobs)
    logger.info("Found %d job(s), %d unassigned", len(jobs), len(unassigned))
    if not unassigned:
        return None

    job_uids = [j["job_uid"] for j in unassigned if j.get("job_uid")]
    if len(job_uids) == 1:
        return await dispatch_job(agent, job_uids[0], context=context)
    return await batch_dispatch_jobs(agent, job_uids, context=context)


async def recommend_assignment(
    job_uid: str,
    *,
    client: ZuperClient | None = None,
    context: ZuperContext | None = None,
) -> tuple[dict[str, Any], Recommendation]:
    """Rank technicians for *job_uid* by current workload, without the LLM.

    The job, the job list (for workload) and the user list are fetched
    concurrently; any failed read fails the whole call.
    """
    client = client or get_zuper_client()
    with use_zuper_context(context):
        credentials = client.credentials()
    job_resp, jobs_resp, users_resp = await asyncio.gather(
        client.request(f"/api/jobs/{job_uid}", credentials),
        client.request("/api/jobs", credentials, params={"page": 1, "limit": WORKLOAD_SAMPLE_LIMIT}),
        client.request("/api/user/all", credentials),
    )

    job = job_resp.get("data") if isinstance(job_resp, dict) else None
    jobs = jobs_resp.get("data") if isinstance(jobs_resp, dict) else None
    users = users_resp.get("data") if isinstance(users_resp, dict) else None

    workload = count_open_jobs(j for j in jobs or [] if isinstance(j, dict))
    ranked = rank_candidates([u for u in users or [] if isinstance(u, dict)], workload)
    recommendation = recommend(ranked)
    if recommendation.top:
        logger.info(
            "Recommended %s for job %s (score %d)",
            recommendation.top.display_name, job_uid, recommendation.top.score,
        )
    return job if isinstance(job, dict) else {}, recommendation
