"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class AssignJobRequest(BaseModel):
    preferred_date: str | None = Field(None, description="Preferred scheduling date (YYYY-MM-DD)")


class BatchAssignRequest(BaseModel):
    job_uids: list[str] = Field(..., min_length=1, description="Jobs to assign")
    optimize: bool = Field(True, description="Ask the dispatcher to optimize travel and workload")


class DispatchResponse(BaseModel):
    """Final answer of the dispatcher agent."""

    reply: str = Field(..., description="The dispatcher's summary")
    thread_id: str = Field(..., description="Agent thread used for this run")


class AutoAssignResponse(BaseModel):
    assigned: bool = Field(..., description="False when there were no unassigned jobs")
    reply: str | None = None
    thread_id: str | None = None


class Candidate(BaseModel):
    user_uid: str | None
    name: str
    score: int
    workload: int


class RecommendationResponse(BaseModel):
    job_uid: str
    job_title: str | None = None
    recommended: Candidate | None = None
    alternatives: list[Candidate] = Field(default_factory=list)


class ChatRequest(BaseModel):
    """Free-form message for the dispatcher."""

    message: str = Field(..., min_length=1, max_length=4000, description="The user's message")
    session_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique session identifier for conversation continuity",
    )


class ChatResponse(BaseModel):
    reply: str = Field(..., description="The dispatcher's response message")
    session_id: str = Field(..., description="The session ID for this conversation")


class ToolInfo(BaseModel):
    name: str
    description: str
    dispatcher: bool = Field(..., description="Whether the dispatcher agent can call this tool")


class PromptArgumentInfo(BaseModel):
    name: str
    description: str
    required: bool


class PromptInfo(BaseModel):
    name: str
    description: str
    arguments: list[PromptArgumentInfo]


class RenderPromptRequest(BaseModel):
    arguments: dict[str, str] = Field(default_factory=dict)


class RenderPromptResponse(BaseModel):
    name: str
    text: str


class ResourceInfo(BaseModel):
    uri: str
    name: str
    description: str
    mime_type: str


class ResourceContent(BaseModel):
    uri: str
    mime_type: str = "text/plain"
    text: str


class DashboardResponse(BaseModel):
    jobs: dict[str, int]
    customers: dict[str, int]
    invoices: dict[str, int]
    generated_at: str
    text: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "zuper-dispatch"
    details: dict[str, Any] | None = None
