"""Zuper Dispatch Agent — AI-assisted job assignment for Zuper FSM.

Architecture Overview
=====================

The package wraps the Zuper field-service REST API as typed LangChain tools
and hands a subset of them to a **LangGraph** agent that decides which
technician should take which job:

1. **chatbot** — Claude with the dispatcher instructions (assisted scheduling
   first, slot-splitting for long jobs, skill/time-off/team checks,
   continuity). It decides which tool to call next.

2. **tools** — executes the tool calls against Zuper. Tool failures become
   tool-result messages so the model can try the next candidate.

Routing: chatbot → (tool calls?) → tools → chatbot (loop until no tool calls → END)

Key Design Decisions
--------------------
- **Credentials**: resolved per call, per field: explicit tool parameter,
  then the ambient request context (a ``ContextVar``), then ``Settings``.
  They never appear in prompt text.
- **HTTP**: one ``httpx.AsyncClient``; every tool call is a single
  best-effort request with no retries and no timeout.
- **Assignment**: ``assign_job`` posts the assignment and re-reads the job;
  it only reports success when the job actually has assignees.
- **Fallback**: a deterministic workload ranking
  (``max(0, 100 - 10*open_jobs) + 20 if active``) for when the LLM path is
  bypassed.
- **Dual Interface**: FastAPI server + CLI (single / batch / auto /
  preferences / rank / chat).

Package Structure
-----------------
- ``zuper_dispatch/agent.py`` — LangGraph StateGraph definition
- ``zuper_dispatch/config.py`` — Settings from environment / .env / SSM
- ``zuper_dispatch/prompts.py`` — dispatcher instructions and prompt templates
- ``zuper_dispatch/dispatcher.py`` — dispatch operations and the LLM-free recommendation
- ``zuper_dispatch/resources.py`` — read-only ``zuper://`` text resources
- ``zuper_dispatch/server.py`` — FastAPI application
- ``zuper_dispatch/main.py`` — CLI
- ``zuper_dispatch/services/`` — Zuper HTTP client, credentials, ranking, dashboard, metrics
- ``zuper_dispatch/tools/`` — LangChain tools, one module per FSM area
- ``zuper_dispatch/api/`` — FastAPI routes and Pydantic schemas
"""

__version__ = "1.0.0"
