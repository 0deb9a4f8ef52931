"""Deterministic fallback ranking and other pure helpers over Zuper records.

None of this replaces the LLM's decision process.  The ranking is a simple
workload score used when the agent path is bypassed (CLI ``rank``, the
``/recommendation`` endpoint):

    workload_score = max(0, 100 - 10 * open_jobs)
    total          = workload_score + (20 if the user is active else 0)
"""

from __future__ import annotations

import enum
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

MAX_WORKLOAD_SCORE = 100
WORKLOAD_PENALTY = 10
ACTIVE_BONUS = 20

CLOSED_JOB_STATUSES = frozenset({"completed", "cancelled", "canceled"})


@dataclass(frozen=True)
class RankedCandidate:
    user: dict[str, Any]
    workload: int
    score: int

    @property
    def user_uid(self) -> str | None:
        return self.user.get("user_uid")

    @property
    def display_name(self) -> str:
        name = f"{self.user.get('first_name', '')} {self.user.get('last_name', '')}".strip()
        return name or self.user_uid or "unknown"


@dataclass(frozen=True)
class Recommendation:
    top: RankedCandidate | None
    alternatives: list[RankedCandidate] = field(default_factory=list)


def workload_score(open_jobs: int) -> int:
    return max(0, MAX_WORKLOAD_SCORE - WORKLOAD_PENALTY * open_jobs)


def is_active(user: Mapping[str, Any]) -> bool:
    return user.get("status") == "active" or user.get("is_active") is True


def rank_candidates(
    users: Iterable[dict[str, Any]],
    workload: Mapping[str, int],
) -> list[RankedCandidate]:
    """Score every user and sort best-first.

    The sort is stable, so users with equal scores keep their input order.
    Users missing from *workload* count as having no open jobs.
    """
    scored = []
    for user in users:
        jobs = workload.get(user.get("user_uid"), 0)
        score = workload_score(jobs) + (ACTIVE_BONUS if is_active(user) else 0)
        scored.append(RankedCandidate(user=user, workload=jobs, score=score))
    return sorted(scored, key=lambda c: c.score, reverse=True)


def recommend(ranked: Sequence[RankedCandidate], alternatives: int = 2) -> Recommendation:
    """Split a ranked list into the top pick and up to *alternatives* runners-up."""
    if not ranked:
        return Recommendation(top=None)
    return Recommendation(top=ranked[0], alternatives=list(ranked[1 : 1 + alternatives]))


# ── Job helpers ──────────────────────────────────────────────────────


def _assignee_uid(entry: Any) -> str | None:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        if entry.get("user_uid"):
            return entry["user_uid"]
        user = entry.get("user")
        if isinstance(user, dict):
            return user.get("user_uid")
    return None


def job_assignees(job: Mapping[str, Any]) -> list[str]:
    """Return the user uids assigned to *job* (``assigned_to`` or ``assigned_users``)."""
    entries = job.get("assigned_to") or job.get("assigned_users") or []
    return [uid for uid in map(_assignee_uid, entries) if uid]


def _job_status(job: Mapping[str, Any]) -> str:
    status = job.get("status")
    if status is None:
        current = job.get("current_job_status")
        if isinstance(current, dict):
            status = current.get("status_name")
    return str(status or "").lower()


def count_open_jobs(jobs: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    """Count, per user uid, the jobs they are assigned that are still open."""
    counts: Counter[str] = Counter()
    for job in jobs:
        if _job_status(job) in CLOSED_JOB_STATUSES:
            continue
        counts.update(job_assignees(job))
    return dict(counts)


def find_unassigned_jobs(jobs: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [job for job in jobs if not job_assignees(job)]


# ── Primary team selection ───────────────────────────────────────────


class PrimaryTeamRule(enum.Enum):
    """How to choose a user's default team for assignment payloads.

    FIRST keeps the order the API returned (which the API does not
    document); ALPHABETICAL is stable across calls.
    """

    FIRST = "first"
    ALPHABETICAL = "alphabetical"


def select_primary_team(
    teams: Sequence[Mapping[str, Any]],
    rule: PrimaryTeamRule | str = PrimaryTeamRule.FIRST,
) -> str | None:
    """Return the primary team uid for a user's team list, or ``None``."""
    rule = PrimaryTeamRule(rule)
    candidates = [t for t in teams if t.get("team_uid")]
    if not candidates:
        return None
    if rule is PrimaryTeamRule.ALPHABETICAL:
        candidates = sorted(
            candidates,
            key=lambda t: (str(t.get("team_name") or "").lower(), t["team_uid"]),
        )
    return candidates[0]["team_uid"]
