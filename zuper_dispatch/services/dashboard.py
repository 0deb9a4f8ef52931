"""Dashboard summary built from three parallel Zuper reads.

The reads (jobs, customers, invoices) are independent, so they run
concurrently with ``asyncio.gather``.  The aggregate is all-or-nothing: if
any read fails the whole call fails and no partial summary is returned.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from zuper_dispatch.services.credentials import ZuperCredentials
from zuper_dispatch.services.zuper_client import ZuperClient

logger = logging.getLogger(__name__)

DASHBOARD_SAMPLE_SIZE = 10


@dataclass(frozen=True)
class SectionStats:
    total: int
    recent: int

    @classmethod
    def from_response(cls, response: Any) -> SectionStats:
        response = response if isinstance(response, dict) else {}
        records = response.get("data")
        recent = len(records) if isinstance(records, list) else 0
        total = response.get("total_records", response.get("total", recent))
        return cls(total=int(total or 0), recent=recent)


@dataclass(frozen=True)
class DashboardSummary:
    jobs: SectionStats
    customers: SectionStats
    invoices: SectionStats
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def as_dict(self) -> dict[str, Any]:
        return {
            "jobs": {"total": self.jobs.total, "recent": self.jobs.recent},
            "customers": {"total": self.customers.total, "recent": self.customers.recent},
            "invoices": {"total": self.invoices.total, "recent": self.invoices.recent},
            "generated_at": self.generated_at.isoformat(),
        }

    def render(self) -> str:
        return (
            "Zuper FSM Dashboard\n"
            "===================\n\n"
            f"Jobs:\n- Total Jobs: {self.jobs.total}\n- Recent Jobs: {self.jobs.recent}\n\n"
            f"Customers:\n- Total Customers: {self.customers.total}\n"
            f"- Recent Customers: {self.customers.recent}\n\n"
            f"Invoices:\n- Total Invoices: {self.invoices.total}\n"
            f"- Recent Invoices: {self.invoices.recent}\n\n"
            f"Last Updated: {self.generated_at.isoformat()}\n"
        )


async def fetch_dashboard(client: ZuperClient, credentials: ZuperCredentials) -> DashboardSummary:
    """Fetch jobs, customers and invoices concurrently and summarise them."""
    params = {"page": 1, "limit": DASHBOARD_SAMPLE_SIZE}
    jobs, customers, invoices = await asyncio.gather(
        client.request("/api/jobs", credentials, params=params),
        client.request("/api/customers", credentials, params=params),
        client.request("/api/invoice", credentials, params=params),
    )
    summary = DashboardSummary(
        jobs=SectionStats.from_response(jobs),
        customers=SectionStats.from_response(customers),
        invoices=SectionStats.from_response(invoices),
    )
    logger.debug("Dashboard built: %s", summary)
    return summary
