"""Read-only text views over Zuper data, addressed by ``zuper://`` URIs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from zuper_dispatch.services.credentials import ZuperCredentials
from zuper_dispatch.services.dashboard import fetch_dashboard
from zuper_dispatch.services.zuper_client import ZuperClient, get_zuper_client

logger = logging.getLogger(__name__)

LISTING_LIMIT = 100


@dataclass(frozen=True)
class Resource:
    uri: str
    name: str
    description: str
    mime_type: str = "text/plain"


RESOURCES = [
    Resource("zuper://jobs", "Zuper Jobs", "List of all jobs in Zuper FSM"),
    Resource("zuper://customers", "Zuper Customers", "List of all customers in Zuper FSM"),
    Resource("zuper://invoices", "Zuper Invoices", "List of all invoices in Zuper FSM"),
    Resource("zuper://properties", "Zuper Properties", "List of all properties in Zuper FSM"),
    Resource("zuper://dashboard", "Zuper Dashboard", "Dashboard overview with stats and recent activity"),
]


def _get(record: dict[str, Any], *keys: str, default: str = "N/A") -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return default


def format_job(job: dict[str, Any]) -> str:
    return (
        f"Job ID: {_get(job, 'job_uid', 'uid')}\n"
        f"Title: {_get(job, 'job_title')}\n"
        f"Customer: {_get(job, 'customer_name')}\n"
        f"Status: {_get(job, 'status')}\n"
        f"Priority: {_get(job, 'priority', 'job_priority')}\n"
        f"Scheduled: {_get(job, 'scheduled_start_time', default='Not scheduled')}\n"
        "---"
    )


def format_customer(customer: dict[str, Any]) -> str:
    name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip()
    return (
        f"Customer ID: {_get(customer, 'customer_uid', 'uid')}\n"
        f"Name: {name or 'N/A'}\n"
        f"Company: {_get(customer, 'company_name')}\n"
        f"Email: {_get(customer, 'email')}\n"
        f"Phone: {_get(customer, 'phone')}\n"
        "---"
    )


def format_invoice(invoice: dict[str, Any]) -> str:
    return (
        f"Invoice ID: {_get(invoice, 'invoice_uid', 'uid')}\n"
        f"Invoice Number: {_get(invoice, 'invoice_number')}\n"
        f"Customer: {_get(invoice, 'customer_name')}\n"
        f"Status: {_get(invoice, 'status')}\n"
        f"Amount: {_get(invoice, 'total_amount', default='0')}\n"
        f"Date: {_get(invoice, 'invoice_date')}\n"
        f"Due Date: {_get(invoice, 'due_date')}\n"
        "---"
    )


def format_property(prop: dict[str, Any]) -> str:
    address = prop.get("address") if isinstance(prop.get("address"), dict) else {}
    parts = [address.get(k) or "" for k in ("street", "city", "state")]
    return (
        f"Property ID: {_get(prop, 'property_uid', 'uid')}\n"
        f"Name: {_get(prop, 'property_name')}\n"
        f"Type: {_get(prop, 'property_type')}\n"
        f"Customer: {_get(prop, 'customer_name')}\n"
        f"Address: {', '.join(parts)}\n"
        "---"
    )


_LISTINGS: dict[str, tuple[str, Callable[[dict[str, Any]], str], str]] = {
    "zuper://jobs": ("/api/jobs", format_job, "No jobs found"),
    "zuper://customers": ("/api/customers", format_customer, "No customers found"),
    "zuper://invoices": ("/api/invoice", format_invoice, "No invoices found"),
    "zuper://properties": ("/api/property", format_property, "No properties found"),
}


async def _read_listing(uri: str, client: ZuperClient, credentials: ZuperCredentials) -> str:
    endpoint, formatter, empty = _LISTINGS[uri]
    result = await client.request(endpoint, credentials, params={"limit": LISTING_LIMIT})
    items = result.get("data") if isinstance(result, dict) else None
    items = [item for item in items or [] if isinstance(item, dict)]
    return "\n".join(formatter(item) for item in items) or empty


async def read_resource(
    uri: str,
    *,
    client: ZuperClient | None = None,
    api_key: str | None = None,
    base_url: str | None = None,
) -> str:
    """Return the plain-text content of resource *uri*.

    Raises:
        KeyError: for an unknown URI.
    """
    if uri != "zuper://dashboard" and uri not in _LISTINGS:
        raise KeyError(f"Unknown resource: {uri}")

    client = client or get_zuper_client()
    credentials = client.credentials(api_key, base_url)
    logger.debug("Reading resource %s", uri)

    if uri == "zuper://dashboard":
        summary = await fetch_dashboard(client, credentials)
        return summary.render()
    return await _read_listing(uri, client, credentials)
