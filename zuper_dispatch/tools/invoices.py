"""LangChain tools for Zuper invoices."""

from __future__ import annotations

from typing import Any, Literal

from langchain_core.tools import tool
from pydantic import Field

from zuper_dispatch.tools.common import (
    CredentialsInput,
    LineItem,
    PageInput,
    call_zuper,
    compact,
    created_uid,
    envelope,
    list_envelope,
    page_params,
)


class CreateInvoiceInput(CredentialsInput):
    customer_uid: str = Field(..., description="Customer UID for this invoice")
    invoice_date: str = Field(..., description="Invoice date in ISO 8601 format")
    line_items: list[LineItem] = Field(..., min_length=1, description="Line items for the invoice")
    job_uid: str | None = Field(None, description="Job UID this invoice is associated with")
    due_date: str | None = Field(None, description="Payment due date in ISO 8601 format")
    notes: str | None = Field(None, description="Additional notes for the invoice")


class InvoiceUidInput(CredentialsInput):
    invoice_uid: str = Field(..., description="Unique identifier of the invoice")


class ListInvoicesInput(PageInput):
    status: Literal["draft", "sent", "paid", "overdue", "cancelled"] | None = Field(
        None, description="Filter invoices by status"
    )
    customer_uid: str | None = Field(None, description="Filter by specific customer")


@tool("create_invoice", args_schema=CreateInvoiceInput)
async def create_invoice(api_key: str | None = None, base_url: str | None = None, **fields: Any) -> dict:
    """Create a new invoice for a job or customer."""
    result = await call_zuper(
        "/api/invoice", api_key=api_key, base_url=base_url, method="POST", body=compact(fields),
    )
    return envelope(result, f"Invoice created successfully with ID: {created_uid(result, 'invoice_uid')}")


@tool("get_invoice", args_schema=InvoiceUidInput)
async def get_invoice(invoice_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific invoice by UID."""
    result = await call_zuper(f"/api/invoice/{invoice_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_invoices", args_schema=ListInvoicesInput)
async def list_invoices(
    status: str | None = None,
    customer_uid: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List invoices with optional status and customer filters."""
    result = await call_zuper(
        "/api/invoice",
        api_key=api_key,
        base_url=base_url,
        params=page_params(page, limit, status=status, customer_uid=customer_uid),
    )
    return list_envelope(result)
