"""LangChain tools for Zuper quotes (``/api/estimate``)."""

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


class CreateQuoteInput(CredentialsInput):
    customer_uid: str = Field(..., description="Customer identifier")
    quote_date: str = Field(..., description="Quote date in ISO 8601 format")
    line_items: list[LineItem] = Field(..., min_length=1, description="Line items for the quote")
    job_uid: str | None = Field(None, description="Associated job identifier")
    valid_until: str | None = Field(None, description="Quote valid until date in ISO 8601 format")
    notes: str | None = Field(None, description="Additional notes")
    terms: str | None = Field(None, description="Terms and conditions")


class QuoteUidInput(CredentialsInput):
    quote_uid: str = Field(..., description="Unique identifier of the quote")


class ListQuotesInput(PageInput):
    customer_uid: str | None = Field(None, description="Filter by customer")
    status: Literal["draft", "sent", "accepted", "rejected", "expired"] | None = Field(
        None, description="Filter by quote status"
    )


@tool("create_quote", args_schema=CreateQuoteInput)
async def create_quote(api_key: str | None = None, base_url: str | None = None, **fields: Any) -> dict:
    """Create a new quote/estimate for a customer."""
    result = await call_zuper(
        "/api/estimate", api_key=api_key, base_url=base_url, method="POST", body=compact(fields),
    )
    return envelope(result, f"Quote created successfully with ID: {created_uid(result, 'estimate_uid')}")


@tool("get_quote", args_schema=QuoteUidInput)
async def get_quote(quote_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific quote."""
    result = await call_zuper(f"/api/estimate/{quote_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_quotes", args_schema=ListQuotesInput)
async def list_quotes(
    customer_uid: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List quotes with optional customer and status filters."""
    result = await call_zuper(
        "/api/estimate",
        api_key=api_key,
        base_url=base_url,
        params=page_params(page, limit, customer_uid=customer_uid, status=status),
    )
    return list_envelope(result)
