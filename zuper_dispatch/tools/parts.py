"""LangChain tools for Zuper parts and service items (``/api/product``)."""

from __future__ import annotations

from typing import Any, Literal

from langchain_core.tools import tool
from pydantic import Field

from zuper_dispatch.tools.common import (
    CredentialsInput,
    PageInput,
    call_zuper,
    compact,
    created_uid,
    envelope,
    list_envelope,
    page_params,
)

PartType = Literal["part", "service"]


class CreatePartInput(CredentialsInput):
    part_name: str = Field(..., min_length=1, description="Name of the part or service")
    part_type: PartType = Field(..., description="'part' for physical items, 'service' for labor")
    sku: str | None = Field(None, description="Stock Keeping Unit (SKU)")
    description: str | None = Field(None, description="Part description")
    unit_price: float | None = Field(None, ge=0, description="Price per unit")
    quantity: float | None = Field(None, ge=0, description="Available quantity in stock")
    unit: str | None = Field(None, description="Unit of measurement (e.g. pcs, hours)")
    category: str | None = Field(None, description="Part category")
    vendor: str | None = Field(None, description="Vendor/supplier name")


class PartUidInput(CredentialsInput):
    part_uid: str = Field(..., description="Unique identifier of the part")


class ListPartsInput(PageInput):
    part_type: PartType | None = Field(None, description="Filter by type")
    category: str | None = Field(None, description="Filter by category")
    search: str | None = Field(None, description="Search by name, SKU, or description")


@tool("create_part", args_schema=CreatePartInput)
async def create_part(api_key: str | None = None, base_url: str | None = None, **fields: Any) -> dict:
    """Create a new part/service item in inventory."""
    body = compact(fields)
    if "part_type" in body:
        body["type"] = body.pop("part_type")
    result = await call_zuper(
        "/api/product", api_key=api_key, base_url=base_url, method="POST", body=body,
    )
    return envelope(result, f"Part created successfully with ID: {created_uid(result, 'product_uid')}")


@tool("get_part", args_schema=PartUidInput)
async def get_part(part_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific part or service."""
    result = await call_zuper(f"/api/product/{part_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_parts", args_schema=ListPartsInput)
async def list_parts(
    part_type: str | None = None,
    category: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List parts and services in inventory."""
    result = await call_zuper(
        "/api/product",
        api_key=api_key,
        base_url=base_url,
        params=page_params(page, limit, type=part_type, category=category, search=search),
    )
    return list_envelope(result)
