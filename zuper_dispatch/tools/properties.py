"""LangChain tools for Zuper properties (service locations)."""

from __future__ import annotations

from typing import Any

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from zuper_dispatch.tools.common import CredentialsInput, call_zuper, compact, created_uid, envelope


class PropertyAddress(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str


class CreatePropertyInput(CredentialsInput):
    customer_uid: str = Field(..., description="Customer UID this property belongs to")
    property_name: str = Field(..., min_length=1, description="Name of the property")
    address: PropertyAddress = Field(..., description="Full property address")
    property_type: str | None = Field(None, description="Type of property (residential, commercial, etc.)")
    notes: str | None = None


class PropertyUidInput(CredentialsInput):
    property_uid: str = Field(..., description="Unique identifier of the property")


@tool("create_property", args_schema=CreatePropertyInput)
async def create_property(api_key: str | None = None, base_url: str | None = None, **fields: Any) -> dict:
    """Create a new property/location for a customer."""
    result = await call_zuper(
        "/api/property", api_key=api_key, base_url=base_url, method="POST", body=compact(fields),
    )
    return envelope(result, f"Property created successfully with ID: {created_uid(result, 'property_uid')}")


@tool("get_property", args_schema=PropertyUidInput)
async def get_property(property_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific property by UID."""
    result = await call_zuper(f"/api/property/{property_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)
