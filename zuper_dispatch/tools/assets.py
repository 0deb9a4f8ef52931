"""LangChain tools for Zuper assets (tracked equipment)."""

from __future__ import annotations

from typing import Any

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


class CreateAssetInput(CredentialsInput):
    asset_name: str = Field(..., min_length=1, description="Name of the asset")
    asset_type: str | None = Field(None, description="Type/category of the asset")
    customer_uid: str | None = Field(None, description="Customer this asset belongs to")
    property_uid: str | None = Field(None, description="Property where the asset is located")
    serial_number: str | None = Field(None, description="Serial number of the asset")
    model_number: str | None = Field(None, description="Model number")
    manufacturer: str | None = Field(None, description="Manufacturer name")
    installation_date: str | None = Field(None, description="Installation date in ISO 8601 format")
    warranty_expiry: str | None = Field(None, description="Warranty expiry date in ISO 8601 format")
    notes: str | None = Field(None, description="Additional notes")


class AssetUidInput(CredentialsInput):
    asset_uid: str = Field(..., description="Unique identifier of the asset")


class ListAssetsInput(PageInput):
    customer_uid: str | None = Field(None, description="Filter by customer")
    property_uid: str | None = Field(None, description="Filter by property")
    asset_type: str | None = Field(None, description="Filter by asset type")


@tool("create_asset", args_schema=CreateAssetInput)
async def create_asset(api_key: str | None = None, base_url: str | None = None, **fields: Any) -> dict:
    """Create a new asset for tracking equipment, tools, or resources."""
    result = await call_zuper(
        "/api/assets", api_key=api_key, base_url=base_url, method="POST", body=compact(fields),
    )
    return envelope(result, f"Asset created successfully with ID: {created_uid(result, 'asset_uid')}")


@tool("get_asset", args_schema=AssetUidInput)
async def get_asset(asset_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific asset."""
    result = await call_zuper(f"/api/assets/{asset_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_assets", args_schema=ListAssetsInput)
async def list_assets(
    customer_uid: str | None = None,
    property_uid: str | None = None,
    asset_type: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List assets with optional customer, property and type filters."""
    result = await call_zuper(
        "/api/assets",
        api_key=api_key,
        base_url=base_url,
        params=page_params(
            page, limit, customer_uid=customer_uid, property_uid=property_uid, asset_type=asset_type,
        ),
    )
    return list_envelope(result)
