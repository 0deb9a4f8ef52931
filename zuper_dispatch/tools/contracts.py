"""LangChain tools for Zuper service contracts."""

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


class CreateContractInput(CredentialsInput):
    customer_uid: str = Field(..., description="Customer identifier")
    contract_name: str = Field(..., min_length=1, description="Name of the service contract")
    start_date: str = Field(..., description="Contract start date in ISO 8601 format")
    end_date: str = Field(..., description="Contract end date in ISO 8601 format")
    contract_type: str | None = Field(None, description="Type of contract (e.g. maintenance, support)")
    recurrence: str | None = Field(None, description="Recurrence pattern (e.g. monthly, quarterly)")
    value: float | None = Field(None, ge=0, description="Contract value/amount")
    description: str | None = Field(None, description="Contract description")
    terms: str | None = Field(None, description="Contract terms and conditions")


class ContractUidInput(CredentialsInput):
    contract_uid: str = Field(..., description="Unique identifier of the service contract")


class ListContractsInput(PageInput):
    customer_uid: str | None = Field(None, description="Filter by customer")
    status: Literal["active", "expired", "cancelled"] | None = Field(None, description="Filter by contract status")


@tool("create_service_contract", args_schema=CreateContractInput)
async def create_service_contract(api_key: str | None = None, base_url: str | None = None, **fields: Any) -> dict:
    """Create a new service contract for recurring maintenance or services."""
    result = await call_zuper(
        "/api/service_contract", api_key=api_key, base_url=base_url, method="POST", body=compact(fields),
    )
    return envelope(result, f"Service contract created successfully with ID: {created_uid(result, 'contract_uid')}")


@tool("get_service_contract", args_schema=ContractUidInput)
async def get_service_contract(contract_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific service contract."""
    result = await call_zuper(f"/api/service_contract/{contract_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_service_contracts", args_schema=ListContractsInput)
async def list_service_contracts(
    customer_uid: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List service contracts with optional customer and status filters."""
    result = await call_zuper(
        "/api/service_contract",
        api_key=api_key,
        base_url=base_url,
        params=page_params(page, limit, customer_uid=customer_uid, status=status),
    )
    return list_envelope(result)
