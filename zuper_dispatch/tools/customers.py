"""LangChain tools for Zuper customers."""

from __future__ import annotations

from typing import Any

from langchain_core.tools import tool
from pydantic import Field

from zuper_dispatch.tools.common import (
    Address,
    CredentialsInput,
    PageInput,
    call_zuper,
    compact,
    created_uid,
    envelope,
    list_envelope,
    page_params,
)


class CreateCustomerInput(CredentialsInput):
    first_name: str = Field(..., min_length=1, description="Customer's first name")
    last_name: str = Field(..., min_length=1, description="Customer's last name")
    email: str | None = Field(None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", description="Customer's email address")
    phone: str | None = Field(None, description="Customer's phone number")
    company_name: str | None = Field(None, description="Company name if business customer")
    address: Address | None = Field(None, description="Customer address details")


class CustomerUidInput(CredentialsInput):
    customer_uid: str = Field(..., description="Unique identifier of the customer")


class ListCustomersInput(PageInput):
    search: str | None = Field(None, description="Search customers by name, email, or phone")


@tool("create_customer", args_schema=CreateCustomerInput)
async def create_customer(api_key: str | None = None, base_url: str | None = None, **fields: Any) -> dict:
    """Create a new customer in Zuper FSM."""
    result = await call_zuper(
        "/api/customers", api_key=api_key, base_url=base_url, method="POST", body=compact(fields),
    )
    return envelope(result, f"Customer created successfully with ID: {created_uid(result, 'customer_uid')}")


@tool("get_customer", args_schema=CustomerUidInput)
async def get_customer(customer_uid: str, api_key: str | None = None, base_url: str | None = None) -> dict:
    """Retrieve details of a specific customer by UID."""
    result = await call_zuper(f"/api/customers/{customer_uid}", api_key=api_key, base_url=base_url)
    return envelope(result)


@tool("list_customers", args_schema=ListCustomersInput)
async def list_customers(
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
    api_key: str | None = None,
    base_url: str | None = None,
) -> dict:
    """List customers with pagination and optional search."""
    result = await call_zuper(
        "/api/customers",
        api_key=api_key,
        base_url=base_url,
        params=page_params(page, limit, search=search),
    )
    return list_envelope(result)
