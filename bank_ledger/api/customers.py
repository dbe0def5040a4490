"""
Customer management endpoints
"""

from fastapi import APIRouter, Depends, Response, status

from .dependencies import get_ledger_system
from .schemas import (
    CreateCustomerRequest,
    UpdateCustomerRequest,
    account_payload,
    customer_payload
)
from ..system import LedgerSystem


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_customer(
    request: CreateCustomerRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Create a new customer"""
    customer = system.customer_service.add_customer(
        name=request.name,
        address=request.address,
        phone=request.phone,
        email=request.email
    )
    return customer_payload(customer)


@router.get("")
def list_customers(system: LedgerSystem = Depends(get_ledger_system)):
    return {"customers": [customer_payload(c) for c in system.customer_service.list_customers()]}


@router.get("/{customer_id}")
def get_customer(
    customer_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get customer by ID"""
    return customer_payload(system.customer_service.get_customer(customer_id))


@router.patch("/{customer_id}")
def update_customer(
    customer_id: int,
    request: UpdateCustomerRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Update customer information"""
    customer = system.customer_service.update_customer(
        customer_id, **request.model_dump(exclude_none=True)
    )
    return customer_payload(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_customer(
    customer_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    system.customer_service.remove_customer(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{customer_id}/accounts")
def get_customer_accounts(
    customer_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get all accounts for a customer"""
    accounts = system.ledger.list_customer_accounts(customer_id)
    return {"accounts": [account_payload(account) for account in accounts]}
