"""
Account management endpoints
"""

from fastapi import APIRouter, Depends, Response, status

from .dependencies import get_ledger_system
from .schemas import OpenAccountRequest, account_payload, transaction_payload
from ..system import LedgerSystem


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def open_account(
    request: OpenAccountRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Open a new account"""
    account_id = system.ledger.open_account(
        customer_id=request.customer_id,
        kind=request.kind,
        initial_deposit=request.initial_deposit,
        interest_rate=request.interest_rate,
        overdraft_limit=request.overdraft_limit,
        account_number=request.account_number
    )
    return account_payload(system.ledger.get_account(account_id))


@router.get("/{account_id}")
def get_account(
    account_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get account details"""
    return account_payload(system.ledger.get_account(account_id))


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def close_account(
    account_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Close an account with a zero balance"""
    system.ledger.close_account(account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{account_id}/transactions")
def get_account_transactions(
    account_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get transaction history for account"""
    transactions = system.ledger.get_account_transactions(account_id)
    return {"transactions": [transaction_payload(txn) for txn in transactions]}


@router.post("/{account_id}/interest")
def apply_interest(
    account_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Credit one round of interest to a savings account"""
    balance = system.ledger.apply_interest(account_id)
    return {"account_id": account_id, "balance": str(balance)}
