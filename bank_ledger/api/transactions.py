"""
Transaction endpoints
"""

from fastapi import APIRouter, Depends

from .dependencies import get_ledger_system
from .schemas import DepositRequest, WithdrawRequest, TransferRequest, transaction_payload
from ..system import LedgerSystem


router = APIRouter()


@router.post("/deposit")
def deposit(
    request: DepositRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Make a deposit"""
    balance = system.ledger.deposit(request.account_id, request.amount)
    return {"account_id": request.account_id, "balance": str(balance)}


@router.post("/withdraw")
def withdraw(
    request: WithdrawRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Make a withdrawal"""
    balance = system.ledger.withdraw(request.account_id, request.amount)
    return {"account_id": request.account_id, "balance": str(balance)}


@router.post("/transfer")
def transfer(
    request: TransferRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Make a transfer between accounts"""
    from_balance, to_balance = system.ledger.transfer(
        request.from_account_id, request.to_account_id, request.amount
    )
    return {
        "from_account_id": request.from_account_id,
        "from_balance": str(from_balance),
        "to_account_id": request.to_account_id,
        "to_balance": str(to_balance)
    }


@router.get("/{transaction_id}")
def get_transaction(
    transaction_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    return transaction_payload(system.ledger.get_transaction(transaction_id))
