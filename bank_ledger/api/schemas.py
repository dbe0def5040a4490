"""
Pydantic schemas for API requests and responses
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from ..accounts import Account
from ..customers import Customer
from ..transactions import Transaction


# Customer schemas
class CreateCustomerRequest(BaseModel):
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""


class UpdateCustomerRequest(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


# Account schemas
class OpenAccountRequest(BaseModel):
    customer_id: int
    kind: str = Field(..., description="Account kind (standard, savings, checking)")
    initial_deposit: str = Field(..., description="Decimal amount as string")
    interest_rate: Optional[str] = Field(None, description="Percent, savings only")
    overdraft_limit: Optional[str] = Field(None, description="Checking only")
    account_number: Optional[str] = None


# Transaction schemas
class DepositRequest(BaseModel):
    account_id: int
    amount: str = Field(..., description="Decimal amount as string")


class WithdrawRequest(BaseModel):
    account_id: int
    amount: str = Field(..., description="Decimal amount as string")


class TransferRequest(BaseModel):
    from_account_id: int
    to_account_id: int
    amount: str = Field(..., description="Decimal amount as string")


def customer_payload(customer: Customer) -> Dict[str, Any]:
    return customer.to_dict()


def account_payload(account: Account) -> Dict[str, Any]:
    return {
        "id": account.id,
        "customer_id": account.customer_id,
        "account_number": account.account_number,
        "kind": account.kind.value,
        "balance": str(account.balance),
        "date_opened": account.date_opened.isoformat(),
        "interest_rate": str(account.interest_rate) if account.interest_rate is not None else None,
        "overdraft_limit": str(account.overdraft_limit) if account.overdraft_limit is not None else None,
    }


def transaction_payload(transaction: Transaction) -> Dict[str, Any]:
    return {
        "id": transaction.id,
        "account_id": transaction.account_id,
        "kind": transaction.kind.value,
        "amount": str(transaction.amount),
        "timestamp": transaction.timestamp.isoformat(),
        "description": transaction.description,
    }
