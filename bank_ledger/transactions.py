"""
Transaction Record Module

Immutable records of balance-affecting events. The amount is always
positive; direction is carried by the kind (deposit vs withdrawal, transfer
in vs transfer out), never by sign.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum

from .errors import InvalidAmount
from .money import ZERO, to_amount


class TransactionKind(Enum):
    """Kinds of balance-affecting events"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"

    @property
    def label(self) -> str:
        """Display label, e.g. 'Transfer Out'"""
        return self.value.replace('_', ' ').title()

    @property
    def is_credit(self) -> bool:
        return self in (TransactionKind.DEPOSIT, TransactionKind.TRANSFER_IN)


@dataclass(frozen=True)
class Transaction:
    """
    One balance-affecting event on one account
    """
    account_id: int
    kind: TransactionKind
    amount: Decimal
    timestamp: datetime
    description: str
    id: Optional[int] = None  # Assigned by the transaction store on append

    def __post_init__(self):
        if not isinstance(self.kind, TransactionKind):
            object.__setattr__(self, 'kind', TransactionKind(self.kind))

        amount = to_amount(self.amount)
        if amount <= ZERO:
            raise InvalidAmount("Transaction amount must be positive")
        object.__setattr__(self, 'amount', amount)

    @property
    def signed_amount(self) -> Decimal:
        """Effect on the account balance"""
        return self.amount if self.kind.is_credit else self.amount.copy_negate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            'id': self.id,
            'account_id': self.account_id,
            'kind': self.kind.value,
            'amount': str(self.amount),
            'timestamp': self.timestamp.isoformat(),
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=data['id'],
            account_id=data['account_id'],
            kind=TransactionKind(data['kind']),
            amount=Decimal(data['amount']),
            timestamp=datetime.fromisoformat(data['timestamp']),
            description=data['description'],
        )
