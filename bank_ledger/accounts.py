"""
Account Module

Customer accounts and their withdrawal policy. An account is one of three
variants, identified by its AccountKind tag:

- STANDARD: no extra policy, balance never below zero
- SAVINGS: carries an interest rate (percent), balance never below zero
- CHECKING: carries an overdraft limit, balance never below -overdraft_limit

The policy is a single function over the tag (``available_funds``) rather
than per-variant subclasses. Account methods mutate the in-memory entity only;
persisting the change and recording the transaction is the caller's job.
"""

from decimal import Decimal, DecimalException
from datetime import date
from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum

from .errors import (
    InvalidAccountParameters, InsufficientFunds, UnsupportedOperation
)
from .money import (
    MAX_INTEGER_DIGITS, ZERO, AmountLike, add, percent_of, positive_amount, quantize,
    subtract, to_amount
)


class AccountKind(Enum):
    """Account variants"""
    STANDARD = "standard"
    SAVINGS = "savings"
    CHECKING = "checking"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def number_prefix(self) -> str:
        return {
            AccountKind.STANDARD: "STD",
            AccountKind.SAVINGS: "SAV",
            AccountKind.CHECKING: "CHK",
        }[self]


@dataclass
class Account:
    """
    Customer account holding a fixed-point balance
    """
    customer_id: int
    account_number: str
    kind: AccountKind
    balance: Decimal
    date_opened: date
    interest_rate: Optional[Decimal] = None    # SAVINGS only, percent
    overdraft_limit: Optional[Decimal] = None  # CHECKING only
    id: Optional[int] = None                   # Assigned by the account store

    def __post_init__(self):
        if not isinstance(self.kind, AccountKind):
            try:
                self.kind = AccountKind(self.kind)
            except ValueError:
                raise InvalidAccountParameters(f"Unknown account kind: {self.kind!r}") from None

        self.balance = to_amount(self.balance)

        if self.kind == AccountKind.SAVINGS:
            if self.overdraft_limit is not None:
                raise InvalidAccountParameters("Overdraft limit only applies to checking accounts")
            self.interest_rate = _non_negative(self.interest_rate, "Interest rate", quantized=False)
        elif self.kind == AccountKind.CHECKING:
            if self.interest_rate is not None:
                raise InvalidAccountParameters("Interest rate only applies to savings accounts")
            self.overdraft_limit = _non_negative(self.overdraft_limit, "Overdraft limit", quantized=True)
        else:
            if self.interest_rate is not None or self.overdraft_limit is not None:
                raise InvalidAccountParameters("Standard accounts take no interest rate or overdraft limit")

        if self.balance < balance_floor(self):
            raise InvalidAccountParameters(
                f"Balance {self.balance} is below the floor for a {self.kind.value} account"
            )

    def deposit(self, amount: AmountLike) -> Decimal:
        """
        Increase the balance

        Raises:
            InvalidAmount: If amount <= 0
        """
        amount = positive_amount(amount)
        self.balance = add(self.balance, amount)
        return self.balance

    def withdraw(self, amount: AmountLike) -> Decimal:
        """
        Decrease the balance if the variant's policy allows it

        Raises:
            InvalidAmount: If amount <= 0
            InsufficientFunds: If amount exceeds the available funds
        """
        amount = positive_amount(amount)
        available = available_funds(self)
        if amount > available:
            raise InsufficientFunds(
                f"Insufficient funds: available {available}, requested {amount}",
                {"account_id": self.id, "available": str(available), "requested": str(amount)}
            )
        self.balance = subtract(self.balance, amount)
        return self.balance

    def calculate_interest(self) -> Decimal:
        """
        Credit balance x rate / 100 to a savings account

        Returns:
            The interest credited (may be zero)
        """
        if self.kind != AccountKind.SAVINGS:
            raise UnsupportedOperation(
                f"Interest applies to savings accounts only, not {self.kind.value}",
                {"account_id": self.id}
            )
        interest = percent_of(self.balance, self.interest_rate)
        self.balance = add(self.balance, interest)
        return interest

    @property
    def is_empty(self) -> bool:
        """Exactly zero; a cent left over still counts as funded"""
        return self.balance == ZERO

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'account_number': self.account_number,
            'kind': self.kind.value,
            'balance': str(self.balance),
            'date_opened': self.date_opened.isoformat(),
            'interest_rate': str(self.interest_rate) if self.interest_rate is not None else None,
            'overdraft_limit': str(self.overdraft_limit) if self.overdraft_limit is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        interest_rate = data.get('interest_rate')
        overdraft_limit = data.get('overdraft_limit')
        return cls(
            id=data['id'],
            customer_id=data['customer_id'],
            account_number=data['account_number'],
            kind=AccountKind(data['kind']),
            balance=Decimal(data['balance']),
            date_opened=date.fromisoformat(data['date_opened']),
            interest_rate=Decimal(interest_rate) if interest_rate is not None else None,
            overdraft_limit=Decimal(overdraft_limit) if overdraft_limit is not None else None,
        )


def available_funds(account: Account) -> Decimal:
    """Largest amount the account may currently withdraw"""
    if account.kind in (AccountKind.STANDARD, AccountKind.SAVINGS):
        return account.balance
    if account.kind == AccountKind.CHECKING:
        return add(account.balance, account.overdraft_limit)
    raise UnsupportedOperation(f"No withdrawal policy for {account.kind!r}")


def balance_floor(account: Account) -> Decimal:
    """Lowest balance the account may reach"""
    if account.kind == AccountKind.CHECKING:
        return account.overdraft_limit.copy_negate()
    return ZERO


def _non_negative(value: Any, name: str, quantized: bool) -> Decimal:
    if value is None:
        return ZERO if quantized else Decimal('0')
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except DecimalException:
        raise InvalidAccountParameters(f"{name} must be a number, got {value!r}") from None
    if not number.is_finite() or number < 0:
        raise InvalidAccountParameters(f"{name} must be a non-negative number, got {value!r}")
    if number.adjusted() >= MAX_INTEGER_DIGITS:
        raise InvalidAccountParameters(
            f"{name} exceeds {MAX_INTEGER_DIGITS} integer digits"
        )
    return quantize(number) if quantized else number
