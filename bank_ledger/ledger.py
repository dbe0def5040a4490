"""
Ledger Service Module

Executes deposits, withdrawals, transfers, account opening/closing and manual
interest as atomic operations. Each balance-changing operation:

1. takes the per-account lock(s), ascending by account id
2. opens one storage atomic block
3. loads the account(s) and applies the change (the account's own policy may
   reject it)
4. only if accepted, appends the transaction record(s) and saves the account(s)

A rejected operation raises a LedgerError subclass and leaves no trace: no
transaction record, no audit event, no balance change. The service holds no
ledger state of its own.
"""

from decimal import Decimal
from typing import List, Optional, Tuple, Union

from .accounts import Account, AccountKind
from .audit import AuditTrail, AuditEventType
from .clock import Clock, SystemClock
from .errors import (
    AccountNotFound, CustomerNotFound, DuplicateAccountNumber,
    InvalidAccountParameters, LedgerError, NonZeroBalance, PersistenceFailure,
    SameAccountTransfer, TransactionNotFound
)
from .locking import AccountLockManager
from .logging_config import get_logger, log_action
from .money import AmountLike, ZERO, positive_amount
from .repositories import AccountStore, CustomerStore, TransactionStore
from .transactions import Transaction, TransactionKind


class LedgerService:
    """
    Stateless coordinator over the account and transaction stores
    """

    def __init__(
        self,
        accounts: AccountStore,
        transactions: TransactionStore,
        clock: Optional[Clock] = None,
        customers: Optional[CustomerStore] = None,
        audit_trail: Optional[AuditTrail] = None,
        locks: Optional[AccountLockManager] = None,
        default_interest_rate: Decimal = Decimal('0'),
        default_overdraft_limit: Decimal = ZERO,
        record_opening_deposit: bool = False
    ):
        if transactions.storage is not accounts.storage:
            raise ValueError("Account and transaction stores must share one storage backend")

        self.accounts = accounts
        self.transactions = transactions
        self.storage = accounts.storage
        self.clock = clock or SystemClock()
        self.customers = customers
        self.audit_trail = audit_trail
        self.locks = locks or AccountLockManager()
        self.default_interest_rate = default_interest_rate
        self.default_overdraft_limit = default_overdraft_limit
        self.record_opening_deposit = record_opening_deposit
        self.logger = get_logger("bank_ledger.ledger")

    # Balance operations

    def deposit(self, account_id: int, amount: AmountLike) -> Decimal:
        """
        Deposit into an account

        Returns:
            The new balance

        Raises:
            AccountNotFound, InvalidAmount, PersistenceFailure
        """
        try:
            with self.locks.hold(account_id), self.storage.atomic():
                account = self._load(account_id)
                amount = positive_amount(amount)
                account.deposit(amount)
                record = self._record(account, TransactionKind.DEPOSIT, amount, "Deposit to account")
                self.accounts.save(account)
                self._audit_balance(account, "deposit", amount, [record])
        except LedgerError as e:
            self._log_rejected("deposit", e, account_id=account_id, amount=amount)
            raise

        log_action(
            self.logger, "info", f"Deposit of {amount} to account {account_id}",
            action="deposit", resource=f"account:{account_id}",
            extra={"amount": str(amount), "balance": str(account.balance),
                   "transaction_id": record.id}
        )
        return account.balance

    def withdraw(self, account_id: int, amount: AmountLike) -> Decimal:
        """
        Withdraw from an account under its variant's policy

        Returns:
            The new balance

        Raises:
            AccountNotFound, InvalidAmount, InsufficientFunds, PersistenceFailure
        """
        try:
            with self.locks.hold(account_id), self.storage.atomic():
                account = self._load(account_id)
                amount = positive_amount(amount)
                account.withdraw(amount)
                record = self._record(account, TransactionKind.WITHDRAWAL, amount, "Withdrawal from account")
                self.accounts.save(account)
                self._audit_balance(account, "withdrawal", amount, [record])
        except LedgerError as e:
            self._log_rejected("withdraw", e, account_id=account_id, amount=amount)
            raise

        log_action(
            self.logger, "info", f"Withdrawal of {amount} from account {account_id}",
            action="withdraw", resource=f"account:{account_id}",
            extra={"amount": str(amount), "balance": str(account.balance),
                   "transaction_id": record.id}
        )
        return account.balance

    def transfer(self, from_id: int, to_id: int, amount: AmountLike) -> Tuple[Decimal, Decimal]:
        """
        Move funds between two accounts

        Both legs, both transaction records and both account saves happen in
        one atomic block: a failure anywhere leaves both accounts untouched.

        Returns:
            (source balance, destination balance)

        Raises:
            AccountNotFound, SameAccountTransfer, InvalidAmount,
            InsufficientFunds, PersistenceFailure
        """
        try:
            if from_id == to_id:
                raise SameAccountTransfer(
                    f"Cannot transfer from account {from_id} to itself", {"account_id": from_id}
                )

            with self.locks.hold(from_id, to_id), self.storage.atomic():
                source = self._load(from_id)
                destination = self._load(to_id)
                amount = positive_amount(amount)

                source.withdraw(amount)
                destination.deposit(amount)

                timestamp = self.clock.now()
                description = f"Transfer from account {from_id} to account {to_id}"
                out_record = self.transactions.append(Transaction(
                    account_id=from_id, kind=TransactionKind.TRANSFER_OUT,
                    amount=amount, timestamp=timestamp, description=description
                ))
                in_record = self.transactions.append(Transaction(
                    account_id=to_id, kind=TransactionKind.TRANSFER_IN,
                    amount=amount, timestamp=timestamp, description=description
                ))

                self.accounts.save(source)
                self.accounts.save(destination)
                self._audit_balance(source, "transfer_out", amount, [out_record])
                self._audit_balance(destination, "transfer_in", amount, [in_record])
        except LedgerError as e:
            self._log_rejected("transfer", e, from_account=from_id, to_account=to_id, amount=amount)
            raise

        log_action(
            self.logger, "info", f"Transfer of {amount} from account {from_id} to account {to_id}",
            action="transfer", resource=f"account:{from_id}",
            extra={"amount": str(amount), "to_account": to_id,
                   "from_balance": str(source.balance), "to_balance": str(destination.balance),
                   "transaction_ids": [out_record.id, in_record.id]}
        )
        return source.balance, destination.balance

    def apply_interest(self, account_id: int) -> Decimal:
        """
        Credit one round of interest to a savings account

        Positive interest is recorded as a Deposit; zero interest changes
        nothing and records nothing.

        Returns:
            The new balance

        Raises:
            AccountNotFound, UnsupportedOperation (not a savings account)
        """
        try:
            with self.locks.hold(account_id), self.storage.atomic():
                account = self._load(account_id)
                interest = account.calculate_interest()
                if interest > ZERO:
                    record = self._record(
                        account, TransactionKind.DEPOSIT, interest,
                        f"Interest credit at {account.interest_rate}%"
                    )
                    self.accounts.save(account)
                    if self.audit_trail:
                        self.audit_trail.log_event(
                            AuditEventType.INTEREST_APPLIED, "account", account.id,
                            {"interest": interest, "rate": account.interest_rate,
                             "balance": account.balance, "transaction_id": record.id}
                        )
        except LedgerError as e:
            self._log_rejected("apply_interest", e, account_id=account_id)
            raise

        log_action(
            self.logger, "info", f"Interest of {interest} applied to account {account_id}",
            action="apply_interest", resource=f"account:{account_id}",
            extra={"interest": str(interest), "balance": str(account.balance)}
        )
        return account.balance

    # Account lifecycle

    def open_account(
        self,
        customer_id: int,
        kind: Union[AccountKind, str],
        initial_deposit: AmountLike,
        interest_rate: Optional[AmountLike] = None,
        overdraft_limit: Optional[AmountLike] = None,
        account_number: Optional[str] = None
    ) -> int:
        """
        Open an account funded with an initial deposit

        Args:
            customer_id: Owning customer
            kind: Account variant
            initial_deposit: Opening balance, must be > 0
            interest_rate: Percent, savings only (configured default if omitted)
            overdraft_limit: Checking only (configured default if omitted)
            account_number: Specific number (generated if not provided)

        Returns:
            The new account id

        Raises:
            InvalidAmount, InvalidAccountParameters, CustomerNotFound,
            DuplicateAccountNumber
        """
        try:
            opening_balance = positive_amount(initial_deposit)
            kind = self._coerce_kind(kind)

            if kind == AccountKind.SAVINGS and interest_rate is None:
                interest_rate = self.default_interest_rate
            if kind == AccountKind.CHECKING and overdraft_limit is None:
                overdraft_limit = self.default_overdraft_limit

            with self.storage.atomic():
                if self.customers is not None and self.customers.get(customer_id) is None:
                    raise CustomerNotFound(customer_id)

                if account_number:
                    if self.accounts.get_by_number(account_number):
                        raise DuplicateAccountNumber(
                            f"Account number {account_number} is already in use",
                            {"account_number": account_number}
                        )
                else:
                    account_number = self._generate_account_number(kind, customer_id)

                account = self.accounts.save(Account(
                    customer_id=customer_id,
                    account_number=account_number,
                    kind=kind,
                    balance=opening_balance,
                    date_opened=self.clock.now().date(),
                    interest_rate=interest_rate,
                    overdraft_limit=overdraft_limit,
                ))

                if self.record_opening_deposit:
                    self._record(account, TransactionKind.DEPOSIT, opening_balance, "Opening deposit")

                if self.audit_trail:
                    self.audit_trail.log_event(
                        AuditEventType.ACCOUNT_OPENED, "account", account.id,
                        {"customer_id": customer_id, "account_number": account_number,
                         "kind": kind, "initial_deposit": opening_balance}
                    )
        except LedgerError as e:
            self._log_rejected("open_account", e, customer_id=customer_id)
            raise

        log_action(
            self.logger, "info", f"{kind.label} account {account.id} opened",
            action="open_account", resource=f"account:{account.id}",
            extra={"customer_id": customer_id, "account_number": account_number,
                   "initial_deposit": str(opening_balance)}
        )
        return account.id

    def close_account(self, account_id: int) -> None:
        """
        Close (remove) an account whose balance is exactly zero

        The account's transaction history is kept.

        Raises:
            AccountNotFound, NonZeroBalance
        """
        try:
            with self.locks.hold(account_id), self.storage.atomic():
                account = self._load(account_id)
                if not account.is_empty:
                    raise NonZeroBalance(
                        f"Account {account_id} has a balance of {account.balance}; "
                        f"it must be exactly zero to close",
                        {"account_id": account_id, "balance": str(account.balance)}
                    )
                self.accounts.delete(account_id)
                if self.audit_trail:
                    self.audit_trail.log_event(
                        AuditEventType.ACCOUNT_CLOSED, "account", account_id,
                        {"account_number": account.account_number}
                    )
        except LedgerError as e:
            self._log_rejected("close_account", e, account_id=account_id)
            raise

        self.locks.forget(account_id)
        log_action(
            self.logger, "info", f"Account {account_id} closed",
            action="close_account", resource=f"account:{account_id}"
        )

    # Queries

    def get_account(self, account_id: int) -> Account:
        """Raises AccountNotFound"""
        return self._load(account_id)

    def get_balance(self, account_id: int) -> Decimal:
        return self._load(account_id).balance

    def list_customer_accounts(self, customer_id: int) -> List[Account]:
        if self.customers is not None and self.customers.get(customer_id) is None:
            raise CustomerNotFound(customer_id)
        return self.accounts.list_by_customer(customer_id)

    def get_account_transactions(self, account_id: int) -> List[Transaction]:
        """
        Transaction history of an account in insertion order

        History outlives the account; only an id with neither an account nor
        any history is unknown.
        """
        history = self.transactions.list_by_account(account_id)
        if not history and self.accounts.get(account_id) is None:
            raise AccountNotFound(account_id)
        return history

    def get_transaction(self, transaction_id: int) -> Transaction:
        transaction = self.transactions.get(transaction_id)
        if transaction is None:
            raise TransactionNotFound(transaction_id)
        return transaction

    # Internals

    def _load(self, account_id: int) -> Account:
        account = self.accounts.get(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def _record(self, account: Account, kind: TransactionKind, amount: Decimal,
                description: str) -> Transaction:
        return self.transactions.append(Transaction(
            account_id=account.id,
            kind=kind,
            amount=amount,
            timestamp=self.clock.now(),
            description=description,
        ))

    def _audit_balance(self, account: Account, operation: str, amount: Decimal,
                       records: List[Transaction]) -> None:
        if not self.audit_trail:
            return
        self.audit_trail.log_event(
            AuditEventType.BALANCE_CHANGED, "account", account.id,
            {"operation": operation, "amount": amount, "balance": account.balance,
             "transaction_ids": [record.id for record in records]}
        )

    def _coerce_kind(self, kind: Union[AccountKind, str]) -> AccountKind:
        if isinstance(kind, AccountKind):
            return kind
        try:
            return AccountKind(str(kind).lower())
        except ValueError:
            raise InvalidAccountParameters(f"Unknown account kind: {kind!r}") from None

    def _generate_account_number(self, kind: AccountKind, customer_id: int) -> str:
        """Customer id plus opening time in epoch seconds, suffixed on collision"""
        base = f"{kind.number_prefix}{customer_id}{int(self.clock.now().timestamp())}"
        candidate = base
        suffix = 1
        while self.accounts.get_by_number(candidate) is not None:
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    def _log_rejected(self, operation: str, error: LedgerError, **context) -> None:
        level = "error" if isinstance(error, PersistenceFailure) else "warning"
        log_action(
            self.logger, level, f"{operation} rejected: {error.message}",
            action=operation,
            extra={"error": error.error_code,
                   **{key: str(value) for key, value in context.items()}}
        )
