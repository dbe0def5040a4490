"""
Ledger Error Taxonomy

Every failure the ledger can report is a LedgerError subclass carrying a
stable ``error_code``. Callers (the HTTP layer, tests, scripts) branch on the
type; none of these are fatal to the process.
"""

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for all ledger failures"""

    error_code = "ledger_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        result = {"error": self.error_code, "detail": self.message}
        if self.details:
            result["context"] = self.details
        return result


class InvalidAmount(LedgerError, ValueError):
    """Amount is zero, negative or not a finite number"""

    error_code = "invalid_amount"


class InvalidAccountParameters(LedgerError, ValueError):
    """Variant parameters do not fit the requested account kind"""

    error_code = "invalid_account_parameters"


class InvalidCustomer(LedgerError, ValueError):
    """Customer profile fails validation"""

    error_code = "invalid_customer"


class InsufficientFunds(LedgerError):
    """Withdrawal exceeds the balance (plus overdraft, for checking)"""

    error_code = "insufficient_funds"


class NotFound(LedgerError):
    """Referenced entity does not exist"""

    error_code = "not_found"


class AccountNotFound(NotFound):
    error_code = "account_not_found"

    def __init__(self, account_id: int):
        super().__init__(f"Account {account_id} not found", {"account_id": account_id})
        self.account_id = account_id


class TransactionNotFound(NotFound):
    error_code = "transaction_not_found"

    def __init__(self, transaction_id: int):
        super().__init__(
            f"Transaction {transaction_id} not found", {"transaction_id": transaction_id}
        )
        self.transaction_id = transaction_id


class CustomerNotFound(NotFound):
    error_code = "customer_not_found"

    def __init__(self, customer_id: int):
        super().__init__(f"Customer {customer_id} not found", {"customer_id": customer_id})
        self.customer_id = customer_id


class NonZeroBalance(LedgerError):
    """Close attempted on an account whose balance is not exactly zero"""

    error_code = "non_zero_balance"


class DuplicateAccountNumber(LedgerError):
    error_code = "duplicate_account_number"


class SameAccountTransfer(LedgerError):
    error_code = "same_account_transfer"


class UnsupportedOperation(LedgerError):
    """Operation does not apply to this account kind"""

    error_code = "unsupported_operation"


class CustomerHasAccounts(LedgerError):
    error_code = "customer_has_accounts"


class ConcurrencyConflict(LedgerError):
    """Account lock could not be acquired in time"""

    error_code = "concurrency_conflict"


class PersistenceFailure(LedgerError):
    """Storage layer error, opaque to the ledger"""

    error_code = "persistence_failure"
