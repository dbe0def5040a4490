"""
Ledger System Module

Wires configuration, storage, stores and services into one object shared by
the HTTP API, the server entry point and scripts.
"""

from decimal import Decimal
from typing import Optional

from .audit import AuditTrail
from .clock import Clock, SystemClock
from .config import LedgerConfig, get_config
from .customer_service import CustomerService
from .ledger import LedgerService
from .locking import AccountLockManager
from .logging_config import get_logger
from .repositories import AccountStore, CustomerStore, TransactionStore
from .storage import InMemoryStorage, SQLiteStorage, StorageInterface


logger = get_logger("bank_ledger.system")


def create_storage(config: LedgerConfig) -> StorageInterface:
    """Build the storage backend named by ``config.storage_backend``"""
    backend = config.storage_backend.lower()
    if backend == "memory":
        return InMemoryStorage()
    if backend == "sqlite":
        return SQLiteStorage(config.database_path)
    raise ValueError(f"Unknown storage backend: {config.storage_backend}")


class LedgerSystem:
    """Ledger with all components initialized"""

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        storage: Optional[StorageInterface] = None,
        clock: Optional[Clock] = None
    ):
        self.config = config or get_config()
        self.storage = storage or create_storage(self.config)
        self.clock = clock or SystemClock()

        self.accounts = AccountStore(self.storage)
        self.transactions = TransactionStore(self.storage)
        self.customers = CustomerStore(self.storage)

        self.audit_trail = AuditTrail(self.storage) if self.config.enable_audit_logging else None
        self.locks = AccountLockManager(timeout=self.config.lock_timeout_seconds)

        self.ledger = LedgerService(
            self.accounts,
            self.transactions,
            clock=self.clock,
            customers=self.customers,
            audit_trail=self.audit_trail,
            locks=self.locks,
            default_interest_rate=Decimal(self.config.default_interest_rate),
            default_overdraft_limit=Decimal(self.config.default_overdraft_limit),
            record_opening_deposit=self.config.record_opening_deposit,
        )
        self.customer_service = CustomerService(
            self.customers, self.accounts, audit_trail=self.audit_trail
        )

        logger.info(
            "Ledger system ready",
            extra={"extra": {"storage": type(self.storage).__name__,
                             "audit": self.audit_trail is not None}}
        )

    def close(self) -> None:
        self.storage.close()
