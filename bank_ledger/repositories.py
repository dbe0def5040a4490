"""
Repository Module

Typed stores for accounts, transactions and customers on top of a generic
StorageInterface. Stores hand out integer ids from storage sequences and
convert between entities and their stored dictionaries.
"""

from dataclasses import replace
from typing import List, Optional

from .accounts import Account
from .customers import Customer
from .storage import StorageInterface
from .transactions import Transaction


class AccountStore:
    """Load and save accounts"""

    table = "accounts"

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def get(self, account_id: int) -> Optional[Account]:
        """Get account by ID"""
        data = self.storage.load(self.table, str(account_id))
        if data:
            return Account.from_dict(data)
        return None

    def get_by_number(self, account_number: str) -> Optional[Account]:
        """Get account by account number"""
        found = self.storage.find(self.table, {"account_number": account_number})
        if found:
            return Account.from_dict(found[0])
        return None

    def save(self, account: Account) -> Account:
        """
        Insert or update an account

        Accounts without an id get the next one from the ``accounts``
        sequence; the same object is returned with the id filled in.
        """
        if account.id is None:
            account.id = self.storage.next_id(self.table)
        self.storage.save(self.table, str(account.id), account.to_dict())
        return account

    def delete(self, account_id: int) -> bool:
        return self.storage.delete(self.table, str(account_id))

    def list_by_customer(self, customer_id: int) -> List[Account]:
        """Get all accounts for a customer, oldest first"""
        found = self.storage.find(self.table, {"customer_id": customer_id})
        return sorted((Account.from_dict(data) for data in found), key=lambda a: a.id)


class TransactionStore:
    """Append-only transaction history"""

    table = "transactions"

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def append(self, transaction: Transaction) -> Transaction:
        """
        Persist a new transaction record

        Returns:
            A copy of the record carrying its assigned id
        """
        if transaction.id is not None:
            raise ValueError(f"Transaction {transaction.id} is already recorded")
        recorded = replace(transaction, id=self.storage.next_id(self.table))
        self.storage.save(self.table, str(recorded.id), recorded.to_dict())
        return recorded

    def get(self, transaction_id: int) -> Optional[Transaction]:
        data = self.storage.load(self.table, str(transaction_id))
        if data:
            return Transaction.from_dict(data)
        return None

    def list_by_account(self, account_id: int) -> List[Transaction]:
        """History for one account in insertion order"""
        found = self.storage.find(self.table, {"account_id": account_id})
        return sorted((Transaction.from_dict(data) for data in found), key=lambda t: t.id)


class CustomerStore:
    """Load and save customers"""

    table = "customers"

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def get(self, customer_id: int) -> Optional[Customer]:
        data = self.storage.load(self.table, str(customer_id))
        if data:
            return Customer.from_dict(data)
        return None

    def save(self, customer: Customer) -> Customer:
        if customer.id is None:
            customer.id = self.storage.next_id(self.table)
        self.storage.save(self.table, str(customer.id), customer.to_dict())
        return customer

    def delete(self, customer_id: int) -> bool:
        return self.storage.delete(self.table, str(customer_id))

    def list_all(self) -> List[Customer]:
        customers = [Customer.from_dict(data) for data in self.storage.load_all(self.table)]
        return sorted(customers, key=lambda c: c.id)
