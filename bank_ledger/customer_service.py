"""
Customer Management Module

Adds, updates and removes customer profiles. A customer cannot be removed
while any account still references it.
"""

from typing import List, Optional

from .audit import AuditTrail, AuditEventType
from .customers import Customer
from .errors import CustomerHasAccounts, CustomerNotFound, InvalidCustomer, LedgerError
from .logging_config import get_logger, log_action
from .repositories import AccountStore, CustomerStore


UPDATABLE_FIELDS = ("name", "address", "phone", "email")


class CustomerService:
    """
    Manages the customer lifecycle
    """

    def __init__(
        self,
        customers: CustomerStore,
        accounts: AccountStore,
        audit_trail: Optional[AuditTrail] = None
    ):
        self.customers = customers
        self.accounts = accounts
        self.storage = customers.storage
        self.audit_trail = audit_trail
        self.logger = get_logger("bank_ledger.customer_service")

    def add_customer(self, name: str, address: str = "", phone: str = "", email: str = "") -> Customer:
        """
        Create a new customer

        Raises:
            InvalidCustomer: Blank name or malformed email
        """
        try:
            with self.storage.atomic():
                customer = self.customers.save(
                    Customer(name=name, address=address, phone=phone, email=email)
                )
                if self.audit_trail:
                    self.audit_trail.log_event(
                        AuditEventType.CUSTOMER_CREATED, "customer", customer.id,
                        {"name": customer.name, "email": customer.email}
                    )
        except LedgerError as e:
            self._log_rejected("add_customer", e)
            raise

        log_action(
            self.logger, "info", f"Customer {customer.id} created",
            action="add_customer", resource=f"customer:{customer.id}"
        )
        return customer

    def update_customer(self, customer_id: int, **fields) -> Customer:
        """
        Update profile fields

        Args:
            customer_id: Customer to update
            **fields: Any of name, address, phone, email; None values are ignored

        Raises:
            CustomerNotFound, InvalidCustomer
        """
        try:
            unknown = set(fields) - set(UPDATABLE_FIELDS)
            if unknown:
                raise InvalidCustomer(f"Unknown customer fields: {', '.join(sorted(unknown))}")

            with self.storage.atomic():
                current = self.get_customer(customer_id)
                old_data = current.to_dict()

                changes = {key: value for key, value in fields.items() if value is not None}
                merged = {**old_data, **changes}
                # Re-run validation on the merged profile
                customer = self.customers.save(Customer.from_dict(merged))

                if self.audit_trail:
                    self.audit_trail.log_event(
                        AuditEventType.CUSTOMER_UPDATED, "customer", customer_id,
                        {"old_data": old_data, "new_data": customer.to_dict()}
                    )
        except LedgerError as e:
            self._log_rejected("update_customer", e, customer_id=customer_id)
            raise

        log_action(
            self.logger, "info", f"Customer {customer_id} updated",
            action="update_customer", resource=f"customer:{customer_id}",
            extra={"fields": sorted(changes)}
        )
        return customer

    def remove_customer(self, customer_id: int) -> None:
        """
        Raises:
            CustomerNotFound, CustomerHasAccounts
        """
        try:
            with self.storage.atomic():
                self.get_customer(customer_id)
                owned = self.accounts.list_by_customer(customer_id)
                if owned:
                    raise CustomerHasAccounts(
                        f"Customer {customer_id} still has {len(owned)} account(s)",
                        {"customer_id": customer_id, "account_ids": [a.id for a in owned]}
                    )
                self.customers.delete(customer_id)
                if self.audit_trail:
                    self.audit_trail.log_event(
                        AuditEventType.CUSTOMER_REMOVED, "customer", customer_id
                    )
        except LedgerError as e:
            self._log_rejected("remove_customer", e, customer_id=customer_id)
            raise

        log_action(
            self.logger, "info", f"Customer {customer_id} removed",
            action="remove_customer", resource=f"customer:{customer_id}"
        )

    def get_customer(self, customer_id: int) -> Customer:
        """Get customer by ID"""
        customer = self.customers.get(customer_id)
        if customer is None:
            raise CustomerNotFound(customer_id)
        return customer

    def list_customers(self) -> List[Customer]:
        return self.customers.list_all()

    def _log_rejected(self, operation: str, error: LedgerError, **context) -> None:
        log_action(
            self.logger, "warning", f"{operation} rejected: {error.message}",
            action=operation,
            extra={"error": error.error_code,
                   **{key: str(value) for key, value in context.items()}}
        )
