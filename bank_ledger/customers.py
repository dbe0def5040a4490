"""
Customer Module

Customer profiles. A customer owns any number of accounts; accounts keep
only a non-owning reference (customer_id) back to their owner.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import re

from .errors import InvalidCustomer


EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


@dataclass
class Customer:
    """
    Customer profile
    """
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""
    id: Optional[int] = None

    def __post_init__(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise InvalidCustomer("Customer name is required")

        if self.email and not EMAIL_PATTERN.match(self.email):
            raise InvalidCustomer(f"Invalid email format: {self.email}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=data['id'],
            name=data['name'],
            address=data.get('address', ""),
            phone=data.get('phone', ""),
            email=data.get('email', ""),
        )
