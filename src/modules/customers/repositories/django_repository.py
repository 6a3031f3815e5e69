"""Django ORM implementation of the Customer repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError

from modules.customers.dtos import CreditProfile
from modules.customers.exceptions import CustomerNotFound, InactiveCustomer
from modules.customers.models import Customer
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete customer repository backed by Django ORM."""

    def _get_customer(self, id: str) -> Optional[Customer]:
        try:
            return Customer.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_id(self, id: str) -> Optional[CreditProfile]:
        """Credit snapshot of any live customer, active or not.

        Returns ``None`` for non-existent or invalid IDs.
        """
        customer = self._get_customer(id)
        return CreditProfile.from_entity(customer) if customer else None

    def get_credit_profile(self, customer_id: str) -> CreditProfile:
        customer = self._get_customer(customer_id)
        if not customer:
            raise CustomerNotFound(f"Customer {customer_id} not found.")
        if not customer.is_active:
            raise InactiveCustomer(f"Customer {customer_id} is inactive.")
        logger.info(
            "customer.credit_profile_loaded",
            customer_id=str(customer.id),
            available_credit=str(customer.available_credit),
        )
        return CreditProfile.from_entity(customer)
