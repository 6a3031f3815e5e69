"""Customer domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import ValidationViolation


class CustomerNotFound(ValidationViolation):
    """The requested customer does not exist or has been soft-deleted."""


class InactiveCustomer(ValidationViolation):
    """The customer is inactive and cannot place orders."""
