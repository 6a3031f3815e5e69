"""Order domain exceptions.

Raised by the finalization service.  Every exception that concerns a
single line or instrument carries its id so the host form can point the
operator at it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from shared.domain.exceptions import PersistenceError, ValidationViolation

if TYPE_CHECKING:
    from modules.inventory.dtos import ReconciliationWarning


class OrderNotFound(Exception):
    """The requested sales order does not exist or has been soft-deleted."""


class IncompleteOrder(ValidationViolation):
    """The order header or line list is not complete enough to finalize."""

    def __init__(self, message: str, *, missing_fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing_fields = tuple(missing_fields)


class InvalidLine(ValidationViolation):
    """A line has a non-positive quantity or a negative unit price."""

    def __init__(self, message: str, *, line_id: str) -> None:
        super().__init__(message)
        self.line_id = line_id


class InvalidDiscount(ValidationViolation):
    """The discount is negative or larger than the subtotal."""


class UnknownDraftField(ValidationViolation):
    """An edit named a field that is not editable on that draft item."""

    def __init__(self, message: str, *, fields: Sequence[str]) -> None:
        super().__init__(message)
        self.fields = tuple(fields)


class DraftItemNotFound(ValidationViolation):
    """No line or payment with the given id exists in the draft."""


class ConfirmationRequired(ValidationViolation):
    """Submission needs explicit acknowledgement of inventory warnings."""

    def __init__(self, warnings: Sequence[ReconciliationWarning]) -> None:
        super().__init__(
            f"{len(warnings)} inventory warning(s) must be acknowledged before submitting."
        )
        self.warnings: Tuple[ReconciliationWarning, ...] = tuple(warnings)


class OrderPersistenceFailed(PersistenceError):
    """The order could not be written; the draft is untouched."""


# ---------------------------------------------------------------------------
# State machine misuse
# ---------------------------------------------------------------------------


class FinalizationError(Exception):
    """Base class for finalization workflow misuse."""


class InvalidFinalizationState(FinalizationError):
    """The operation is not allowed in the current finalization state."""

    def __init__(self, message: str, *, state: Optional[str] = None) -> None:
        super().__init__(message)
        self.state = state


class DraftBusy(FinalizationError):
    """Another operation on the draft is waiting on a collaborator."""


class SubmissionInProgress(DraftBusy):
    """A submission of this draft is already in flight."""
