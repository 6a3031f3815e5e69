"""Order domain constants.

Defines the finalization state machine (see ``VALID_TRANSITIONS``) and
the choices stored on committed sales orders.
"""

from enum import StrEnum

from django.db import models


class FinalizationState(StrEnum):
    DRAFT = "draft"
    LINES_RESOLVED = "lines_resolved"
    PAYMENT_VALIDATED = "payment_validated"
    INVENTORY_CHECKED = "inventory_checked"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    READY_TO_SUBMIT = "ready_to_submit"
    SUBMITTED = "submitted"
    ABORTED = "aborted"


# A failed step falls back to DRAFT so the operator can correct the draft.
VALID_TRANSITIONS: dict[str, set[str]] = {
    FinalizationState.DRAFT: {
        FinalizationState.LINES_RESOLVED,
        FinalizationState.ABORTED,
    },
    FinalizationState.LINES_RESOLVED: {
        FinalizationState.PAYMENT_VALIDATED,
        FinalizationState.DRAFT,
        FinalizationState.ABORTED,
    },
    FinalizationState.PAYMENT_VALIDATED: {
        FinalizationState.INVENTORY_CHECKED,
        FinalizationState.DRAFT,
        FinalizationState.ABORTED,
    },
    FinalizationState.INVENTORY_CHECKED: {
        FinalizationState.READY_TO_SUBMIT,
        FinalizationState.AWAITING_CONFIRMATION,
        FinalizationState.ABORTED,
    },
    FinalizationState.READY_TO_SUBMIT: {
        FinalizationState.SUBMITTED,
        FinalizationState.ABORTED,
    },
    FinalizationState.AWAITING_CONFIRMATION: {
        FinalizationState.SUBMITTED,
        FinalizationState.ABORTED,
    },
    FinalizationState.SUBMITTED: set(),
    FinalizationState.ABORTED: set(),
}

TERMINAL_STATES: set[str] = {FinalizationState.SUBMITTED, FinalizationState.ABORTED}

SUBMITTABLE_STATES: set[str] = {
    FinalizationState.READY_TO_SUBMIT,
    FinalizationState.AWAITING_CONFIRMATION,
}


class SaleType(StrEnum):
    LOCAL = "local"
    OUTSTATION = "outstation"


class SalesOrderStatus(models.TextChoices):
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


ORDER_NUMBER_MAX_RETRIES = 5
