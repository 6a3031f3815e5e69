"""Payment domain exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from shared.domain.exceptions import ValidationViolation

if TYPE_CHECKING:
    from modules.payments.dtos import AllocationVerdict, PaymentViolation


class PaymentValidationFailed(ValidationViolation):
    """The instrument set failed an allocator rule.

    Built from a failing verdict; ``violation`` names the rule and the
    offending instrument.
    """

    def __init__(self, verdict: AllocationVerdict) -> None:
        super().__init__(verdict.message)
        self.verdict = verdict

    @property
    def violation(self) -> Optional[PaymentViolation]:
        return self.verdict.violation

    @property
    def instrument_id(self) -> Optional[str]:
        return self.verdict.violation.instrument_id if self.verdict.violation else None
