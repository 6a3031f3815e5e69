"""Payment DTOs.

- ``PaymentInstrument``: one entry of a split payment.
- ``PaymentAllocation``: the figures derived from a set of instruments.
- ``PaymentViolation``: the single rule failure surfaced to the operator.
- ``AllocationVerdict``: allocator output (figures + optional violation).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from modules.payments.constants import PaymentKind, ViolationCode


def _new_payment_id() -> str:
    return f"payment_{uuid4().hex[:12]}"


class PaymentInstrument(BaseModel):
    """Immutable payment entry.

    ``amount`` is not range-checked here: a non-positive amount is an
    allocator violation reported against this instrument, not a
    construction error.  ``proof_artifact`` is the storage key of an
    uploaded proof (screenshot, slip); the engine never reads the file.
    ``is_implicit`` marks the synthesized "credit covers the rest" entry.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_payment_id)
    kind: PaymentKind
    amount: Decimal
    reference_number: Optional[str] = None
    proof_artifact: Optional[str] = None
    remarks: Optional[str] = None
    is_implicit: bool = False

    @property
    def has_proof(self) -> bool:
        return bool((self.reference_number or "").strip()) or bool(
            (self.proof_artifact or "").strip()
        )

    @property
    def has_remarks(self) -> bool:
        return bool((self.remarks or "").strip())

    @property
    def pays_total(self) -> bool:
        """Whether the amount counts as paid directly against the total."""
        return self.kind != PaymentKind.CREDIT_INCREASE and not self.is_implicit


class PaymentAllocation(BaseModel):
    """Derived payment figures.

    Invariant: ``credit_financed + paid_directly == order_total``.
    """

    model_config = ConfigDict(frozen=True)

    order_total: Decimal
    paid_directly: Decimal
    credit_financed: Decimal
    credit_increase_total: Decimal
    effective_limit: Decimal
    available_credit: Decimal

    @property
    def is_overpaid(self) -> bool:
        return self.credit_financed < 0


class PaymentViolation(BaseModel):
    """One failed payment rule, attached to the instrument that caused it."""

    model_config = ConfigDict(frozen=True)

    code: ViolationCode
    message: str
    instrument_id: Optional[str] = None
    kind: Optional[PaymentKind] = None
    credit_financed: Optional[Decimal] = None
    available_credit: Optional[Decimal] = None


class AllocationVerdict(BaseModel):
    """Result of one allocator ``validate`` call."""

    model_config = ConfigDict(frozen=True)

    allocation: PaymentAllocation
    violation: Optional[PaymentViolation] = None

    @property
    def is_valid(self) -> bool:
        return self.violation is None

    @property
    def message(self) -> Optional[str]:
        return self.violation.message if self.violation else None
