"""Payment allocator.

Reconciles a set of payment instruments against an order total and a
customer's credit line, treating the whole set as one unit.

Figures:
1. ``paid_directly``: every operator-entered instrument except
   ``credit_increase`` (an entered ``credit`` line counts).
2. ``credit_financed = order_total - paid_directly``; zero or negative
   (overpaid) is allowed.
3. ``credit_increase_total``: sum of ``credit_increase`` amounts.
4. ``effective_limit = limit + credit_increase_total``.
5. ``available_credit = effective_limit - current_balance``.

Rules are checked in a fixed order and only the first failure is
reported.  The allocator keeps no state: the same inputs always give the
same verdict, so it is safe to call after every edit.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from modules.customers.dtos import CreditProfile
from modules.payments.constants import (
    DEFAULT_CURRENCY_SYMBOL,
    IMPLICIT_CREDIT_ID,
    PaymentKind,
    ViolationCode,
)
from modules.payments.dtos import (
    AllocationVerdict,
    PaymentAllocation,
    PaymentInstrument,
    PaymentViolation,
)

ZERO = Decimal("0")


class PaymentAllocator:
    """Pure payment allocation and validation."""

    def __init__(self, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> None:
        self._currency = currency_symbol

    # ------------------------------------------------------------------
    # Figures
    # ------------------------------------------------------------------

    @staticmethod
    def implicit_credit(order_total: Decimal) -> PaymentInstrument:
        """The synthesized instrument putting the whole total on credit."""
        return PaymentInstrument(
            id=IMPLICIT_CREDIT_ID,
            kind=PaymentKind.CREDIT,
            amount=order_total,
            is_implicit=True,
        )

    def allocate(
        self,
        order_total: Decimal,
        instruments: Sequence[PaymentInstrument],
        credit_profile: CreditProfile,
    ) -> PaymentAllocation:
        paid_directly = sum(
            (item.amount for item in instruments if item.pays_total), ZERO
        )
        credit_increase_total = sum(
            (
                item.amount
                for item in instruments
                if item.kind == PaymentKind.CREDIT_INCREASE
            ),
            ZERO,
        )
        effective_limit = credit_profile.limit + credit_increase_total
        return PaymentAllocation(
            order_total=order_total,
            paid_directly=paid_directly,
            credit_financed=order_total - paid_directly,
            credit_increase_total=credit_increase_total,
            effective_limit=effective_limit,
            available_credit=effective_limit - credit_profile.current_balance,
        )

    def default_amount(
        self,
        kind: PaymentKind,
        order_total: Decimal,
        instruments: Sequence[PaymentInstrument],
    ) -> Decimal:
        """Suggested amount for a newly added instrument.

        A credit increase starts at zero; anything else starts at the
        still-unpaid remainder, floored at zero.
        """
        if kind == PaymentKind.CREDIT_INCREASE:
            return ZERO
        paid = sum((item.amount for item in instruments if item.pays_total), ZERO)
        return max(ZERO, order_total - paid)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self,
        order_total: Decimal,
        instruments: Sequence[PaymentInstrument],
        credit_profile: CreditProfile,
    ) -> AllocationVerdict:
        allocation = self.allocate(order_total, instruments, credit_profile)
        violation = (
            self._check_credit(allocation)
            or self._check_amounts(instruments)
            or self._check_proofs(instruments)
            or self._check_remarks(instruments)
        )
        return AllocationVerdict(allocation=allocation, violation=violation)

    def _check_credit(self, allocation: PaymentAllocation) -> Optional[PaymentViolation]:
        if allocation.credit_financed <= allocation.available_credit:
            return None
        return PaymentViolation(
            code=ViolationCode.CREDIT_EXCEEDED,
            message=(
                f"Credit amount ({self.format_money(allocation.credit_financed)}) exceeds "
                f"available credit limit ({self.format_money(allocation.available_credit)}) "
                f"including temporary increase"
            ),
            credit_financed=allocation.credit_financed,
            available_credit=allocation.available_credit,
        )

    @staticmethod
    def _check_amounts(
        instruments: Sequence[PaymentInstrument],
    ) -> Optional[PaymentViolation]:
        for item in instruments:
            if not item.is_implicit and item.amount <= 0:
                return PaymentViolation(
                    code=ViolationCode.NON_POSITIVE_AMOUNT,
                    message="All payment amounts must be greater than 0",
                    instrument_id=item.id,
                    kind=item.kind,
                )
        return None

    @staticmethod
    def _check_proofs(
        instruments: Sequence[PaymentInstrument],
    ) -> Optional[PaymentViolation]:
        for item in instruments:
            if item.kind.requires_proof and not item.has_proof:
                return PaymentViolation(
                    code=ViolationCode.MISSING_PAYMENT_PROOF,
                    message=(
                        f"{item.kind.label} payment requires either reference "
                        f"number or proof upload"
                    ),
                    instrument_id=item.id,
                    kind=item.kind,
                )
        return None

    @staticmethod
    def _check_remarks(
        instruments: Sequence[PaymentInstrument],
    ) -> Optional[PaymentViolation]:
        for item in instruments:
            if item.kind == PaymentKind.CREDIT_INCREASE and not item.has_remarks:
                return PaymentViolation(
                    code=ViolationCode.MISSING_CREDIT_INCREASE_REMARKS,
                    message=(
                        "Credit increase requires remarks explaining the reason "
                        "for temporary limit increase"
                    ),
                    instrument_id=item.id,
                    kind=item.kind,
                )
        return None

    def format_money(self, value: Decimal) -> str:
        return f"{self._currency}{value:.2f}"
