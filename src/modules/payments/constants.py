"""Payment domain constants."""

from __future__ import annotations

from enum import StrEnum

DEFAULT_CURRENCY_SYMBOL = "₹"

IMPLICIT_CREDIT_ID = "payment_implicit_credit"


class PaymentKind(StrEnum):
    """Payment instrument kinds.

    ``CREDIT`` charges the customer's account.  ``CREDIT_INCREASE`` pays
    nothing; it raises the credit ceiling for one order.
    """

    CREDIT = "credit"
    CASH = "cash"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_INCREASE = "credit_increase"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def requires_proof(self) -> bool:
        return self in (PaymentKind.UPI, PaymentKind.BANK_TRANSFER)


_LABELS = {
    PaymentKind.CREDIT: "Credit",
    PaymentKind.CASH: "Cash",
    PaymentKind.UPI: "UPI",
    PaymentKind.BANK_TRANSFER: "Bank Transfer",
    PaymentKind.CREDIT_INCREASE: "Credit Increase",
}


class ViolationCode(StrEnum):
    CREDIT_EXCEEDED = "credit_exceeded"
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    MISSING_PAYMENT_PROOF = "missing_payment_proof"
    MISSING_CREDIT_INCREASE_REMARKS = "missing_credit_increase_remarks"
