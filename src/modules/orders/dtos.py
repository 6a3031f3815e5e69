"""Order DTOs.

Immutable Pydantic v2 models (``frozen=True``) used by the finalization
service and its persistence collaborator.

- ``LineRequest``: an operator's in-progress line (selector, qty, price).
- ``OrderLine``: a resolved, unambiguous line.
- ``OrderHeader``: customer, sale type and delivery details.
- ``OrderTotals``: subtotal, discount and total.
- ``OrderRecord``: a committed order read back for the edit flow.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from modules.catalog.dtos import CatalogEntry, CatalogSelection
from modules.orders.constants import SaleType
from modules.payments.dtos import PaymentInstrument

if TYPE_CHECKING:
    from modules.orders.models import SalesOrder


def _new_line_id() -> str:
    return f"item_{uuid4().hex[:12]}"


# ---------------------------------------------------------------------------
# Lines
# ---------------------------------------------------------------------------


class LineRequest(BaseModel):
    """Operator input for one line, before catalog resolution.

    Either ``selection`` (a row picked from a list) or ``selector_key``
    (a SKU id) identifies the item; ``selection`` wins when both are set.
    Quantity and price are range-checked at finalization, not here, so a
    half-typed line can live in the draft.
    """

    model_config = ConfigDict(frozen=True)

    line_id: str = Field(default_factory=_new_line_id)
    selector_key: Optional[str] = None
    selection: Optional[CatalogSelection] = None
    quantity: Decimal = Decimal("0")
    unit_price: Decimal = Decimal("0")

    @property
    def preview_total(self) -> Decimal:
        return self.quantity * self.unit_price


class OrderLine(BaseModel):
    """Immutable resolved line.

    ``line_total`` is derived from ``quantity * unit_price`` and cannot
    be supplied by the caller.
    """

    model_config = ConfigDict(frozen=True)

    line_id: str
    product_id: str
    product_name: str
    sku_id: str
    sku_code: str
    quantity: Decimal
    unit_type: str = ""
    unit_price: Decimal

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero.")
        return v

    @field_validator("unit_price")
    @classmethod
    def unit_price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Unit price cannot be negative.")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def key(self) -> Tuple[str, str]:
        return (self.product_id, self.sku_id)

    @classmethod
    def from_resolution(cls, request: LineRequest, entry: CatalogEntry) -> OrderLine:
        return cls(
            line_id=request.line_id,
            product_id=entry.product_id,
            product_name=entry.product_name,
            sku_id=entry.sku_id,
            sku_code=entry.sku_code,
            quantity=request.quantity,
            unit_type=entry.unit_type,
            unit_price=request.unit_price,
        )

    def to_request(self) -> LineRequest:
        """Seed an editable request that resolves back to this line."""
        return LineRequest(
            line_id=self.line_id,
            selection=CatalogSelection(
                product_id=self.product_id,
                product_name=self.product_name,
                sku_id=self.sku_id,
                sku_code=self.sku_code,
                unit_type=self.unit_type,
            ),
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


# ---------------------------------------------------------------------------
# Header & totals
# ---------------------------------------------------------------------------


class OrderHeader(BaseModel):
    """Order-level fields.  Outstation sales need delivery details."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    customer_id: Optional[str] = None
    order_date: date = Field(default_factory=date.today)
    sale_type: SaleType = SaleType.LOCAL
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    payment_terms: Optional[int] = None
    notes: str = ""

    @property
    def is_outstation(self) -> bool:
        return self.sale_type == SaleType.OUTSTATION


class OrderTotals(BaseModel):
    """``total = subtotal - discount``."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount

    @classmethod
    def compute(cls, line_totals: Iterable[Decimal], discount: Decimal) -> OrderTotals:
        return cls(subtotal=sum(line_totals, Decimal("0")), discount=discount)


# ---------------------------------------------------------------------------
# Committed order (read model)
# ---------------------------------------------------------------------------


class OrderRecord(BaseModel):
    """A previously committed order, used to seed an edit draft."""

    model_config = ConfigDict(frozen=True)

    id: str
    order_number: str
    status: str
    header: OrderHeader
    lines: List[OrderLine]
    payments: List[PaymentInstrument]
    totals: OrderTotals

    @classmethod
    def from_entity(cls, order: SalesOrder) -> OrderRecord:
        """Build a record from a ``SalesOrder`` with items and payments prefetched."""
        header = OrderHeader(
            customer_id=str(order.customer_id),
            order_date=order.order_date,
            sale_type=SaleType(order.sale_type),
            delivery_date=order.delivery_date,
            delivery_address=order.delivery_address or None,
            payment_terms=order.payment_terms,
            notes=order.notes,
        )
        lines = [
            OrderLine(
                line_id=item.line_id or str(item.id),
                product_id=str(item.product_id),
                product_name=item.product_name,
                sku_id=str(item.sku_id),
                sku_code=item.sku_code,
                quantity=item.quantity,
                unit_type=item.unit_type,
                unit_price=item.unit_price,
            )
            for item in order.items.all()
        ]
        payments = [
            PaymentInstrument(
                id=str(payment.id),
                kind=payment.kind,
                amount=payment.amount,
                reference_number=payment.reference_number or None,
                proof_artifact=payment.proof_artifact or None,
                remarks=payment.remarks or None,
                is_implicit=payment.is_implicit,
            )
            for payment in order.payments.all()
        ]
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            header=header,
            lines=lines,
            payments=payments,
            totals=OrderTotals(
                subtotal=order.subtotal, discount=order.discount_amount
            ),
        )
