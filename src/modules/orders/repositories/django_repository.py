"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
``persist_order`` runs in ``transaction.atomic()`` so the sales order,
its items, its payments and the stock movements commit together or not
at all.

Stock rows are locked with ``select_for_update()`` in (product, sku)
order to avoid deadlocks between concurrent submissions.  An edit nets
the stock it gives back against the stock it takes, so every row is
locked once, in that same order.  Stock is
deducted unconditionally: the operator has already acknowledged any
shortfall, and negative stock is a valid backorder.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from modules.catalog.models import StockLevel
from modules.orders.constants import SalesOrderStatus
from modules.orders.dtos import OrderRecord
from modules.orders.exceptions import OrderNotFound, OrderPersistenceFailed
from modules.orders.models import SalesOrder, SalesOrderItem, SalesOrderPayment
from modules.orders.repositories.interfaces import IOrderRepository

if TYPE_CHECKING:
    from modules.orders.draft import FinalizationDraft

logger = structlog.get_logger(__name__)

StockKey = Tuple[str, str]


class OrderDjangoRepository(IOrderRepository):
    """Concrete sales order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _get_order(self, id: str) -> Optional[SalesOrder]:
        try:
            return (
                SalesOrder.objects.alive()
                .prefetch_related("items", "payments")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_id(self, id: str) -> Optional[OrderRecord]:
        """Retrieve a committed order with items and payments prefetched.

        Returns ``None`` for non-existent or invalid IDs.
        """
        order = self._get_order(id)
        return OrderRecord.from_entity(order) if order else None

    def query_order(self, order_id: str) -> OrderRecord:
        record = self.get_by_id(order_id)
        if record is None:
            raise OrderNotFound(f"Sales order {order_id} not found.")
        logger.info(
            "order.loaded",
            order_id=record.id,
            order_number=record.order_number,
            line_count=len(record.lines),
        )
        return record

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def persist_order(self, draft: FinalizationDraft) -> str:
        log = logger.bind(
            draft_id=str(draft.draft_id),
            source_order_id=draft.source_order_id,
        )
        try:
            with transaction.atomic():
                existing = SalesOrder.objects.filter(draft_id=draft.draft_id).first()
                if existing:
                    log.info("order.idempotency_hit", order_id=str(existing.id))
                    return str(existing.id)

                movements: Dict[StockKey, Decimal] = defaultdict(Decimal)
                if draft.is_edit:
                    order = self._replace(draft, movements)
                else:
                    order = SalesOrder(draft_id=draft.draft_id)
                    self._apply_draft(order, draft)
                    order.save()

                self._write_children(order, draft)
                for line in draft.order_lines:
                    movements[(line.product_id, line.sku_id)] -= line.quantity
                self._move_stock(movements)
        except DatabaseError as exc:
            log.error("order.persist_failed", error=str(exc))
            raise OrderPersistenceFailed(f"Failed to save sales order: {exc}") from exc

        log.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            item_count=len(draft.order_lines),
            payment_count=len(draft.payment_instruments),
        )
        return str(order.id)

    def _replace(
        self, draft: FinalizationDraft, movements: Dict[StockKey, Decimal]
    ) -> SalesOrder:
        """Lock the edited order, credit back its stock and drop its children."""
        try:
            order = (
                SalesOrder.objects.select_for_update()
                .alive()
                .filter(id=draft.source_order_id)
                .first()
            )
        except (ValueError, ValidationError):
            order = None
        if not order:
            raise OrderPersistenceFailed(
                f"Sales order {draft.source_order_id} no longer exists.",
                retryable=False,
            )

        previous = list(order.items.all())
        for item in previous:
            movements[(str(item.product_id), str(item.sku_id))] += item.quantity
        order.items.all().delete()
        order.payments.all().delete()

        order.draft_id = draft.draft_id
        self._apply_draft(order, draft)
        order.save()
        logger.info(
            "order.replaced",
            order_id=str(order.id),
            restored_item_count=len(previous),
        )
        return order

    @staticmethod
    def _apply_draft(order: SalesOrder, draft: FinalizationDraft) -> None:
        header = draft.header
        order.customer_id = header.customer_id
        order.sale_type = header.sale_type.value
        order.status = (
            SalesOrderStatus.PROCESSING
            if header.is_outstation
            else SalesOrderStatus.COMPLETED
        )
        order.order_date = header.order_date
        order.delivery_date = header.delivery_date if header.is_outstation else None
        order.delivery_address = (
            (header.delivery_address or "") if header.is_outstation else ""
        )
        if header.payment_terms is not None:
            order.payment_terms = header.payment_terms
        order.notes = header.notes
        order.subtotal = draft.totals.subtotal
        order.discount_amount = draft.totals.discount
        order.total_amount = draft.totals.total
        if draft.allocation is not None:
            order.credit_financed = draft.allocation.credit_financed
            order.credit_increase_total = draft.allocation.credit_increase_total

    @staticmethod
    def _write_children(order: SalesOrder, draft: FinalizationDraft) -> None:
        for line in draft.order_lines:
            SalesOrderItem(
                order=order,
                product_id=line.product_id,
                sku_id=line.sku_id,
                line_id=line.line_id,
                product_name=line.product_name,
                sku_code=line.sku_code,
                unit_type=line.unit_type,
                quantity=line.quantity,
                unit_price=line.unit_price,
            ).save()

        for instrument in draft.payment_instruments:
            SalesOrderPayment(
                order=order,
                kind=instrument.kind.value,
                amount=instrument.amount,
                reference_number=instrument.reference_number or "",
                proof_artifact=instrument.proof_artifact or "",
                remarks=instrument.remarks or "",
                is_implicit=instrument.is_implicit,
            ).save()

    @staticmethod
    def _move_stock(movements: Dict[StockKey, Decimal]) -> None:
        """Apply net stock deltas in one pass, locking rows in (product, sku) order."""
        for (product_id, sku_id), delta in sorted(movements.items()):
            if not delta:
                continue
            stock = (
                StockLevel.objects.select_for_update()
                .filter(product_id=product_id, sku_id=sku_id)
                .first()
            )
            if not stock:
                logger.warning(
                    "order.stock_row_missing",
                    product_id=product_id,
                    sku_id=sku_id,
                    delta=str(delta),
                )
                continue
            stock.adjust(delta)
            logger.info(
                "order.stock_moved",
                product_id=product_id,
                sku_id=sku_id,
                delta=str(delta),
                available_quantity=str(stock.available_quantity),
            )
