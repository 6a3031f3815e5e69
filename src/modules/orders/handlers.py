"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    FinalizationAborted,
    OrderSubmitted,
    StockWarningsRaised,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderSubmittedHandler(IEventHandler[OrderSubmitted]):
    def handle(self, event: OrderSubmitted) -> None:
        logger.info(
            "order.event.submitted",
            draft_id=str(event.aggregate_id),
            order_id=event.order_id,
            total=str(event.total),
            credit_financed=str(event.credit_financed),
            warning_count=event.warning_count,
            is_edit=event.is_edit,
        )


class StockWarningsRaisedHandler(IEventHandler[StockWarningsRaised]):
    def handle(self, event: StockWarningsRaised) -> None:
        logger.warning(
            "order.event.stock_warnings",
            draft_id=str(event.aggregate_id),
            warning_count=event.warning_count,
        )


class FinalizationAbortedHandler(IEventHandler[FinalizationAborted]):
    def handle(self, event: FinalizationAborted) -> None:
        logger.info(
            "order.event.aborted",
            draft_id=str(event.aggregate_id),
            state=event.state,
        )


order_submitted_handler = OrderSubmittedHandler()
stock_warnings_raised_handler = StockWarningsRaisedHandler()
finalization_aborted_handler = FinalizationAbortedHandler()
