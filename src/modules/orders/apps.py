from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            FinalizationAborted,
            OrderSubmitted,
            StockWarningsRaised,
        )
        from modules.orders.handlers import (
            finalization_aborted_handler,
            order_submitted_handler,
            stock_warnings_raised_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderSubmitted, order_submitted_handler)
        event_bus.subscribe(StockWarningsRaised, stock_warnings_raised_handler)
        event_bus.subscribe(FinalizationAborted, finalization_aborted_handler)
