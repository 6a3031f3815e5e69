"""Unit tests for OrderFinalizationService.

Collaborators are MagicMock stand-ins for the repository and sink
contracts; the event bus is a real InMemoryEventBus.

Covers:
- Happy paths: clean draft, stock warnings with explicit confirmation.
- Implicit credit when no payment is entered.
- Live payment verdict after every edit.
- Failures at each step roll back to DRAFT with the draft intact.
- Persistence failure and retry.
- Re-entry guard (DraftBusy / SubmissionInProgress).
- Cancellation and the edit flow.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from modules.catalog.dtos import CatalogSelection
from modules.catalog.exceptions import (
    AmbiguousCatalogKey,
    CatalogEntryNotFound,
    IncompleteCatalogEntry,
)
from modules.catalog.repositories.interfaces import ICatalogRepository
from modules.customers.dtos import CreditProfile
from modules.customers.exceptions import InactiveCustomer
from modules.customers.repositories.interfaces import ICustomerRepository
from modules.inventory.dtos import WarningType
from modules.notifications.constants import NotificationSeverity
from modules.notifications.sinks import INotificationSink
from modules.orders.constants import FinalizationState
from modules.orders.dtos import OrderHeader, OrderLine, OrderRecord, OrderTotals
from modules.orders.events import (
    FinalizationAborted,
    OrderSubmitted,
    StockWarningsRaised,
)
from modules.orders.exceptions import (
    ConfirmationRequired,
    DraftBusy,
    DraftItemNotFound,
    IncompleteOrder,
    InvalidDiscount,
    InvalidFinalizationState,
    InvalidLine,
    OrderPersistenceFailed,
    SubmissionInProgress,
    UnknownDraftField,
)
from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.services import OrderFinalizationService
from modules.payments.constants import PaymentKind, ViolationCode
from modules.payments.exceptions import PaymentValidationFailed
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit

D = Decimal


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def rice(make_entry):
    return make_entry(product_name="Basmati Rice", sku_code="BR-25", available_quantity="4")


@pytest.fixture()
def dal(make_entry):
    return make_entry(product_name="Toor Dal", sku_code="TD-1", available_quantity="100")


@pytest.fixture()
def catalog_repo(rice, dal):
    repo = MagicMock(spec=ICatalogRepository)
    repo.query_catalog.return_value = [rice, dal]
    return repo


@pytest.fixture()
def customer_repo():
    repo = MagicMock(spec=ICustomerRepository)
    repo.get_credit_profile.return_value = CreditProfile(
        customer_id="cust-1",
        limit=D("5000"),
        current_balance=D("0"),
        payment_terms=15,
    )
    return repo


@pytest.fixture()
def order_repo():
    repo = MagicMock(spec=IOrderRepository)
    repo.persist_order.return_value = "order-1"
    return repo


@pytest.fixture()
def notifier():
    return MagicMock(spec=INotificationSink)


@pytest.fixture()
def published():
    return []


@pytest.fixture()
def bus(published):
    class Capturing:
        def handle(self, event) -> None:
            published.append(event)

    bus = InMemoryEventBus()
    for event_class in (OrderSubmitted, StockWarningsRaised, FinalizationAborted):
        bus.subscribe(event_class, Capturing())
    return bus


@pytest.fixture()
def service(catalog_repo, customer_repo, order_repo, notifier, bus):
    return OrderFinalizationService(
        catalog_repository=catalog_repo,
        customer_repository=customer_repo,
        order_repository=order_repo,
        notifier=notifier,
        event_bus=bus,
    )


def last_notification(notifier):
    call = notifier.notify.call_args
    return call.args[0], call.args[1]


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------


class TestFinalizeAndSubmit:
    def test_clean_draft_is_ready_to_submit(self, service, dal, order_repo):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("10"), unit_price=D("120"))
        service.add_payment(PaymentKind.CASH, D("1200"))

        draft = service.finalize()

        assert service.state == FinalizationState.READY_TO_SUBMIT
        assert draft.totals.total == D("1200")
        assert draft.order_lines[0].line_total == D("1200")
        assert not draft.requires_confirmation

        order_id = service.submit()

        assert order_id == "order-1"
        assert service.state == FinalizationState.SUBMITTED
        assert service.submitted_order_id == "order-1"
        assert service.pending is None
        order_repo.persist_order.assert_called_once_with(draft)

    def test_short_stock_waits_for_explicit_confirmation(
        self, service, rice, order_repo, notifier, published
    ):
        service.select_customer("cust-1")
        line = service.add_line(selection=rice, quantity=D("10"), unit_price=D("50"))

        draft = service.finalize()

        assert service.state == FinalizationState.AWAITING_CONFIRMATION
        (warning,) = draft.reconciliation_warnings
        assert warning.type == WarningType.SHORT
        assert warning.line_id == line.line_id
        assert warning.resulting_quantity == D("-6")
        assert last_notification(notifier)[0] == NotificationSeverity.WARNING
        assert [type(e) for e in published] == [StockWarningsRaised]

        with pytest.raises(ConfirmationRequired) as exc_info:
            service.submit()

        assert exc_info.value.warnings == draft.reconciliation_warnings
        assert service.state == FinalizationState.AWAITING_CONFIRMATION
        assert service.pending is draft
        order_repo.persist_order.assert_not_called()

        assert service.submit(acknowledge_warnings=True) == "order-1"
        assert service.state == FinalizationState.SUBMITTED
        order_repo.persist_order.assert_called_once_with(draft)

    def test_success_is_notified_and_published(self, service, dal, notifier, published):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("100"))
        service.finalize()

        service.submit()

        assert last_notification(notifier) == (
            NotificationSeverity.SUCCESS,
            "Sales order created successfully!",
        )
        (event,) = published
        assert isinstance(event, OrderSubmitted)
        assert event.order_id == "order-1"
        assert event.total == D("100")
        assert event.credit_financed == D("100")
        assert not event.is_edit
        assert str(event.aggregate_id) == service.draft_id

    def test_no_payment_means_fully_on_credit(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("3"), unit_price=D("100"))

        draft = service.finalize()

        (instrument,) = draft.payment_instruments
        assert instrument.is_implicit
        assert instrument.kind == PaymentKind.CREDIT
        assert instrument.amount == D("300")
        assert draft.allocation.credit_financed == D("300")

    def test_discount_reduces_total(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("2"), unit_price=D("100"))
        service.set_discount(D("25"))

        draft = service.finalize()

        assert draft.totals.subtotal == D("200")
        assert draft.totals.total == D("175")

    def test_resolves_by_selector_key(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(dal.sku_id, quantity=D("1"), unit_price=D("10"))

        draft = service.finalize()

        assert draft.order_lines[0].product_id == dal.product_id
        assert draft.ambiguity_warnings == ()


# ---------------------------------------------------------------------------
# Live payment verdict
# ---------------------------------------------------------------------------


class TestPaymentProjection:
    def test_verdict_unknown_until_customer_selected(self, service, dal):
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("10"))

        assert service.payment_verdict is None
        assert not service.is_payment_valid

    def test_verdict_follows_every_edit(self, service, customer_repo, dal):
        customer_repo.get_credit_profile.return_value = CreditProfile(
            customer_id="cust-1", limit=D("500")
        )
        service.select_customer("cust-1")
        line = service.add_line(selection=dal, quantity=D("10"), unit_price=D("100"))

        assert service.payment_verdict.violation.code == ViolationCode.CREDIT_EXCEEDED

        cash = service.add_payment(PaymentKind.CASH, D("600"))
        assert service.is_payment_valid
        assert service.payment_verdict.allocation.credit_financed == D("400")

        service.update_line(line.line_id, quantity=D("20"))
        assert not service.is_payment_valid

        service.update_payment(cash.id, amount=D("1600"))
        assert service.is_payment_valid

        service.remove_payment(cash.id)
        assert not service.is_payment_valid

    def test_new_payment_defaults_to_unpaid_remainder(self, service, dal):
        service.add_line(selection=dal, quantity=D("5"), unit_price=D("100"))

        cash = service.add_payment(PaymentKind.CASH, D("200"))
        upi = service.add_payment("upi")
        increase = service.add_payment(PaymentKind.CREDIT_INCREASE)

        assert cash.amount == D("200")
        assert upi.amount == D("300")
        assert increase.amount == D("0")

    def test_customer_terms_fill_empty_header_terms(self, service):
        service.select_customer("cust-1")

        assert service.header.customer_id == "cust-1"
        assert service.header.payment_terms == 15


# ---------------------------------------------------------------------------
# Failures roll back to DRAFT
# ---------------------------------------------------------------------------


class TestFinalizeFailures:
    def test_credit_exceeded_rolls_back(
        self, service, customer_repo, dal, notifier, order_repo
    ):
        customer_repo.get_credit_profile.return_value = CreditProfile(
            customer_id="cust-1", limit=D("500")
        )
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("10"), unit_price=D("100"))

        with pytest.raises(PaymentValidationFailed) as exc_info:
            service.finalize()

        assert exc_info.value.violation.code == ViolationCode.CREDIT_EXCEEDED
        assert service.state == FinalizationState.DRAFT
        assert len(service.lines) == 1
        assert service.pending is None
        assert last_notification(notifier)[0] == NotificationSeverity.ERROR
        order_repo.persist_order.assert_not_called()

    def test_unknown_sku_names_the_line(self, service):
        service.select_customer("cust-1")
        line = service.add_line("NO-SUCH-SKU", quantity=D("1"), unit_price=D("1"))

        with pytest.raises(CatalogEntryNotFound) as exc_info:
            service.finalize()

        assert exc_info.value.line_id == line.line_id
        assert service.state == FinalizationState.DRAFT

    def test_non_positive_quantity_names_the_line(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))
        bad = service.add_line(selection=dal, quantity=D("0"), unit_price=D("1"))

        with pytest.raises(InvalidLine) as exc_info:
            service.finalize()

        assert exc_info.value.line_id == bad.line_id

    def test_negative_price_is_rejected(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("-1"))

        with pytest.raises(InvalidLine):
            service.finalize()

    def test_incomplete_selection_is_rejected(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(
            selection=CatalogSelection(product_id=dal.product_id, sku_id=dal.sku_id),
            quantity=D("1"),
            unit_price=D("1"),
        )

        with pytest.raises(IncompleteCatalogEntry) as exc_info:
            service.finalize()

        assert exc_info.value.missing_fields == ("product_name", "sku_code")

    def test_customer_is_required(self, service, dal):
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))

        with pytest.raises(IncompleteOrder) as exc_info:
            service.finalize()

        assert exc_info.value.missing_fields == ("customer_id",)

    def test_a_line_is_required(self, service):
        service.select_customer("cust-1")

        with pytest.raises(IncompleteOrder, match="at least one item"):
            service.finalize()

    def test_outstation_needs_delivery_details(self, service, dal):
        service.select_customer("cust-1")
        service.update_header(sale_type="outstation")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))

        with pytest.raises(IncompleteOrder) as exc_info:
            service.finalize()

        assert exc_info.value.missing_fields == ("delivery_date", "delivery_address")

    def test_customer_turned_inactive_is_rejected(self, service, customer_repo, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))
        customer_repo.get_credit_profile.side_effect = InactiveCustomer("inactive")

        with pytest.raises(InactiveCustomer):
            service.finalize()

        assert service.state == FinalizationState.DRAFT

    def test_discount_rules(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("100"))

        with pytest.raises(InvalidDiscount):
            service.set_discount(D("-1"))

        service.set_discount(D("150"))
        with pytest.raises(InvalidDiscount):
            service.finalize()

    def test_catalog_outage_rolls_back(self, service, catalog_repo, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))
        catalog_repo.query_catalog.side_effect = [[dal], ConnectionError("down")]

        with pytest.raises(ConnectionError):
            service.finalize()

        assert service.state == FinalizationState.DRAFT

    def test_draft_can_be_fixed_and_finalized_again(self, service, customer_repo, dal):
        customer_repo.get_credit_profile.return_value = CreditProfile(
            customer_id="cust-1", limit=D("500")
        )
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("10"), unit_price=D("100"))
        with pytest.raises(PaymentValidationFailed):
            service.finalize()

        service.add_payment(PaymentKind.CASH, D("600"))
        service.finalize()

        assert service.state == FinalizationState.READY_TO_SUBMIT


class TestAmbiguousSku:
    @pytest.fixture()
    def twins(self, make_entry, catalog_repo):
        first = make_entry(product_name="Rice A", sku_id="X", available_quantity="50")
        second = make_entry(product_name="Rice B", sku_id="X", available_quantity="50")
        catalog_repo.query_catalog.return_value = [first, second]
        return first, second

    def test_first_match_fallback_is_flagged(self, service, twins, notifier):
        service.select_customer("cust-1")
        service.add_line("X", quantity=D("1"), unit_price=D("10"))

        draft = service.finalize()

        assert draft.order_lines[0].product_id == twins[0].product_id
        assert draft.ambiguity_warnings[0].match_count == 2
        assert service.state == FinalizationState.READY_TO_SUBMIT
        severities = [call.args[0] for call in notifier.notify.call_args_list]
        assert NotificationSeverity.WARNING in severities

    def test_strict_resolution_rejects(
        self, twins, catalog_repo, customer_repo, order_repo, notifier, bus
    ):
        service = OrderFinalizationService(
            catalog_repo,
            customer_repo,
            order_repo,
            notifier,
            event_bus=bus,
            strict_sku_resolution=True,
        )
        service.select_customer("cust-1")
        line = service.add_line("X", quantity=D("1"), unit_price=D("10"))

        with pytest.raises(AmbiguousCatalogKey) as exc_info:
            service.finalize()

        assert exc_info.value.line_id == line.line_id
        assert service.state == FinalizationState.DRAFT


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class TestSubmission:
    @pytest.fixture()
    def ready(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("100"))
        service.finalize()
        return service

    def test_persistence_failure_keeps_state_for_retry(self, ready, order_repo, notifier):
        draft = ready.pending
        order_repo.persist_order.side_effect = [
            OrderPersistenceFailed("database unavailable"),
            "order-2",
        ]

        with pytest.raises(OrderPersistenceFailed):
            ready.submit()

        assert ready.state == FinalizationState.READY_TO_SUBMIT
        assert ready.pending is draft
        assert last_notification(notifier)[0] == NotificationSeverity.ERROR

        assert ready.submit() == "order-2"
        assert order_repo.persist_order.call_count == 2
        assert all(call.args[0] is draft for call in order_repo.persist_order.call_args_list)

    def test_persistence_failure_after_confirmation_stays_awaiting(
        self, service, rice, order_repo
    ):
        service.select_customer("cust-1")
        service.add_line(selection=rice, quantity=D("10"), unit_price=D("1"))
        service.finalize()
        order_repo.persist_order.side_effect = OrderPersistenceFailed("timeout")

        with pytest.raises(OrderPersistenceFailed):
            service.submit(acknowledge_warnings=True)

        assert service.state == FinalizationState.AWAITING_CONFIRMATION

    def test_second_submit_is_rejected(self, ready, order_repo):
        ready.submit()

        with pytest.raises(InvalidFinalizationState, match="already submitted"):
            ready.submit()

        order_repo.persist_order.assert_called_once()

    def test_concurrent_submit_is_rejected(self, ready, order_repo):
        attempts = []

        def persist(draft):
            for attempt in (ready.submit, ready.cancel):
                try:
                    attempt()
                except SubmissionInProgress as exc:
                    attempts.append(exc)
            return "order-1"

        order_repo.persist_order.side_effect = persist

        assert ready.submit() == "order-1"
        assert len(attempts) == 2
        order_repo.persist_order.assert_called_once()

    def test_submit_before_finalize_is_rejected(self, service):
        with pytest.raises(InvalidFinalizationState):
            service.submit()

    def test_edits_are_locked_after_finalize(self, ready):
        with pytest.raises(InvalidFinalizationState):
            ready.add_payment(PaymentKind.CASH, D("1"))

    def test_mutation_during_round_trip_is_busy(self, service, catalog_repo, dal):
        busy = []

        def query_catalog():
            try:
                service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))
            except DraftBusy as exc:
                busy.append(exc)
            return [dal]

        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))
        catalog_repo.query_catalog.side_effect = query_catalog

        service.finalize()

        assert len(busy) == 2
        assert not any(isinstance(exc, SubmissionInProgress) for exc in busy)
        assert len(service.lines) == 1


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancel:
    def test_cancel_discards_pending_draft(
        self, service, rice, order_repo, notifier, published
    ):
        service.select_customer("cust-1")
        service.add_line(selection=rice, quantity=D("10"), unit_price=D("1"))
        service.finalize()
        published.clear()

        service.cancel()

        assert service.state == FinalizationState.ABORTED
        assert service.pending is None
        assert service.lines == []
        assert last_notification(notifier)[0] == NotificationSeverity.INFO
        (event,) = published
        assert isinstance(event, FinalizationAborted)
        assert event.state == FinalizationState.AWAITING_CONFIRMATION

        with pytest.raises(InvalidFinalizationState, match="cancelled"):
            service.submit(acknowledge_warnings=True)
        order_repo.persist_order.assert_not_called()

    def test_cancel_is_idempotent(self, service):
        service.cancel()
        service.cancel()

        assert service.state == FinalizationState.ABORTED

    def test_submitted_draft_cannot_be_cancelled(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))
        service.finalize()
        service.submit()

        with pytest.raises(InvalidFinalizationState):
            service.cancel()


# ---------------------------------------------------------------------------
# Draft editing
# ---------------------------------------------------------------------------


class TestDraftEditing:
    def test_update_line_with_new_key_clears_selection(self, service, dal, rice):
        line = service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))

        updated = service.update_line(line.line_id, selector_key=rice.sku_id)

        assert updated.line_id == line.line_id
        assert updated.selection is None
        assert updated.selector_key == rice.sku_id

    def test_unknown_ids_are_reported(self, service):
        with pytest.raises(DraftItemNotFound):
            service.remove_line("item_missing")
        with pytest.raises(DraftItemNotFound):
            service.update_payment("payment_missing", amount=D("1"))

    def test_remove_line_updates_preview(self, service, dal):
        first = service.add_line(selection=dal, quantity=D("2"), unit_price=D("10"))
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("5"))

        service.remove_line(first.line_id)

        assert service.preview_totals.total == D("5")

    def test_payment_cannot_be_turned_into_implicit_credit(self, service, dal):
        service.select_customer("cust-1")
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("100"))
        bad = service.add_payment(PaymentKind.CASH, D("-500"))
        assert not service.is_payment_valid

        with pytest.raises(UnknownDraftField) as exc_info:
            service.update_payment(bad.id, is_implicit=True)

        assert exc_info.value.fields == ("is_implicit",)
        assert not service.payments[0].is_implicit
        with pytest.raises(PaymentValidationFailed) as failed:
            service.finalize()
        assert failed.value.violation.code == ViolationCode.NON_POSITIVE_AMOUNT
        assert failed.value.instrument_id == bad.id

    def test_payment_id_cannot_be_changed(self, service):
        cash = service.add_payment(PaymentKind.CASH, D("10"))

        with pytest.raises(UnknownDraftField):
            service.update_payment(cash.id, id="payment_other", amount=D("20"))

        assert [p.id for p in service.payments] == [cash.id]
        assert service.payments[0].amount == D("10")

    def test_line_id_cannot_be_changed(self, service, dal):
        line = service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))

        with pytest.raises(UnknownDraftField) as exc_info:
            service.update_line(line.line_id, line_id="item_other", quantity=D("2"))

        assert exc_info.value.fields == ("line_id",)
        assert [item.line_id for item in service.lines] == [line.line_id]
        assert service.lines[0].quantity == D("1")

    def test_misspelled_header_field_is_rejected(self, service):
        with pytest.raises(UnknownDraftField) as exc_info:
            service.update_header(delivery_adress="Godown 4, Nagpur")

        assert exc_info.value.fields == ("delivery_adress",)
        assert service.header.delivery_address is None

    def test_header_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            OrderHeader(delivery_adress="Godown 4, Nagpur")


class TestEditFlow:
    @pytest.fixture()
    def record(self, rice):
        return OrderRecord(
            id="order-9",
            order_number="SO-20261019-ABC123",
            status="completed",
            header=OrderHeader(customer_id="cust-1", payment_terms=15),
            lines=[
                OrderLine(
                    line_id="item_old",
                    product_id=rice.product_id,
                    product_name=rice.product_name,
                    sku_id=rice.sku_id,
                    sku_code=rice.sku_code,
                    quantity=D("3"),
                    unit_type=rice.unit_type,
                    unit_price=D("50"),
                )
            ],
            payments=[
                {"kind": PaymentKind.CASH, "amount": D("150")},
                {"kind": PaymentKind.CREDIT, "amount": D("0"), "is_implicit": True},
            ],
            totals=OrderTotals(subtotal=D("150")),
        )

    def test_load_order_seeds_the_draft(self, service, order_repo, record):
        order_repo.query_order.return_value = record

        service.load_order("order-9")

        assert [line.line_id for line in service.lines] == ["item_old"]
        assert [p.kind for p in service.payments] == [PaymentKind.CASH]
        assert service.header.customer_id == "cust-1"
        assert service.is_payment_valid

    def test_edit_credits_back_its_own_stock(self, service, order_repo, notifier, record):
        order_repo.query_order.return_value = record
        service.load_order("order-9")
        service.update_line("item_old", quantity=D("6"))

        draft = service.finalize()

        assert draft.is_edit
        assert draft.source_order_id == "order-9"
        assert service.state == FinalizationState.READY_TO_SUBMIT

        service.submit()
        assert last_notification(notifier)[1] == "Sales order updated successfully!"

    def test_load_into_used_draft_is_rejected(self, service, order_repo, record, dal):
        order_repo.query_order.return_value = record
        service.add_line(selection=dal, quantity=D("1"), unit_price=D("1"))

        with pytest.raises(InvalidFinalizationState):
            service.load_order("order-9")

        order_repo.query_order.assert_not_called()
