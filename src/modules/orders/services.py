"""Order finalization service (Use Cases).

Drives one operator's order draft through the finalization state machine::

    DRAFT -> LINES_RESOLVED -> PAYMENT_VALIDATED -> INVENTORY_CHECKED
          -> READY_TO_SUBMIT | AWAITING_CONFIRMATION -> SUBMITTED

with ``ABORTED`` reachable from every state before ``SUBMITTED``.

Business rules enforced:
- The draft is edited only in ``DRAFT``; every edit re-runs the payment
  allocator, so ``payment_verdict`` is always a projection of the
  current draft.
- A draft with no payment instruments is fully on credit: an implicit
  credit instrument covering the total is synthesized before validation.
- Inventory shortfalls never block an order; they require an explicit
  acknowledgement at submit time.
- A finalized draft is persisted at most once.  A persistence failure
  leaves the state and the draft untouched so the operator can retry.
- Nothing mutates the draft while a collaborator round trip is
  outstanding (non-blocking re-entry lock).
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple, Union

import structlog

from modules.catalog.dtos import AmbiguityWarning, CatalogEntry, CatalogSelection
from modules.catalog.exceptions import AmbiguousCatalogKey
from modules.catalog.resolver import CatalogResolver
from modules.inventory.reconciler import InventoryReconciler
from modules.notifications.constants import NotificationSeverity
from modules.orders.constants import (
    SUBMITTABLE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    FinalizationState,
)
from modules.orders.draft import FinalizationDraft, OrderDraft
from modules.orders.dtos import LineRequest, OrderHeader, OrderLine, OrderTotals
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
    SubmissionInProgress,
    UnknownDraftField,
)
from modules.payments.allocator import PaymentAllocator
from modules.payments.constants import PaymentKind
from modules.payments.dtos import AllocationVerdict, PaymentInstrument
from modules.payments.exceptions import PaymentValidationFailed
from shared.domain.events import DomainEventMixin
from shared.domain.exceptions import PersistenceError, ResolutionError

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import ICatalogRepository
    from modules.customers.dtos import CreditProfile
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.inventory.dtos import ReconciliationWarning
    from modules.notifications.sinks import INotificationSink
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")

# Fields an operator may change; ids and the implicit-credit flag are owned
# by the draft.
EDITABLE_HEADER_FIELDS = frozenset(OrderHeader.model_fields)
EDITABLE_LINE_FIELDS = frozenset(
    {"selector_key", "selection", "quantity", "unit_price"}
)
EDITABLE_PAYMENT_FIELDS = frozenset(
    {"kind", "amount", "reference_number", "proof_artifact", "remarks"}
)


class OrderFinalizationService(DomainEventMixin):
    """Application service owning exactly one order draft.

    Receives its collaborators via constructor injection (DIP).  One
    instance serves one operator session; after ``SUBMITTED`` or
    ``ABORTED`` the host starts a new instance for the next order.
    """

    def __init__(
        self,
        catalog_repository: ICatalogRepository,
        customer_repository: ICustomerRepository,
        order_repository: IOrderRepository,
        notifier: INotificationSink,
        *,
        allocator: Optional[PaymentAllocator] = None,
        event_bus: Optional[IEventBus] = None,
        strict_sku_resolution: bool = False,
    ) -> None:
        if event_bus is None:
            from shared.infrastructure.bus import event_bus as default_bus

            event_bus = default_bus

        self._catalog_repo = catalog_repository
        self._customer_repo = customer_repository
        self._order_repo = order_repository
        self._notifier = notifier
        self._allocator = allocator or PaymentAllocator()
        self._event_bus = event_bus
        self._strict = strict_sku_resolution

        self._lock = threading.Lock()
        self._submitting = False
        self._state = FinalizationState.DRAFT
        self._draft = OrderDraft()
        self._pending: Optional[FinalizationDraft] = None
        self._credit_profile: Optional[CreditProfile] = None
        self._verdict: Optional[AllocationVerdict] = None
        self._submitted_order_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    @property
    def state(self) -> FinalizationState:
        return self._state

    @property
    def draft_id(self) -> str:
        return str(self._draft.draft_id)

    @property
    def header(self) -> OrderHeader:
        return self._draft.header

    @property
    def lines(self) -> List[LineRequest]:
        return list(self._draft.lines.values())

    @property
    def payments(self) -> List[PaymentInstrument]:
        return list(self._draft.payments.values())

    @property
    def discount(self) -> Decimal:
        return self._draft.discount

    @property
    def credit_profile(self) -> Optional[CreditProfile]:
        return self._credit_profile

    @property
    def preview_totals(self) -> OrderTotals:
        return self._draft.preview_totals()

    @property
    def payment_verdict(self) -> Optional[AllocationVerdict]:
        """Verdict of the latest allocator run; ``None`` until a customer is selected."""
        return self._verdict

    @property
    def is_payment_valid(self) -> bool:
        return self._verdict is not None and self._verdict.is_valid

    @property
    def pending(self) -> Optional[FinalizationDraft]:
        """The finalized draft held across the confirmation pause."""
        return self._pending

    @property
    def submitted_order_id(self) -> Optional[str]:
        return self._submitted_order_id

    # ------------------------------------------------------------------
    # Draft editing
    # ------------------------------------------------------------------

    def select_customer(self, customer_id: str) -> CreditProfile:
        """Attach a customer and load their credit line.

        Raises:
            CustomerNotFound: customer does not exist.
            InactiveCustomer: customer is inactive.
        """
        with self._exclusive("select_customer"):
            self._require_editable("select_customer")
            return self._select_customer(customer_id)

    def update_header(self, **changes: Any) -> OrderHeader:
        """Change order-level fields (sale type, dates, address, terms, notes)."""
        with self._exclusive("update_header"):
            self._require_editable("update_header")
            _check_fields("update_header", changes, EDITABLE_HEADER_FIELDS)
            customer_id = changes.pop("customer_id", None)
            self._draft.header = OrderHeader(
                **{**self._draft.header.model_dump(), **changes}
            )
            if customer_id is not None:
                self._select_customer(customer_id)
            self._revalidate()
            return self._draft.header

    def set_discount(self, amount: Decimal) -> OrderTotals:
        """Set the order-level discount.

        Raises:
            InvalidDiscount: ``amount`` is negative.
        """
        with self._exclusive("set_discount"):
            self._require_editable("set_discount")
            amount = Decimal(amount)
            if amount < 0:
                raise InvalidDiscount("Discount cannot be negative.")
            self._draft.discount = amount
            self._revalidate()
            return self._draft.preview_totals()

    def add_line(
        self,
        selector_key: Optional[str] = None,
        *,
        selection: Union[CatalogSelection, CatalogEntry, None] = None,
        quantity: Decimal = ZERO,
        unit_price: Decimal = ZERO,
    ) -> LineRequest:
        with self._exclusive("add_line"):
            self._require_editable("add_line")
            line = LineRequest(
                selector_key=selector_key,
                selection=_as_selection(selection),
                quantity=quantity,
                unit_price=unit_price,
            )
            self._draft.lines[line.line_id] = line
            self._revalidate()
            return line

    def update_line(self, line_id: str, **changes: Any) -> LineRequest:
        """Replace fields of a line; a new selector clears the old selection."""
        with self._exclusive("update_line"):
            self._require_editable("update_line")
            _check_fields("update_line", changes, EDITABLE_LINE_FIELDS)
            current = self._get_line(line_id)
            if "selection" in changes:
                changes["selection"] = _as_selection(changes["selection"])
            elif "selector_key" in changes:
                changes["selection"] = None
            data = {**current.model_dump(), **changes, "line_id": line_id}
            line = LineRequest(**data)
            self._draft.lines[line_id] = line
            self._revalidate()
            return line

    def remove_line(self, line_id: str) -> None:
        with self._exclusive("remove_line"):
            self._require_editable("remove_line")
            self._get_line(line_id)
            del self._draft.lines[line_id]
            self._revalidate()

    def add_payment(
        self,
        kind: Union[PaymentKind, str],
        amount: Optional[Decimal] = None,
        *,
        reference_number: Optional[str] = None,
        proof_artifact: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> PaymentInstrument:
        """Add an instrument.  Without ``amount`` it defaults to the unpaid rest."""
        with self._exclusive("add_payment"):
            self._require_editable("add_payment")
            kind = PaymentKind(kind)
            if amount is None:
                amount = self._allocator.default_amount(
                    kind,
                    self._draft.preview_totals().total,
                    list(self._draft.payments.values()),
                )
            instrument = PaymentInstrument(
                kind=kind,
                amount=amount,
                reference_number=reference_number,
                proof_artifact=proof_artifact,
                remarks=remarks,
            )
            self._draft.payments[instrument.id] = instrument
            self._revalidate()
            return instrument

    def update_payment(self, payment_id: str, **changes: Any) -> PaymentInstrument:
        """Change an entered instrument; its id and implicit flag stay fixed."""
        with self._exclusive("update_payment"):
            self._require_editable("update_payment")
            _check_fields("update_payment", changes, EDITABLE_PAYMENT_FIELDS)
            current = self._get_payment(payment_id)
            data = {**current.model_dump(), **changes, "id": payment_id}
            instrument = PaymentInstrument(**data)
            self._draft.payments[payment_id] = instrument
            self._revalidate()
            return instrument

    def remove_payment(self, payment_id: str) -> None:
        with self._exclusive("remove_payment"):
            self._require_editable("remove_payment")
            self._get_payment(payment_id)
            del self._draft.payments[payment_id]
            self._revalidate()

    def load_order(self, order_id: str) -> OrderDraft:
        """Seed an empty draft from a committed order (edit flow).

        The order's stock is credited back during reconciliation, and
        submitting replaces the order instead of creating a new one.

        Raises:
            OrderNotFound: no such order.
            InvalidFinalizationState: the draft already has content.
        """
        with self._exclusive("load_order"):
            self._require_editable("load_order")
            if not self._draft.is_empty:
                raise InvalidFinalizationState(
                    "Cannot load an order into a draft that already has content.",
                    state=self._state,
                )
            record = self._order_repo.query_order(order_id)
            profile = self._customer_repo.get_credit_profile(record.header.customer_id)

            draft = self._draft
            draft.header = record.header
            draft.discount = record.totals.discount
            draft.source_order_id = record.id
            for line in record.lines:
                draft.lines[line.line_id] = line.to_request()
                draft.credited[line.key] = (
                    draft.credited.get(line.key, ZERO) + line.quantity
                )
            for instrument in record.payments:
                if not instrument.is_implicit:
                    draft.payments[instrument.id] = instrument
            self._credit_profile = profile
            self._revalidate()

            logger.info(
                "finalization.order_loaded",
                order_id=record.id,
                order_number=record.order_number,
                line_count=len(record.lines),
            )
            return draft

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def finalize(self) -> FinalizationDraft:
        """Resolve, validate payments and reconcile stock.

        Ends in ``READY_TO_SUBMIT`` or, when stock warnings exist, in
        ``AWAITING_CONFIRMATION``.  On any failure the state returns to
        ``DRAFT`` with the draft intact and the error is re-raised.

        Raises:
            IncompleteOrder: no customer, no lines, or missing delivery details.
            ResolutionError: a line could not be resolved (carries ``line_id``).
            AmbiguousCatalogKey: ambiguous SKU under strict resolution.
            InvalidLine: non-positive quantity or negative price.
            InvalidDiscount: discount larger than the subtotal.
            PaymentValidationFailed: an allocator rule failed.
        """
        with self._exclusive("finalize"):
            self._require_state({FinalizationState.DRAFT}, "finalize")
            try:
                return self._finalize()
            except Exception as exc:
                failed_in = self._state
                # Back to an editable draft; the operator's input is kept.
                self._state = FinalizationState.DRAFT
                self._pending = None
                logger.warning(
                    "finalization.failed",
                    failed_in=str(failed_in),
                    error_type=type(exc).__name__,
                    error=str(exc),
                    line_id=getattr(exc, "line_id", None),
                    instrument_id=getattr(exc, "instrument_id", None),
                )
                self._notifier.notify(
                    NotificationSeverity.ERROR, str(exc), draft_id=self.draft_id
                )
                raise

    def _finalize(self) -> FinalizationDraft:
        draft = self._draft
        header = draft.header
        self._check_header(header, draft)

        self._credit_profile = self._customer_repo.get_credit_profile(
            header.customer_id
        )

        # DRAFT -> LINES_RESOLVED
        order_lines, ambiguities = self._resolve_lines(
            self._catalog_repo.query_catalog()
        )
        self._transition(FinalizationState.LINES_RESOLVED)

        # LINES_RESOLVED -> PAYMENT_VALIDATED
        totals = OrderTotals.compute(
            (line.line_total for line in order_lines), draft.discount
        )
        if totals.discount > totals.subtotal:
            raise InvalidDiscount(
                "Discount cannot exceed the order subtotal "
                f"({self._allocator.format_money(totals.subtotal)})."
            )
        instruments = self._instruments_for(totals.total)
        verdict = self._allocator.validate(
            totals.total, instruments, self._credit_profile
        )
        self._verdict = verdict
        if not verdict.is_valid:
            raise PaymentValidationFailed(verdict)
        self._transition(FinalizationState.PAYMENT_VALIDATED)

        # PAYMENT_VALIDATED -> INVENTORY_CHECKED
        reconciler = InventoryReconciler(self._catalog_repo.query_catalog())
        warnings = reconciler.reconcile(order_lines, draft.credited)
        self._transition(FinalizationState.INVENTORY_CHECKED)

        self._pending = FinalizationDraft(
            draft_id=draft.draft_id,
            header=header,
            order_lines=order_lines,
            totals=totals,
            payment_instruments=instruments,
            allocation=verdict.allocation,
            reconciliation_warnings=tuple(warnings),
            ambiguity_warnings=tuple(ambiguities),
            source_order_id=draft.source_order_id,
        )

        if ambiguities:
            self._notifier.notify(
                NotificationSeverity.WARNING,
                " ".join(warning.message for warning in ambiguities),
                draft_id=self.draft_id,
            )
        if warnings:
            self._transition(FinalizationState.AWAITING_CONFIRMATION)
            self._notifier.notify(
                NotificationSeverity.WARNING,
                _confirmation_message(warnings),
                draft_id=self.draft_id,
            )
            self.add_domain_event(
                StockWarningsRaised(
                    aggregate_id=draft.draft_id, warning_count=len(warnings)
                )
            )
            self._flush_events()
        else:
            self._transition(FinalizationState.READY_TO_SUBMIT)

        logger.info(
            "finalization.finalized",
            state=str(self._state),
            line_count=len(order_lines),
            total=str(totals.total),
            credit_financed=str(verdict.allocation.credit_financed),
            warning_count=len(warnings),
            ambiguity_count=len(ambiguities),
        )
        return self._pending

    def submit(self, acknowledge_warnings: bool = False) -> str:
        """Persist the finalized draft and return the order id.

        Raises:
            ConfirmationRequired: stock warnings exist and were not acknowledged.
            SubmissionInProgress: another submit of this draft is in flight.
            InvalidFinalizationState: nothing finalized, or already submitted.
            PersistenceError: the write failed; state and draft are unchanged.
        """
        with self._exclusive("submit"):
            self._require_state(SUBMITTABLE_STATES, "submit")
            pending = self._pending
            if (
                self._state == FinalizationState.AWAITING_CONFIRMATION
                and not acknowledge_warnings
            ):
                raise ConfirmationRequired(pending.reconciliation_warnings)

            self._submitting = True
            try:
                order_id = self._order_repo.persist_order(pending)
            except PersistenceError as exc:
                logger.error(
                    "finalization.submit_failed",
                    state=str(self._state),
                    retryable=exc.retryable,
                    error=str(exc),
                )
                self._notifier.notify(
                    NotificationSeverity.ERROR,
                    f"Failed to save sales order: {exc}",
                    draft_id=self.draft_id,
                )
                raise
            finally:
                self._submitting = False

            self._transition(FinalizationState.SUBMITTED)
            self._submitted_order_id = str(order_id)
            self._pending = None

            logger.info(
                "finalization.submitted",
                order_id=self._submitted_order_id,
                is_edit=pending.is_edit,
                acknowledged_warnings=len(pending.reconciliation_warnings),
            )
            self._notifier.notify(
                NotificationSeverity.SUCCESS,
                "Sales order updated successfully!"
                if pending.is_edit
                else "Sales order created successfully!",
                draft_id=self.draft_id,
                order_id=self._submitted_order_id,
            )
            self.add_domain_event(
                OrderSubmitted(
                    aggregate_id=pending.draft_id,
                    order_id=self._submitted_order_id,
                    total=pending.totals.total,
                    credit_financed=pending.allocation.credit_financed
                    if pending.allocation
                    else ZERO,
                    warning_count=len(pending.reconciliation_warnings),
                    is_edit=pending.is_edit,
                )
            )
            self._flush_events()
            return self._submitted_order_id

    def cancel(self) -> None:
        """Abandon the draft.  Nothing is persisted."""
        with self._exclusive("cancel"):
            if self._state == FinalizationState.ABORTED:
                return
            self._require_state(
                set(FinalizationState) - TERMINAL_STATES, "cancel"
            )
            previous = self._state
            self._transition(FinalizationState.ABORTED)

            draft_id = self._draft.draft_id
            self._draft = OrderDraft(draft_id=draft_id)
            self._pending = None
            self._verdict = None

            logger.info("finalization.cancelled", previous_state=str(previous))
            self._notifier.notify(
                NotificationSeverity.INFO,
                "Order entry cancelled.",
                draft_id=str(draft_id),
            )
            self.add_domain_event(
                FinalizationAborted(aggregate_id=draft_id, state=str(previous))
            )
            self._flush_events()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self, operation: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            if self._submitting:
                raise SubmissionInProgress(
                    f"Cannot {operation}: the draft is being submitted."
                )
            raise DraftBusy(f"Cannot {operation}: another operation is in progress.")
        try:
            with structlog.contextvars.bound_contextvars(
                draft_id=str(self._draft.draft_id), operation=operation
            ):
                yield
        finally:
            self._lock.release()

    def _require_state(self, allowed: set, operation: str) -> None:
        if self._state in allowed:
            return
        if self._state == FinalizationState.SUBMITTED:
            message = f"Cannot {operation}: the draft was already submitted."
        elif self._state == FinalizationState.ABORTED:
            message = f"Cannot {operation}: the draft was cancelled."
        else:
            message = f"Cannot {operation} in state {self._state}."
        raise InvalidFinalizationState(message, state=self._state)

    def _require_editable(self, operation: str) -> None:
        self._require_state({FinalizationState.DRAFT}, operation)

    def _transition(self, target: FinalizationState) -> None:
        if target not in VALID_TRANSITIONS[self._state]:
            raise InvalidFinalizationState(
                f"Cannot transition from {self._state} to {target}.",
                state=self._state,
            )
        logger.debug(
            "finalization.transition", from_state=str(self._state), to_state=str(target)
        )
        self._state = target

    def _select_customer(self, customer_id: str) -> CreditProfile:
        profile = self._customer_repo.get_credit_profile(customer_id)
        header = self._draft.header
        changes: Dict[str, Any] = {"customer_id": profile.customer_id or customer_id}
        if header.payment_terms is None:
            changes["payment_terms"] = profile.payment_terms
        self._draft.header = header.model_copy(update=changes)
        self._credit_profile = profile
        self._revalidate()
        logger.info(
            "finalization.customer_selected",
            customer_id=changes["customer_id"],
            credit_limit=str(profile.limit),
            current_balance=str(profile.current_balance),
        )
        return profile

    def _revalidate(self) -> None:
        """Project the payment verdict from the current draft."""
        if self._credit_profile is None:
            self._verdict = None
            return
        total = self._draft.preview_totals().total
        self._verdict = self._allocator.validate(
            total, self._instruments_for(total), self._credit_profile
        )

    def _instruments_for(self, total: Decimal) -> Tuple[PaymentInstrument, ...]:
        instruments = tuple(self._draft.payments.values())
        return instruments or (self._allocator.implicit_credit(total),)

    @staticmethod
    def _check_header(header: OrderHeader, draft: OrderDraft) -> None:
        if not header.customer_id:
            raise IncompleteOrder(
                "Please select a customer.", missing_fields=("customer_id",)
            )
        if not draft.lines:
            raise IncompleteOrder(
                "Please add at least one item.", missing_fields=("lines",)
            )
        if header.is_outstation:
            missing = []
            if header.delivery_date is None:
                missing.append("delivery_date")
            if not (header.delivery_address or "").strip():
                missing.append("delivery_address")
            if missing:
                raise IncompleteOrder(
                    "Outstation sales need a delivery date and address.",
                    missing_fields=missing,
                )

    def _resolve_lines(
        self, entries: List[CatalogEntry]
    ) -> Tuple[Tuple[OrderLine, ...], List[AmbiguityWarning]]:
        resolver = CatalogResolver(entries, strict=self._strict)
        order_lines: List[OrderLine] = []
        ambiguities: List[AmbiguityWarning] = []

        for request in self._draft.lines.values():
            try:
                resolution = resolver.resolve(request.selector_key, request.selection)
            except (ResolutionError, AmbiguousCatalogKey) as exc:
                exc.line_id = request.line_id
                raise
            if request.quantity <= 0:
                raise InvalidLine(
                    f"Quantity for {resolution.entry.product_name} must be "
                    f"greater than zero.",
                    line_id=request.line_id,
                )
            if request.unit_price < 0:
                raise InvalidLine(
                    f"Unit price for {resolution.entry.product_name} cannot be "
                    f"negative.",
                    line_id=request.line_id,
                )
            if resolution.ambiguity is not None:
                ambiguities.append(resolution.ambiguity)
            order_lines.append(OrderLine.from_resolution(request, resolution.entry))

        logger.info(
            "finalization.lines_resolved",
            line_count=len(order_lines),
            ambiguity_count=len(ambiguities),
        )
        return tuple(order_lines), ambiguities

    def _get_line(self, line_id: str) -> LineRequest:
        try:
            return self._draft.lines[line_id]
        except KeyError:
            raise DraftItemNotFound(f"Line {line_id} not found in draft.") from None

    def _get_payment(self, payment_id: str) -> PaymentInstrument:
        try:
            return self._draft.payments[payment_id]
        except KeyError:
            raise DraftItemNotFound(
                f"Payment {payment_id} not found in draft."
            ) from None

    def _flush_events(self) -> None:
        self._event_bus.publish_all(self.domain_events)
        self.clear_domain_events()


def _check_fields(op: str, changes: Dict[str, Any], editable: frozenset) -> None:
    unknown = sorted(set(changes) - editable)
    if unknown:
        raise UnknownDraftField(
            f"Cannot {op}: {', '.join(unknown)} cannot be changed.", fields=unknown
        )


def _as_selection(
    selection: Union[CatalogSelection, CatalogEntry, None],
) -> Optional[CatalogSelection]:
    if isinstance(selection, CatalogEntry):
        return CatalogSelection.from_entry(selection)
    return selection


def _confirmation_message(warnings: List[ReconciliationWarning]) -> str:
    details = "\n".join(warning.message for warning in warnings)
    return f"{len(warnings)} inventory warning(s) need confirmation:\n{details}"


def build_finalization_service(
    notifier: Optional[INotificationSink] = None,
) -> OrderFinalizationService:
    """Wire a service with the Django adapters and configured settings."""
    from django.conf import settings

    from modules.catalog.repositories import CatalogDjangoRepository
    from modules.customers.repositories import CustomerDjangoRepository
    from modules.notifications.sinks import build_notification_sink
    from modules.orders.repositories import OrderDjangoRepository

    return OrderFinalizationService(
        catalog_repository=CatalogDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        notifier=notifier or build_notification_sink(settings.ORDER_NOTIFICATION_SINK),
        allocator=PaymentAllocator(currency_symbol=settings.ORDER_CURRENCY_SYMBOL),
        strict_sku_resolution=settings.ORDER_STRICT_SKU_RESOLUTION,
    )
