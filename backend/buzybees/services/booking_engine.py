"""
Booking Engine
Host-facing composition, confirmation and lifecycle of one provider's bookings
"""

import logging
from datetime import date
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from buzybees.config import get_settings
from buzybees.models.booking import Booking, BookingStatus, CustomerInfo, PriceBreakdown
from buzybees.models.catalog import ServiceCatalog
from buzybees.models.discount import Discount
from buzybees.models.invoice import Invoice
from buzybees.models.selection import BookingDraft, SelectionSet
from buzybees.models.staff import StaffMember, build_roster
from buzybees.models.stats import QueueStats
from buzybees.services import pricing
from buzybees.services.booking_store import BookingStore
from buzybees.services.invoice_service import (
    InvoiceDelivery, InvoiceDispatchRecord, generate_invoice
)
from buzybees.services.lifecycle import BookingAction, action_target, external_target
from buzybees.services.queue_stats import (
    QueueAggregator, group_by_status, recompute_stats, utc_today
)
from buzybees.services.staff_eligibility import eligible_staff
from buzybees.utils.exceptions import (
    BookingEngineException, ExternalStoreError, InvalidTransitionError,
    TransitionRejection, ValidationError
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def calculate_end_time(start_time: str, duration_minutes: int) -> str:
    """HH:MM end of a booking starting at start_time"""
    try:
        start_hour, start_min = map(int, start_time.split(":"))
    except ValueError:
        raise ValidationError(f"Invalid start time '{start_time}', expected HH:MM", field="start_time")
    if not (0 <= start_hour < 24 and 0 <= start_min < 60):
        raise ValidationError(f"Invalid start time '{start_time}', expected HH:MM", field="start_time")

    end_minutes = start_hour * 60 + start_min + duration_minutes
    if end_minutes >= 24 * 60:
        raise ValidationError("Booking must end before midnight", field="start_time")
    return f"{end_minutes // 60:02d}:{end_minutes % 60:02d}"


class BookingEngine:
    """
    Booking composition and fulfillment for one provider

    Pricing and staff eligibility are pure functions over the loaded
    catalog and roster. Status changes are applied locally only after
    the store accepted them, together with their stats side effects.
    """

    def __init__(
        self,
        provider_id: str,
        store: BookingStore,
        delivery: Optional[InvoiceDelivery] = None,
        clock: Callable[[], date] = utc_today,
        currency: Optional[str] = None
    ):
        self.provider_id = provider_id
        self._store = store
        self._delivery = delivery
        self._clock = clock
        self._currency = currency or get_settings().CURRENCY

        self.catalog = ServiceCatalog(provider_id=provider_id)
        self.roster: list[StaffMember] = build_roster([])
        self.active_discount: Optional[Discount] = None

        self._bookings: dict[str, Booking] = {}
        self._in_flight: set[str] = set()
        self._invoices = InvoiceDispatchRecord()
        self._aggregator = QueueAggregator(clock)

    async def _external(self, operation: str, call: Awaitable[T]) -> T:
        """Await a collaborator call, wrapping unknown failures"""
        try:
            return await call
        except BookingEngineException:
            raise
        except Exception as e:
            logger.error(f"{operation} failed for provider {self.provider_id}: {e}")
            raise ExternalStoreError(operation, f"{operation} failed: {e}") from e

    async def load(self) -> None:
        """Fetch catalog, staff, discount, bookings and invoice record"""
        catalog = await self._external("fetch_catalog", self._store.fetch_catalog(self.provider_id))
        staff = await self._external("fetch_staff_roster", self._store.fetch_staff_roster(self.provider_id))
        discount = await self._external(
            "fetch_active_discount", self._store.fetch_active_discount(self.provider_id)
        )
        bookings = await self._external("fetch_bookings", self._store.fetch_bookings(self.provider_id))
        sent = await self._external(
            "load_invoice_dispatch_record",
            self._store.load_invoice_dispatch_record(self.provider_id)
        )

        if discount is not None:
            pricing.validate_discount(discount)

        self.catalog = catalog
        self.roster = build_roster(staff)
        self.active_discount = discount
        self._bookings = {b.booking_id: b for b in bookings}
        self._invoices.merge(sent)
        self._aggregator.reset(self._bookings.values())

        logger.info(
            f"Loaded provider {self.provider_id}: {len(catalog.services)} services, "
            f"{len(staff)} staff, {len(bookings)} bookings"
        )

    # Composition

    @staticmethod
    def toggle_selection(selection: SelectionSet, service_name: str, item_key: str) -> bool:
        return selection.toggle_item(service_name, item_key)

    @staticmethod
    def is_selection_empty(selection: SelectionSet) -> bool:
        return selection.is_empty()

    def apply_discount(self, draft: BookingDraft) -> Optional[Discount]:
        """Toggle the provider's active discount on a draft"""
        if self.active_discount is None:
            raise ValidationError("No discount is currently offered", field="discount")
        return draft.apply_discount(self.active_discount)

    def compute_breakdown(
        self,
        selection: SelectionSet,
        discount: Optional[Discount] = None
    ) -> PriceBreakdown:
        return pricing.compute_breakdown(selection, self.catalog, discount)

    def total_duration(self, selection: SelectionSet) -> int:
        return pricing.total_duration(selection, self.catalog)

    def eligible_staff(self, selection: SelectionSet) -> list[StaffMember]:
        return eligible_staff(selection, self.roster, self.catalog.staff_assignments())

    def find_staff(self, staff_id: str) -> Optional[StaffMember]:
        for member in self.roster:
            if member.staff_id == staff_id:
                return member
        return None

    async def confirm_booking(
        self,
        selection: SelectionSet,
        staff_id: Optional[str],
        discount: Optional[Discount] = None,
        customer: Optional[CustomerInfo] = None,
        booking_date: Optional[date] = None,
        start_time: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Booking:
        """Create a pending booking priced at confirmation time"""
        if selection.is_empty():
            raise ValidationError("Please select at least one service", field="selection")
        if not staff_id:
            raise ValidationError("Please select a staff member", field="staff_id")

        items = pricing.booked_items(selection, self.catalog)
        price = pricing.breakdown_for_subtotal(sum(i.price for i in items), discount)
        duration = sum(i.duration_minutes for i in items)
        end_time = calculate_end_time(start_time, duration) if start_time else None

        if notes is None:
            staff = self.find_staff(staff_id)
            notes = (
                f"Booking with {staff.name if staff else staff_id} for "
                f"{', '.join(i.name for i in items)}"
            )
            if discount is not None:
                notes += f" ({discount.percentage:g}% discount applied)"

        booking = Booking(
            provider_id=self.provider_id,
            selections=selection.as_dict(),
            items=items,
            staff_id=staff_id,
            discount_id=discount.discount_id if discount else None,
            price=price,
            amount=price.final_total,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=duration,
            customer=customer or CustomerInfo(),
            notes=notes
        )

        created = await self._external("create_booking", self._store.create_booking(booking))
        if created.status != BookingStatus.PENDING:
            raise ExternalStoreError(
                "create_booking",
                f"Store created booking {created.booking_id} as {created.status.value}"
            )

        self._bookings[created.booking_id] = created
        self._aggregator.record_created(created)
        logger.info(f"Booking created: {created.booking_id} amount={created.amount}")
        return created

    # Lifecycle

    async def accept(self, booking_id: str) -> Booking:
        return await self._run_action(booking_id, BookingAction.ACCEPT)

    async def reject(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        return await self._run_action(booking_id, BookingAction.REJECT, reason or "Provider declined")

    async def complete(self, booking_id: str) -> Booking:
        return await self._run_action(booking_id, BookingAction.COMPLETE)

    async def external_transition(
        self,
        booking_id: str,
        status: BookingStatus,
        note: Optional[str] = None
    ) -> Booking:
        """Status change driven by another actor (in_progress, no_show)"""
        return await self._transition(
            booking_id,
            status.value,
            lambda current: external_target(current, status),
            note
        )

    async def _run_action(
        self,
        booking_id: str,
        action: BookingAction,
        note: Optional[str] = None
    ) -> Booking:
        return await self._transition(
            booking_id,
            action.value,
            lambda current: action_target(action, current),
            note
        )

    async def _transition(
        self,
        booking_id: str,
        action: str,
        resolve: Callable[[BookingStatus], Optional[BookingStatus]],
        note: Optional[str]
    ) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise InvalidTransitionError(booking_id, TransitionRejection.NOT_FOUND, action)
        if booking_id in self._in_flight:
            raise InvalidTransitionError(
                booking_id, TransitionRejection.IN_FLIGHT, action, booking.status.value
            )

        target = resolve(booking.status)
        if target is None:
            logger.warning(f"Refused {action} on {booking_id} in status {booking.status.value}")
            raise InvalidTransitionError(
                booking_id, TransitionRejection.WRONG_STATE, action, booking.status.value
            )

        self._in_flight.add(booking_id)
        try:
            updated = await self._external(
                "update_booking_status",
                self._store.update_booking_status(
                    booking_id, target, note, expected_status=booking.status
                )
            )
            if updated.status != target:
                raise ExternalStoreError(
                    "update_booking_status",
                    f"Store moved {booking_id} to {updated.status.value}, expected {target.value}"
                )
            self._bookings[booking_id] = updated
            self._aggregator.record_transition(booking, updated)
        finally:
            self._in_flight.discard(booking_id)

        logger.info(f"Booking {booking_id}: {booking.status.value} -> {target.value} ({action})")
        return updated

    def is_processing(self, booking_id: str) -> bool:
        return booking_id in self._in_flight

    # Invoices

    def _completed_booking(self, booking_id: str, action: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise InvalidTransitionError(booking_id, TransitionRejection.NOT_FOUND, action)
        if booking.status != BookingStatus.COMPLETED:
            raise InvalidTransitionError(
                booking_id, TransitionRejection.WRONG_STATE, action, booking.status.value
            )
        return booking

    def generate_invoice(self, booking_id: str) -> Invoice:
        booking = self._completed_booking(booking_id, "generate_invoice")
        return generate_invoice(booking, self._currency)

    async def send_invoice(self, booking_id: str) -> None:
        """Deliver the invoice, then persist and record the dispatch"""
        invoice = self.generate_invoice(booking_id)
        if self._delivery is None:
            raise ExternalStoreError("deliver_invoice", "No invoice delivery configured")

        resend = booking_id in self._invoices
        await self._external("deliver_invoice", self._delivery.deliver(invoice))
        await self._external(
            "persist_invoice_dispatch",
            self._store.persist_invoice_dispatch(self.provider_id, booking_id)
        )
        self._invoices.add(booking_id)
        logger.info(f"Invoice {invoice.invoice_number} {'re-sent' if resend else 'sent'}")

    def invoice_sent(self, booking_id: str) -> bool:
        return booking_id in self._invoices

    @property
    def invoice_dispatch_record(self) -> frozenset[str]:
        return self._invoices.ids

    # Stats and queries

    def get_stats(self) -> QueueStats:
        if self._aggregator.is_stale():
            self._aggregator.reset(self._bookings.values())
        return self._aggregator.stats

    def recompute_stats(self, bookings: Optional[Iterable[Booking]] = None) -> QueueStats:
        if bookings is None:
            bookings = self._bookings.values()
        return recompute_stats(bookings, self._clock())

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    @property
    def bookings(self) -> list[Booking]:
        return list(self._bookings.values())

    def bookings_by_status(self, status: Optional[BookingStatus] = None) -> list[Booking]:
        """Newest first; filtering uses the same grouping as the stats"""
        if status is None:
            selected = self.bookings
        else:
            selected = group_by_status(self._bookings.values())[status]
        return sorted(selected, key=lambda b: b.created_at, reverse=True)
