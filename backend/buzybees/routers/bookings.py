"""
Bookings API Router
Booking composition, provider lifecycle actions, invoices and queue stats
"""

import asyncio
import logging
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from buzybees.database import get_database
from buzybees.models.booking import Booking, BookingStatus
from buzybees.models.discount import Discount
from buzybees.models.invoice import Invoice
from buzybees.models.selection import SelectionSet
from buzybees.models.stats import QueueStats
from buzybees.schemas.bookings import (
    BookingCreateRequest, QuoteRequest, QuoteResponse, RejectRequest,
    SelectionPayload, StatusChangeRequest
)
from buzybees.schemas.common import ListResponse, MessageResponse, SingleResponse
from buzybees.services.booking_engine import BookingEngine
from buzybees.services.booking_store import MongoBookingStore
from buzybees.services.invoice_service import EmailInvoiceDelivery
from buzybees.utils.exceptions import ValidationError

router = APIRouter()
logger = logging.getLogger(__name__)

# One loaded engine per provider for the lifetime of the process
_engines: dict[str, BookingEngine] = {}
_engine_locks: dict[str, asyncio.Lock] = {}


async def get_booking_engine(
    provider_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> BookingEngine:
    """Dependency returning the provider's engine, loading it on first use"""
    engine = _engines.get(provider_id)
    if engine is not None:
        return engine

    # Concurrent first requests share a single load
    lock = _engine_locks.setdefault(provider_id, asyncio.Lock())
    async with lock:
        engine = _engines.get(provider_id)
        if engine is None:
            engine = BookingEngine(provider_id, MongoBookingStore(db), EmailInvoiceDelivery())
            await engine.load()
            _engines[provider_id] = engine
    return engine


def reset_engines() -> None:
    """Drop cached engines so the next request reloads from the store"""
    _engines.clear()
    _engine_locks.clear()


def resolve_discount(engine: BookingEngine, data: SelectionPayload) -> Optional[Discount]:
    """Map the requested discount id to the provider's active discount"""
    if not data.discount_id:
        return None
    discount = engine.active_discount
    if discount is None or discount.discount_id != data.discount_id:
        raise ValidationError(
            f"Discount '{data.discount_id}' is not currently offered",
            field="discount_id"
        )
    return discount


@router.post(
    "/{provider_id}/quote",
    response_model=SingleResponse[QuoteResponse],
    summary="Price a selection"
)
async def quote(
    data: QuoteRequest,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Price breakdown, duration and eligible staff for a selection"""
    selection = SelectionSet.from_mapping(data.selections)
    discount = resolve_discount(engine, data)

    return SingleResponse(data=QuoteResponse(
        price=engine.compute_breakdown(selection, discount),
        duration_minutes=engine.total_duration(selection),
        eligible_staff=engine.eligible_staff(selection)
    ))


@router.post(
    "/{provider_id}/bookings",
    response_model=SingleResponse[Booking],
    status_code=status.HTTP_201_CREATED,
    summary="Create booking"
)
async def create_booking(
    data: BookingCreateRequest,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Confirm a selection as a pending booking"""
    booking = await engine.confirm_booking(
        SelectionSet.from_mapping(data.selections),
        data.staff_id,
        discount=resolve_discount(engine, data),
        customer=data.customer,
        booking_date=data.booking_date,
        start_time=data.start_time,
        notes=data.notes
    )
    return SingleResponse(data=booking)


@router.get(
    "/{provider_id}/bookings",
    response_model=ListResponse[Booking],
    summary="List bookings"
)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    engine: BookingEngine = Depends(get_booking_engine)
):
    """List bookings newest first, optionally by status"""
    bookings = engine.bookings_by_status(status_filter)
    return ListResponse(data=bookings, count=len(bookings))


@router.get(
    "/{provider_id}/bookings/{booking_id}",
    response_model=SingleResponse[Booking],
    summary="Get booking"
)
async def get_booking(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Get booking by ID"""
    booking = engine.get_booking(booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "BOOKING_NOT_FOUND", "message": "Booking not found"}
        )
    return SingleResponse(data=booking)


@router.post(
    "/{provider_id}/bookings/{booking_id}/accept",
    response_model=SingleResponse[Booking],
    summary="Accept booking"
)
async def accept_booking(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine)
):
    return SingleResponse(data=await engine.accept(booking_id))


@router.post(
    "/{provider_id}/bookings/{booking_id}/reject",
    response_model=SingleResponse[Booking],
    summary="Reject booking"
)
async def reject_booking(
    booking_id: str,
    data: Optional[RejectRequest] = Body(None),
    engine: BookingEngine = Depends(get_booking_engine)
):
    reason = data.reason if data else None
    return SingleResponse(data=await engine.reject(booking_id, reason))


@router.post(
    "/{provider_id}/bookings/{booking_id}/complete",
    response_model=SingleResponse[Booking],
    summary="Complete booking"
)
async def complete_booking(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine)
):
    return SingleResponse(data=await engine.complete(booking_id))


@router.post(
    "/{provider_id}/bookings/{booking_id}/status",
    response_model=SingleResponse[Booking],
    summary="Report external status change"
)
async def change_status(
    booking_id: str,
    data: StatusChangeRequest,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Status change driven outside the provider actions (in progress, no-show)"""
    booking = await engine.external_transition(booking_id, data.status, data.note)
    return SingleResponse(data=booking)


@router.get(
    "/{provider_id}/bookings/{booking_id}/invoice",
    response_model=SingleResponse[Invoice],
    summary="Preview invoice"
)
async def preview_invoice(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine)
):
    return SingleResponse(data=engine.generate_invoice(booking_id))


@router.post(
    "/{provider_id}/bookings/{booking_id}/invoice/send",
    response_model=MessageResponse,
    summary="Send invoice"
)
async def send_invoice(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine)
):
    """Email the invoice; sending again re-delivers it"""
    await engine.send_invoice(booking_id)
    return MessageResponse(message="Invoice sent")


@router.get(
    "/{provider_id}/stats",
    response_model=SingleResponse[QueueStats],
    summary="Queue stats"
)
async def get_stats(engine: BookingEngine = Depends(get_booking_engine)):
    return SingleResponse(data=engine.get_stats())


@router.post(
    "/{provider_id}/stats/recompute",
    response_model=SingleResponse[QueueStats],
    summary="Recompute queue stats"
)
async def recompute_stats(engine: BookingEngine = Depends(get_booking_engine)):
    """Full recount over the booking collection"""
    stats = engine.recompute_stats()
    if stats != engine.get_stats():
        logger.error(f"Incremental stats diverged for provider {engine.provider_id}")
    return SingleResponse(data=stats)
