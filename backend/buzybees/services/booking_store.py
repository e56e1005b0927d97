"""
Booking Store
Persistence collaborator of the booking engine and its MongoDB implementation
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from buzybees.models.booking import Booking, BookingStatus
from buzybees.models.catalog import Service, ServiceCatalog
from buzybees.models.common import utc_now
from buzybees.models.discount import Discount
from buzybees.models.staff import StaffMember
from buzybees.services.lifecycle import is_allowed_change
from buzybees.utils.exceptions import (
    ExternalStoreError, InvalidTransitionError, TransitionRejection
)

logger = logging.getLogger(__name__)


class BookingStore(ABC):
    """Operations the engine needs from persistent storage"""

    @abstractmethod
    async def fetch_catalog(self, provider_id: str) -> ServiceCatalog:
        """Services with nested options and staff assignments"""
        raise NotImplementedError

    @abstractmethod
    async def fetch_staff_roster(self, provider_id: str) -> list[StaffMember]:
        """Active staff; never includes the "any" sentinel"""
        raise NotImplementedError

    @abstractmethod
    async def fetch_active_discount(self, provider_id: str) -> Optional[Discount]:
        raise NotImplementedError

    @abstractmethod
    async def create_booking(self, booking: Booking) -> Booking:
        """Persist a new pending booking and return the stored copy"""
        raise NotImplementedError

    @abstractmethod
    async def update_booking_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        reason_note: Optional[str] = None,
        expected_status: Optional[BookingStatus] = None
    ) -> Booking:
        """
        Move a booking to new_status

        Must refuse changes outside the transition table. When
        expected_status is given, the write only applies if the stored
        status still equals it.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_bookings(self, provider_id: str) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def persist_invoice_dispatch(self, provider_id: str, booking_id: str) -> None:
        """Record that an invoice was sent; repeated calls re-confirm it"""
        raise NotImplementedError

    @abstractmethod
    async def load_invoice_dispatch_record(self, provider_id: str) -> set[str]:
        raise NotImplementedError


class MongoBookingStore(BookingStore):
    """BookingStore backed by MongoDB collections"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @asynccontextmanager
    async def _guard(self, operation: str):
        """Surface driver and document errors as ExternalStoreError"""
        try:
            yield
        except PyMongoError as e:
            logger.error(f"MongoDB error during {operation}: {e}")
            raise ExternalStoreError(operation, f"Database error during {operation}") from e
        except PydanticValidationError as e:
            logger.error(f"Malformed document during {operation}: {e}")
            raise ExternalStoreError(operation, f"Malformed document during {operation}") from e

    async def fetch_catalog(self, provider_id: str) -> ServiceCatalog:
        async with self._guard("fetch_catalog"):
            cursor = self.db.services.find({
                "provider_id": provider_id,
                "is_active": True
            }).sort("name", 1)
            docs = await cursor.to_list(length=500)
            return ServiceCatalog(
                provider_id=provider_id,
                services=[Service(**doc) for doc in docs]
            )

    async def fetch_staff_roster(self, provider_id: str) -> list[StaffMember]:
        async with self._guard("fetch_staff_roster"):
            cursor = self.db.staff.find({
                "provider_id": provider_id,
                "is_active": True
            }).sort("created_at", -1)
            docs = await cursor.to_list(length=200)
            return [StaffMember(**doc) for doc in docs]

    async def fetch_active_discount(self, provider_id: str) -> Optional[Discount]:
        async with self._guard("fetch_active_discount"):
            doc = await self.db.discounts.find_one(
                {"provider_id": provider_id, "is_active": True},
                sort=[("created_at", -1)]
            )
            return Discount(**doc) if doc else None

    async def create_booking(self, booking: Booking) -> Booking:
        async with self._guard("create_booking"):
            await self.db.bookings.insert_one(booking.model_dump(mode="json"))
            logger.info(f"Booking stored: {booking.booking_id}")
            return booking

    async def update_booking_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        reason_note: Optional[str] = None,
        expected_status: Optional[BookingStatus] = None
    ) -> Booking:
        async with self._guard("update_booking_status"):
            doc = await self.db.bookings.find_one({"booking_id": booking_id})
            if not doc:
                raise InvalidTransitionError(booking_id, TransitionRejection.NOT_FOUND)

            current = Booking(**doc)
            if expected_status is not None and current.status != expected_status:
                raise ExternalStoreError(
                    "update_booking_status",
                    f"Booking {booking_id} is {current.status.value} in the store, "
                    f"expected {expected_status.value}"
                )
            if not is_allowed_change(current.status, new_status):
                raise InvalidTransitionError(
                    booking_id,
                    TransitionRejection.WRONG_STATE,
                    action=new_status.value,
                    current_status=current.status.value
                )

            updated = current.with_status(new_status, reason_note)
            result = await self.db.bookings.update_one(
                {"booking_id": booking_id, "status": current.status.value},
                {"$set": updated.model_dump(mode="json")}
            )
            if result.matched_count == 0:
                raise ExternalStoreError(
                    "update_booking_status",
                    f"Booking {booking_id} changed while updating"
                )
            return updated

    async def fetch_bookings(self, provider_id: str) -> list[Booking]:
        async with self._guard("fetch_bookings"):
            cursor = self.db.bookings.find({"provider_id": provider_id}).sort("created_at", -1)
            docs = await cursor.to_list(length=None)
            return [Booking(**doc) for doc in docs]

    async def persist_invoice_dispatch(self, provider_id: str, booking_id: str) -> None:
        async with self._guard("persist_invoice_dispatch"):
            now = utc_now()
            await self.db.invoice_dispatches.update_one(
                {"provider_id": provider_id, "booking_id": booking_id},
                {
                    "$set": {"last_sent_at": now},
                    "$setOnInsert": {"first_sent_at": now},
                    "$inc": {"send_count": 1}
                },
                upsert=True
            )

    async def load_invoice_dispatch_record(self, provider_id: str) -> set[str]:
        async with self._guard("load_invoice_dispatch_record"):
            cursor = self.db.invoice_dispatches.find({"provider_id": provider_id})
            docs = await cursor.to_list(length=None)
            return {doc["booking_id"] for doc in docs}
