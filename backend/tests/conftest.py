"""
Test configuration and fixtures
"""

import copy
import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from buzybees.models.catalog import Service, ServiceCatalog, ServiceOption
from buzybees.models.discount import Discount
from buzybees.models.staff import StaffMember
from buzybees.services.booking_engine import BookingEngine
from buzybees.services.booking_store import MongoBookingStore
from buzybees.services.invoice_service import InvoiceDelivery

PROVIDER_ID = "prv_test123"

# A Wednesday; its week starts Monday 2026-10-12
TODAY = date(2026, 10, 14)


# Mock database
class MockCollection:
    """Mock Motor collection"""

    def __init__(self):
        self.data = {}
        self.counter = 0

    def seed(self, docs: list[dict]):
        for doc in docs:
            self.counter += 1
            self.data[f"mock_id_{self.counter}"] = dict(doc, _id=f"mock_id_{self.counter}")

    async def find_one(self, query: dict, *args, sort=None, **kwargs):
        docs = MockCursor([d for d in self.data.values() if self._match(d, query)])
        if sort:
            docs.sort(sort)
        results = await docs.to_list(length=1)
        return results[0] if results else None

    def find(self, query: dict = None, *args, **kwargs):
        results = []
        for doc in self.data.values():
            if query is None or self._match(doc, query):
                results.append(doc)
        return MockCursor(results)

    async def insert_one(self, doc: dict):
        self.counter += 1
        doc_id = doc.get("_id") or f"mock_id_{self.counter}"
        doc["_id"] = doc_id
        self.data[doc_id] = copy.deepcopy(doc)
        return MagicMock(inserted_id=doc_id)

    async def update_one(self, query: dict, update: dict, upsert: bool = False, **kwargs):
        for doc in self.data.values():
            if self._match(doc, query):
                doc.update(copy.deepcopy(update.get("$set", {})))
                for key, amount in update.get("$inc", {}).items():
                    doc[key] = doc.get(key, 0) + amount
                return MagicMock(modified_count=1, matched_count=1, upserted_id=None)

        if upsert:
            doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            doc.update(update.get("$setOnInsert", {}))
            doc.update(update.get("$set", {}))
            for key, amount in update.get("$inc", {}).items():
                doc[key] = doc.get(key, 0) + amount
            result = await self.insert_one(doc)
            return MagicMock(modified_count=0, matched_count=0, upserted_id=result.inserted_id)
        return MagicMock(modified_count=0, matched_count=0, upserted_id=None)

    async def count_documents(self, query: dict = None):
        return len([d for d in self.data.values() if query is None or self._match(d, query)])

    async def create_index(self, *args, **kwargs):
        return "mock_index"

    def _match(self, doc: dict, query: dict) -> bool:
        for key, value in query.items():
            if key not in doc:
                return False
            if isinstance(value, dict):
                # Handle operators
                for op, op_val in value.items():
                    if op == "$ne" and doc[key] == op_val:
                        return False
                    elif op == "$eq" and doc[key] != op_val:
                        return False
                    elif op == "$in" and doc[key] not in op_val:
                        return False
            elif doc[key] != value:
                return False
        return True


class MockCursor:
    """Mock Motor cursor"""

    def __init__(self, data: list):
        self._data = [copy.deepcopy(d) for d in data]
        self._skip = 0
        self._limit = None

    def skip(self, n: int):
        self._skip = n
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def sort(self, key_or_list, direction: int = 1):
        if isinstance(key_or_list, str):
            keys = [(key_or_list, direction)]
        else:
            keys = list(key_or_list)
        # Stable sorts, least significant key first
        for key, order in reversed(keys):
            self._data.sort(
                key=lambda d: (d.get(key) is None, d.get(key)),
                reverse=order < 0
            )
        return self

    async def to_list(self, length: int = None):
        data = self._data[self._skip:]
        if self._limit:
            data = data[:self._limit]
        if length:
            data = data[:length]
        return data


class MockDatabase:
    """Mock Motor database"""

    def __init__(self):
        self._collections = {}

    def __getattr__(self, name: str):
        if name.startswith("_"):
            return super().__getattribute__(name)
        if name not in self._collections:
            self._collections[name] = MockCollection()
        return self._collections[name]


@pytest.fixture
def mock_db():
    """Create an empty mock database"""
    return MockDatabase()


@pytest.fixture
def staff_a():
    """Staff member assigned to Haircut"""
    return StaffMember(staff_id="stf_a", name="Anna", role="Stylist", specialties=["Haircut"])


@pytest.fixture
def staff_b():
    """Staff member assigned to Manicure"""
    return StaffMember(staff_id="stf_b", name="Bella", role="Nail technician", specialties=["Manicure"])


@pytest.fixture
def roster(staff_a, staff_b):
    return [staff_a, staff_b]


@pytest.fixture
def services():
    """Catalog services of the test provider"""
    return [
        Service(
            service_id="svc_manicure",
            provider_id=PROVIDER_ID,
            name="Manicure",
            base_price=50,
            base_duration_minutes=30,
            options=[
                ServiceOption(option_id="opt_gel", service_id="svc_manicure", name="Gel Polish",
                              price=30, duration_minutes=15, sort_order=1),
                ServiceOption(option_id="opt_art", service_id="svc_manicure", name="Nail Art",
                              price=25, duration_minutes=20, sort_order=2),
                ServiceOption(option_id="opt_retired", service_id="svc_manicure", name="Paraffin",
                              price=40, duration_minutes=10, sort_order=3, is_active=False),
            ],
            assigned_staff_ids=["stf_b"]
        ),
        Service(
            service_id="svc_haircut",
            provider_id=PROVIDER_ID,
            name="Haircut",
            base_price=300,
            base_duration_minutes=45,
            options=[
                ServiceOption(option_id="opt_wash", service_id="svc_haircut", name="Wash & Blow Dry",
                              price=120, duration_minutes=20),
            ],
            assigned_staff_ids=["stf_a"]
        ),
        Service(
            service_id="svc_massage",
            provider_id=PROVIDER_ID,
            name="Massage",
            base_price=450,
            base_duration_minutes=60
        ),
    ]


@pytest.fixture
def catalog(services):
    return ServiceCatalog(provider_id=PROVIDER_ID, services=services)


@pytest.fixture
def discount():
    """20% off the whole booking"""
    return Discount(discount_id="dsc_autumn", title="Autumn offer", percentage=20)


@pytest.fixture
def seeded_db(mock_db, services, roster, discount):
    """Mock database holding the test provider's catalog, staff and discount"""
    mock_db.services.seed([s.model_dump(mode="json") for s in services])
    mock_db.staff.seed([
        {**member.model_dump(mode="json"), "provider_id": PROVIDER_ID, "is_active": True,
         "created_at": f"2026-01-0{i + 1}T09:00:00Z"}
        for i, member in enumerate(reversed(roster))
    ])
    mock_db.discounts.seed([
        {**discount.model_dump(mode="json"), "provider_id": PROVIDER_ID, "is_active": True,
         "created_at": "2026-10-01T08:00:00Z"}
    ])
    return mock_db


@pytest.fixture
def store(seeded_db):
    return MongoBookingStore(seeded_db)


@pytest.fixture
def delivery():
    """Invoice delivery that always succeeds"""
    return AsyncMock(spec=InvoiceDelivery)


@pytest.fixture
def engine(store, delivery):
    """Engine for the test provider with a fixed calendar day; call load() first"""
    return BookingEngine(PROVIDER_ID, store, delivery, clock=lambda: TODAY, currency="SEK")


@pytest.fixture
async def loaded_engine(engine):
    await engine.load()
    return engine
