"""
BuzyBees Data Models
Pydantic models for catalog, staff, bookings and derived views
"""

from buzybees.models.catalog import Service, ServiceOption, ServiceCatalog, BASE_ITEM_KEY
from buzybees.models.staff import StaffMember, ANY_STAFF_ID, any_available_staff, build_roster
from buzybees.models.discount import Discount, DiscountSelection
from buzybees.models.selection import SelectionSet, BookingDraft
from buzybees.models.booking import (
    Booking, BookingStatus, BookedItem, CustomerInfo, PriceBreakdown,
    StatusChange, TERMINAL_STATUSES
)
from buzybees.models.stats import QueueStats
from buzybees.models.invoice import Invoice, InvoiceLine

__all__ = [
    # Catalog
    "Service", "ServiceOption", "ServiceCatalog", "BASE_ITEM_KEY",
    # Staff
    "StaffMember", "ANY_STAFF_ID", "any_available_staff", "build_roster",
    # Discount
    "Discount", "DiscountSelection",
    # Selection
    "SelectionSet", "BookingDraft",
    # Booking
    "Booking", "BookingStatus", "BookedItem", "CustomerInfo", "PriceBreakdown",
    "StatusChange", "TERMINAL_STATUSES",
    # Derived
    "QueueStats", "Invoice", "InvoiceLine",
]
