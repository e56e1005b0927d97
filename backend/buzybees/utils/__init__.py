"""
Utility modules for the booking engine
"""

from buzybees.utils.exceptions import (
    BookingEngineException,
    ValidationError,
    CatalogMismatchError,
    InvalidTransitionError,
    ExternalStoreError,
    TransitionRejection,
)

__all__ = [
    "BookingEngineException",
    "ValidationError",
    "CatalogMismatchError",
    "InvalidTransitionError",
    "ExternalStoreError",
    "TransitionRejection",
]
