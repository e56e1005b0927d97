"""
Booking Lifecycle
Transition table shared by the engine and the store
"""

from enum import Enum
from typing import Optional

from buzybees.models.booking import BookingStatus


class BookingAction(str, Enum):
    """Provider actions on a booking"""
    ACCEPT = "accept"
    REJECT = "reject"
    COMPLETE = "complete"


# action -> (required current status, resulting status)
ACTION_TRANSITIONS: dict[BookingAction, tuple[BookingStatus, BookingStatus]] = {
    BookingAction.ACCEPT: (BookingStatus.PENDING, BookingStatus.CONFIRMED),
    BookingAction.REJECT: (BookingStatus.PENDING, BookingStatus.CANCELLED),
    BookingAction.COMPLETE: (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
}

# Driven by other actors (scheduled jobs, staff apps), not by provider actions
EXTERNAL_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.NO_SHOW}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.NO_SHOW}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.NO_SHOW}),
}


def is_allowed_change(current: BookingStatus, target: BookingStatus) -> bool:
    """Whether any action or external transition moves current to target"""
    for required, result in ACTION_TRANSITIONS.values():
        if required == current and result == target:
            return True
    return target in EXTERNAL_TRANSITIONS.get(current, frozenset())


def action_target(action: BookingAction, current: BookingStatus) -> Optional[BookingStatus]:
    """Resulting status of an action, or None if not valid from current"""
    required, result = ACTION_TRANSITIONS[action]
    return result if current == required else None


def external_target(current: BookingStatus, target: BookingStatus) -> Optional[BookingStatus]:
    """Target status if an external transition allows it, else None"""
    if target in EXTERNAL_TRANSITIONS.get(current, frozenset()):
        return target
    return None
