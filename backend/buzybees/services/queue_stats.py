"""
Queue Stats Service
Per-status counts and revenue, maintained incrementally and by full recount
"""

import logging
from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from buzybees.models.booking import Booking, BookingStatus
from buzybees.models.common import utc_now
from buzybees.models.stats import QueueStats

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return utc_now().date()


def week_start(today: date) -> date:
    """Monday of the week containing today"""
    return today - timedelta(days=today.weekday())


def revenue_windows(booking: Booking, today: date) -> tuple[bool, bool]:
    """(counts for today, counts for this week) for a completed booking"""
    if booking.status != BookingStatus.COMPLETED:
        return False, False
    day = booking.revenue_date
    return day == today, week_start(today) <= day <= today


def group_by_status(
    bookings: Iterable[Booking]
) -> dict[BookingStatus, list[Booking]]:
    """Bucket bookings by status; every status gets a (possibly empty) list"""
    groups: dict[BookingStatus, list[Booking]] = {s: [] for s in BookingStatus}
    for booking in bookings:
        groups[booking.status].append(booking)
    return groups


def recompute_stats(bookings: Iterable[Booking], today: Optional[date] = None) -> QueueStats:
    """Derive stats from scratch by scanning the whole collection"""
    today = today or utc_today()
    groups = group_by_status(bookings)

    today_revenue = 0
    weekly_revenue = 0
    for booking in groups[BookingStatus.COMPLETED]:
        in_today, in_week = revenue_windows(booking, today)
        if in_today:
            today_revenue += booking.amount
        if in_week:
            weekly_revenue += booking.amount

    counts = {s: len(items) for s, items in groups.items()}
    return QueueStats(
        counts=counts,
        total_bookings=sum(counts.values()),
        today_revenue=today_revenue,
        weekly_revenue=weekly_revenue,
        as_of=today
    )


class QueueAggregator:
    """
    Incrementally maintained QueueStats

    The incremental value must always equal recompute_stats() over the
    same bookings; reset() re-derives it from the collection.
    """

    def __init__(self, clock: Callable[[], date] = utc_today):
        self._clock = clock
        self._stats = QueueStats(as_of=clock())

    @property
    def stats(self) -> QueueStats:
        return self._stats.model_copy(deep=True)

    def is_stale(self) -> bool:
        """Revenue windows were computed for an earlier day"""
        return self._stats.as_of != self._clock()

    def reset(self, bookings: Iterable[Booking]) -> QueueStats:
        self._stats = recompute_stats(bookings, self._clock())
        return self.stats

    def record_created(self, booking: Booking) -> None:
        stats = self._stats.model_copy(deep=True)
        stats.counts[booking.status] += 1
        stats.total_bookings += 1
        self._add_revenue(stats, booking)
        self._stats = stats

    def record_transition(self, before: Booking, after: Booking) -> None:
        """Move one booking between status buckets"""
        if before.status == after.status:
            return
        stats = self._stats.model_copy(deep=True)
        stats.counts[before.status] -= 1
        stats.counts[after.status] += 1
        self._add_revenue(stats, after)
        self._stats = stats
        logger.debug(
            f"Stats updated for {after.booking_id}: {before.status.value} -> {after.status.value}"
        )

    @staticmethod
    def _add_revenue(stats: QueueStats, booking: Booking) -> None:
        in_today, in_week = revenue_windows(booking, stats.as_of)
        if in_today:
            stats.today_revenue += booking.amount
        if in_week:
            stats.weekly_revenue += booking.amount
