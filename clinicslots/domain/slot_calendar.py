"""
Slot selection and calendar-building policy.

Pure domain logic (no API calls, no I/O): which days a window covers, which
slots count as future, which slot is "next", and how a day's slots are
partitioned and ordered. Every adapter and the aggregator share these rules
so results are independent of the provider that produced them.
"""

from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import pendulum
from pendulum import Date, DateTime

from .models import DaySlots, Slot


def to_pendulum_date(day: date) -> Date:
    """Return the given date as a pendulum Date."""
    if isinstance(day, Date):
        return day
    return pendulum.date(day.year, day.month, day.day)


def iter_days(start_date: date, end_date: date) -> Iterator[Date]:
    """
    Yield every calendar day in the inclusive range [start_date, end_date].

    Yields nothing when start_date is after end_date.
    """
    current = to_pendulum_date(start_date)
    last = to_pendulum_date(end_date)

    while current <= last:
        yield current
        current = current.add(days=1)


def date_window(start_date: date, length_days: int) -> List[Date]:
    """Return the `length_days` consecutive days starting at start_date."""
    if length_days <= 0:
        return []
    start = to_pendulum_date(start_date)
    return list(iter_days(start, start.add(days=length_days - 1)))


def filter_future(slots: Iterable[Slot], now: DateTime) -> List[Slot]:
    """Keep only slots starting strictly after `now`, preserving order."""
    return [slot for slot in slots if slot.start_time > now]


def sort_slots(slots: Iterable[Slot]) -> List[Slot]:
    """
    Order slots by ascending start time.

    Python's sort is stable, so slots sharing a start time keep the order
    the adapter produced them in.
    """
    return sorted(slots, key=lambda s: s.start_time)


def earliest_slot(slots: Iterable[Slot]) -> Optional[Slot]:
    """
    Return the slot with the minimum start time, or None if there are none.

    Ties resolve to the slot produced first.
    """
    earliest: Optional[Slot] = None
    for slot in slots:
        if earliest is None or slot.start_time < earliest.start_time:
            earliest = slot
    return earliest


def partition_by_modality(slots: Iterable[Slot]) -> DaySlots:
    """
    Split slots into the three modality lists, each in ascending start order.
    """
    day = DaySlots()
    for slot in sort_slots(slots):
        day.for_modality(slot.modality).append(slot)
    return day


def build_calendar(days: Iterable[Tuple[date, Iterable[Slot]]]) -> Dict[str, DaySlots]:
    """
    Build the calendar mapping from (day, slots) pairs.

    Keys are ISO date strings. Days without any slot are omitted, so a
    missing key means "nothing available".
    """
    calendar: Dict[str, DaySlots] = {}

    for day, slots in days:
        day_slots = partition_by_modality(slots)
        if day_slots.is_empty:
            continue
        calendar[to_pendulum_date(day).to_date_string()] = day_slots

    return calendar
