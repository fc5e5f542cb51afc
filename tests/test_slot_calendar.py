"""
Tests for slot selection and calendar-building policy.
"""

from datetime import date

import pendulum

from clinicslots.domain.models import Modality, Slot
from clinicslots.domain.slot_calendar import (
    build_calendar,
    date_window,
    earliest_slot,
    filter_future,
    iter_days,
    partition_by_modality,
)

TZ = "America/Toronto"


def _slot(start: str, modality: Modality = Modality.IN_PERSON, slot_id: str | None = None) -> Slot:
    start_time = pendulum.parse(start, tz=TZ)
    return Slot(start_time=start_time, end_time=start_time, modality=modality, provider_slot_id=slot_id)


class TestDayIteration:
    """Tests for date range helpers."""

    def test_iter_days_is_inclusive(self):
        """Both the first and last day are part of the range."""
        days = list(iter_days(date(2025, 11, 3), date(2025, 11, 5)))

        assert [d.to_date_string() for d in days] == ["2025-11-03", "2025-11-04", "2025-11-05"]

    def test_iter_days_single_day(self):
        """A range starting and ending on the same day has one day."""
        assert len(list(iter_days(date(2025, 11, 3), date(2025, 11, 3)))) == 1

    def test_iter_days_reversed_range_is_empty(self):
        """A start after the end yields nothing."""
        assert list(iter_days(date(2025, 11, 5), date(2025, 11, 3))) == []

    def test_date_window_crosses_month_end(self):
        """Windows roll over month boundaries."""
        days = date_window(date(2025, 10, 30), 4)

        assert [d.to_date_string() for d in days] == ["2025-10-30", "2025-10-31", "2025-11-01", "2025-11-02"]

    def test_date_window_non_positive_length(self):
        """Zero or negative lengths give an empty window."""
        assert date_window(date(2025, 11, 3), 0) == []


class TestSelection:
    """Tests for future filtering and next-slot selection."""

    def test_filter_future_is_strict(self):
        """A slot starting exactly now is not in the future."""
        now = pendulum.parse("2025-11-03 09:00", tz=TZ)
        slots = [_slot("2025-11-03 08:45"), _slot("2025-11-03 09:00"), _slot("2025-11-03 09:15")]

        assert filter_future(slots, now) == [slots[2]]

    def test_filter_future_across_timezones(self):
        """Comparisons use absolute instants, not wall-clock times."""
        now = pendulum.parse("2025-11-03 14:00", tz="UTC")  # 09:00 in Toronto
        slot = _slot("2025-11-03 09:30")

        assert filter_future([slot], now) == [slot]

    def test_earliest_slot(self):
        """The minimum start time wins regardless of modality."""
        slots = [
            _slot("2025-11-04 10:00", Modality.VIDEO),
            _slot("2025-11-03 16:00", Modality.PHONE),
            _slot("2025-11-05 09:00"),
        ]

        assert earliest_slot(slots) is slots[1]

    def test_earliest_slot_tie_keeps_first(self):
        """Identical start times resolve to the slot produced first."""
        first = _slot("2025-11-03 09:00", slot_id="a")
        second = _slot("2025-11-03 09:00", slot_id="b")

        assert earliest_slot([first, second]).provider_slot_id == "a"

    def test_earliest_slot_empty(self):
        """No slots means no next slot."""
        assert earliest_slot([]) is None


class TestCalendar:
    """Tests for modality partitioning and calendar mapping."""

    def test_partition_orders_each_modality(self):
        """Each modality list is sorted by start time."""
        day = partition_by_modality([
            _slot("2025-11-03 11:00"),
            _slot("2025-11-03 14:00", Modality.PHONE),
            _slot("2025-11-03 09:00"),
            _slot("2025-11-03 13:00", Modality.PHONE),
        ])

        assert [s.start_time.hour for s in day.in_person] == [9, 11]
        assert [s.start_time.hour for s in day.phone] == [13, 14]
        assert day.video == []

    def test_partition_is_stable_for_ties(self):
        """Slots sharing a start time keep the adapter's order."""
        day = partition_by_modality([
            _slot("2025-11-03 10:00", slot_id="late"),
            _slot("2025-11-03 09:00", slot_id="first"),
            _slot("2025-11-03 09:00", slot_id="second"),
        ])

        assert [s.provider_slot_id for s in day.in_person] == ["first", "second", "late"]

    def test_build_calendar_omits_empty_days(self):
        """Days without slots have no key."""
        calendar = build_calendar([
            (date(2025, 11, 3), [_slot("2025-11-03 09:00")]),
            (date(2025, 11, 4), []),
            (date(2025, 11, 5), [_slot("2025-11-05 15:00", Modality.VIDEO)]),
        ])

        assert list(calendar) == ["2025-11-03", "2025-11-05"]
        assert calendar["2025-11-05"].video[0].modality is Modality.VIDEO
