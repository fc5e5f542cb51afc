"""
Tests for domain models.
"""

import dataclasses

import pendulum
import pytest

from clinicslots.domain.models import BookingConfig, DaySlots, Modality, Slot


def _slot(start: str, modality: Modality = Modality.IN_PERSON, **kwargs) -> Slot:
    start_time = pendulum.parse(start, tz="America/Toronto")
    return Slot(start_time=start_time, end_time=kwargs.pop("end_time", start_time), modality=modality, **kwargs)


class TestSlot:
    """Tests for Slot model."""

    def test_create_slot_without_duration(self):
        """A slot may end when it starts when the provider reports no duration."""
        slot = _slot("2025-11-03 09:00")

        assert slot.end_time == slot.start_time
        assert slot.duration_minutes() == 0

    def test_end_before_start_raises_error(self):
        """Test that a slot ending before it starts raises ValueError."""
        with pytest.raises(ValueError, match="must not be before start time"):
            _slot("2025-11-03 09:00", end_time=pendulum.parse("2025-11-03 08:00", tz="America/Toronto"))

    def test_slot_is_immutable(self):
        """Slots cannot be modified once produced."""
        slot = _slot("2025-11-03 09:00")

        with pytest.raises(dataclasses.FrozenInstanceError):
            slot.modality = Modality.VIDEO  # type: ignore[misc]

    def test_raw_payload_ignored_for_equality(self):
        """The diagnostic payload does not take part in comparisons."""
        first = _slot("2025-11-03 09:00", raw={"value": "a"})
        second = _slot("2025-11-03 09:00", raw={"value": "b"})

        assert first == second

    def test_modality_values(self):
        """Modality values match the normalized names."""
        assert [m.value for m in Modality] == ["in-person", "phone", "video"]
        assert Modality("phone") is Modality.PHONE


class TestDaySlots:
    """Tests for DaySlots model."""

    def test_empty_day(self):
        """A new day holds no slots."""
        day = DaySlots()

        assert day.is_empty
        assert day.total == 0

    def test_for_modality(self):
        """Slots are reachable by modality."""
        phone = _slot("2025-11-03 13:00", Modality.PHONE)
        day = DaySlots(phone=[phone])

        assert day.for_modality(Modality.PHONE) == [phone]
        assert day.for_modality(Modality.VIDEO) == []
        assert day.total == 1
        assert not day.is_empty


class TestBookingConfig:
    """Tests for BookingConfig model."""

    def test_defaults(self):
        """Days to scan defaults to two weeks and config to an empty map."""
        config = BookingConfig(provider_name="carefiniti", provider_account_id="123")

        assert config.days_to_scan == 14
        assert config.provider_config == {}
        assert config.is_integrated

    @pytest.mark.parametrize("days", [0, -1, 61])
    def test_days_to_scan_out_of_range(self, days):
        """Test that unbounded scan windows are rejected."""
        with pytest.raises(ValueError, match="days_to_scan must be between"):
            BookingConfig(provider_name="carefiniti", provider_account_id="123", days_to_scan=days)

    def test_not_integrated_without_account(self):
        """A provider without an account id is not an integration."""
        assert not BookingConfig(provider_name="carefiniti").is_integrated
        assert not BookingConfig(provider_account_id="123").is_integrated
        assert not BookingConfig().is_integrated
