"""
Domain models for normalized availability slots and booking configuration.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

from pendulum import DateTime


MIN_DAYS_TO_SCAN = 1
MAX_DAYS_TO_SCAN = 60
DEFAULT_DAYS_TO_SCAN = 14


class Modality(str, Enum):
    """Visit channel of a slot. Closed set: adapters map onto it or drop."""
    IN_PERSON = "in-person"
    PHONE = "phone"
    VIDEO = "video"


@dataclass(frozen=True)
class Slot:
    """
    Represents one immutable, normalized appointment slot.

    Invariant: end_time is never before start_time. Providers that report no
    duration produce end_time == start_time.
    """
    start_time: DateTime
    end_time: DateTime
    modality: Modality
    provider_slot_id: Optional[str] = None
    booking_url: Optional[str] = None
    raw: Optional[Mapping[str, Any]] = field(default=None, compare=False, hash=False, repr=False)

    def __post_init__(self):
        if self.end_time < self.start_time:
            raise ValueError(f"End time {self.end_time} must not be before start time {self.start_time}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes (0 when the provider reports none)."""
        return int((self.end_time - self.start_time).total_seconds() / 60)

    def __str__(self) -> str:
        return f"{self.start_time.format('YYYY-MM-DD HH:mm')} ({self.modality.value})"


@dataclass
class DaySlots:
    """
    Available slots of one calendar date, partitioned by modality.
    """
    in_person: List[Slot] = field(default_factory=list)
    phone: List[Slot] = field(default_factory=list)
    video: List[Slot] = field(default_factory=list)

    def for_modality(self, modality: Modality) -> List[Slot]:
        """Return the list holding slots of the given modality."""
        if modality is Modality.IN_PERSON:
            return self.in_person
        if modality is Modality.PHONE:
            return self.phone
        return self.video

    @property
    def total(self) -> int:
        return len(self.in_person) + len(self.phone) + len(self.video)

    @property
    def is_empty(self) -> bool:
        return self.total == 0


@dataclass(frozen=True)
class BookingConfig:
    """
    Per-clinic booking integration settings, supplied by the clinic directory.

    provider_config is passed through untyped; each adapter extracts only
    the keys it understands.
    """
    provider_name: Optional[str] = None
    provider_account_id: Optional[str] = None
    provider_config: Mapping[str, Any] = field(default_factory=dict)
    days_to_scan: int = DEFAULT_DAYS_TO_SCAN
    clinic_id: Optional[str] = None

    def __post_init__(self):
        if not MIN_DAYS_TO_SCAN <= self.days_to_scan <= MAX_DAYS_TO_SCAN:
            raise ValueError(
                f"days_to_scan must be between {MIN_DAYS_TO_SCAN} and {MAX_DAYS_TO_SCAN}, "
                f"got {self.days_to_scan}"
            )
        if self.provider_config is None:
            object.__setattr__(self, "provider_config", {})

    @property
    def is_integrated(self) -> bool:
        """True when both a provider and an account are configured."""
        return bool(self.provider_name) and bool(self.provider_account_id)
