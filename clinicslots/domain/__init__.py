"""
Domain layer - Slot model and availability policy without I/O.
"""

from .models import BookingConfig, DaySlots, Modality, Slot
from .slot_calendar import build_calendar, earliest_slot, filter_future, partition_by_modality

__all__ = [
    "BookingConfig",
    "DaySlots",
    "Modality",
    "Slot",
    "build_calendar",
    "earliest_slot",
    "filter_future",
    "partition_by_modality",
]
