"""
Mock booking adapter for running without any provider API access.
"""

from datetime import time
from typing import Any, List, Mapping, Tuple

import pendulum
from pendulum import Date

from ..domain.models import Modality, Slot
from .base import DailyBookingAdapter


class MockBookingAdapter(DailyBookingAdapter):
    """
    Deterministic availability generator.

    Produces the same slots for every account and every day:
    - in-person every 30 minutes 09:00-11:30
    - phone every 30 minutes 13:00-14:30
    - video every 30 minutes 15:00-16:30
    all in the clinic's local timezone, 30 minutes long.
    """

    provider_name = "mock"

    SLOT_MINUTES = 30

    # (first start, last start, modality)
    BLOCKS: List[Tuple[time, time, Modality]] = [
        (time(9, 0), time(11, 30), Modality.IN_PERSON),
        (time(13, 0), time(14, 30), Modality.PHONE),
        (time(15, 0), time(16, 30), Modality.VIDEO),
    ]

    async def _fetch_day(
        self,
        provider_account_id: str,
        day: Date,
        provider_config: Mapping[str, Any]
    ) -> List[Slot]:
        timezone = self.timezone_for(provider_config)
        slots: List[Slot] = []

        for first, last, modality in self.BLOCKS:
            cursor = pendulum.datetime(day.year, day.month, day.day, first.hour, first.minute, tz=timezone)
            last_start = cursor.set(hour=last.hour, minute=last.minute)

            while cursor <= last_start:
                slot_id = f"{provider_account_id}-{cursor.format('YYYYMMDDHHmm')}-{modality.value}"
                slots.append(
                    Slot(
                        start_time=cursor,
                        end_time=cursor.add(minutes=self.SLOT_MINUTES),
                        modality=modality,
                        provider_slot_id=slot_id
                    )
                )
                cursor = cursor.add(minutes=self.SLOT_MINUTES)

        return slots
