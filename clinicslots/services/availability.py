"""
Application service aggregating availability across booking providers.

The aggregator resolves a clinic's adapter through a registry, drives it
over a date window and applies the provider-independent selection policy
from ``slot_calendar``. Both public queries are total: provider outages,
misconfiguration and unknown providers all degrade to "no availability"
so one clinic can never fail a batch over many clinics.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional, Protocol, Sequence

import pendulum
from pendulum import Date, DateTime

from ..adapters.base import BookingAdapter
from ..adapters.registry import get_registry
from ..domain.exceptions import ProviderConfigError
from ..domain.models import BookingConfig, DaySlots, Slot
from ..domain.slot_calendar import build_calendar, date_window, filter_future

logger = logging.getLogger(__name__)


DEFAULT_CALENDAR_DAYS = 7


class AdapterLookupProtocol(Protocol):
    """Protocol describing the registry behaviour needed by the aggregator."""

    def resolve(self, provider_name: str) -> Optional[BookingAdapter]:
        """Return the adapter for a provider name, or None."""


class AvailabilityAggregator:
    """
    Computes "next available slot" and calendar-window availability.

    Depending on a lookup protocol rather than the concrete registry keeps
    stub adapters easy to plug in for tests. Without an explicit registry
    the process-wide one installed by init_registry() is used.
    """

    def __init__(
        self,
        registry: Optional[AdapterLookupProtocol] = None,
    ) -> None:
        """
        Raises:
            RegistryNotInitializedError: If no registry is given and
                init_registry() has not been called
        """
        self._registry = registry if registry is not None else get_registry()

    async def get_next_available_slot(
        self,
        booking_config: BookingConfig,
        *,
        now: Optional[DateTime] = None,
    ) -> Optional[Slot]:
        """
        Return the clinic's earliest future slot, or None.

        Never raises: missing configuration, unknown providers and adapter
        failures all yield None.
        """
        adapter = self._resolve_adapter(booking_config)
        if adapter is None:
            return None

        now = now or pendulum.now("UTC")

        try:
            return await adapter.find_next_available_slot(
                booking_config.provider_account_id,
                booking_config.days_to_scan,
                booking_config.provider_config,
                now=now,
            )
        except Exception:
            logger.exception(
                "Error fetching next slot for clinic %s from %s",
                booking_config.clinic_id, booking_config.provider_name,
            )
            return None

    async def get_next_available_slots(
        self,
        booking_configs: Sequence[BookingConfig],
        *,
        now: Optional[DateTime] = None,
    ) -> Dict[str, Optional[Slot]]:
        """
        Compute the next slot for many clinics concurrently.

        Results are keyed by clinic_id, or by position when a config has none.
        """
        now = now or pendulum.now("UTC")
        keys = [config.clinic_id or str(index) for index, config in enumerate(booking_configs)]

        results = await asyncio.gather(
            *(self.get_next_available_slot(config, now=now) for config in booking_configs)
        )

        return dict(zip(keys, results))

    async def get_slots_for_calendar_window(
        self,
        booking_config: BookingConfig,
        window_start: Optional[date] = None,
        window_length_days: int = DEFAULT_CALENDAR_DAYS,
        *,
        now: Optional[DateTime] = None,
    ) -> Dict[str, DaySlots]:
        """
        Return future slots per ISO date for the window, split by modality.

        Days without any slot (including days whose fetch failed) are
        omitted. The window starts today in the clinic's timezone unless
        window_start is given. Never raises.
        """
        if window_length_days <= 0:
            logger.warning("Ignoring calendar request with non-positive length %s", window_length_days)
            return {}

        adapter = self._resolve_adapter(booking_config)
        if adapter is None:
            return {}

        now = now or pendulum.now("UTC")

        if window_start is None:
            try:
                timezone = adapter.timezone_for(booking_config.provider_config)
            except ProviderConfigError as exc:
                logger.error(
                    "%s misconfigured for clinic %s: %s",
                    booking_config.provider_name, booking_config.clinic_id, exc,
                )
                return {}
            window_start = now.in_timezone(timezone).date()

        days = date_window(window_start, window_length_days)

        per_day = await asyncio.gather(
            *(self._fetch_day(adapter, booking_config, day, now) for day in days)
        )

        return build_calendar(zip(days, per_day))

    async def _fetch_day(
        self,
        adapter: BookingAdapter,
        booking_config: BookingConfig,
        day: Date,
        now: DateTime,
    ) -> List[Slot]:
        """Fetch one calendar day, treating any adapter failure as an empty day."""
        try:
            slots = await adapter.fetch_available_slots(
                booking_config.provider_account_id,
                day,
                day,
                booking_config.provider_config,
                now=now,
            )
        except Exception:
            logger.exception(
                "Error fetching %s slots for clinic %s on %s",
                booking_config.provider_name, booking_config.clinic_id, day.to_date_string(),
            )
            return []

        return filter_future(slots, now)

    def _resolve_adapter(self, booking_config: BookingConfig) -> Optional[BookingAdapter]:
        """Return the clinic's adapter, or None when there is nothing to query."""
        if not booking_config.is_integrated:
            logger.debug("Clinic %s has no booking integration", booking_config.clinic_id)
            return None

        adapter = self._registry.resolve(booking_config.provider_name)
        if adapter is None:
            logger.warning(
                "No adapter found for provider %s (clinic %s)",
                booking_config.provider_name, booking_config.clinic_id,
            )
        return adapter
