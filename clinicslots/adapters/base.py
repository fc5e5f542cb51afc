"""
Booking adapter contract and the shared per-day fetching driver.

Each external booking system gets one adapter that converts its request and
response shapes to the normalized Slot model. Adapters are stateless after
construction and safe to share between concurrent queries.
"""

from __future__ import annotations

import asyncio
import logging
import string
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Callable, List, Mapping, Optional, Set, TypeVar

import pendulum
from pendulum import Date, DateTime

from ..domain.exceptions import ProviderConfigError, ProviderFetchError
from ..domain.models import Slot
from ..domain.slot_calendar import earliest_slot, filter_future, iter_days
from .http_client import BookingHttpClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEZONE = "America/Toronto"


def url_template_fields(template: str) -> Set[str]:
    """
    Return the placeholder names used by a URL template.

    Raises:
        ProviderConfigError: If the template is empty or malformed
    """
    if not isinstance(template, str) or not template:
        raise ProviderConfigError(f"URL template must be a non-empty string, got {template!r}")

    try:
        return {name for _, name, _, _ in string.Formatter().parse(template) if name is not None}
    except ValueError as exc:
        raise ProviderConfigError(f"Malformed URL template {template!r}: {exc}") from exc


def render_url_template(template: str, **values: Any) -> str:
    """
    Substitute {placeholder} fields in a URL template.

    Every placeholder in the template must have a non-empty value; an
    unresolved one is a configuration error, never passed through.

    Raises:
        ProviderConfigError: On unresolved placeholders or malformed templates
    """
    fields = url_template_fields(template)

    missing = sorted(name for name in fields if values.get(name) in (None, ""))
    if missing:
        raise ProviderConfigError(
            f"URL template {template!r} has unresolved placeholder(s): {', '.join(missing)}"
        )

    try:
        return template.format(**{key: str(value) for key, value in values.items() if value is not None})
    except (IndexError, KeyError, ValueError) as exc:
        raise ProviderConfigError(f"Malformed URL template {template!r}: {exc}") from exc


def config_str(provider_config: Mapping[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Read an optional string setting from a provider config map.

    Raises:
        ProviderConfigError: If the key is present but not a non-empty string
    """
    value = provider_config.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ProviderConfigError(f"provider_config[{key!r}] must be a non-empty string, got {value!r}")
    return value


def parse_provider_timestamp(value: Any, timezone: str) -> DateTime:
    """
    Parse a provider timestamp into an aware pendulum DateTime.

    Strings carrying an offset keep it; naive strings are interpreted in the
    clinic's timezone.

    Raises:
        ProviderFetchError: If the value is missing or not a datetime
    """
    if not isinstance(value, str) or not value:
        raise ProviderFetchError(f"Missing or invalid timestamp: {value!r}")

    try:
        parsed = pendulum.parse(value, tz=timezone)
    except (ValueError, TypeError) as exc:
        raise ProviderFetchError(f"Could not parse timestamp {value!r}: {exc}") from exc

    if not isinstance(parsed, DateTime):
        raise ProviderFetchError(f"Timestamp {value!r} is not a date-time")

    return parsed


class BookingAdapter(ABC):
    """
    Capability contract implemented once per external booking provider.

    Subclasses set ``provider_name`` and implement fetch_available_slots;
    find_next_available_slot is defined in terms of it.
    """

    provider_name: str = ""

    def __init__(
        self,
        http_client: Optional[BookingHttpClient] = None,
        timezone: str = DEFAULT_TIMEZONE
    ):
        """
        Initialize the adapter.

        Args:
            http_client: Client used for provider calls (a default one is created)
            timezone: IANA timezone of the provider's local dates, unless a
                clinic overrides it with provider_config["timezone"]
        """
        self.http_client = http_client or BookingHttpClient()
        self.timezone = timezone

    @abstractmethod
    async def fetch_available_slots(
        self,
        provider_account_id: str,
        start_date: date,
        end_date: date,
        provider_config: Optional[Mapping[str, Any]] = None,
        *,
        now: Optional[DateTime] = None
    ) -> List[Slot]:
        """
        Return future slots for every day in [start_date, end_date].

        Per-day failures yield no slots for that day and never abort the
        call. Only slots starting strictly after `now` (default: the moment
        of the call) are returned, in no particular order.
        """

    async def find_next_available_slot(
        self,
        provider_account_id: str,
        days_to_scan: int,
        provider_config: Optional[Mapping[str, Any]] = None,
        *,
        now: Optional[DateTime] = None
    ) -> Optional[Slot]:
        """
        Return the earliest slot in [today, today + days_to_scan - 1], or None.

        "Today" is `now` expressed in the clinic's timezone.
        """
        if days_to_scan < 1:
            raise ValueError(f"days_to_scan must be at least 1, got {days_to_scan}")

        provider_config = provider_config or {}
        now = now or pendulum.now("UTC")
        today = now.in_timezone(self.timezone_for(provider_config)).date()

        slots = await self.fetch_available_slots(
            provider_account_id,
            today,
            today.add(days=days_to_scan - 1),
            provider_config,
            now=now
        )

        return earliest_slot(slots)

    def timezone_for(self, provider_config: Mapping[str, Any]) -> str:
        """
        Return the timezone a clinic's dates and naive timestamps are in.

        Raises:
            ProviderConfigError: If the configured timezone is unknown
        """
        tz_name = config_str(provider_config, "timezone", self.timezone)
        try:
            pendulum.timezone(tz_name)
        except (KeyError, ValueError) as exc:
            raise ProviderConfigError(f"Unknown timezone {tz_name!r}") from exc
        return tz_name

    async def _run_blocking(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking HTTP call in a worker thread."""
        return await asyncio.to_thread(func, *args)


class DailyBookingAdapter(BookingAdapter):
    """
    Driver for providers whose API is queried once per calendar date.

    Days are fetched concurrently. A failing day is logged and contributes
    no slots; misconfiguration is logged at error level so operators can
    tell it apart from a provider outage.
    """

    async def fetch_available_slots(
        self,
        provider_account_id: str,
        start_date: date,
        end_date: date,
        provider_config: Optional[Mapping[str, Any]] = None,
        *,
        now: Optional[DateTime] = None
    ) -> List[Slot]:
        provider_config = provider_config or {}
        now = now or pendulum.now("UTC")

        days = list(iter_days(start_date, end_date))
        if not days:
            logger.debug("%s: empty date range %s..%s", self.provider_name, start_date, end_date)
            return []

        per_day = await asyncio.gather(
            *(
                self._fetch_day_safely(provider_account_id, day, provider_config)
                for day in days
            )
        )

        slots: List[Slot] = []
        for day_slots in per_day:
            slots.extend(day_slots)

        return filter_future(slots, now)

    async def _fetch_day_safely(
        self,
        provider_account_id: str,
        day: Date,
        provider_config: Mapping[str, Any]
    ) -> List[Slot]:
        try:
            return await self._fetch_day(provider_account_id, day, provider_config)
        except ProviderConfigError as exc:
            logger.error(
                "%s misconfigured for account %s on %s: %s",
                self.provider_name, provider_account_id, day.to_date_string(), exc
            )
        except Exception as exc:
            logger.warning(
                "%s unavailable for account %s on %s: %s",
                self.provider_name, provider_account_id, day.to_date_string(), exc
            )
        return []

    @abstractmethod
    async def _fetch_day(
        self,
        provider_account_id: str,
        day: Date,
        provider_config: Mapping[str, Any]
    ) -> List[Slot]:
        """Fetch and normalize one day's slots. May raise on any failure."""
