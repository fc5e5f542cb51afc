"""
Adapter for the Ocean booking API (date-range requests).
"""

import logging
from datetime import date
from typing import Any, List, Mapping, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import ProviderConfigError, ProviderFetchError
from ..domain.models import Modality, Slot
from ..domain.slot_calendar import filter_future, to_pendulum_date
from .base import (
    BookingAdapter,
    config_str,
    parse_provider_timestamp,
    render_url_template,
    url_template_fields,
)

logger = logging.getLogger(__name__)


class OceanAdapter(BookingAdapter):
    """
    Ocean answers one POST for a whole date range with a flat slot list:

    {"slots": [{"id": "abc", "time": "...", "duration": 30, "type": "virtual"}]}

    Each slot's type is a provider-specific string. Unknown types default to
    in-person: losing availability is worse than defaulting its modality.

    A clinic's provider_config["url_template"] may use {account_id},
    {location}, {start_date} and {end_date} (ISO dates of the range).
    """

    provider_name = "ocean"

    DEFAULT_BASE_URL = "https://api.ocean.health"

    TYPE_MAPPING = {
        "virtual": Modality.VIDEO,
        "video": Modality.VIDEO,
        "in_clinic": Modality.IN_PERSON,
        "telephone": Modality.PHONE,
        "phone": Modality.PHONE,
    }

    def __init__(self, *args: Any, base_url: Optional[str] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")

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

        if start_date > end_date:
            logger.debug("ocean: empty date range %s..%s", start_date, end_date)
            return []

        try:
            slots = await self._fetch_range(provider_account_id, start_date, end_date, provider_config)
        except ProviderConfigError as exc:
            logger.error(
                "ocean misconfigured for account %s on %s..%s: %s",
                provider_account_id, start_date, end_date, exc
            )
            return []
        except Exception as exc:
            logger.warning(
                "ocean unavailable for account %s on %s..%s: %s",
                provider_account_id, start_date, end_date, exc
            )
            return []

        return filter_future(slots, now)

    async def _fetch_range(
        self,
        provider_account_id: str,
        start_date: date,
        end_date: date,
        provider_config: Mapping[str, Any]
    ) -> List[Slot]:
        timezone = self.timezone_for(provider_config)
        location_id = config_str(provider_config, "location_id")
        base_url = config_str(provider_config, "base_url", self.base_url).rstrip("/")
        first_day = to_pendulum_date(start_date)
        last_day = to_pendulum_date(end_date)

        url_template = config_str(provider_config, "url_template")
        if url_template:
            url = render_url_template(
                url_template,
                account_id=provider_account_id,
                location=location_id,
                start_date=first_day.to_date_string(),
                end_date=last_day.to_date_string()
            )
        else:
            url = f"{base_url}/appointments/available"

        range_start = pendulum.datetime(first_day.year, first_day.month, first_day.day, tz=timezone)
        range_end = pendulum.datetime(last_day.year, last_day.month, last_day.day, tz=timezone).end_of("day")

        payload = {
            "provider_id": provider_account_id,
            "start_date": range_start.to_iso8601_string(),
            "end_date": range_end.to_iso8601_string(),
            "location_id": location_id,
        }

        data = await self._run_blocking(self.http_client.post_json, url, payload)

        raw_slots = data.get("slots") if isinstance(data, dict) else None
        if not isinstance(raw_slots, list):
            raise ProviderFetchError("Expected a JSON object with a 'slots' list")

        booking_url_template = config_str(provider_config, "booking_url_template")

        slots: List[Slot] = []
        for raw in raw_slots:
            slot = self._convert_slot(
                raw,
                timezone=timezone,
                base_url=base_url,
                booking_url_template=booking_url_template,
                account_id=provider_account_id,
                location_id=location_id
            )
            # Keep only slots on the requested local dates
            if first_day <= slot.start_time.in_timezone(timezone).date() <= last_day:
                slots.append(slot)

        return slots

    def _convert_slot(
        self,
        raw: Any,
        *,
        timezone: str,
        base_url: str,
        booking_url_template: Optional[str],
        account_id: str,
        location_id: Optional[str]
    ) -> Slot:
        if not isinstance(raw, dict):
            raise ProviderFetchError(f"Malformed slot entry: {raw!r}")

        start = parse_provider_timestamp(raw.get("time"), timezone)

        duration = raw.get("duration") or 0
        if not isinstance(duration, (int, float)) or isinstance(duration, bool) or duration < 0:
            raise ProviderFetchError(f"Invalid duration {duration!r}")

        slot_id = raw.get("id")
        slot_id = str(slot_id) if slot_id not in (None, "") else None

        booking_url = None
        if booking_url_template and slot_id is None and "slot_id" in url_template_fields(booking_url_template):
            logger.debug("ocean: slot at %s has no id, skipping booking link", start)
        elif booking_url_template:
            booking_url = render_url_template(
                booking_url_template,
                account_id=account_id,
                location=location_id,
                slot_id=slot_id
            )
        elif slot_id:
            booking_url = f"{base_url}/book/{slot_id}"

        return Slot(
            start_time=start,
            end_time=start.add(minutes=int(duration)),
            modality=self.map_slot_type(raw.get("type")),
            provider_slot_id=slot_id,
            booking_url=booking_url,
            raw=raw
        )

    @classmethod
    def map_slot_type(cls, ocean_type: Any) -> Modality:
        """Map Ocean's type names onto the modality set, defaulting to in-person."""
        if isinstance(ocean_type, str):
            modality = cls.TYPE_MAPPING.get(ocean_type.strip().lower())
            if modality is not None:
                return modality
        logger.debug("ocean: unrecognised slot type %r, treating as in-person", ocean_type)
        return Modality.IN_PERSON
