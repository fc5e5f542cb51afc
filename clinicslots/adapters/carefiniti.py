"""
Adapter for Carefiniti (Cortico) walk-in clinic booking pages.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from pendulum import Date

from ..domain.exceptions import ProviderFetchError
from ..domain.models import Modality, Slot
from .base import (
    DailyBookingAdapter,
    config_str,
    parse_provider_timestamp,
    render_url_template,
    url_template_fields,
)

logger = logging.getLogger(__name__)


class CarefinitiAdapter(DailyBookingAdapter):
    """
    Carefiniti exposes one endpoint per calendar date.

    The date is embedded in the URL path and the response groups that day's
    slots by modality:

    {
        "2025-11-03": {
            "provider_no": "123",
            "clinic_slots": [{"start_datetime": "...", "provider_no": "123", ...}],
            "phone_slots": [...],
            "video_slots": [...],
            "home_visit_slots": [...]
        }
    }

    Home visits have no counterpart in the modality set and are dropped.
    Slot objects carry no duration, so end_time equals start_time.
    """

    provider_name = "carefiniti"

    DEFAULT_URL_TEMPLATE = (
        "https://carefiniti.cortico.ca/api/async/available-appointment-slots/"
        "{account_id}/{date}/walk-in-clinic/?location={location}"
    )
    DEFAULT_LOCATION = "m"
    DEFAULT_DATE_FORMAT = "YYYY-MM-DD"

    # Response key -> normalized modality
    SLOT_GROUPS = {
        "clinic_slots": Modality.IN_PERSON,
        "phone_slots": Modality.PHONE,
        "video_slots": Modality.VIDEO,
    }

    def __init__(
        self,
        *args: Any,
        url_template: Optional[str] = None,
        location: Optional[str] = None,
        **kwargs: Any
    ):
        """
        Initialize the adapter.

        Args:
            url_template: Deployment-wide URL template (clinics may still
                override it with provider_config["url_template"])
            location: Default location code
        """
        super().__init__(*args, **kwargs)
        self.url_template = url_template or self.DEFAULT_URL_TEMPLATE
        self.location = location or self.DEFAULT_LOCATION

    async def _fetch_day(
        self,
        provider_account_id: str,
        day: Date,
        provider_config: Mapping[str, Any]
    ) -> List[Slot]:
        timezone = self.timezone_for(provider_config)
        location = config_str(provider_config, "location", self.location)
        date_format = config_str(provider_config, "date_format", self.DEFAULT_DATE_FORMAT)
        booking_url_template = config_str(provider_config, "booking_url_template")
        date_str = day.format(date_format)

        url = render_url_template(
            config_str(provider_config, "url_template", self.url_template),
            account_id=provider_account_id,
            date=date_str,
            location=location
        )

        data = await self._run_blocking(self.http_client.get_json, url)

        if not isinstance(data, dict):
            raise ProviderFetchError(f"Expected a JSON object keyed by date, got {type(data).__name__}")

        day_data = data.get(date_str)
        if day_data is None:
            # Provider has nothing for this date
            return []
        if not isinstance(day_data, dict):
            raise ProviderFetchError(f"Malformed day entry for {date_str}")

        slots: List[Slot] = []
        for group, modality in self.SLOT_GROUPS.items():
            slots.extend(
                self._convert_slots(
                    day_data.get(group) or [],
                    modality,
                    timezone=timezone,
                    booking_url_template=booking_url_template,
                    account_id=provider_account_id,
                    date_str=date_str,
                    location=location
                )
            )

        return slots

    def _convert_slots(
        self,
        raw_slots: Any,
        modality: Modality,
        *,
        timezone: str,
        booking_url_template: Optional[str],
        account_id: str,
        date_str: str,
        location: Optional[str]
    ) -> List[Slot]:
        """Convert one modality group, tagging every slot with that modality."""
        if not isinstance(raw_slots, list):
            raise ProviderFetchError(f"Expected a list of {modality.value} slots, got {type(raw_slots).__name__}")

        converted: List[Slot] = []

        for raw in raw_slots:
            if not isinstance(raw, dict):
                raise ProviderFetchError(f"Malformed slot entry: {raw!r}")

            start = parse_provider_timestamp(raw.get("start_datetime"), timezone)
            slot_id = self._slot_id(raw)

            booking_url = None
            if booking_url_template and slot_id is None and "slot_id" in url_template_fields(booking_url_template):
                # Still available, just without a deep link
                logger.debug("%s: slot at %s has no id, skipping booking link", self.provider_name, start)
            elif booking_url_template:
                booking_url = render_url_template(
                    booking_url_template,
                    account_id=account_id,
                    date=date_str,
                    location=location,
                    slot_id=slot_id
                )

            converted.append(
                Slot(
                    start_time=start,
                    end_time=start,
                    modality=modality,
                    provider_slot_id=slot_id,
                    booking_url=booking_url,
                    raw=raw
                )
            )

        return converted

    @staticmethod
    def _slot_id(raw: Dict[str, Any]) -> Optional[str]:
        value = raw.get("value")
        return str(value) if value not in (None, "") else None
