"""
Adapters layer - External integrations (clinic booking provider APIs).
"""

from .base import BookingAdapter, DailyBookingAdapter
from .carefiniti import CarefinitiAdapter
from .http_client import BookingHttpClient
from .mock_booking import MockBookingAdapter
from .ocean import OceanAdapter
from .registry import AdapterRegistry, build_default_registry, get_registry, init_registry

__all__ = [
    "AdapterRegistry",
    "BookingAdapter",
    "BookingHttpClient",
    "CarefinitiAdapter",
    "DailyBookingAdapter",
    "MockBookingAdapter",
    "OceanAdapter",
    "build_default_registry",
    "get_registry",
    "init_registry",
]
