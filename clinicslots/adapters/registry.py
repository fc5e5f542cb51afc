"""
Provider name -> adapter lookup.

Adapters are registered once at start-up and only read afterwards, so
concurrent lookups need no locking.
"""

import logging
from typing import Dict, List, Optional

from ..config import AppConfig
from ..domain.exceptions import RegistryNotInitializedError
from .base import BookingAdapter
from .carefiniti import CarefinitiAdapter
from .http_client import BookingHttpClient
from .mock_booking import MockBookingAdapter
from .ocean import OceanAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Maps provider names (case-insensitive) to adapter instances."""

    def __init__(self) -> None:
        self._adapters: Dict[str, BookingAdapter] = {}

    @staticmethod
    def _key(provider_name: str) -> str:
        return provider_name.strip().lower()

    def register(self, provider_name: str, adapter: BookingAdapter) -> None:
        """Associate a name with an adapter. Re-registering replaces it."""
        key = self._key(provider_name)
        if not key:
            raise ValueError("provider_name must not be empty")
        if key in self._adapters:
            logger.debug("Replacing adapter registered for provider %s", key)
        self._adapters[key] = adapter

    def resolve(self, provider_name: str) -> Optional[BookingAdapter]:
        """Return the adapter for a provider name, or None if unknown."""
        return self._adapters.get(self._key(provider_name))

    def provider_names(self) -> List[str]:
        """Return the registered provider names, sorted."""
        return sorted(self._adapters)

    def __contains__(self, provider_name: str) -> bool:
        return self.resolve(provider_name) is not None

    def __len__(self) -> int:
        return len(self._adapters)


def build_default_registry(
    config: AppConfig,
    http_client: Optional[BookingHttpClient] = None,
    mock: bool = False
) -> AdapterRegistry:
    """
    Build a registry with every built-in adapter.

    With mock=True every built-in provider name resolves to the offline
    MockBookingAdapter, so configured clinics work without network access.
    """
    timezone = config.defaults.timezone
    registry = AdapterRegistry()

    if mock:
        adapter = MockBookingAdapter(timezone=timezone)
        for name in (CarefinitiAdapter.provider_name, OceanAdapter.provider_name, MockBookingAdapter.provider_name):
            registry.register(name, adapter)
        return registry

    client = http_client or BookingHttpClient(timeout_seconds=config.defaults.request_timeout_seconds)

    registry.register(
        CarefinitiAdapter.provider_name,
        CarefinitiAdapter(
            http_client=client,
            timezone=timezone,
            url_template=config.providers.carefiniti.url_template,
            location=config.providers.carefiniti.location
        )
    )
    registry.register(
        OceanAdapter.provider_name,
        OceanAdapter(
            http_client=client,
            timezone=timezone,
            base_url=config.providers.ocean.base_url
        )
    )

    return registry


_registry: Optional[AdapterRegistry] = None


def init_registry(registry: AdapterRegistry) -> AdapterRegistry:
    """Install the process-wide registry. Call once at start-up."""
    global _registry
    _registry = registry
    logger.debug("Adapter registry initialised with providers: %s", ", ".join(registry.provider_names()))
    return registry


def get_registry() -> AdapterRegistry:
    """
    Return the process-wide registry.

    Raises:
        RegistryNotInitializedError: If init_registry() has not been called
    """
    if _registry is None:
        raise RegistryNotInitializedError("Adapter registry used before init_registry() was called")
    return _registry


def reset_registry() -> None:
    """Forget the process-wide registry (used by tests)."""
    global _registry
    _registry = None
