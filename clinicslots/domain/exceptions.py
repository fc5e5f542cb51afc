"""
Domain-specific exception hierarchy for the availability aggregator.
"""


class BookingError(Exception):
    """Base class for all application-level errors."""


class ProviderFetchError(BookingError):
    """Raised when a provider's availability cannot be fetched or parsed."""


class ProviderConfigError(BookingError):
    """Raised when a clinic's provider configuration is missing or malformed."""


class RegistryNotInitializedError(BookingError):
    """Raised when the process-wide adapter registry is used before start-up."""
