"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AdapterLookupProtocol, AvailabilityAggregator

__all__ = ["AdapterLookupProtocol", "AvailabilityAggregator"]
