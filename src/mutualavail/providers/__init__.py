"""Collaborator interfaces and busy-period fetching."""

from mutualavail.providers.base import AvailabilityProfileStore, BusyPeriodProvider
from mutualavail.providers.fetcher import BusyPeriodFetcher, BusySnapshot
from mutualavail.providers.memory import (
    InMemoryProfileStore,
    ProfileChanged,
    StaticBusyPeriodProvider,
)

__all__ = [
    # Interfaces
    "AvailabilityProfileStore",
    "BusyPeriodProvider",
    # Fetching
    "BusyPeriodFetcher",
    "BusySnapshot",
    # In-memory implementations
    "InMemoryProfileStore",
    "ProfileChanged",
    "StaticBusyPeriodProvider",
]
