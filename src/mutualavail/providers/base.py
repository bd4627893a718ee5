"""Interfaces for the engine's external collaborators.

Collaborators are injected into the engine's constructor, which keeps the
engine free of global state and lets tests substitute in-memory versions.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from mutualavail.domain.models import PartyAvailabilityProfile, TimeInterval


class BusyPeriodProvider(ABC):
    """Abstract base class for calendar busy-period sources."""

    #: Name used in log messages.
    name: str = "calendar"

    @abstractmethod
    async def fetch(
        self,
        party_id: str,
        start: datetime,
        end: datetime,
    ) -> list[TimeInterval]:
        """Fetch a party's busy periods overlapping ``[start, end)``.

        Args:
            party_id: Party whose calendars to read.
            start: First instant of interest (UTC).
            end: End of the window of interest (UTC, exclusive).

        Returns:
            Busy intervals in any order; they may overlap.

        Raises:
            CalendarSyncFailed: The provider could not read the calendar.
            NetworkTimeout: The provider did not answer in time.
        """
        pass


class AvailabilityProfileStore(ABC):
    """Abstract base class for loading stored availability profiles."""

    @abstractmethod
    def get(self, party_id: str) -> PartyAvailabilityProfile:
        """Load a party's availability profile.

        Raises:
            RelationshipNotFound: No profile is stored for the party.
            PermissionDenied: The caller may not read the profile.
        """
        pass
