"""In-memory collaborators for tests, demos and local tooling."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from mutualavail.domain.errors import PermissionDenied, RelationshipNotFound
from mutualavail.domain.models import PartyAvailabilityProfile, TimeInterval
from mutualavail.providers.base import AvailabilityProfileStore, BusyPeriodProvider


@dataclass(frozen=True)
class ProfileChanged:
    """Event delivered to subscribers when a stored profile changes.

    Attributes:
        party_id: Party whose profile changed.
        profile: The new profile, or None if it was removed.
    """

    party_id: str
    profile: Optional[PartyAvailabilityProfile]


ProfileListener = Callable[[ProfileChanged], None]


class InMemoryProfileStore(AvailabilityProfileStore):
    """Dict-backed profile store with change notifications.

    Subscribers are told about every ``put`` and ``remove``; a caller that
    shows search results re-runs its search when a relevant profile changes.
    """

    def __init__(
        self,
        profiles: Optional[dict[str, PartyAvailabilityProfile]] = None,
        denied: Optional[set[str]] = None,
    ):
        self._profiles: dict[str, PartyAvailabilityProfile] = dict(profiles or {})
        self._denied: set[str] = set(denied or ())
        self._listeners: list[ProfileListener] = []

    def get(self, party_id: str) -> PartyAvailabilityProfile:
        if party_id in self._denied:
            raise PermissionDenied(f"Access to availability for '{party_id}' is not allowed.")
        try:
            return self._profiles[party_id]
        except KeyError:
            raise RelationshipNotFound(f"No availability profile for '{party_id}'.") from None

    def put(self, profile: PartyAvailabilityProfile) -> None:
        """Store a profile and notify subscribers."""
        self._profiles[profile.party_id] = profile
        self._notify(ProfileChanged(profile.party_id, profile))

    def remove(self, party_id: str) -> None:
        if self._profiles.pop(party_id, None) is not None:
            self._notify(ProfileChanged(party_id, None))

    def deny(self, party_id: str) -> None:
        """Make future reads of a party's profile fail with PermissionDenied."""
        self._denied.add(party_id)

    def subscribe(self, listener: ProfileListener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: ProfileChanged) -> None:
        for listener in list(self._listeners):
            listener(event)


class StaticBusyPeriodProvider(BusyPeriodProvider):
    """Serves busy periods from a fixed map.

    Attributes:
        busy: Dict mapping party IDs to their busy intervals.
        delay_seconds: Simulated latency before answering.
        failures: Dict mapping party IDs to the exception a fetch raises.
        calls: Every ``(party_id, start, end)`` fetched so far.
    """

    def __init__(
        self,
        busy: Optional[dict[str, list[TimeInterval]]] = None,
        delay_seconds: float = 0.0,
        failures: Optional[dict[str, Exception]] = None,
        name: str = "static",
    ):
        self.busy = dict(busy or {})
        self.delay_seconds = delay_seconds
        self.failures = dict(failures or {})
        self.name = name
        self.calls: list[tuple[str, datetime, datetime]] = []

    async def fetch(
        self,
        party_id: str,
        start: datetime,
        end: datetime,
    ) -> list[TimeInterval]:
        self.calls.append((party_id, start, end))
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if party_id in self.failures:
            raise self.failures[party_id]
        return [
            interval
            for interval in self.busy.get(party_id, [])
            if interval.start < end and start < interval.end
        ]
