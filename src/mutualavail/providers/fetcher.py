"""Concurrent busy-period fetching with per-provider timeouts.

Both parties are fetched at the same time, and each party fans out across
every configured provider. A provider that times out or fails makes that
party fall back to rule-only availability, unless the search requires
calendar data.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Optional, Sequence, TypeVar

from loguru import logger

from mutualavail.domain.errors import CalendarSyncFailed, NetworkTimeout
from mutualavail.domain.models import PartyAvailabilityProfile, TimeInterval
from mutualavail.providers.base import BusyPeriodProvider

PROVIDER_ERRORS = (CalendarSyncFailed, NetworkTimeout)

T = TypeVar("T")


@dataclass(frozen=True)
class BusySnapshot:
    """Busy periods fetched for one party.

    Attributes:
        party_id: Party the snapshot belongs to.
        intervals: Busy intervals, or None when no calendar data applies.
        degraded: True if calendar data was wanted but could not be fetched.
        reason: Why the fetch degraded.
    """

    party_id: str
    intervals: Optional[tuple[TimeInterval, ...]] = None
    degraded: bool = False
    reason: str = ""

    @property
    def has_calendar_data(self) -> bool:
        return self.intervals is not None


class BusyPeriodFetcher:
    """Fetches busy periods for a pair of parties."""

    def __init__(
        self,
        providers: Sequence[BusyPeriodProvider] = (),
        timeout_seconds: float = 10.0,
    ):
        self.providers = list(providers)
        self.timeout_seconds = timeout_seconds

    async def fetch_pair(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        start: datetime,
        end: datetime,
        require_calendar_data: bool = False,
        include_b: bool = True,
    ) -> tuple[BusySnapshot, BusySnapshot]:
        """Fetch both parties' busy periods concurrently.

        Args:
            profile_a: First party.
            profile_b: Second party.
            start: Start of the window (UTC).
            end: End of the window (UTC, exclusive).
            require_calendar_data: Raise instead of degrading on failure.
            include_b: If False, the second party is not fetched at all.

        Raises:
            CalendarSyncFailed: A fetch failed and calendar data is required.
        """
        fetch_b = (
            self.fetch(profile_b, start, end, require_calendar_data)
            if include_b
            else _no_calendar(profile_b.party_id)
        )
        snapshot_a, snapshot_b = await _gather_or_cancel(
            self.fetch(profile_a, start, end, require_calendar_data),
            fetch_b,
        )
        return snapshot_a, snapshot_b

    async def fetch(
        self,
        profile: PartyAvailabilityProfile,
        start: datetime,
        end: datetime,
        require_calendar_data: bool = False,
    ) -> BusySnapshot:
        """Fetch one party's busy periods from every provider."""
        if not profile.use_calendar_busy_periods or not self.providers:
            return BusySnapshot(profile.party_id)

        calls = [
            self._fetch_one(provider, profile.party_id, start, end)
            for provider in self.providers
        ]
        if require_calendar_data:
            # The first failure decides the outcome; remaining calls are cancelled
            try:
                results = await _gather_or_cancel(*calls)
            except NetworkTimeout as e:
                raise CalendarSyncFailed(str(e)) from e
        else:
            results = await asyncio.gather(*calls, return_exceptions=True)

        intervals: list[TimeInterval] = []
        failures: list[Exception] = []
        for result in results:
            if isinstance(result, PROVIDER_ERRORS):
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                intervals.extend(result)

        if failures:
            reason = "; ".join(str(f) for f in failures)
            logger.bind(party_id=profile.party_id, reason=reason).warning(
                "Calendar fetch failed, using weekly availability only"
            )
            return BusySnapshot(profile.party_id, degraded=True, reason=reason)

        logger.bind(party_id=profile.party_id, busy_periods=len(intervals)).debug(
            "Fetched calendar busy periods"
        )
        return BusySnapshot(profile.party_id, intervals=tuple(intervals))

    async def _fetch_one(
        self,
        provider: BusyPeriodProvider,
        party_id: str,
        start: datetime,
        end: datetime,
    ) -> list[TimeInterval]:
        try:
            return await asyncio.wait_for(
                provider.fetch(party_id, start, end), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            raise NetworkTimeout(
                f"Provider '{provider.name}' did not respond within {self.timeout_seconds}s"
            ) from None


async def _no_calendar(party_id: str) -> BusySnapshot:
    return BusySnapshot(party_id)


async def _gather_or_cancel(*aws: Awaitable[T]) -> list[T]:
    """Await all of ``aws`` concurrently, failing on the first exception.

    Siblings still running when one fails are cancelled and awaited before
    the exception propagates, so nothing outlives the call.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
