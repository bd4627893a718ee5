"""Weekly availability resolver.

Expands a party's weekday rules and recurring commitments into concrete
per-date free windows.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from mutualavail.domain.intervals import FreeWindows, merge, subtract
from mutualavail.domain.models import (
    DailyTimeRange,
    PartyAvailabilityProfile,
    RecurringCommitment,
    TimeInterval,
    Weekday,
)


def local_instant(d: date, minutes: int, tz: tzinfo) -> datetime:
    """Convert a local date plus minutes-from-midnight into a UTC instant.

    ``minutes`` may be 1440, meaning midnight at the end of ``d``.
    """
    day_offset, minute_of_day = divmod(minutes, 24 * 60)
    hours, mins = divmod(minute_of_day, 60)
    local = datetime.combine(
        d + timedelta(days=day_offset), time(hour=hours, minute=mins), tzinfo=tz
    )
    return local.astimezone(timezone.utc)


class WeeklyAvailabilityResolver:
    """Resolves weekly rules into per-date free windows.

    Daily ranges are interpreted as wall-clock times in ``tz`` and converted
    to UTC, so a rule reads the same on both sides of a DST change.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or timezone.utc

    def resolve(
        self,
        profile: PartyAvailabilityProfile,
        date_range_start: date,
        date_range_end: date,
    ) -> FreeWindows:
        """Resolve a profile's free windows for every date in a range.

        Args:
            profile: The party's availability profile.
            date_range_start: First date to resolve (inclusive).
            date_range_end: Last date to resolve (inclusive).

        Returns:
            Dict mapping every date in the range to its sorted, disjoint
            free intervals (empty list if the party is unavailable).
        """
        free_windows: FreeWindows = {}
        current = date_range_start
        while current <= date_range_end:
            free_windows[current] = self.resolve_day(profile, current)
            current += timedelta(days=1)
        return free_windows

    def resolve_day(
        self,
        profile: PartyAvailabilityProfile,
        d: date,
    ) -> list[TimeInterval]:
        """Resolve the free windows for a single date."""
        weekday = Weekday.from_date(d)
        day_ranges = profile.weekly_rule.ranges_for(weekday)
        if not day_ranges:
            return []

        windows = merge(
            interval
            for interval in (self._materialize(d, r) for r in day_ranges)
            if interval is not None
        )

        blocked = merge(
            interval
            for interval in (
                self._materialize_commitment(d, c) for c in profile.commitments_on(weekday)
            )
            if interval is not None
        )
        if not blocked:
            return windows
        return subtract(windows, blocked)

    def _materialize(self, d: date, day_range: DailyTimeRange) -> Optional[TimeInterval]:
        start = local_instant(d, day_range.start_minutes, self.tz)
        end = local_instant(d, day_range.end_minutes, self.tz)
        if start >= end:
            # Range vanished inside a DST transition
            return None
        return TimeInterval(start, end)

    def _materialize_commitment(
        self,
        d: date,
        commitment: RecurringCommitment,
    ) -> Optional[TimeInterval]:
        start_minutes = commitment.start_minutes
        end_minutes = commitment.end_minutes
        if end_minutes <= start_minutes:
            # Sub-minute commitment
            return None
        start = local_instant(d, start_minutes, self.tz)
        end = local_instant(d, end_minutes, self.tz)
        if start >= end:
            return None
        return TimeInterval(start, end)
