"""Folds external calendar busy periods into resolved free windows."""

from bisect import bisect_right
from typing import Iterable, Optional

from mutualavail.domain.intervals import FreeWindows, merge, subtract
from mutualavail.domain.models import TimeInterval


class BusyIntervalMerger:
    """Merges busy periods and subtracts them from per-date free windows."""

    def merge_busy(self, busy_periods: Iterable[TimeInterval]) -> list[TimeInterval]:
        """Sort busy periods and coalesce any that overlap or touch."""
        return merge(busy_periods)

    def apply(
        self,
        free_windows: FreeWindows,
        busy_periods: Optional[Iterable[TimeInterval]],
        use_calendar_busy_periods: bool = True,
    ) -> FreeWindows:
        """Subtract busy periods from every date's free windows.

        Args:
            free_windows: Dict mapping dates to sorted, disjoint free intervals.
            busy_periods: Busy intervals in any order, or None when the
                party has no calendar data.
            use_calendar_busy_periods: If False, busy periods are ignored.

        Returns:
            A new dict with the same dates; the input is returned unchanged
            when busy periods do not apply.
        """
        if not use_calendar_busy_periods or busy_periods is None:
            return free_windows

        busy = self.merge_busy(busy_periods)
        if not busy:
            return free_windows

        busy_ends = [b.end for b in busy]
        result: FreeWindows = {}
        for d, windows in free_windows.items():
            if not windows:
                result[d] = []
                continue
            # Busy intervals ending before the day's first window are irrelevant
            first = bisect_right(busy_ends, windows[0].start)
            result[d] = subtract(windows, busy[first:])
        return result
