"""Intersection engine for generating mutually free candidate slots.

This module intersects two parties' free windows date by date and
enumerates fixed-duration candidate slots within each mutual window.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from mutualavail.domain.intervals import FreeWindows, intersect
from mutualavail.domain.models import CandidateSlot, TimeInterval


class IntersectionEngine:
    """Generates candidate slots where two parties are both free.

    Candidate starts lie on a fixed grid (every ``granularity_minutes``,
    aligned to local midnight in ``tz``). A start is used when the whole
    slot fits before the mutual window ends.

    With ``anchor_final_slot`` enabled, a window whose tail does not line up
    with the grid also yields one extra slot ending exactly at the window end.
    """

    def __init__(
        self,
        granularity_minutes: int = 30,
        anchor_final_slot: bool = False,
        tz: Optional[tzinfo] = None,
    ):
        if granularity_minutes <= 0:
            raise ValueError("granularity_minutes must be positive")
        self.granularity_minutes = granularity_minutes
        self.anchor_final_slot = anchor_final_slot
        self.tz = tz or timezone.utc

    def mutual_windows(
        self,
        free_a: FreeWindows,
        free_b: FreeWindows,
    ) -> FreeWindows:
        """Intersect free windows for every date present in both maps.

        Returns:
            Dict mapping dates (chronological) to mutually free intervals.
            Dates without any overlap are omitted.
        """
        result = {}
        for d in sorted(free_a.keys() & free_b.keys()):
            overlap = intersect(free_a[d], free_b[d])
            if overlap:
                result[d] = overlap
        return result

    def intersect(
        self,
        free_a: FreeWindows,
        free_b: FreeWindows,
        duration_minutes: int,
    ) -> list[CandidateSlot]:
        """Generate all candidate slots both parties are free for.

        Args:
            free_a: First party's free windows by date.
            free_b: Second party's free windows by date.
            duration_minutes: Required slot length.

        Returns:
            Candidate slots in chronological order.
        """
        candidates = []
        for windows in self.mutual_windows(free_a, free_b).values():
            for window in windows:
                candidates.extend(self.enumerate_slots(window, duration_minutes))
        return candidates

    def enumerate_slots(
        self,
        window: TimeInterval,
        duration_minutes: int,
    ) -> list[CandidateSlot]:
        """Enumerate fixed-duration slots within one mutual window."""
        duration = timedelta(minutes=duration_minutes)
        step = timedelta(minutes=self.granularity_minutes)
        if window.duration < duration:
            return []

        slots = []
        slot_start = self._first_grid_point(window.start, step)
        while slot_start + duration <= window.end:
            slots.append(CandidateSlot(slot_start, slot_start + duration))
            slot_start += step

        if self.anchor_final_slot:
            anchored = CandidateSlot(window.end - duration, window.end)
            if not slots or slots[-1].end < window.end:
                slots.append(anchored)

        return slots

    def _first_grid_point(self, moment: datetime, step: timedelta) -> datetime:
        """First grid instant at or after ``moment``."""
        local = moment.astimezone(self.tz)
        midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
        remainder = (local - midnight) % step
        if not remainder:
            return moment
        return moment + (step - remainder)
