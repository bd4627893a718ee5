"""Groups candidate slots by day for presentation."""

from collections import defaultdict
from datetime import timezone, tzinfo
from typing import Iterable, Optional

from mutualavail.domain.models import CandidateSlot, RankedSlots


class SlotRanker:
    """Orders slots chronologically and groups them by local calendar date."""

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or timezone.utc

    def rank(
        self,
        slots: Iterable[CandidateSlot],
        is_alternative: bool = False,
    ) -> RankedSlots:
        """Group slots by the local date they start on.

        Days come out in chronological order and slots within a day are
        sorted by start. Identical slots collapse into one.
        """
        by_day = defaultdict(set)
        for slot in slots:
            by_day[slot.local_date(self.tz)].add(slot)

        return RankedSlots(
            by_day={d: sorted(by_day[d]) for d in sorted(by_day)},
            is_alternative=is_alternative,
        )
