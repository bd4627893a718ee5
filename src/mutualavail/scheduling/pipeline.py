"""Pure slot pipeline: resolve, subtract busy time, intersect, filter.

Everything here is synchronous and side-effect free. Busy periods are passed
in already fetched, so running the pipeline twice with the same inputs gives
the same slots in the same order.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from mutualavail.domain.errors import PreferenceConflict
from mutualavail.domain.intervals import FreeWindows
from mutualavail.domain.models import (
    CandidateSlot,
    PartyAvailabilityProfile,
    SearchConstraints,
    TimeInterval,
)
from mutualavail.scheduling.busy_merger import BusyIntervalMerger
from mutualavail.scheduling.intersection import IntersectionEngine
from mutualavail.scheduling.resolver import WeeklyAvailabilityResolver
from mutualavail.validation.validator import ConstraintFilter


@dataclass
class PipelineOutcome:
    """Intermediate and final results of one pipeline run.

    Attributes:
        free_a: First party's free windows after busy periods.
        free_b: Second party's free windows after busy periods.
        mutual: Mutually free windows by date.
        unfiltered: Candidate slots before the horizon filter.
        slots: Candidate slots that passed the horizon filter.
    """

    free_a: FreeWindows = field(default_factory=dict)
    free_b: FreeWindows = field(default_factory=dict)
    mutual: FreeWindows = field(default_factory=dict)
    unfiltered: list[CandidateSlot] = field(default_factory=list)
    slots: list[CandidateSlot] = field(default_factory=list)


class SlotPipeline:
    """Runs the interval pipeline for one pair of profiles.

    ``require_both_free=False`` means the second party's calendar busy
    periods are ignored; their weekly rule and commitments still apply.
    """

    def __init__(
        self,
        resolver: Optional[WeeklyAvailabilityResolver] = None,
        merger: Optional[BusyIntervalMerger] = None,
        intersection: Optional[IntersectionEngine] = None,
        constraint_filter: Optional[ConstraintFilter] = None,
    ):
        self.resolver = resolver or WeeklyAvailabilityResolver()
        self.merger = merger or BusyIntervalMerger()
        self.intersection = intersection or IntersectionEngine(tz=self.resolver.tz)
        self.constraint_filter = constraint_filter or ConstraintFilter()

    def run(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
        now: datetime,
        busy_a: Optional[Sequence[TimeInterval]] = None,
        busy_b: Optional[Sequence[TimeInterval]] = None,
    ) -> list[CandidateSlot]:
        """Compute mutually free slots, chronologically ordered."""
        return self.evaluate(profile_a, profile_b, constraints, now, busy_a, busy_b).slots

    def evaluate(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
        now: datetime,
        busy_a: Optional[Sequence[TimeInterval]] = None,
        busy_b: Optional[Sequence[TimeInterval]] = None,
    ) -> PipelineOutcome:
        """Run the pipeline and keep every intermediate result.

        Args:
            profile_a: Requesting party.
            profile_b: Counterpart party.
            constraints: Search constraints.
            now: Reference instant for the advance-notice horizon.
            busy_a: First party's busy periods, or None without calendar data.
            busy_b: Second party's busy periods, or None without calendar data.

        Raises:
            InvalidTimeRange, InvalidDuration: Constraints are malformed.
            PreferenceConflict: The weekly rules never overlap in the range.
        """
        self.constraint_filter.validate(constraints)

        start, end = constraints.date_range_start, constraints.date_range_end
        rule_a = self.resolver.resolve(profile_a, start, end)
        rule_b = self.resolver.resolve(profile_b, start, end)

        if not self.intersection.mutual_windows(rule_a, rule_b):
            raise PreferenceConflict(
                f"{profile_a.label} and {profile_b.label} have no overlapping "
                f"availability between {start} and {end}."
            )

        free_a = self.merger.apply(rule_a, busy_a, profile_a.use_calendar_busy_periods)
        free_b = self.merger.apply(
            rule_b,
            busy_b,
            profile_b.use_calendar_busy_periods and constraints.require_both_free,
        )

        mutual = self.intersection.mutual_windows(free_a, free_b)
        unfiltered = self.intersection.intersect(free_a, free_b, constraints.duration_minutes)
        slots = self.constraint_filter.filter(unfiltered, constraints, now)

        return PipelineOutcome(
            free_a=free_a,
            free_b=free_b,
            mutual=mutual,
            unfiltered=unfiltered,
            slots=slots,
        )
