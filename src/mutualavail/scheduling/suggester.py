"""Alternative suggestions when a search finds no mutual slot.

Two relaxations are tried against the same busy-period snapshot:

1. Wider range: keep the duration, push the end date out by
   ``extension_days``.
2. Shorter duration: halve the duration (never below
   ``min_relaxed_duration_minutes``) over the original range.

Wider-range slots are listed first because they keep what the caller
actually asked for. Each group stays chronological and duplicates are
dropped.
"""

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from loguru import logger

from mutualavail.domain.errors import NoMutualAvailabilityFound, PreferenceConflict
from mutualavail.domain.models import (
    CandidateSlot,
    PartyAvailabilityProfile,
    SearchConstraints,
    TimeInterval,
)
from mutualavail.scheduling.pipeline import SlotPipeline


class AlternativeSuggester:
    """Reruns the slot pipeline with relaxed constraints."""

    def __init__(
        self,
        pipeline: Optional[SlotPipeline] = None,
        extension_days: int = 14,
        min_relaxed_duration_minutes: int = 30,
        suggestions_per_relaxation: Optional[int] = None,
    ):
        self.pipeline = pipeline or SlotPipeline()
        self.extension_days = extension_days
        self.min_relaxed_duration_minutes = min_relaxed_duration_minutes
        self.suggestions_per_relaxation = suggestions_per_relaxation

    def relaxations(self, constraints: SearchConstraints) -> list[tuple[str, SearchConstraints]]:
        """Relaxed constraint sets in the order their results are preferred."""
        relaxed = [
            (
                "wider_range",
                replace(constraints, date_range_end=self.extended_range_end(constraints)),
            )
        ]
        shorter = self.shorter_duration(constraints.duration_minutes)
        if shorter < constraints.duration_minutes:
            relaxed.append(("shorter_duration", replace(constraints, duration_minutes=shorter)))
        return relaxed

    def shorter_duration(self, duration_minutes: int) -> int:
        return max(self.min_relaxed_duration_minutes, duration_minutes // 2)

    def extended_range_end(self, constraints: SearchConstraints) -> date:
        """Last date any relaxation searches; busy periods must cover it."""
        return constraints.date_range_end + timedelta(days=self.extension_days)

    def suggest(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
        now: datetime,
        busy_a: Optional[Sequence[TimeInterval]] = None,
        busy_b: Optional[Sequence[TimeInterval]] = None,
    ) -> list[CandidateSlot]:
        """Find alternative slots under relaxed constraints.

        Args:
            profile_a: Requesting party.
            profile_b: Counterpart party.
            constraints: The original (unrelaxed) constraints.
            now: Reference instant for the advance-notice horizon.
            busy_a: First party's busy periods through the extended range.
            busy_b: Second party's busy periods through the extended range.

        Returns:
            Alternative slots, wider-range ones first.

        Raises:
            NoMutualAvailabilityFound: No relaxation produced a slot.
        """
        self.pipeline.constraint_filter.validate(constraints)

        suggestions: list[CandidateSlot] = []
        seen: set[tuple[datetime, datetime]] = set()

        for name, relaxed in self.relaxations(constraints):
            try:
                slots = self.pipeline.run(profile_a, profile_b, relaxed, now, busy_a, busy_b)
            except PreferenceConflict:
                slots = []

            if self.suggestions_per_relaxation is not None:
                slots = slots[: self.suggestions_per_relaxation]

            added = 0
            for slot in slots:
                key = (slot.start, slot.end)
                if key not in seen:
                    seen.add(key)
                    suggestions.append(slot)
                    added += 1

            logger.bind(
                relaxation=name,
                duration=relaxed.duration_minutes,
                range_end=str(relaxed.date_range_end),
            ).debug(f"Relaxation produced {added} alternative slots")

        if not suggestions:
            raise NoMutualAvailabilityFound(
                "No mutual availability found, even with a wider date range "
                "or a shorter duration."
            )
        return suggestions
