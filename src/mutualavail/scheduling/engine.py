"""Main availability engine interface.

This module provides the high-level AvailabilityEngine that orchestrates
busy-period fetching, the slot pipeline, ranking, and alternative
suggestions.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, Iterator, Optional, Sequence

from loguru import logger

from mutualavail.domain.errors import AvailabilityError, InternalError
from mutualavail.domain.models import (
    CandidateSlot,
    PartyAvailabilityProfile,
    RankedSlots,
    SearchConstraints,
    TimeInterval,
)
from mutualavail.domain.state import SearchState
from mutualavail.providers.base import AvailabilityProfileStore, BusyPeriodProvider
from mutualavail.providers.fetcher import BusyPeriodFetcher, BusySnapshot
from mutualavail.scheduling.busy_merger import BusyIntervalMerger
from mutualavail.scheduling.intersection import IntersectionEngine
from mutualavail.scheduling.pipeline import PipelineOutcome, SlotPipeline
from mutualavail.scheduling.ranker import SlotRanker
from mutualavail.scheduling.resolver import WeeklyAvailabilityResolver, local_instant
from mutualavail.scheduling.suggester import AlternativeSuggester
from mutualavail.validation.validator import ConstraintFilter


@dataclass
class EngineConfig:
    """Configuration for the availability engine.

    Attributes:
        timezone: Timezone weekly rules are written in and results are
            grouped by.
        granularity_minutes: Spacing between candidate slot starts.
        anchor_final_slot: Also offer a slot ending exactly at the end of a
            mutual window when the grid misses it.
        provider_timeout_seconds: Time limit for each provider fetch.
        extension_days: Days added to the range by the wider-range relaxation.
        min_relaxed_duration_minutes: Floor for the shorter-duration relaxation.
        suggestions_per_relaxation: Cap on slots kept from each relaxation
            (None keeps all).
        suggest_on_empty: If True, an empty search returns alternatives
            instead of an empty result.
    """

    timezone: tzinfo = timezone.utc
    granularity_minutes: int = 30
    anchor_final_slot: bool = False
    provider_timeout_seconds: float = 10.0
    extension_days: int = 14
    min_relaxed_duration_minutes: int = 30
    suggestions_per_relaxation: Optional[int] = None
    suggest_on_empty: bool = False


class AvailabilityEngine:
    """High-level engine for finding mutual availability between two parties.

    The engine validates constraints, fetches both parties' busy periods
    concurrently, runs the pure slot pipeline and groups the result by day.
    Each call is independent; the engine holds no per-search state.

    Example:
        >>> engine = AvailabilityEngine(providers=[calendar_provider])
        >>> constraints = SearchConstraints(
        ...     date_range_start=date(2024, 1, 15),
        ...     date_range_end=date(2024, 1, 21),
        ...     duration_minutes=60,
        ... )
        >>> ranked = await engine.search(profile_a, profile_b, constraints)
    """

    def __init__(
        self,
        providers: Sequence[BusyPeriodProvider] = (),
        profile_store: Optional[AvailabilityProfileStore] = None,
        config: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the engine with its collaborators.

        Args:
            providers: Calendar busy-period providers queried for each party.
            profile_store: Store used by the party-ID entry points.
            config: Engine configuration.
            clock: Returns the current UTC instant; defaults to the system clock.
        """
        self.config = config or EngineConfig()
        self.profile_store = profile_store
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.constraint_filter = ConstraintFilter()
        self.pipeline = SlotPipeline(
            resolver=WeeklyAvailabilityResolver(tz=self.config.timezone),
            merger=BusyIntervalMerger(),
            intersection=IntersectionEngine(
                granularity_minutes=self.config.granularity_minutes,
                anchor_final_slot=self.config.anchor_final_slot,
                tz=self.config.timezone,
            ),
            constraint_filter=self.constraint_filter,
        )
        self.suggester = AlternativeSuggester(
            pipeline=self.pipeline,
            extension_days=self.config.extension_days,
            min_relaxed_duration_minutes=self.config.min_relaxed_duration_minutes,
            suggestions_per_relaxation=self.config.suggestions_per_relaxation,
        )
        self.ranker = SlotRanker(tz=self.config.timezone)
        self.fetcher = BusyPeriodFetcher(
            providers=providers,
            timeout_seconds=self.config.provider_timeout_seconds,
        )

    async def search(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
    ) -> RankedSlots:
        """Find every slot both parties are free for.

        Args:
            profile_a: Requesting party.
            profile_b: Counterpart party.
            constraints: Search constraints.

        Returns:
            Slots grouped by day. Empty when nothing fits, unless
            ``config.suggest_on_empty`` is set.

        Raises:
            InvalidTimeRange, InvalidDuration: Before any provider is called.
            CalendarSyncFailed: Calendar data was required but unavailable.
            PreferenceConflict: The weekly rules never overlap.
            NoMutualAvailabilityFound: Only with ``suggest_on_empty``, when
                the relaxations found nothing either.
            InternalError: Any unexpected failure.
        """
        self.constraint_filter.validate(constraints)
        self._warn_on_mismatched_settings(profile_a, profile_b)

        log = logger.bind(
            party_a=profile_a.party_id,
            party_b=profile_b.party_id,
            start=str(constraints.date_range_start),
            end=str(constraints.date_range_end),
            duration=constraints.duration_minutes,
        )
        log.info("Searching mutual availability")

        with _internal_errors("search"):
            now = self.clock()
            fetch_until = constraints.date_range_end
            if self.config.suggest_on_empty:
                fetch_until = self.suggester.extended_range_end(constraints)
            snapshot_a, snapshot_b = await self._fetch(
                profile_a, profile_b, constraints, fetch_until
            )

            slots = self.pipeline.run(
                profile_a,
                profile_b,
                constraints,
                now,
                snapshot_a.intervals,
                snapshot_b.intervals,
            )
            if slots or not self.config.suggest_on_empty:
                ranked = self.ranker.rank(slots)
                log.info(f"Found {ranked.total_slots} slots across {len(ranked)} days")
                return ranked

            log.info("No slots found, trying relaxed constraints")
            alternatives = self.suggester.suggest(
                profile_a,
                profile_b,
                constraints,
                now,
                snapshot_a.intervals,
                snapshot_b.intervals,
            )
            return self.ranker.rank(alternatives, is_alternative=True)

    async def suggest_alternatives(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
    ) -> list[CandidateSlot]:
        """Suggest slots under relaxed constraints.

        Callable on its own, typically after ``search`` came back empty.

        Returns:
            Alternative slots: wider-range ones first, then shorter ones.

        Raises:
            NoMutualAvailabilityFound: Neither relaxation found a slot.
        """
        self.constraint_filter.validate(constraints)

        with _internal_errors("suggest_alternatives"):
            now = self.clock()
            snapshot_a, snapshot_b = await self._fetch(
                profile_a,
                profile_b,
                constraints,
                self.suggester.extended_range_end(constraints),
            )
            return self.suggester.suggest(
                profile_a,
                profile_b,
                constraints,
                now,
                snapshot_a.intervals,
                snapshot_b.intervals,
            )

    async def search_parties(
        self,
        party_a_id: str,
        party_b_id: str,
        constraints: SearchConstraints,
    ) -> RankedSlots:
        """Search using profiles loaded from the profile store.

        Raises:
            RelationshipNotFound, PermissionDenied: From the profile store.
        """
        self.constraint_filter.validate(constraints)
        profile_a, profile_b = self._load_profiles(party_a_id, party_b_id)
        return await self.search(profile_a, profile_b, constraints)

    async def suggest_for_parties(
        self,
        party_a_id: str,
        party_b_id: str,
        constraints: SearchConstraints,
    ) -> list[CandidateSlot]:
        """Suggest alternatives using profiles loaded from the profile store."""
        self.constraint_filter.validate(constraints)
        profile_a, profile_b = self._load_profiles(party_a_id, party_b_id)
        return await self.suggest_alternatives(profile_a, profile_b, constraints)

    def compute_slots(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
        now: Optional[datetime] = None,
        busy_a: Optional[Sequence[TimeInterval]] = None,
        busy_b: Optional[Sequence[TimeInterval]] = None,
    ) -> list[CandidateSlot]:
        """Run the synchronous pipeline on busy periods the caller already has."""
        return self.pipeline.run(
            profile_a, profile_b, constraints, now or self.clock(), busy_a, busy_b
        )

    async def run_search(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
    ) -> SearchState:
        """Run a search and describe the outcome as a SearchState, never raising."""
        try:
            ranked = await self.search(profile_a, profile_b, constraints)
        except AvailabilityError as e:
            return SearchState.failed(e)
        return SearchState.results(ranked)

    async def explain(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
    ) -> tuple[PipelineOutcome, BusySnapshot, BusySnapshot]:
        """Run a search and return every intermediate result, for reports."""
        self.constraint_filter.validate(constraints)
        with _internal_errors("explain"):
            now = self.clock()
            snapshot_a, snapshot_b = await self._fetch(
                profile_a, profile_b, constraints, constraints.date_range_end
            )
            outcome = self.pipeline.evaluate(
                profile_a,
                profile_b,
                constraints,
                now,
                snapshot_a.intervals,
                snapshot_b.intervals,
            )
            return outcome, snapshot_a, snapshot_b

    async def _fetch(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
        until: date,
    ) -> tuple[BusySnapshot, BusySnapshot]:
        tz = self.config.timezone
        start = local_instant(constraints.date_range_start, 0, tz)
        end = local_instant(until, 24 * 60, tz)
        return await self.fetcher.fetch_pair(
            profile_a,
            profile_b,
            start,
            end,
            require_calendar_data=constraints.require_calendar_data,
            include_b=constraints.require_both_free,
        )

    def _load_profiles(
        self,
        party_a_id: str,
        party_b_id: str,
    ) -> tuple[PartyAvailabilityProfile, PartyAvailabilityProfile]:
        if self.profile_store is None:
            raise InternalError("No availability profile store configured")
        with _internal_errors("load_profiles"):
            return self.profile_store.get(party_a_id), self.profile_store.get(party_b_id)

    def _warn_on_mismatched_settings(
        self,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
    ) -> None:
        if profile_a.use_calendar_busy_periods != profile_b.use_calendar_busy_periods:
            logger.bind(party_a=profile_a.party_id, party_b=profile_b.party_id).warning(
                "Parties disagree on calendar usage; only one side's calendar is consulted"
            )


@contextmanager
def _internal_errors(operation: str) -> Iterator[None]:
    """Re-raise anything that is not an AvailabilityError as InternalError."""
    try:
        yield
    except AvailabilityError:
        raise
    except Exception as e:
        logger.bind(operation=operation).exception("Unexpected failure during availability search")
        raise InternalError(str(e)) from e
