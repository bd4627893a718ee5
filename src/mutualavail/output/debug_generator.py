"""Debug text output for availability analysis.

This module creates text-based debug output to analyze:
- Each party's free windows after weekly rules and busy periods
- Mutually free windows per day
- Candidate slots and how many the horizon filter removed
"""

from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from typing import Optional, Union

from mutualavail.domain.intervals import FreeWindows, total_minutes
from mutualavail.domain.models import (
    PartyAvailabilityProfile,
    SearchConstraints,
    TimeInterval,
)
from mutualavail.providers.fetcher import BusySnapshot
from mutualavail.scheduling.pipeline import PipelineOutcome
from mutualavail.scheduling.ranker import SlotRanker
from mutualavail.validation.validator import SlotValidator


class DebugGenerator:
    """Generates debug text output for availability analysis.

    Creates human-readable text files showing:
    - Per-party free windows with daily totals
    - Mutual windows and the slots enumerated from them
    - Validation of the final slot list
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or timezone.utc

    def generate(
        self,
        outcome: PipelineOutcome,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
        output_path: Union[str, Path],
        snapshots: Optional[tuple[BusySnapshot, BusySnapshot]] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Generate debug text output and save to file.

        Args:
            outcome: Pipeline outcome to analyze.
            profile_a: First party's profile.
            profile_b: Second party's profile.
            constraints: Constraints the outcome was computed for.
            output_path: Path to save the text file.
            snapshots: Busy-period snapshots the outcome was computed from.
            now: Reference instant used for the horizon filter.

        Returns:
            The generated text content.
        """
        content = self._generate_content(
            outcome, profile_a, profile_b, constraints, snapshots, now
        )
        Path(output_path).write_text(content)
        return content

    def generate_to_string(
        self,
        outcome: PipelineOutcome,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
        snapshots: Optional[tuple[BusySnapshot, BusySnapshot]] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Generate debug text output and return as string."""
        return self._generate_content(
            outcome, profile_a, profile_b, constraints, snapshots, now
        )

    def _generate_content(
        self,
        outcome: PipelineOutcome,
        profile_a: PartyAvailabilityProfile,
        profile_b: PartyAvailabilityProfile,
        constraints: SearchConstraints,
        snapshots: Optional[tuple[BusySnapshot, BusySnapshot]],
        now: Optional[datetime],
    ) -> str:
        """Generate the full debug content."""
        lines = []

        # Header
        lines.append("=" * 80)
        lines.append(
            f"AVAILABILITY DEBUG OUTPUT - {constraints.date_range_start} to "
            f"{constraints.date_range_end}"
        )
        lines.append("=" * 80)
        lines.append("")

        lines.append(f"Parties: {profile_a.label} / {profile_b.label}")
        lines.append(f"Duration: {constraints.duration_minutes} minutes")
        lines.append(f"Days Searched: {constraints.num_days}")
        lines.append(
            f"Horizon: {constraints.min_advance_notice_hours}h notice, "
            f"{constraints.max_advance_days} days ahead"
        )
        lines.append(f"Both Must Be Free: {'yes' if constraints.require_both_free else 'no'}")
        lines.append("")

        if snapshots is not None:
            lines.append("-" * 80)
            lines.append("CALENDAR DATA")
            lines.append("-" * 80)
            for snapshot in snapshots:
                lines.append(f"{snapshot.party_id:<20} {self._calendar_status(snapshot)}")
            lines.append("")

        for profile, free in ((profile_a, outcome.free_a), (profile_b, outcome.free_b)):
            lines.append("-" * 80)
            lines.append(f"FREE WINDOWS - {profile.label}")
            lines.append("-" * 80)
            lines.extend(self._window_lines(free))
            lines.append("")

        lines.append("-" * 80)
        lines.append("MUTUAL WINDOWS")
        lines.append("-" * 80)
        if outcome.mutual:
            lines.extend(self._window_lines(outcome.mutual))
        else:
            lines.append("No mutual windows.")
        lines.append("")

        # Candidate slots grouped by day
        lines.append("-" * 80)
        lines.append("CANDIDATE SLOTS")
        lines.append("-" * 80)
        ranked = SlotRanker(tz=self.tz).rank(outcome.slots)
        for _, slots in ranked:
            lines.append(f"{slots[0].day_string(self.tz)} ({len(slots)} slots):")
            for slot in slots:
                lines.append(f"    {slot.time_range_string(self.tz)}")
        removed = len(outcome.unfiltered) - len(outcome.slots)
        lines.append("")
        lines.append(f"Slots enumerated: {len(outcome.unfiltered)}")
        lines.append(f"Removed by horizon filter: {removed}")
        lines.append(f"Slots offered: {len(outcome.slots)}")
        lines.append("")

        # Validation
        lines.append("-" * 80)
        lines.append("VALIDATION")
        lines.append("-" * 80)
        result = SlotValidator().validate(
            outcome.slots,
            constraints,
            free_a=outcome.free_a,
            free_b=outcome.free_b,
            now=now,
        )
        if result.is_valid:
            lines.append("All slots valid.")
        for error in result.errors:
            lines.append(f"ERROR: {error}")
        for warning in result.warnings:
            lines.append(f"WARNING: {warning}")

        lines.append("")
        lines.append("=" * 80)

        return "\n".join(lines)

    def _window_lines(self, windows: FreeWindows) -> list[str]:
        lines = []
        for d in sorted(windows):
            intervals = windows[d]
            if not intervals:
                lines.append(f"{self._date_str(d)}: unavailable")
                continue
            spans = ", ".join(self._interval_str(interval) for interval in intervals)
            hours = total_minutes(intervals) / 60
            lines.append(f"{self._date_str(d)}: {spans} ({hours:.1f}h)")
        return lines

    def _interval_str(self, interval: TimeInterval) -> str:
        start = interval.start.astimezone(self.tz)
        end = interval.end.astimezone(self.tz)
        end_str = end.strftime("%H:%M")
        if end_str == "00:00" and end.date() > start.date():
            end_str = "24:00"
        return f"{start.strftime('%H:%M')}-{end_str}"

    def _date_str(self, d: date) -> str:
        return d.strftime("%a %Y-%m-%d")

    def _calendar_status(self, snapshot: BusySnapshot) -> str:
        if snapshot.degraded:
            return f"unavailable, weekly rule only ({snapshot.reason})"
        if not snapshot.has_calendar_data:
            return "not used"
        return f"{len(snapshot.intervals)} busy periods"
