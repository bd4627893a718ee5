"""Command-line interface for the mutual availability engine."""

import argparse
import asyncio
import json
import sys
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

from loguru import logger

from mutualavail.domain.errors import AvailabilityError
from mutualavail.domain.models import (
    DailyTimeRange,
    PartyAvailabilityProfile,
    RankedSlots,
    RecurringCommitment,
    SearchConstraints,
    TimeInterval,
    Weekday,
    WeeklyAvailabilityRule,
)
from mutualavail.output.debug_generator import DebugGenerator
from mutualavail.providers.memory import StaticBusyPeriodProvider
from mutualavail.scheduling.engine import AvailabilityEngine, EngineConfig
from mutualavail.scheduling.resolver import local_instant


def create_sample_profiles(
    start_date: date,
    days: int = 7,
    tz: tzinfo = timezone.utc,
) -> tuple[PartyAvailabilityProfile, PartyAvailabilityProfile, dict[str, list[TimeInterval]]]:
    """Create two sample couples and some calendar busy periods.

    Args:
        start_date: First date the busy periods are generated for.
        days: Number of days to generate busy periods for.
        tz: Timezone the sample times are written in.

    Returns:
        Both profiles and a dict mapping party IDs to busy intervals.
    """
    evenings = DailyTimeRange(17, 0, 22, 0)
    weekend = DailyTimeRange(9, 0, 22, 0)

    # Weekday evenings plus whole weekends
    rule_a = WeeklyAvailabilityRule(
        ranges={
            **{day: (evenings,) for day in Weekday if day.value < 5},
            Weekday.SATURDAY: (weekend,),
            Weekday.SUNDAY: (weekend,),
        }
    )
    # Late evenings during the week, weekend afternoons
    rule_b = WeeklyAvailabilityRule(
        ranges={
            **{day: (DailyTimeRange(18, 30, 23, 0),) for day in Weekday if day.value < 5},
            Weekday.SATURDAY: (DailyTimeRange(12, 0, 20, 0),),
            Weekday.SUNDAY: (DailyTimeRange(12, 0, 20, 0),),
        }
    )

    profile_a = PartyAvailabilityProfile(
        party_id="couple-a",
        display_name="Alice & Bob",
        weekly_rule=rule_a,
        commitments=(
            RecurringCommitment("Choir practice", Weekday.WEDNESDAY, time(19, 0), time(21, 0)),
        ),
    )
    profile_b = PartyAvailabilityProfile(
        party_id="couple-b",
        display_name="Carol & Dan",
        weekly_rule=rule_b,
        commitments=(
            RecurringCommitment(
                "Sunday brunch", Weekday.SUNDAY, time(12, 0), time(14, 0),
                shared_with_partner=False,
            ),
        ),
    )

    busy: dict[str, list[TimeInterval]] = {"couple-a": [], "couple-b": []}
    for offset in range(days):
        d = start_date + timedelta(days=offset)
        if offset % 3 == 0:
            # Dinner plans
            busy["couple-a"].append(
                TimeInterval(local_instant(d, 18 * 60, tz), local_instant(d, 20 * 60, tz))
            )
        if offset % 4 == 1:
            # Late meeting
            busy["couple-b"].append(
                TimeInterval(local_instant(d, 18 * 60, tz), local_instant(d, 19 * 60 + 30, tz))
            )

    return profile_a, profile_b, busy


def parse_profile(data: dict[str, Any]) -> PartyAvailabilityProfile:
    """Build a profile from its JSON representation.

    Example:
        {
            "party_id": "couple-a",
            "display_name": "Alice & Bob",
            "weekly_rule": {"monday": ["09:00-17:00"], "saturday": ["10:00-24:00"]},
            "commitments": [
                {"title": "Gym", "weekday": "monday", "start": "12:00", "end": "13:00"}
            ]
        }

    A missing ``weekly_rule`` means the default rule (every day, 9 AM to 9 PM).
    """
    rule_data = data.get("weekly_rule")
    if rule_data is None:
        weekly_rule = WeeklyAvailabilityRule.default()
    else:
        weekly_rule = WeeklyAvailabilityRule(
            ranges={
                Weekday[day.upper()]: tuple(_parse_range(r) for r in ranges)
                for day, ranges in rule_data.items()
            }
        )

    commitments = tuple(
        RecurringCommitment(
            title=c["title"],
            weekday=Weekday[c["weekday"].upper()],
            start_time=time.fromisoformat(c["start"]),
            end_time=_parse_end_time(c.get("end")),
            shared_with_partner=c.get("shared_with_partner", True),
        )
        for c in data.get("commitments", [])
    )

    return PartyAvailabilityProfile(
        party_id=data["party_id"],
        weekly_rule=weekly_rule,
        commitments=commitments,
        use_calendar_busy_periods=data.get("use_calendar_busy_periods", True),
        display_name=data.get("display_name", ""),
    )


def parse_constraints(data: dict[str, Any]) -> SearchConstraints:
    """Build search constraints from their JSON representation."""
    return SearchConstraints(
        date_range_start=date.fromisoformat(data["date_range_start"]),
        date_range_end=date.fromisoformat(data["date_range_end"]),
        duration_minutes=data.get("duration_minutes", 120),
        min_advance_notice_hours=data.get("min_advance_notice_hours", 2),
        max_advance_days=data.get("max_advance_days", 90),
        require_both_free=data.get("require_both_free", True),
        require_calendar_data=data.get("require_calendar_data", False),
    )


def _parse_range(text: str) -> DailyTimeRange:
    start, end = text.split("-")
    start_hour, start_minute = (int(part) for part in start.split(":"))
    end_hour, end_minute = (int(part) for part in end.split(":"))
    return DailyTimeRange(start_hour, start_minute, end_hour, end_minute)


def _search_days(text: str) -> int:
    """Argparse type for --days. A search range spans at least two dates."""
    days = int(text)
    if days < 2:
        raise argparse.ArgumentTypeError(f"must be at least 2, got {days}")
    return days


def _parse_end_time(text: Optional[str]) -> Optional[time]:
    """Parse a commitment end time. "24:00" or a missing value means end of day."""
    if text is None or text == "24:00":
        return None
    return time.fromisoformat(text)


def _parse_busy(items: list[dict[str, str]]) -> list[TimeInterval]:
    return [
        TimeInterval(datetime.fromisoformat(item["start"]), datetime.fromisoformat(item["end"]))
        for item in items
    ]


def print_ranked(ranked: RankedSlots, tz: tzinfo) -> None:
    """Print slots grouped by day."""
    if ranked.is_empty:
        print("\nNo mutual availability found.")
        return

    heading = "Suggested alternatives" if ranked.is_alternative else "Mutual availability"
    print(f"\n{heading}: {ranked.total_slots} slots across {len(ranked)} days")
    for _, slots in ranked:
        print(f"\n  {slots[0].day_string(tz)}")
        for slot in slots:
            print(f"    {slot.time_range_string(tz)}")


def print_error(error: AvailabilityError) -> None:
    print(f"\n{error.title}: {error.message}")
    if error.recovery_suggestion:
        print(f"  {error.recovery_suggestion}")


async def _search(
    engine: AvailabilityEngine,
    profile_a: PartyAvailabilityProfile,
    profile_b: PartyAvailabilityProfile,
    constraints: SearchConstraints,
    output_path: Optional[str],
) -> RankedSlots:
    ranked = await engine.search(profile_a, profile_b, constraints)
    if output_path:
        outcome, snapshot_a, snapshot_b = await engine.explain(profile_a, profile_b, constraints)
        generator = DebugGenerator(tz=engine.config.timezone)
        generator.generate(
            outcome,
            profile_a,
            profile_b,
            constraints,
            output_path,
            snapshots=(snapshot_a, snapshot_b),
            now=engine.clock(),
        )
    return ranked


def run_demo(
    days: int = 7,
    duration_minutes: int = 120,
    output_path: Optional[str] = None,
    tz_name: str = "UTC",
    suggest: bool = False,
) -> int:
    """Run a demo search between two sample couples."""
    tz = ZoneInfo(tz_name)
    start_date = date.today() + timedelta(days=1)
    end_date = start_date + timedelta(days=days - 1)

    print(f"Searching {days} days for {duration_minutes}-minute slots ({tz_name})...")

    config = EngineConfig(timezone=tz, suggest_on_empty=suggest)
    profile_a, profile_b, busy = create_sample_profiles(
        start_date, days + config.extension_days, tz
    )
    engine = AvailabilityEngine(providers=[StaticBusyPeriodProvider(busy)], config=config)
    constraints = SearchConstraints(
        date_range_start=start_date,
        date_range_end=end_date,
        duration_minutes=duration_minutes,
    )

    print(f"  {profile_a.label} and {profile_b.label}, {start_date} to {end_date}")

    try:
        ranked = asyncio.run(_search(engine, profile_a, profile_b, constraints, output_path))
    except AvailabilityError as e:
        print_error(e)
        return 1

    print_ranked(ranked, tz)
    if output_path:
        print(f"\nDebug report written to {output_path}")
    return 0


def run_search_file(
    input_path: str,
    output_path: Optional[str] = None,
    suggest: bool = False,
) -> int:
    """Run a search described by a JSON file.

    The file holds ``parties`` (exactly two profiles, each optionally with
    ``busy`` intervals), ``constraints`` and an optional ``timezone``.
    """
    data = json.loads(Path(input_path).read_text())

    parties = data.get("parties", [])
    if len(parties) != 2:
        print(f"Expected exactly two parties in {input_path}, found {len(parties)}")
        return 1

    tz = ZoneInfo(data.get("timezone", "UTC"))
    profile_a, profile_b = (parse_profile(p) for p in parties)
    busy = {p["party_id"]: _parse_busy(p.get("busy", [])) for p in parties}
    constraints = parse_constraints(data["constraints"])

    engine = AvailabilityEngine(
        providers=[StaticBusyPeriodProvider(busy)],
        config=EngineConfig(timezone=tz, suggest_on_empty=suggest),
    )

    try:
        ranked = asyncio.run(_search(engine, profile_a, profile_b, constraints, output_path))
    except AvailabilityError as e:
        print_error(e)
        return 1

    print_ranked(ranked, tz)
    return 0


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Mutual Availability - find times two parties are both free",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                        Search the next 7 days for 2-hour slots
  %(prog)s demo --days 14 --duration 60
  %(prog)s demo --timezone Europe/Berlin
  %(prog)s demo --debug report.txt     Write a debug report

  %(prog)s search request.json         Search using profiles from a JSON file
  %(prog)s search request.json --suggest
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run a demo search between two sample couples")
    demo_parser.add_argument(
        "--days", "-d",
        type=_search_days,
        default=7,
        help="Number of days to search, at least 2 (default: 7)",
    )
    demo_parser.add_argument(
        "--duration", "-D",
        type=int,
        default=120,
        help="Slot duration in minutes (default: 120)",
    )
    demo_parser.add_argument(
        "--timezone", "-t",
        type=str,
        default="UTC",
        help="IANA timezone the sample availability is written in (default: UTC)",
    )
    demo_parser.add_argument(
        "--debug", "-o",
        type=str,
        help="Write a debug text report to this path",
    )
    demo_parser.add_argument(
        "--suggest", "-s",
        action="store_true",
        help="Suggest alternatives when nothing is found",
    )

    # Search command
    search_parser = subparsers.add_parser("search", help="Search using a JSON request file")
    search_parser.add_argument("input", type=str, help="Path to the JSON request file")
    search_parser.add_argument(
        "--debug", "-o",
        type=str,
        help="Write a debug text report to this path",
    )
    search_parser.add_argument(
        "--suggest", "-s",
        action="store_true",
        help="Suggest alternatives when nothing is found",
    )

    args = parser.parse_args()
    configure_logging(args.verbose)

    if args.command == "demo":
        return run_demo(args.days, args.duration, args.debug, args.timezone, args.suggest)
    elif args.command == "search":
        return run_search_file(args.input, args.debug, args.suggest)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
