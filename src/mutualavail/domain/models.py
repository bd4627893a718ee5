"""Domain models for the mutual availability engine.

This module contains the core data structures used throughout the engine,
including weekly availability rules, recurring commitments, search
constraints, and the candidate slots produced by a search.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Iterator, Optional


class Weekday(Enum):
    """Day of the week. Values match ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def from_date(cls, d: date) -> "Weekday":
        """Get the weekday a calendar date falls on."""
        return cls(d.weekday())


@dataclass(frozen=True)
class TimeInterval:
    """A half-open ``[start, end)`` interval between two UTC instants.

    Attributes:
        start: First instant of the interval (inclusive).
        end: Instant the interval ends (exclusive).
    """

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("TimeInterval requires timezone-aware datetimes")
        if not self.start < self.end:
            raise ValueError(
                f"TimeInterval start must be before end ({self.start} >= {self.end})"
            )
        # Normalize to UTC so equality and hashing ignore the source offset
        object.__setattr__(self, "start", self.start.astimezone(timezone.utc))
        object.__setattr__(self, "end", self.end.astimezone(timezone.utc))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_minutes(self) -> int:
        """Length of the interval in whole minutes."""
        return int(self.duration.total_seconds() // 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval shares any instant with another."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        """Check if another interval lies entirely within this one."""
        return self.start <= other.start and other.end <= self.end

    def __repr__(self) -> str:
        return (
            f"TimeInterval({self.start.strftime('%Y-%m-%d %H:%M')}-"
            f"{self.end.strftime('%H:%M')} UTC)"
        )


@dataclass(frozen=True)
class DailyTimeRange:
    """A time-of-day range confined to a single calendar day.

    The range never crosses midnight. An end of 24:00 means the very end
    of the day.

    Attributes:
        start_hour: Hour the range starts (0-23).
        start_minute: Minute the range starts (0-59).
        end_hour: Hour the range ends (0-24).
        end_minute: Minute the range ends (0-59, must be 0 when end_hour is 24).
    """

    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int

    def __post_init__(self):
        if not (0 <= self.start_hour <= 23 and 0 <= self.start_minute <= 59):
            raise ValueError(f"Invalid start time {self.start_hour}:{self.start_minute:02d}")
        if not (0 <= self.end_hour <= 24 and 0 <= self.end_minute <= 59):
            raise ValueError(f"Invalid end time {self.end_hour}:{self.end_minute:02d}")
        if self.end_hour == 24 and self.end_minute != 0:
            raise ValueError("A range may not extend past 24:00")
        if self.start_minutes >= self.end_minutes:
            raise ValueError(
                f"Range start must be before end "
                f"({self.start_hour}:{self.start_minute:02d} >= "
                f"{self.end_hour}:{self.end_minute:02d})"
            )

    @classmethod
    def from_times(cls, start: time, end: Optional[time] = None) -> "DailyTimeRange":
        """Create a range from time objects. ``end=None`` means 24:00."""
        if end is None:
            return cls(start.hour, start.minute, 24, 0)
        return cls(start.hour, start.minute, end.hour, end.minute)

    @property
    def start_minutes(self) -> int:
        """Minutes from midnight when this range starts."""
        return self.start_hour * 60 + self.start_minute

    @property
    def end_minutes(self) -> int:
        """Minutes from midnight when this range ends."""
        return self.end_hour * 60 + self.end_minute

    def __repr__(self) -> str:
        return (
            f"DailyTimeRange({self.start_hour:02d}:{self.start_minute:02d}-"
            f"{self.end_hour:02d}:{self.end_minute:02d})"
        )


@dataclass
class WeeklyAvailabilityRule:
    """Per-weekday availability for a party.

    A weekday missing from ``ranges`` (or mapped to an empty tuple) means the
    party is unavailable that day. There is no implicit default.

    Attributes:
        ranges: Dict mapping weekdays to the time ranges available that day.
    """

    ranges: dict[Weekday, tuple[DailyTimeRange, ...]] = field(default_factory=dict)

    def __post_init__(self):
        self.ranges = {
            day: tuple(sorted(day_ranges, key=lambda r: (r.start_minutes, r.end_minutes)))
            for day, day_ranges in self.ranges.items()
        }

    @classmethod
    def default(cls) -> "WeeklyAvailabilityRule":
        """Every day of the week, 9 AM to 9 PM."""
        return cls.every_day(DailyTimeRange(9, 0, 21, 0))

    @classmethod
    def every_day(cls, *day_ranges: DailyTimeRange) -> "WeeklyAvailabilityRule":
        """Create a rule with the same ranges on all seven days."""
        return cls(ranges={day: tuple(day_ranges) for day in Weekday})

    def ranges_for(self, weekday: Weekday) -> tuple[DailyTimeRange, ...]:
        """Get the available ranges for a weekday (empty if unavailable)."""
        return self.ranges.get(weekday, ())

    def is_available_on(self, weekday: Weekday) -> bool:
        return bool(self.ranges_for(weekday))


@dataclass(frozen=True)
class RecurringCommitment:
    """A weekly commitment that blocks part of a day.

    Attributes:
        title: Display name of the commitment.
        weekday: Day of the week the commitment repeats on.
        start_time: Time of day the commitment starts.
        end_time: Time of day the commitment ends; None means 24:00.
        shared_with_partner: Whether the commitment should also block the
            partner's availability when a caller propagates it.
    """

    title: str
    weekday: Weekday
    start_time: time
    end_time: Optional[time] = None
    shared_with_partner: bool = True

    def __post_init__(self):
        if self.end_time is not None and self.start_time >= self.end_time:
            raise ValueError(
                f"Commitment '{self.title}' must start before it ends "
                f"({self.start_time} >= {self.end_time})"
            )

    @property
    def start_minutes(self) -> int:
        return self.start_time.hour * 60 + self.start_time.minute

    @property
    def end_minutes(self) -> int:
        if self.end_time is None:
            return 24 * 60
        return self.end_time.hour * 60 + self.end_time.minute

    def applies_to(self, d: date) -> bool:
        """Check if the commitment repeats on a given date."""
        return Weekday.from_date(d) == self.weekday


@dataclass(frozen=True)
class PartyAvailabilityProfile:
    """Availability preferences for one party (a person or a couple).

    Attributes:
        party_id: Identifier passed to busy-period providers.
        weekly_rule: Recurring weekly availability.
        commitments: Recurring commitments subtracted from the weekly rule.
        use_calendar_busy_periods: If True, external calendar busy periods
            are subtracted from the party's free windows.
        display_name: Human-readable name for reports.
    """

    party_id: str
    weekly_rule: WeeklyAvailabilityRule = field(default_factory=WeeklyAvailabilityRule)
    commitments: tuple[RecurringCommitment, ...] = ()
    use_calendar_busy_periods: bool = True
    display_name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "commitments", tuple(self.commitments))

    @property
    def label(self) -> str:
        return self.display_name or self.party_id

    def commitments_on(self, weekday: Weekday) -> list[RecurringCommitment]:
        """Get commitments repeating on a weekday."""
        return [c for c in self.commitments if c.weekday == weekday]

    def shared_commitments(self) -> list[RecurringCommitment]:
        return [c for c in self.commitments if c.shared_with_partner]


def propagate_shared_commitments(
    profile: PartyAvailabilityProfile,
    partner: PartyAvailabilityProfile,
) -> PartyAvailabilityProfile:
    """Return a copy of ``profile`` that also carries the partner's shared commitments.

    The engine only consumes a single profile's own commitments. Callers that
    want a partner's shared commitments to block this party as well apply this
    before searching.
    """
    extra = tuple(c for c in partner.shared_commitments() if c not in profile.commitments)
    if not extra:
        return profile
    return replace(profile, commitments=profile.commitments + extra)


@dataclass(frozen=True)
class SearchConstraints:
    """Parameters bounding a mutual availability search.

    Constraints are validated by ``ConstraintFilter.validate`` rather than on
    construction, so that invalid requests surface as typed errors.

    Attributes:
        date_range_start: First calendar date to search (inclusive).
        date_range_end: Last calendar date to search (inclusive).
        duration_minutes: Required slot length (15 to 720 minutes).
        min_advance_notice_hours: Earliest a slot may start, relative to now.
        max_advance_days: Latest a slot may start, relative to now.
        require_both_free: If False, the second party's calendar busy
            periods are ignored (weekly rules and commitments still apply).
        require_calendar_data: If True, a failed calendar fetch fails the
            search instead of degrading to rule-only availability.
    """

    date_range_start: date
    date_range_end: date
    duration_minutes: int = 120
    min_advance_notice_hours: int = 2
    max_advance_days: int = 90
    require_both_free: bool = True
    require_calendar_data: bool = False

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)

    @property
    def search_dates(self) -> list[date]:
        """List of all dates in the search range."""
        dates = []
        current = self.date_range_start
        while current <= self.date_range_end:
            dates.append(current)
            current += timedelta(days=1)
        return dates

    @property
    def num_days(self) -> int:
        """Number of days in the search range."""
        return (self.date_range_end - self.date_range_start).days + 1

    def earliest_start(self, now: datetime) -> datetime:
        """Earliest instant a slot may start."""
        return now + timedelta(hours=self.min_advance_notice_hours)

    def latest_start(self, now: datetime) -> datetime:
        """Latest instant a slot may start."""
        return now + timedelta(days=self.max_advance_days)


@dataclass(frozen=True, order=True)
class CandidateSlot:
    """A concrete mutually free slot of the requested duration.

    Attributes:
        start: UTC instant the slot starts.
        end: UTC instant the slot ends.
    """

    start: datetime
    end: datetime

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def local_date(self, tz: tzinfo = timezone.utc) -> date:
        """Calendar date the slot starts on in a given timezone."""
        return self.start.astimezone(tz).date()

    def day_string(self, tz: tzinfo = timezone.utc) -> str:
        """Day label, e.g. "Monday, Jan 15"."""
        local = self.start.astimezone(tz)
        return f"{local.strftime('%A, %b')} {local.day}"

    def time_range_string(self, tz: tzinfo = timezone.utc) -> str:
        """Time range label, e.g. "1:00 PM - 2:00 PM"."""
        return f"{_clock(self.start.astimezone(tz))} - {_clock(self.end.astimezone(tz))}"

    def __repr__(self) -> str:
        return (
            f"CandidateSlot({self.start.strftime('%Y-%m-%d %H:%M')}-"
            f"{self.end.strftime('%H:%M')} UTC)"
        )


def _clock(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment.minute:02d} {'AM' if moment.hour < 12 else 'PM'}"


@dataclass
class RankedSlots:
    """Search result: candidate slots grouped by local calendar day.

    Days are kept in chronological order and each day's slots are sorted
    by start time.

    Attributes:
        by_day: Dict mapping local dates to that day's slots.
        is_alternative: True when the slots come from relaxed constraints.
    """

    by_day: dict[date, list[CandidateSlot]] = field(default_factory=dict)
    is_alternative: bool = False

    @property
    def days(self) -> list[date]:
        return list(self.by_day.keys())

    @property
    def total_slots(self) -> int:
        return sum(len(slots) for slots in self.by_day.values())

    @property
    def is_empty(self) -> bool:
        return self.total_slots == 0

    @property
    def first_slot(self) -> Optional[CandidateSlot]:
        """Earliest slot in the result, if any."""
        for slots in self.by_day.values():
            if slots:
                return slots[0]
        return None

    def all_slots(self) -> list[CandidateSlot]:
        """Every slot in chronological order."""
        return [slot for slots in self.by_day.values() for slot in slots]

    def slots_on(self, d: date) -> list[CandidateSlot]:
        return self.by_day.get(d, [])

    def __iter__(self) -> Iterator[tuple[date, list[CandidateSlot]]]:
        return iter(self.by_day.items())

    def __len__(self) -> int:
        return len(self.by_day)
