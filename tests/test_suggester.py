"""Tests for AlternativeSuggester."""

from datetime import date, datetime, timezone

import pytest

from mutualavail.domain.errors import InvalidDuration, NoMutualAvailabilityFound
from mutualavail.domain.models import (
    CandidateSlot,
    DailyTimeRange,
    PartyAvailabilityProfile,
    SearchConstraints,
    TimeInterval,
    Weekday,
    WeeklyAvailabilityRule,
)
from mutualavail.scheduling.suggester import AlternativeSuggester

MONDAY = date(2024, 1, 15)
SUNDAY = date(2024, 1, 21)
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def at(month: int, day: int, hour: int = 0) -> datetime:
    return datetime(2024, month, day, hour, tzinfo=timezone.utc)


class TestAlternativeSuggester:
    """Tests for relaxation order and results."""

    @pytest.fixture
    def suggester(self):
        return AlternativeSuggester()

    @pytest.fixture
    def profiles(self):
        rule = WeeklyAvailabilityRule.default()
        return (
            PartyAvailabilityProfile(party_id="a", weekly_rule=rule),
            PartyAvailabilityProfile(party_id="b", weekly_rule=rule),
        )

    @pytest.fixture
    def constraints(self):
        return SearchConstraints(MONDAY, SUNDAY, duration_minutes=120)

    @pytest.fixture
    def busy_week(self):
        """Busy all week except Monday 1 PM to 2 PM."""
        return [
            TimeInterval(at(1, 15, 0), at(1, 15, 13)),
            TimeInterval(at(1, 15, 14), at(1, 22, 0)),
        ]

    def test_relaxations(self, suggester, constraints):
        relaxed = dict(suggester.relaxations(constraints))
        assert relaxed["wider_range"].date_range_end == date(2024, 2, 4)
        assert relaxed["wider_range"].duration_minutes == 120
        assert relaxed["shorter_duration"].duration_minutes == 60
        assert relaxed["shorter_duration"].date_range_end == SUNDAY

    def test_shorter_duration_floor(self, suggester):
        assert suggester.shorter_duration(120) == 60
        assert suggester.shorter_duration(45) == 30
        assert suggester.shorter_duration(30) == 30

    def test_shorter_duration_skipped_at_floor(self, suggester):
        constraints = SearchConstraints(MONDAY, SUNDAY, duration_minutes=30)
        assert [name for name, _ in suggester.relaxations(constraints)] == ["wider_range"]

    def test_wider_range_listed_first(self, suggester, profiles, constraints, busy_week):
        profile_a, profile_b = profiles
        suggestions = suggester.suggest(
            profile_a, profile_b, constraints, NOW, busy_week, busy_week
        )

        # 14 extra days, 120-minute slots starting 9:00 through 19:00
        assert len(suggestions) == 14 * 21 + 1
        assert suggestions[0] == CandidateSlot(at(1, 22, 9), at(1, 22, 11))
        # The shorter slot is earlier in time but comes last
        assert suggestions[-1] == CandidateSlot(at(1, 15, 13), at(1, 15, 14))

    def test_each_group_chronological(self, suggester, profiles, constraints, busy_week):
        profile_a, profile_b = profiles
        suggestions = suggester.suggest(
            profile_a, profile_b, constraints, NOW, busy_week, busy_week
        )
        wider = suggestions[:-1]
        assert wider == sorted(wider)
        assert len(set(suggestions)) == len(suggestions)

    def test_cap_per_relaxation(self, profiles, constraints, busy_week):
        suggester = AlternativeSuggester(suggestions_per_relaxation=3)
        profile_a, profile_b = profiles
        suggestions = suggester.suggest(
            profile_a, profile_b, constraints, NOW, busy_week, busy_week
        )
        assert len(suggestions) == 4
        assert suggestions[-1].duration_minutes == 60

    def test_nothing_found(self, suggester, profiles, constraints):
        profile_a, profile_b = profiles
        always_busy = [TimeInterval(at(1, 1), at(3, 1))]
        with pytest.raises(NoMutualAvailabilityFound):
            suggester.suggest(profile_a, profile_b, constraints, NOW, always_busy, always_busy)

    def test_conflicting_rules_count_as_empty(self, suggester, constraints):
        mondays = PartyAvailabilityProfile(
            party_id="a",
            weekly_rule=WeeklyAvailabilityRule(
                ranges={Weekday.MONDAY: (DailyTimeRange(9, 0, 17, 0),)}
            ),
        )
        tuesdays = PartyAvailabilityProfile(
            party_id="b",
            weekly_rule=WeeklyAvailabilityRule(
                ranges={Weekday.TUESDAY: (DailyTimeRange(9, 0, 17, 0),)}
            ),
        )
        with pytest.raises(NoMutualAvailabilityFound):
            suggester.suggest(mondays, tuesdays, constraints, NOW)

    def test_invalid_constraints_rejected(self, suggester, profiles):
        profile_a, profile_b = profiles
        constraints = SearchConstraints(MONDAY, SUNDAY, duration_minutes=800)
        with pytest.raises(InvalidDuration):
            suggester.suggest(profile_a, profile_b, constraints, NOW)
