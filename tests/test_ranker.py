"""Tests for SlotRanker and RankedSlots."""

from datetime import date, datetime, timedelta, timezone

import pytest

from mutualavail.domain.models import CandidateSlot
from mutualavail.scheduling.ranker import SlotRanker

MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)


def slot(d: date, hour: int, minute: int = 0) -> CandidateSlot:
    start = datetime(d.year, d.month, d.day, hour, minute, tzinfo=timezone.utc)
    return CandidateSlot(start, start + timedelta(hours=1))


class TestSlotRanker:
    """Tests for grouping slots by day."""

    @pytest.fixture
    def ranker(self):
        return SlotRanker()

    def test_groups_by_day_in_order(self, ranker):
        ranked = ranker.rank([slot(TUESDAY, 9), slot(MONDAY, 14), slot(MONDAY, 13)])
        assert ranked.days == [MONDAY, TUESDAY]
        assert ranked.slots_on(MONDAY) == [slot(MONDAY, 13), slot(MONDAY, 14)]
        assert ranked.total_slots == 3
        assert ranked.first_slot == slot(MONDAY, 13)

    def test_duplicates_collapse(self, ranker):
        ranked = ranker.rank([slot(MONDAY, 13), slot(MONDAY, 13)])
        assert ranked.total_slots == 1

    def test_empty(self, ranker):
        ranked = ranker.rank([])
        assert ranked.is_empty
        assert ranked.first_slot is None
        assert len(ranked) == 0

    def test_alternative_flag(self, ranker):
        assert ranker.rank([slot(MONDAY, 9)], is_alternative=True).is_alternative

    def test_groups_by_local_date(self):
        """23:30 UTC Monday is already Tuesday at UTC+2."""
        ranker = SlotRanker(tz=timezone(timedelta(hours=2)))
        ranked = ranker.rank([slot(MONDAY, 23, 30)])
        assert ranked.days == [TUESDAY]

    def test_all_slots_chronological(self, ranker):
        slots = [slot(TUESDAY, 9), slot(MONDAY, 14), slot(MONDAY, 9)]
        assert ranker.rank(slots).all_slots() == sorted(slots)


class TestCandidateSlotLabels:
    """Tests for the display helpers on CandidateSlot."""

    def test_day_string(self):
        assert slot(MONDAY, 13).day_string() == "Monday, Jan 15"

    def test_time_range_string(self):
        assert slot(MONDAY, 13).time_range_string() == "1:00 PM - 2:00 PM"
        assert slot(MONDAY, 11, 30).time_range_string() == "11:30 AM - 12:30 PM"
        assert slot(MONDAY, 0).time_range_string() == "12:00 AM - 1:00 AM"

    def test_labels_in_local_time(self):
        tz = timezone(timedelta(hours=-5))
        assert slot(MONDAY, 2).day_string(tz) == "Sunday, Jan 14"
        assert slot(MONDAY, 2).time_range_string(tz) == "9:00 PM - 10:00 PM"
