"""Tests for IntersectionEngine."""

from datetime import date, datetime, timedelta, timezone

import pytest

from mutualavail.domain.models import CandidateSlot, TimeInterval
from mutualavail.scheduling.intersection import IntersectionEngine

MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)


def at(hour: int, minute: int = 0, d: date = MONDAY) -> datetime:
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=timezone.utc)


def starts(slots: list[CandidateSlot]) -> list[tuple[int, int]]:
    return [(s.start.hour, s.start.minute) for s in slots]


class TestEnumerateSlots:
    """Tests for slot enumeration inside one mutual window."""

    @pytest.fixture
    def engine(self):
        return IntersectionEngine()

    def test_exact_fit(self, engine):
        slots = engine.enumerate_slots(TimeInterval(at(13), at(14)), 60)
        assert slots == [CandidateSlot(at(13), at(14))]

    def test_window_too_short(self, engine):
        assert engine.enumerate_slots(TimeInterval(at(13), at(13, 45)), 60) == []

    def test_starts_on_grid(self, engine):
        slots = engine.enumerate_slots(TimeInterval(at(13, 10), at(15)), 60)
        assert starts(slots) == [(13, 30), (14, 0)]

    def test_every_slot_has_exact_duration(self, engine):
        slots = engine.enumerate_slots(TimeInterval(at(9), at(17)), 90)
        assert slots
        assert all(s.end - s.start == timedelta(minutes=90) for s in slots)
        assert slots[-1].end <= at(17)

    def test_custom_granularity(self):
        engine = IntersectionEngine(granularity_minutes=15)
        slots = engine.enumerate_slots(TimeInterval(at(13), at(14)), 30)
        assert starts(slots) == [(13, 0), (13, 15), (13, 30)]

    def test_invalid_granularity(self):
        with pytest.raises(ValueError):
            IntersectionEngine(granularity_minutes=0)

    def test_anchored_final_slot(self):
        engine = IntersectionEngine(anchor_final_slot=True)
        slots = engine.enumerate_slots(TimeInterval(at(13, 10), at(14, 40)), 60)
        assert slots == [
            CandidateSlot(at(13, 30), at(14, 30)),
            CandidateSlot(at(13, 40), at(14, 40)),
        ]

    def test_anchored_slot_when_grid_misses_window(self):
        engine = IntersectionEngine(anchor_final_slot=True)
        slots = engine.enumerate_slots(TimeInterval(at(13, 10), at(14, 10)), 60)
        assert slots == [CandidateSlot(at(13, 10), at(14, 10))]

    def test_no_anchor_when_grid_reaches_end(self):
        engine = IntersectionEngine(anchor_final_slot=True)
        slots = engine.enumerate_slots(TimeInterval(at(13), at(15)), 60)
        assert starts(slots) == [(13, 0), (13, 30), (14, 0)]

    def test_grid_aligned_to_local_midnight(self):
        """At UTC+5:45 the half-hour grid sits at :15 and :45 UTC."""
        engine = IntersectionEngine(tz=timezone(timedelta(hours=5, minutes=45)))
        slots = engine.enumerate_slots(TimeInterval(at(8), at(10)), 60)
        assert starts(slots) == [(8, 15), (8, 45)]


class TestIntersect:
    """Tests for intersecting two parties' free windows."""

    @pytest.fixture
    def engine(self):
        return IntersectionEngine()

    def test_mutual_windows_only_common_dates(self, engine):
        free_a = {
            MONDAY: [TimeInterval(at(9), at(17))],
            TUESDAY: [TimeInterval(at(9, d=TUESDAY), at(12, d=TUESDAY))],
        }
        free_b = {
            MONDAY: [TimeInterval(at(13), at(21))],
            TUESDAY: [TimeInterval(at(13, d=TUESDAY), at(21, d=TUESDAY))],
        }
        mutual = engine.mutual_windows(free_a, free_b)
        assert mutual == {MONDAY: [TimeInterval(at(13), at(17))]}

    def test_slots_chronological_across_days(self, engine):
        free_a = {
            TUESDAY: [TimeInterval(at(9, d=TUESDAY), at(11, d=TUESDAY))],
            MONDAY: [TimeInterval(at(9), at(11))],
        }
        free_b = {
            MONDAY: [TimeInterval(at(10), at(12))],
            TUESDAY: [TimeInterval(at(8, d=TUESDAY), at(10, d=TUESDAY))],
        }
        slots = engine.intersect(free_a, free_b, 60)
        assert slots == [
            CandidateSlot(at(10), at(11)),
            CandidateSlot(at(9, d=TUESDAY), at(10, d=TUESDAY)),
        ]
        assert slots == sorted(slots)

    def test_slots_inside_both_parties_windows(self, engine):
        free_a = {MONDAY: [TimeInterval(at(8), at(12)), TimeInterval(at(14), at(20))]}
        free_b = {MONDAY: [TimeInterval(at(10, 15), at(15)), TimeInterval(at(16), at(18))]}
        for slot in engine.intersect(free_a, free_b, 45):
            assert any(w.contains(slot.interval) for w in free_a[MONDAY])
            assert any(w.contains(slot.interval) for w in free_b[MONDAY])
