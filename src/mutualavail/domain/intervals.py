"""Interval algebra over sorted lists of half-open time intervals.

All functions here are pure. ``subtract`` and ``intersect`` expect their
inputs to be sorted by start and pairwise disjoint, which is what ``merge``
produces.
"""

from datetime import date
from typing import Iterable

from mutualavail.domain.models import TimeInterval

FreeWindows = dict[date, list[TimeInterval]]


def merge(intervals: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Merge overlapping or touching intervals into maximal disjoint intervals.

    Args:
        intervals: Intervals in any order.

    Returns:
        Disjoint intervals sorted by start, covering exactly the union of
        the inputs.
    """
    ordered = sorted(intervals, key=lambda i: (i.start, i.end))
    if not ordered:
        return []

    merged = [ordered[0]]
    for interval in ordered[1:]:
        last = merged[-1]
        if interval.start <= last.end:
            if interval.end > last.end:
                merged[-1] = TimeInterval(last.start, interval.end)
        else:
            merged.append(interval)
    return merged


def subtract(
    free: list[TimeInterval],
    busy: list[TimeInterval],
) -> list[TimeInterval]:
    """Remove busy time from free time.

    An overlapping busy interval may split a free interval into zero, one,
    or two shorter intervals.

    Args:
        free: Sorted, disjoint free intervals.
        busy: Sorted, disjoint busy intervals.

    Returns:
        Sorted, disjoint intervals covering ``free`` minus ``busy``.
    """
    result = []
    j = 0
    for interval in free:
        cursor = interval.start
        # Busy intervals ending before this free interval can never matter again
        while j < len(busy) and busy[j].end <= interval.start:
            j += 1

        k = j
        while k < len(busy) and busy[k].start < interval.end:
            blocker = busy[k]
            if blocker.start > cursor:
                result.append(TimeInterval(cursor, blocker.start))
            if blocker.end > cursor:
                cursor = blocker.end
            if cursor >= interval.end:
                break
            k += 1

        if cursor < interval.end:
            result.append(TimeInterval(cursor, interval.end))
    return result


def intersect(
    a: list[TimeInterval],
    b: list[TimeInterval],
) -> list[TimeInterval]:
    """Intersect two sorted, disjoint interval lists with a two-pointer sweep.

    Runs in O(len(a) + len(b)).

    Returns:
        Sorted, disjoint intervals free in both inputs.
    """
    result = []
    i = j = 0
    while i < len(a) and j < len(b):
        overlap_start = max(a[i].start, b[j].start)
        overlap_end = min(a[i].end, b[j].end)
        if overlap_start < overlap_end:
            result.append(TimeInterval(overlap_start, overlap_end))

        if a[i].end < b[j].end:
            i += 1
        else:
            j += 1
    return result


def total_minutes(intervals: Iterable[TimeInterval]) -> int:
    """Sum of interval lengths in whole minutes."""
    return sum(i.duration_minutes for i in intervals)
