"""Genomic interval operations.

This module provides the small set of interval utilities the feature
derivation engine is built on:

- Overlap detection and intersection
- Splitting an interval around a second one
- Bounding intervals and ordering checks

All intervals are 0-based half-open, as in BED.

Example:
    >>> from bed2gff.utils.intervals import Interval, intersect
    >>> intersect(Interval(100, 200), Interval(150, 300))
    Interval(start=150, end=200)
"""

from typing import Iterable, NamedTuple, Optional

# =============================================================================
# Data Structures
# =============================================================================


class Interval(NamedTuple):
    """A simple genomic interval.

    Attributes:
        start: Start position (0-based, inclusive).
        end: End position (0-based, exclusive).
    """

    start: int
    end: int

    @property
    def length(self) -> int:
        """Get interval length."""
        return self.end - self.start


# =============================================================================
# Overlap Operations
# =============================================================================


def overlaps(a: Interval, b: Interval) -> bool:
    """Check if two intervals overlap.

    Args:
        a: First interval.
        b: Second interval.

    Returns:
        True if intervals overlap.
    """
    return a.start < b.end and b.start < a.end


def intersect(a: Interval, b: Interval) -> Optional[Interval]:
    """Intersect two intervals.

    Args:
        a: First interval.
        b: Second interval.

    Returns:
        The shared interval, or None if they do not overlap.
    """
    if not overlaps(a, b):
        return None
    return Interval(max(a.start, b.start), min(a.end, b.end))


def split_around(
    interval: Interval,
    core: Interval,
) -> tuple[Optional[Interval], Optional[Interval]]:
    """Split an interval into the parts lying before and after a core range.

    Args:
        interval: Interval to split.
        core: Range to cut out.

    Returns:
        (before, after) tuple; either side is None when empty.
    """
    before = None
    after = None
    if interval.start < core.start:
        before = Interval(interval.start, min(interval.end, core.start))
    if interval.end > core.end:
        after = Interval(max(interval.start, core.end), interval.end)
    return before, after


# =============================================================================
# Set Operations
# =============================================================================


def bounding_interval(intervals: Iterable[Interval]) -> Interval:
    """Smallest interval covering all given intervals.

    Raises:
        ValueError: If no intervals are given.
    """
    intervals = list(intervals)
    if not intervals:
        raise ValueError("bounding_interval() requires at least one interval")
    return Interval(
        min(iv.start for iv in intervals),
        max(iv.end for iv in intervals),
    )


def is_sorted_disjoint(intervals: list[Interval]) -> bool:
    """Check that intervals are non-empty, ascending and non-overlapping.

    Adjacent intervals (one ends where the next starts) are allowed.
    """
    for i, iv in enumerate(intervals):
        if iv.length <= 0:
            return False
        if i and intervals[i - 1].end > iv.start:
            return False
    return True
