"""Utility functions for bed2gff.

This module provides common utilities used across bed2gff:

- Interval operations (overlap, intersection, splitting)
- Natural chromosome ordering
- Logging configuration

Example:
    >>> from bed2gff.utils import Interval, intersect
    >>> intersect(Interval(10, 20), Interval(15, 30)).length
    5
"""

from bed2gff.utils.intervals import (
    Interval,
    bounding_interval,
    intersect,
    is_sorted_disjoint,
    overlaps,
    split_around,
)
from bed2gff.utils.sorting import chrom_key, position_key

__all__ = [
    "Interval",
    "bounding_interval",
    "intersect",
    "is_sorted_disjoint",
    "overlaps",
    "split_around",
    "chrom_key",
    "position_key",
]
