"""Natural (numeric-aware) ordering of chromosome names.

``chr2`` sorts before ``chr10`` and ``scaffold_9`` before ``scaffold_10``.
Output of the converter is only grouped by chromosome and ordered by start
within it; consumers needing a total order should run a full sorter.

Example:
    >>> from bed2gff.utils.sorting import chrom_key
    >>> sorted(["chr10", "chr2", "chrX", "chr1"], key=chrom_key)
    ['chr1', 'chr2', 'chr10', 'chrX']
"""

from typing import Any

from natsort import natsort_keygen

chrom_key = natsort_keygen()


def position_key(chrom: str, start: int) -> tuple[Any, int]:
    """Sort key for a (chromosome, start) pair."""
    return (chrom_key(chrom), start)
