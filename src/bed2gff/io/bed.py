"""BED record parsing.

This module turns lines of a BED3 or BED12 file into immutable
:class:`BedRecord` objects. Only the structure of each line is checked
here (column count, integer fields, block array lengths); whether the
blocks and thick range make sense together is checked by the feature
derivation engine.

Column layout (BED12, 0-based half-open coordinates):

    chrom start end name score strand thickStart thickEnd itemRgb
    blockCount blockSizes blockStarts

Example:
    >>> from bed2gff.io.bed import parse_bed_line
    >>> record = parse_bed_line(
    ...     "chr1\\t100\\t500\\ttx1\\t0\\t+\\t150\\t450\\t0\\t2\\t100,150,\\t0,250,", 1
    ... )
    >>> record.block_count, record.blocks
    (2, [Interval(start=100, end=200), Interval(start=350, end=500)])
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator

import attrs

from bed2gff.errors import MalformedRecord
from bed2gff.io.compression import open_text
from bed2gff.utils.intervals import Interval
from bed2gff.utils.sorting import position_key

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# BED column indices
COL_CHROM = 0
COL_START = 1
COL_END = 2
COL_NAME = 3
COL_SCORE = 4
COL_STRAND = 5
COL_THICK_START = 6
COL_THICK_END = 7
COL_ITEM_RGB = 8
COL_BLOCK_COUNT = 9
COL_BLOCK_SIZES = 10
COL_BLOCK_STARTS = 11

BED3_COLUMNS = 3
BED12_COLUMNS = 12

STRANDS = ("+", "-", ".")

# First tokens of lines that carry no record
HEADER_PREFIXES = ("track", "browser")


# =============================================================================
# Data Model
# =============================================================================


@attrs.frozen(slots=True)
class BedRecord:
    """One BED line.

    Attributes:
        chrom: Chromosome name.
        start: Start position (0-based, inclusive).
        end: End position (0-based, exclusive).
        name: Transcript identifier.
        strand: ``+``, ``-`` or ``.`` (BED3 input).
        thick_start: CDS start (0-based); equals thick_end when non-coding.
        thick_end: CDS end (0-based, exclusive).
        block_sizes: Length of each block.
        block_starts: Start of each block, relative to ``start``.
        score: Score column, kept verbatim.
        item_rgb: itemRgb column, kept verbatim.
        line_number: 1-based line number in the input file.
    """

    chrom: str
    start: int
    end: int
    name: str
    strand: str
    thick_start: int
    thick_end: int
    block_sizes: tuple[int, ...]
    block_starts: tuple[int, ...]
    score: str = "0"
    item_rgb: str = "0"
    line_number: int | None = None

    @property
    def block_count(self) -> int:
        """Number of blocks (exons)."""
        return len(self.block_sizes)

    @property
    def blocks(self) -> list[Interval]:
        """Absolute block intervals in file order."""
        return [
            Interval(self.start + rel, self.start + rel + size)
            for size, rel in zip(self.block_sizes, self.block_starts)
        ]

    @property
    def has_cds(self) -> bool:
        """Whether the thick range is non-empty."""
        return self.thick_start < self.thick_end


# =============================================================================
# Parsing
# =============================================================================


def _parse_int(value: str, field: str, line_number: int) -> int:
    """Parse a non-negative integer column.

    Only plain ASCII digits are accepted; signs, whitespace and digit
    separators that ``int()`` would tolerate are rejected.
    """
    if value.isascii() and value.isdigit():
        return int(value)
    if value.startswith("-") and value[1:].isascii() and value[1:].isdigit():
        raise MalformedRecord(line_number, f"negative {field} field: {value}")
    raise MalformedRecord(line_number, f"non-numeric {field} field: {value!r}")


def _parse_int_list(value: str, field: str, line_number: int) -> tuple[int, ...]:
    """Parse a comma-separated integer list; a trailing comma is allowed."""
    items = value.rstrip(",")
    if not items:
        return ()
    return tuple(_parse_int(item, field, line_number) for item in items.split(","))


def parse_bed_line(line: str, line_number: int) -> BedRecord:
    """Parse a single BED3 or BED12 line.

    A BED3 line becomes a single-block, non-coding record named
    ``chrom:start-end`` with strand ``.``.

    Args:
        line: Raw line, with or without trailing newline.
        line_number: 1-based line number, used in error messages.

    Returns:
        Parsed BedRecord.

    Raises:
        MalformedRecord: On a wrong column count, a non-numeric field,
            an unknown strand, or block arrays not matching blockCount.
    """
    fields = line.rstrip("\r\n").split("\t")
    n_fields = len(fields)

    if n_fields not in (BED3_COLUMNS, BED12_COLUMNS):
        raise MalformedRecord(
            line_number,
            f"expected {BED3_COLUMNS} or {BED12_COLUMNS} tab-separated columns, "
            f"found {n_fields}",
        )

    chrom = fields[COL_CHROM]
    if not chrom:
        raise MalformedRecord(line_number, "empty chromosome name")

    start = _parse_int(fields[COL_START], "start", line_number)
    end = _parse_int(fields[COL_END], "end", line_number)

    if n_fields == BED3_COLUMNS:
        return BedRecord(
            chrom=chrom,
            start=start,
            end=end,
            name=f"{chrom}:{start}-{end}",
            strand=".",
            thick_start=start,
            thick_end=start,
            block_sizes=(end - start,),
            block_starts=(0,),
            line_number=line_number,
        )

    name = fields[COL_NAME]
    if not name:
        raise MalformedRecord(line_number, "empty name field")

    strand = fields[COL_STRAND]
    if strand not in STRANDS:
        raise MalformedRecord(line_number, f"invalid strand {strand!r}")

    thick_start = _parse_int(fields[COL_THICK_START], "thickStart", line_number)
    thick_end = _parse_int(fields[COL_THICK_END], "thickEnd", line_number)
    block_count = _parse_int(fields[COL_BLOCK_COUNT], "blockCount", line_number)
    block_sizes = _parse_int_list(fields[COL_BLOCK_SIZES], "blockSizes", line_number)
    block_starts = _parse_int_list(fields[COL_BLOCK_STARTS], "blockStarts", line_number)

    for label, values in (("blockSizes", block_sizes), ("blockStarts", block_starts)):
        if len(values) != block_count:
            raise MalformedRecord(
                line_number,
                f"blockCount is {block_count} but {label} has {len(values)} entries",
            )

    return BedRecord(
        chrom=chrom,
        start=start,
        end=end,
        name=name,
        strand=strand,
        thick_start=thick_start,
        thick_end=thick_end,
        block_sizes=block_sizes,
        block_starts=block_starts,
        score=fields[COL_SCORE],
        item_rgb=fields[COL_ITEM_RGB],
        line_number=line_number,
    )


def _is_header(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return True
    return stripped.split(None, 1)[0] in HEADER_PREFIXES


# =============================================================================
# File Reading
# =============================================================================


def iter_bed(path: Path | str) -> Iterator[BedRecord]:
    """Stream records from a BED file.

    Blank lines, ``#`` comments and ``track``/``browser`` lines are skipped.
    Line numbers count every physical line from 1.

    Args:
        path: BED file, optionally gzip-compressed.

    Yields:
        BedRecord objects in file order.

    Raises:
        MalformedRecord: At the first unparseable line.
    """
    with open_text(path) as handle:
        for line_number, line in enumerate(handle, 1):
            if _is_header(line):
                continue
            yield parse_bed_line(line, line_number)


def bed_sort_key(record: BedRecord) -> tuple[Any, int]:
    """Natural chromosome order, then start."""
    return position_key(record.chrom, record.start)


def read_bed(path: Path | str, sort: bool = True) -> list[BedRecord]:
    """Read all records from a BED file.

    Args:
        path: BED file, optionally gzip-compressed.
        sort: Sort by natural chromosome order and start (stable).

    Returns:
        List of BedRecord objects.
    """
    records = list(iter_bed(path))
    if sort:
        records.sort(key=bed_sort_key)
    logger.info(f"Read {len(records)} BED records from {path}")
    return records
