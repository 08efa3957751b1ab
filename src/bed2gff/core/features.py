"""Feature derivation from BED block structure.

This module turns one BED record into the genomic features of its
transcript: exons, CDS segments with phase, UTR pieces and start/stop
codons. :func:`derive` is pure and keeps no state between calls, so it
can run concurrently on any number of records.

Conventions:
    - All intervals are 0-based half-open, as in BED.
    - Exons are stored in ascending genomic order on both strands.
    - CDS segments and codon pieces are stored in translation order
      (ascending for ``+`` and ``.``, descending for ``-``).
    - Exon numbers count from the 5' end of the transcript.

Phase follows GFF3: the number of bases to skip from the start of a
segment (in translation direction) to reach the first base of the next
codon. With ``consumed`` CDS bases before a segment, its phase is
``(3 - consumed % 3) % 3``.

Example:
    >>> from bed2gff.io.bed import parse_bed_line
    >>> from bed2gff.core.features import derive
    >>> record = parse_bed_line(
    ...     "chr1\\t100\\t400\\ttx1\\t0\\t+\\t120\\t380\\t0\\t2\\t100,100,\\t0,200,", 1
    ... )
    >>> tx = derive(record, "gene1")
    >>> [(c.start, c.end, c.phase) for c in tx.cds]
    [(120, 200, 0), (300, 380, 1)]
"""

from __future__ import annotations

import logging
from typing import Literal

import attrs

from bed2gff.errors import InvalidBlockStructure, ThickRangeOutOfBounds
from bed2gff.io.bed import BedRecord
from bed2gff.utils.intervals import (
    Interval,
    bounding_interval,
    intersect,
    is_sorted_disjoint,
    split_around,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

CODON_LENGTH = 3

UTR5 = "five_prime_utr"
UTR3 = "three_prime_utr"

UtrKind = Literal["five_prime_utr", "three_prime_utr"]


def phase_for(consumed: int) -> int:
    """GFF3 phase of a segment preceded by ``consumed`` coding bases."""
    return (CODON_LENGTH - consumed % CODON_LENGTH) % CODON_LENGTH


# =============================================================================
# Data Models
# =============================================================================


@attrs.frozen(slots=True)
class Exon:
    """An exon of a derived transcript.

    Attributes:
        start: Start position (0-based, inclusive).
        end: End position (0-based, exclusive).
        exon_number: Position from the 5' end, starting at 1.
    """

    start: int
    end: int
    exon_number: int

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    @property
    def length(self) -> int:
        return self.end - self.start


@attrs.frozen(slots=True)
class CdsSegment:
    """Coding part of one exon.

    Attributes:
        start: Start position (0-based, inclusive).
        end: End position (0-based, exclusive).
        phase: GFF3 phase (0, 1 or 2).
        exon_number: Number of the exon holding this segment.
    """

    start: int
    end: int
    phase: int
    exon_number: int

    @property
    def length(self) -> int:
        return self.end - self.start


@attrs.frozen(slots=True)
class UtrSegment:
    """Untranslated part of one exon."""

    start: int
    end: int
    kind: UtrKind
    exon_number: int

    @property
    def length(self) -> int:
        return self.end - self.start


@attrs.frozen(slots=True)
class CodonSegment:
    """One piece of a start or stop codon.

    A codon split by an intron has one piece per exon it touches.
    """

    start: int
    end: int
    phase: int
    exon_number: int

    @property
    def length(self) -> int:
        return self.end - self.start


@attrs.frozen(slots=True)
class DerivedTranscript:
    """All features derived from one BED record.

    Attributes:
        transcript_id: Transcript identifier (BED name).
        gene_id: Gene identifier from the isoform mapping.
        chrom: Chromosome name.
        strand: Strand.
        start: Transcript start (0-based, inclusive).
        end: Transcript end (0-based, exclusive).
        exons: Exons in ascending genomic order.
        cds: CDS segments in translation order.
        utrs: UTR pieces in translation order.
        start_codon: Start codon pieces in translation order (may be empty).
        stop_codon: Stop codon pieces in translation order (may be empty).
    """

    transcript_id: str
    gene_id: str
    chrom: str
    strand: str
    start: int
    end: int
    exons: tuple[Exon, ...]
    cds: tuple[CdsSegment, ...] = ()
    utrs: tuple[UtrSegment, ...] = ()
    start_codon: tuple[CodonSegment, ...] = ()
    stop_codon: tuple[CodonSegment, ...] = ()

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    @property
    def is_coding(self) -> bool:
        return bool(self.cds)

    @property
    def cds_length(self) -> int:
        """Total CDS length in nucleotides."""
        return sum(seg.length for seg in self.cds)

    @property
    def exons_in_translation_order(self) -> list[Exon]:
        """Exons sorted from the 5' end (exon 1 first)."""
        return sorted(self.exons, key=lambda e: e.exon_number)


# =============================================================================
# Validation
# =============================================================================


def validate_record(record: BedRecord) -> None:
    """Check block structure and thick range of a record.

    Raises:
        InvalidBlockStructure: If the record is empty, has no blocks, a
            non-positive block size, blocks out of order or overlapping,
            a first block not at 0, or a last block not ending at the
            record end.
        ThickRangeOutOfBounds: If a non-empty thick range is reversed or
            falls outside ``[start, end]``.
    """

    def block_error(reason: str) -> InvalidBlockStructure:
        return InvalidBlockStructure(record.name, reason, record.line_number)

    if record.start >= record.end:
        raise block_error(f"start {record.start} is not before end {record.end}")
    if record.block_count == 0:
        raise block_error("record has no blocks")
    for i, size in enumerate(record.block_sizes, 1):
        if size <= 0:
            raise block_error(f"block {i} has non-positive size {size}")

    relative = [
        Interval(rel, rel + size)
        for size, rel in zip(record.block_sizes, record.block_starts)
    ]
    if not is_sorted_disjoint(relative):
        raise block_error("blocks overlap or are not in ascending order")
    if relative[0].start != 0:
        raise block_error(f"first block starts at {relative[0].start}, expected 0")
    span = record.end - record.start
    if relative[-1].end != span:
        raise block_error(f"last block ends at {relative[-1].end}, expected {span}")

    if record.thick_start == record.thick_end:
        return
    if record.thick_start > record.thick_end:
        raise ThickRangeOutOfBounds(
            record.name,
            f"thickStart {record.thick_start} is after thickEnd {record.thick_end}",
            record.line_number,
        )
    if record.thick_start < record.start or record.thick_end > record.end:
        raise ThickRangeOutOfBounds(
            record.name,
            f"thick range [{record.thick_start}, {record.thick_end}) outside "
            f"[{record.start}, {record.end})",
            record.line_number,
        )


# =============================================================================
# Derivation
# =============================================================================


def _number_exons(blocks: list[Interval], reverse: bool) -> tuple[Exon, ...]:
    n = len(blocks)
    return tuple(
        Exon(iv.start, iv.end, n - i if reverse else i + 1)
        for i, iv in enumerate(blocks)
    )


def _assign_phases(pieces: list[tuple[Interval, int]]) -> tuple[CdsSegment, ...]:
    """Build CDS segments from translation-ordered (interval, exon) pairs."""
    segments = []
    consumed = 0
    for iv, exon_number in pieces:
        segments.append(CdsSegment(iv.start, iv.end, phase_for(consumed), exon_number))
        consumed += iv.length
    return tuple(segments)


def _codon_pieces(
    cds: tuple[CdsSegment, ...],
    reverse: bool,
    at_end: bool,
) -> tuple[CodonSegment, ...]:
    """Collect the first (or last) three coding bases in translation order.

    Args:
        cds: CDS segments in translation order.
        reverse: Minus-strand transcript.
        at_end: Take the last three bases instead of the first three.
    """
    walk = reversed(cds) if at_end else iter(cds)
    # The 5' end of a segment is its genomic start on + and its end on -.
    take_low = reverse == at_end
    taken: list[tuple[int, int, int]] = []
    remaining = CODON_LENGTH

    for seg in walk:
        k = min(remaining, seg.length)
        if take_low:
            taken.append((seg.start, seg.start + k, seg.exon_number))
        else:
            taken.append((seg.end - k, seg.end, seg.exon_number))
        remaining -= k
        if remaining == 0:
            break

    if at_end:
        taken.reverse()

    pieces = []
    consumed = 0
    for start, end, exon_number in taken:
        pieces.append(CodonSegment(start, end, phase_for(consumed), exon_number))
        consumed += end - start
    return tuple(pieces)


def _utr_pieces(
    exons: tuple[Exon, ...],
    thick: Interval,
    reverse: bool,
) -> tuple[UtrSegment, ...]:
    upstream_kind, downstream_kind = (UTR3, UTR5) if reverse else (UTR5, UTR3)
    utrs = []
    for exon in sorted(exons, key=lambda e: e.exon_number):
        before, after = split_around(exon.interval, thick)
        pieces = [(before, upstream_kind), (after, downstream_kind)]
        if reverse:
            pieces.reverse()
        for iv, kind in pieces:
            if iv is not None:
                utrs.append(UtrSegment(iv.start, iv.end, kind, exon.exon_number))
    return tuple(utrs)


def derive(record: BedRecord, gene_id: str) -> DerivedTranscript:
    """Derive the features of one transcript.

    Args:
        record: Parsed BED record.
        gene_id: Gene the transcript belongs to.

    Returns:
        DerivedTranscript with exons, CDS, UTRs and codons.

    Raises:
        InvalidBlockStructure: If the blocks are malformed.
        ThickRangeOutOfBounds: If the thick range is outside the record.
    """
    validate_record(record)

    reverse = record.strand == "-"
    exons = _number_exons(record.blocks, reverse)
    span = bounding_interval(e.interval for e in exons)

    thick = Interval(record.thick_start, record.thick_end)
    coding: list[tuple[Interval, int]] = []
    utrs: tuple[UtrSegment, ...] = ()
    if record.has_cds:
        for exon in exons:
            piece = intersect(exon.interval, thick)
            if piece is not None:
                coding.append((piece, exon.exon_number))
        utrs = _utr_pieces(exons, thick, reverse)

    if not coding:
        if record.has_cds:
            logger.debug(f"{record.name}: thick range lies in an intron, no CDS")
        return DerivedTranscript(
            transcript_id=record.name,
            gene_id=gene_id,
            chrom=record.chrom,
            strand=record.strand,
            start=span.start,
            end=span.end,
            exons=exons,
            utrs=utrs,
        )

    if reverse:
        coding.reverse()
    cds = _assign_phases(coding)
    cds_length = sum(seg.length for seg in cds)

    start_codon: tuple[CodonSegment, ...] = ()
    stop_codon: tuple[CodonSegment, ...] = ()
    if cds_length >= CODON_LENGTH:
        start_codon = _codon_pieces(cds, reverse, at_end=False)
        if cds_length % CODON_LENGTH == 0:
            stop_codon = _codon_pieces(cds, reverse, at_end=True)
        else:
            logger.debug(
                f"{record.name}: CDS length {cds_length} is not a multiple of "
                f"{CODON_LENGTH}, omitting stop_codon"
            )

    return DerivedTranscript(
        transcript_id=record.name,
        gene_id=gene_id,
        chrom=record.chrom,
        strand=record.strand,
        start=span.start,
        end=span.end,
        exons=exons,
        cds=cds,
        utrs=utrs,
        start_codon=start_codon,
        stop_codon=stop_codon,
    )
