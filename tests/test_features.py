"""Tests for bed2gff.core.features module.

Tests cover:
- Exon numbering on both strands
- CDS segments and phase
- UTR pieces and their 5'/3' labels
- Start and stop codons, including codons split by an intron
- Structural validation errors
"""

import pytest

from bed2gff.core.features import (
    UTR3,
    UTR5,
    CdsSegment,
    CodonSegment,
    Exon,
    UtrSegment,
    derive,
    phase_for,
    validate_record,
)
from bed2gff.errors import DerivationError, InvalidBlockStructure, ThickRangeOutOfBounds
from bed2gff.io.bed import BedRecord, parse_bed_line

from conftest import bed12


def make_record(
    start: int,
    end: int,
    sizes: tuple[int, ...],
    starts: tuple[int, ...],
    thick: tuple[int, int] = (0, 0),
    strand: str = "+",
) -> BedRecord:
    return BedRecord(
        chrom="chr1",
        start=start,
        end=end,
        name="tx",
        strand=strand,
        thick_start=thick[0],
        thick_end=thick[1],
        block_sizes=sizes,
        block_starts=starts,
        line_number=4,
    )


# =============================================================================
# Phase Tests
# =============================================================================


class TestPhaseFor:
    """Tests for the phase formula."""

    @pytest.mark.parametrize(
        "consumed, phase",
        [(0, 0), (1, 2), (2, 1), (3, 0), (4, 2), (80, 1), (138, 0)],
    )
    def test_phase_for(self, consumed: int, phase: int) -> None:
        assert phase_for(consumed) == phase


# =============================================================================
# Derivation Tests
# =============================================================================


class TestDeriveFullyCoding:
    """Tests using a three-exon transcript coding end to end."""

    def test_exons(self, example_record: BedRecord) -> None:
        """Test exons are ascending and numbered from the 5' end."""
        tx = derive(example_record, "ENSG1")

        assert tx.exons == (
            Exon(56766360, 56766363, 1),
            Exon(56766856, 56766991, 2),
            Exon(56805611, 56805692, 3),
        )
        assert (tx.start, tx.end) == (56766360, 56805692)
        assert tx.gene_id == "ENSG1"
        assert tx.transcript_id == "ENST1"

    def test_cds_phases(self, example_record: BedRecord) -> None:
        """Test CDS covers every exon with phase 0 (3 and 138 consumed)."""
        tx = derive(example_record, "ENSG1")

        assert tx.cds == (
            CdsSegment(56766360, 56766363, 0, 1),
            CdsSegment(56766856, 56766991, 0, 2),
            CdsSegment(56805611, 56805692, 0, 3),
        )
        assert tx.cds_length == 219

    def test_codons(self, example_record: BedRecord) -> None:
        """Test start and stop codons sit at the CDS ends."""
        tx = derive(example_record, "ENSG1")

        assert tx.start_codon == (CodonSegment(56766360, 56766363, 0, 1),)
        assert tx.stop_codon == (CodonSegment(56805689, 56805692, 0, 3),)

    def test_no_utrs(self, example_record: BedRecord) -> None:
        """Test a CDS spanning the whole transcript leaves no UTR."""
        assert derive(example_record, "ENSG1").utrs == ()


class TestDerivePlusStrand:
    """Tests for a + strand transcript with UTRs."""

    def test_cds(self, plus_split_record: BedRecord) -> None:
        tx = derive(plus_split_record, "g")

        assert tx.cds == (
            CdsSegment(98, 100, 0, 1),
            CdsSegment(200, 300, 1, 2),
            CdsSegment(900, 903, 0, 3),
        )

    def test_split_start_codon(self, plus_split_record: BedRecord) -> None:
        """Test a start codon crossing an intron yields two pieces."""
        tx = derive(plus_split_record, "g")

        assert tx.start_codon == (
            CodonSegment(98, 100, 0, 1),
            CodonSegment(200, 201, 1, 2),
        )
        assert tx.stop_codon == (CodonSegment(900, 903, 0, 3),)

    def test_utrs(self, plus_split_record: BedRecord) -> None:
        """Test upstream UTR is 5' and downstream UTR is 3' on +."""
        tx = derive(plus_split_record, "g")

        assert tx.utrs == (
            UtrSegment(0, 98, UTR5, 1),
            UtrSegment(903, 1000, UTR3, 3),
        )

    def test_split_stop_codon(self) -> None:
        """Test a stop codon crossing an intron yields two pieces."""
        line = bed12("chr1", 0, 300, "tx", "+", (50, 201), [(0, 100), (200, 300)])
        tx = derive(parse_bed_line(line, 1), "g")

        assert tx.cds_length == 51
        assert tx.stop_codon == (
            CodonSegment(98, 100, 0, 1),
            CodonSegment(200, 201, 1, 2),
        )


class TestDeriveMinusStrand:
    """Tests for a - strand transcript with UTRs."""

    def test_exon_numbering(self, minus_split_record: BedRecord) -> None:
        """Test exons stay ascending but are numbered from the right."""
        tx = derive(minus_split_record, "g")

        assert tx.exons == (
            Exon(1000, 1100, 3),
            Exon(1500, 1600, 2),
            Exon(1900, 2000, 1),
        )
        assert [e.exon_number for e in tx.exons_in_translation_order] == [1, 2, 3]

    def test_cds_translation_order(self, minus_split_record: BedRecord) -> None:
        """Test CDS segments run from the rightmost exon leftwards."""
        tx = derive(minus_split_record, "g")

        assert tx.cds == (
            CdsSegment(1900, 1902, 0, 1),
            CdsSegment(1500, 1600, 1, 2),
            CdsSegment(1097, 1100, 0, 3),
        )

    def test_split_start_codon(self, minus_split_record: BedRecord) -> None:
        """Test the start codon takes the highest coding bases."""
        tx = derive(minus_split_record, "g")

        assert tx.start_codon == (
            CodonSegment(1900, 1902, 0, 1),
            CodonSegment(1599, 1600, 1, 2),
        )
        assert tx.stop_codon == (CodonSegment(1097, 1100, 0, 3),)

    def test_utrs(self, minus_split_record: BedRecord) -> None:
        """Test 5'/3' labels are swapped relative to genomic position."""
        tx = derive(minus_split_record, "g")

        assert tx.utrs == (
            UtrSegment(1902, 2000, UTR5, 1),
            UtrSegment(1000, 1097, UTR3, 3),
        )

    def test_phase_matches_preceding_length(self) -> None:
        """Test each phase reflects the bases consumed before the segment."""
        line = bed12("chr1", 100, 400, "tx", "-", (120, 380), [(100, 200), (300, 400)])
        tx = derive(parse_bed_line(line, 1), "g")

        assert [(c.start, c.end, c.phase) for c in tx.cds] == [
            (300, 380, 0),
            (120, 200, 1),
        ]


class TestDeriveEdgeCases:
    """Tests for short, partial and non-coding transcripts."""

    def test_cds_shorter_than_codon(self, short_cds_record: BedRecord) -> None:
        """Test a CDS under 3 bp gets no codons but keeps CDS and UTRs."""
        tx = derive(short_cds_record, "g")

        assert tx.cds == (CdsSegment(10, 12, 0, 1),)
        assert tx.start_codon == ()
        assert tx.stop_codon == ()
        assert tx.utrs == (
            UtrSegment(0, 10, UTR5, 1),
            UtrSegment(12, 100, UTR3, 1),
        )

    def test_cds_not_multiple_of_three(self) -> None:
        """Test an incomplete final codon keeps start but drops stop."""
        line = bed12("chr1", 0, 100, "tx", "+", (10, 20), [(0, 100)])
        tx = derive(parse_bed_line(line, 1), "g")

        assert tx.cds_length == 10
        assert tx.start_codon == (CodonSegment(10, 13, 0, 1),)
        assert tx.stop_codon == ()

    def test_noncoding_outside_thick(self, noncoding_record: BedRecord) -> None:
        """Test an empty thick range outside the record is accepted."""
        tx = derive(noncoding_record, "g")

        assert not tx.is_coding
        assert tx.exons == (Exon(500, 600, 1),)
        assert tx.utrs == ()
        assert tx.start_codon == ()

    @pytest.mark.parametrize(
        "strand, expected",
        [
            ("+", (UtrSegment(0, 100, UTR5, 1), UtrSegment(200, 300, UTR3, 2))),
            ("-", (UtrSegment(200, 300, UTR5, 1), UtrSegment(0, 100, UTR3, 2))),
        ],
    )
    def test_thick_range_in_intron(self, strand: str, expected: tuple) -> None:
        """Test a thick range inside an intron still splits exons into UTRs."""
        line = bed12("chr1", 0, 300, "tx", strand, (120, 180), [(0, 100), (200, 300)])
        tx = derive(parse_bed_line(line, 1), "g")

        assert not tx.is_coding
        assert tx.cds == ()
        assert tx.utrs == expected
        assert tx.start_codon == ()
        assert tx.stop_codon == ()

    def test_unstranded_numbering(self) -> None:
        """Test '.' strand numbers exons ascending, like +."""
        tx = derive(parse_bed_line("chr3\t10\t50", 1), "g")

        assert tx.strand == "."
        assert tx.exons == (Exon(10, 50, 1),)
        assert tx.transcript_id == "chr3:10-50"

    def test_cds_within_exons(self, minus_split_record: BedRecord) -> None:
        """Test each CDS segment lies inside its numbered exon."""
        tx = derive(minus_split_record, "g")
        exons = {e.exon_number: e for e in tx.exons}

        for seg in tx.cds:
            exon = exons[seg.exon_number]
            assert exon.start <= seg.start < seg.end <= exon.end


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidateRecord:
    """Tests for structural validation."""

    @pytest.mark.parametrize(
        "start, end, sizes, starts",
        [
            (100, 100, (1,), (0,)),  # empty record
            (0, 100, (), ()),  # no blocks
            (0, 100, (0, 100), (0, 0)),  # zero-size block
            (0, 150, (100, 100), (0, 50)),  # overlapping
            (0, 150, (50, 50), (100, 0)),  # unsorted
            (0, 150, (100,), (50,)),  # first block not at 0
            (0, 200, (100,), (0,)),  # last block short of end
        ],
    )
    def test_invalid_blocks(
        self,
        start: int,
        end: int,
        sizes: tuple[int, ...],
        starts: tuple[int, ...],
    ) -> None:
        with pytest.raises(InvalidBlockStructure):
            validate_record(make_record(start, end, sizes, starts))

    def test_adjacent_blocks_allowed(self) -> None:
        """Test blocks that touch without overlapping are valid."""
        validate_record(make_record(0, 200, (100, 100), (0, 100)))

    @pytest.mark.parametrize(
        "thick",
        [(50, 150), (150, 250), (180, 120)],
    )
    def test_thick_out_of_bounds(self, thick: tuple[int, int]) -> None:
        with pytest.raises(ThickRangeOutOfBounds):
            validate_record(make_record(100, 200, (100,), (0,), thick=thick))

    def test_empty_thick_anywhere(self) -> None:
        """Test thickStart == thickEnd is never out of bounds."""
        validate_record(make_record(100, 200, (100,), (0,), thick=(5000, 5000)))

    def test_error_message(self) -> None:
        """Test errors name the transcript and line."""
        with pytest.raises(DerivationError) as exc_info:
            derive(make_record(0, 200, (100,), (0,)), "g")

        error = exc_info.value
        assert error.transcript_id == "tx"
        assert error.line_number == 4
        assert str(error).startswith("Invalid block structure in tx (line 4):")
        assert isinstance(error, ValueError)
