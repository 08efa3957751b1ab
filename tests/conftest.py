"""Pytest configuration and shared fixtures for bed2gff tests.

Fixtures are organized by category:

- Record fixtures: parsed BED records with hand-checked structure
- File fixtures: BED and isoforms files written to tmp_path
"""

from pathlib import Path

import pytest

from bed2gff.io.bed import BedRecord, parse_bed_line

# =============================================================================
# BED Lines
# =============================================================================

# Three coding exons on +, CDS covering the whole transcript (219 bp).
EXAMPLE_LINE = (
    "chr7\t56766360\t56805692\tENST1\t1000\t+\t56766360\t56805692\t0,0,200\t3\t"
    "3,135,81\t0,496,39251"
)

# Exons [0,100) [200,300) [900,1000); CDS [98,903) = 2 + 100 + 3 = 105 bp.
# The start codon is split across exons 1 and 2.
PLUS_SPLIT_LINE = "chr2\t0\t1000\ttxP\t0\t+\t98\t903\t0\t3\t100,100,100,\t0,200,900,"

# Exons [1000,1100) [1500,1600) [1900,2000); CDS [1097,1902) = 3 + 100 + 2 = 105 bp.
# Exon 1 is the rightmost; the start codon is split across exons 1 and 2.
MINUS_SPLIT_LINE = (
    "chr1\t1000\t2000\ttxM\t0\t-\t1097\t1902\t0\t3\t100,100,100,\t0,500,900,"
)

# Single exon, 2 bp CDS: too short for codons.
SHORT_CDS_LINE = "chr1\t0\t100\ttxS\t0\t+\t10\t12\t0\t1\t100,\t0,"

# Non-coding: thick range empty and outside the record.
NONCODING_LINE = "chr1\t500\t600\ttxN\t0\t+\t0\t0\t0\t1\t100,\t0,"


def bed12(
    chrom: str,
    start: int,
    end: int,
    name: str,
    strand: str,
    thick: tuple[int, int],
    blocks: list[tuple[int, int]],
) -> str:
    """Build a BED12 line from absolute (start, end) blocks."""
    sizes = ",".join(str(e - s) for s, e in blocks) + ","
    starts = ",".join(str(s - start) for s, _ in blocks) + ","
    return "\t".join(
        str(v)
        for v in (
            chrom, start, end, name, 0, strand, thick[0], thick[1], 0,
            len(blocks), sizes, starts,
        )
    )


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def example_record() -> BedRecord:
    """Three-exon fully coding + strand transcript."""
    return parse_bed_line(EXAMPLE_LINE, 1)


@pytest.fixture
def plus_split_record() -> BedRecord:
    """+ strand transcript with UTRs and a split start codon."""
    return parse_bed_line(PLUS_SPLIT_LINE, 1)


@pytest.fixture
def minus_split_record() -> BedRecord:
    """- strand transcript with UTRs and a split start codon."""
    return parse_bed_line(MINUS_SPLIT_LINE, 1)


@pytest.fixture
def short_cds_record() -> BedRecord:
    return parse_bed_line(SHORT_CDS_LINE, 1)


@pytest.fixture
def noncoding_record() -> BedRecord:
    return parse_bed_line(NONCODING_LINE, 1)


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def bed_file(tmp_path: Path) -> Path:
    """BED file with two genes on chr10 and chr2 (written out of order)."""
    lines = [
        "track name=test",
        bed12("chr10", 5000, 6000, "txC", "+", (5100, 5900), [(5000, 5300), (5600, 6000)]),
        bed12("chr2", 300, 900, "txB", "-", (300, 300), [(300, 400), (700, 900)]),
        bed12("chr2", 100, 500, "txA", "-", (150, 450), [(100, 200), (400, 500)]),
    ]
    path = tmp_path / "input.bed"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def isoforms_file(tmp_path: Path) -> Path:
    """Isoforms mapping for bed_file: txA and txB share geneAB."""
    path = tmp_path / "isoforms.txt"
    path.write_text("geneAB\ttxA\ngeneAB\ttxB\ngeneC\ttxC\n")
    return path
