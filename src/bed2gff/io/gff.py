"""GFF3 feature records and output.

This module defines the output feature record and renders it as GFF3
text. Coordinates on :class:`FeatureRecord` are already 1-based inclusive;
conversion from the 0-based half-open engine intervals happens where the
records are built.

Features:
    - GFF3 attribute formatting with reserved-character escaping
    - Header block with provenance
    - Plain or gzip-compressed output

Example:
    >>> from bed2gff.io.gff import GFF3Writer
    >>> with GFF3Writer("output.gff3") as writer:
    ...     writer.write_header()
    ...     writer.write_records(records)
"""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Any, Iterable

import attrs

from bed2gff.io.compression import open_text

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# GFF3 column indices
COL_SEQID = 0
COL_SOURCE = 1
COL_TYPE = 2
COL_START = 3
COL_END = 4
COL_SCORE = 5
COL_STRAND = 6
COL_PHASE = 7
COL_ATTRIBUTES = 8

# Feature types written by bed2gff
FEATURE_GENE = "gene"
FEATURE_TRANSCRIPT = "transcript"
FEATURE_EXON = "exon"
FEATURE_CDS = "CDS"
FEATURE_UTR5 = "five_prime_utr"
FEATURE_UTR3 = "three_prime_utr"
FEATURE_START_CODON = "start_codon"
FEATURE_STOP_CODON = "stop_codon"

# Prefix used in the ID attribute of per-exon features
ID_PREFIXES = {
    FEATURE_EXON: "exon",
    FEATURE_CDS: "CDS",
    FEATURE_UTR5: "UTR5",
    FEATURE_UTR3: "UTR3",
    FEATURE_START_CODON: "start_codon",
    FEATURE_STOP_CODON: "stop_codon",
}

GFF3_VERSION_LINE = "##gff-version 3"
PROVIDER = "bed2gff"
CONTACT = "https://github.com/alejandrogzi/bed2gff"

# Reserved GFF3 characters in attribute values
_ESCAPES = (
    ("%", "%25"),
    (";", "%3B"),
    ("=", "%3D"),
    ("&", "%26"),
    (",", "%2C"),
    ("\t", "%09"),
)


# =============================================================================
# Data Model
# =============================================================================


@attrs.frozen(slots=True)
class FeatureRecord:
    """One GFF3 line.

    Attributes:
        seqid: Chromosome name.
        source: Source column.
        feature_type: Feature type (gene, transcript, exon, CDS, ...).
        start: Start position (1-based, inclusive).
        end: End position (1-based, inclusive).
        strand: Strand.
        phase: 0, 1 or 2 for CDS and codon features, otherwise None.
        attributes: Ordered attribute mapping.
    """

    seqid: str
    source: str
    feature_type: str
    start: int
    end: int
    strand: str
    phase: int | None = None
    attributes: dict[str, str] = attrs.field(factory=dict, hash=False)

    @property
    def feature_id(self) -> str | None:
        """Value of the ID attribute."""
        return self.attributes.get("ID")

    @property
    def parent(self) -> str | None:
        """Value of the Parent attribute."""
        return self.attributes.get("Parent")

    def to_line(self) -> str:
        """Render as a GFF3 line (without newline)."""
        return format_gff_line(
            self.seqid,
            self.source,
            self.feature_type,
            self.start,
            self.end,
            strand=self.strand,
            phase=self.phase,
            attributes=self.attributes,
        )


# =============================================================================
# Formatting
# =============================================================================


def escape_value(value: Any) -> str:
    """Percent-encode reserved GFF3 characters in an attribute value."""
    text = str(value)
    for char, code in _ESCAPES:
        text = text.replace(char, code)
    return text


def format_attributes(attributes: dict[str, Any]) -> str:
    """Format attribute dictionary as GFF3 string.

    Args:
        attributes: Dictionary of attributes.

    Returns:
        Semicolon-separated key=value string.
    """
    if not attributes:
        return "."
    return ";".join(f"{key}={escape_value(value)}" for key, value in attributes.items())


def format_gff_line(
    seqid: str,
    source: str,
    feature_type: str,
    start: int,
    end: int,
    score: float | None = None,
    strand: str = ".",
    phase: int | None = None,
    attributes: dict[str, Any] | None = None,
) -> str:
    """Format a single GFF3 line.

    Args:
        seqid: Sequence identifier.
        source: Source of the annotation.
        feature_type: Type of feature.
        start: Start position (1-based, inclusive).
        end: End position (1-based, inclusive).
        score: Feature score.
        strand: Strand.
        phase: CDS phase.
        attributes: Feature attributes.

    Returns:
        Formatted GFF3 line.
    """
    score_str = "." if score is None else f"{score:g}"
    phase_str = "." if phase is None else str(phase)
    attr_str = format_attributes(attributes or {})

    return f"{seqid}\t{source}\t{feature_type}\t{start}\t{end}\t{score_str}\t{strand}\t{phase_str}\t{attr_str}"


# =============================================================================
# GFF3 Writer
# =============================================================================


class GFF3Writer:
    """Write feature records to a GFF3 file.

    Example:
        >>> with GFF3Writer("output.gff3.gz") as writer:
        ...     writer.write_header()
        ...     writer.write_records(records)
    """

    def __init__(self, output_path: Path | str) -> None:
        """Initialize the writer.

        Args:
            output_path: Output file path; ``.gz`` selects gzip.
        """
        self.path = Path(output_path)
        self._file = open_text(self.path, "w")
        self.n_written = 0

    def __enter__(self) -> GFF3Writer:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the output file."""
        if self._file:
            self._file.close()
            self._file = None

    def write_header(
        self,
        version: str | None = None,
        date: datetime.date | None = None,
    ) -> None:
        """Write the GFF3 header block with provenance.

        Args:
            version: bed2gff version; defaults to the installed version.
            date: Date stamp; defaults to today.
        """
        if version is None:
            from bed2gff import __version__ as version

        date = date or datetime.date.today()
        self._file.write(f"{GFF3_VERSION_LINE}\n")
        self._file.write(f"#provider: {PROVIDER}\n")
        self._file.write(f"#version: {version}\n")
        self._file.write(f"#contact: {CONTACT}\n")
        self._file.write(f"#date: {date.isoformat()}\n")

    def write_record(self, record: FeatureRecord) -> None:
        """Write one feature record."""
        self._file.write(record.to_line() + "\n")
        self.n_written += 1

    def write_records(self, records: Iterable[FeatureRecord]) -> None:
        """Write feature records in the given order."""
        for record in records:
            self.write_record(record)


# =============================================================================
# Convenience Functions
# =============================================================================


def write_gff(
    records: Iterable[FeatureRecord],
    path: Path | str,
    header: bool = True,
) -> int:
    """Write feature records to a GFF3 file.

    Args:
        records: Records in output order.
        path: Output file path.
        header: Write the header block first.

    Returns:
        Number of feature lines written.
    """
    with GFF3Writer(path) as writer:
        if header:
            writer.write_header()
        writer.write_records(records)
        logger.info(f"Wrote {writer.n_written} features to {path}")
        return writer.n_written
