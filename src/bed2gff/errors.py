"""Exceptions and warnings raised while converting BED to GFF3.

Every fatal condition is a subclass of :class:`Bed2GffError`, which is a
``ValueError`` so callers that only care about bad input can catch that.
Exceptions keep their constructor arguments in ``args`` so they survive
pickling when raised inside a worker process.

Example:
    >>> from bed2gff.errors import MalformedRecord
    >>> str(MalformedRecord(4, "expected 3 or 12 columns, found 5"))
    'Malformed BED record at line 4: expected 3 or 12 columns, found 5'
"""

from __future__ import annotations

# =============================================================================
# Fatal Errors
# =============================================================================


class Bed2GffError(ValueError):
    """Base class for all fatal conversion errors."""

    pass


class MalformedRecord(Bed2GffError):
    """Raised when an input line cannot be parsed.

    Attributes:
        line_number: 1-based line number in the input file.
        reason: Human-readable cause.
    """

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(line_number, reason)
        self.line_number = line_number
        self.reason = reason

    def __str__(self) -> str:
        return f"Malformed BED record at line {self.line_number}: {self.reason}"


class UnmappedTranscript(Bed2GffError):
    """Raised when a transcript has no entry in the isoform mapping."""

    def __init__(self, transcript_id: str) -> None:
        super().__init__(transcript_id)
        self.transcript_id = transcript_id

    def __str__(self) -> str:
        return (
            f"Transcript {self.transcript_id} not found in isoforms file; "
            "every BED transcript must be mapped to a gene"
        )


class DerivationError(Bed2GffError):
    """Raised when a BED record is structurally invalid.

    Attributes:
        transcript_id: Name of the offending record.
        reason: Human-readable cause.
        line_number: Input line of the record, if known.
    """

    label = "Invalid BED record"

    def __init__(
        self,
        transcript_id: str,
        reason: str,
        line_number: int | None = None,
    ) -> None:
        super().__init__(transcript_id, reason, line_number)
        self.transcript_id = transcript_id
        self.reason = reason
        self.line_number = line_number

    def __str__(self) -> str:
        where = f" (line {self.line_number})" if self.line_number is not None else ""
        return f"{self.label} {self.transcript_id}{where}: {self.reason}"


class InvalidBlockStructure(DerivationError):
    """Blocks are empty, unordered, overlapping or do not span the record."""

    label = "Invalid block structure in"


class ThickRangeOutOfBounds(DerivationError):
    """thickStart/thickEnd fall outside the record."""

    label = "Thick range out of bounds in"


# =============================================================================
# Warnings
# =============================================================================


class InconsistentGeneRecord(UserWarning):
    """Transcripts of one gene disagree on chromosome or strand.

    Never raised. Instances are logged and collected by the gene span
    accumulator; the first-seen chromosome and strand are kept.
    """

    def __init__(
        self,
        gene_id: str,
        transcript_id: str,
        field: str,
        expected: str,
        found: str,
    ) -> None:
        super().__init__(gene_id, transcript_id, field, expected, found)
        self.gene_id = gene_id
        self.transcript_id = transcript_id
        self.field = field
        self.expected = expected
        self.found = found

    def __str__(self) -> str:
        return (
            f"Gene {self.gene_id}: transcript {self.transcript_id} has "
            f"{self.field} {self.found!r}, keeping {self.expected!r}"
        )
