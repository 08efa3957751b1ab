"""Gene span aggregation.

A gene line covers every transcript mapped to the gene: its start is the
smallest transcript start and its end the largest transcript end. Spans
are built by folding transcripts in one at a time; a span is only ever
widened.

Transcripts of one gene are expected to share chromosome and strand.
When they do not, an :class:`~bed2gff.errors.InconsistentGeneRecord`
warning is logged and the values of the earliest transcript (in input
order) are kept. Transcripts on another chromosome do not widen the span.

Example:
    >>> from bed2gff.core.genes import GeneSpanAccumulator
    >>> acc = GeneSpanAccumulator()
    >>> for order, tx in enumerate(transcripts):
    ...     acc.fold(tx, order)
    >>> spans = acc.finalize()
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

import attrs

from bed2gff.errors import InconsistentGeneRecord

if TYPE_CHECKING:
    from bed2gff.core.features import DerivedTranscript

logger = logging.getLogger(__name__)

DEFAULT_LOCK_STRIPES = 64


# =============================================================================
# Data Model
# =============================================================================


@attrs.frozen(slots=True)
class GeneSpan:
    """Genomic extent of a gene.

    Attributes:
        gene_id: Gene identifier.
        chrom: Chromosome of the earliest transcript.
        strand: Strand of the earliest transcript.
        start: Smallest transcript start (0-based, inclusive).
        end: Largest transcript end (0-based, exclusive).
        n_transcripts: Number of transcripts folded in.
        first_order: Input position of the earliest transcript.
        first_transcript: Id of the earliest transcript.
    """

    gene_id: str
    chrom: str
    strand: str
    start: int
    end: int
    n_transcripts: int = 1
    first_order: int = 0
    first_transcript: str = ""

    @classmethod
    def from_transcript(cls, transcript: DerivedTranscript, order: int = 0) -> GeneSpan:
        """Span of a single transcript."""
        return cls(
            gene_id=transcript.gene_id,
            chrom=transcript.chrom,
            strand=transcript.strand,
            start=transcript.start,
            end=transcript.end,
            first_order=order,
            first_transcript=transcript.transcript_id,
        )


# =============================================================================
# Folding
# =============================================================================


def combine_spans(
    a: GeneSpan,
    b: GeneSpan,
) -> tuple[GeneSpan, list[InconsistentGeneRecord]]:
    """Combine two partial spans of the same gene.

    The span holding the earlier transcript decides chromosome and strand.
    Warnings are returned, not logged; callers decide where they go.

    Returns:
        (combined_span, warnings) tuple.
    """
    ref, other = (a, b) if a.first_order <= b.first_order else (b, a)

    warnings = []
    for field in ("chrom", "strand"):
        expected = getattr(ref, field)
        found = getattr(other, field)
        if expected != found:
            warning = InconsistentGeneRecord(
                ref.gene_id, other.first_transcript, field, expected, found
            )
            warnings.append(warning)

    start, end = ref.start, ref.end
    if other.chrom == ref.chrom:
        start = min(start, other.start)
        end = max(end, other.end)

    combined = attrs.evolve(
        ref,
        start=start,
        end=end,
        n_transcripts=a.n_transcripts + b.n_transcripts,
    )
    return combined, warnings


def fold(
    acc: GeneSpan | None,
    transcript: DerivedTranscript,
    order: int | None = None,
) -> GeneSpan:
    """Fold a transcript into a gene span.

    Args:
        acc: Span so far, or None for the first transcript of a gene.
        transcript: Transcript to add.
        order: Input position of the transcript; defaults to after
            everything already folded into ``acc``.

    Returns:
        The widened span.
    """
    if order is None:
        order = 0 if acc is None else acc.first_order + acc.n_transcripts
    incoming = GeneSpan.from_transcript(transcript, order)
    if acc is None:
        return incoming
    combined, warnings = combine_spans(acc, incoming)
    for warning in warnings:
        logger.warning(str(warning))
    return combined


# =============================================================================
# Concurrent Accumulator
# =============================================================================


class GeneSpanAccumulator:
    """Thread-safe map of gene id to span.

    Updates to one gene are serialized by a lock chosen from a fixed set
    of stripes by hashing the gene id, so unrelated genes rarely contend
    and there is no global lock.

    Example:
        >>> acc = GeneSpanAccumulator()
        >>> acc.fold(tx, order=0)
        >>> acc.merge(partial_span)
        >>> spans = acc.finalize()
    """

    def __init__(
        self,
        n_stripes: int = DEFAULT_LOCK_STRIPES,
        log_warnings: bool = True,
    ) -> None:
        """Initialize the accumulator.

        Args:
            n_stripes: Number of lock stripes.
            log_warnings: Log each inconsistency as it is recorded. Worker
                processes turn this off and leave logging to the parent,
                which owns the configured handlers.
        """
        if n_stripes < 1:
            raise ValueError(f"n_stripes must be >= 1, got {n_stripes}")
        self._spans: dict[str, GeneSpan] = {}
        self._stripes = [threading.Lock() for _ in range(n_stripes)]
        self._warnings: list[InconsistentGeneRecord] = []
        self._warnings_lock = threading.Lock()
        self._log_warnings = log_warnings
        self._finalized = False

    def __len__(self) -> int:
        return len(self._spans)

    def __contains__(self, gene_id: object) -> bool:
        return gene_id in self._spans

    def _lock_for(self, gene_id: str) -> threading.Lock:
        return self._stripes[hash(gene_id) % len(self._stripes)]

    def fold(self, transcript: DerivedTranscript, order: int) -> None:
        """Fold one transcript into its gene's span.

        Args:
            transcript: Derived transcript.
            order: Input position of the transcript.
        """
        self.merge(GeneSpan.from_transcript(transcript, order))

    def merge(self, span: GeneSpan) -> None:
        """Merge a partial span computed elsewhere.

        Raises:
            RuntimeError: If the accumulator was already finalized.
        """
        if self._finalized:
            raise RuntimeError("Cannot update a finalized GeneSpanAccumulator")

        warnings: list[InconsistentGeneRecord] = []
        with self._lock_for(span.gene_id):
            current = self._spans.get(span.gene_id)
            if current is None:
                self._spans[span.gene_id] = span
            else:
                self._spans[span.gene_id], warnings = combine_spans(current, span)

        self.add_warnings(warnings)

    def add_warnings(self, warnings: list[InconsistentGeneRecord]) -> None:
        """Record inconsistencies, including ones found in worker processes."""
        if not warnings:
            return
        if self._log_warnings:
            for warning in warnings:
                logger.warning(str(warning))
        with self._warnings_lock:
            self._warnings.extend(warnings)

    @property
    def warnings(self) -> tuple[InconsistentGeneRecord, ...]:
        """Inconsistencies seen so far."""
        with self._warnings_lock:
            return tuple(self._warnings)

    def finalize(self) -> dict[str, GeneSpan]:
        """Close the accumulator and return all spans.

        Must be called only after every transcript has been folded in;
        later updates raise.
        """
        self._finalized = True
        logger.debug(f"Finalized {len(self._spans)} gene spans")
        return dict(self._spans)
