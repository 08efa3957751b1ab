"""Assembly of derived transcripts into the output record stream.

Each derived transcript becomes a block of GFF3 feature records:

    transcript
    for each exon, from the 5' end:
        exon, CDS, start_codon piece, UTR pieces
    stop_codon pieces

and each gene contributes one gene record, placed in front of the first
transcript of that gene. The concatenated stream is then stably sorted by
natural chromosome order and start. The result is grouped by chromosome
and ordered by start, which keeps parents ahead of their children in the
common case but is not a full hierarchical sort: two transcripts that
start at the same position may interleave.

Example:
    >>> from bed2gff.core.merge import merge_features
    >>> records = merge_features(transcripts, spans, source="bed2gff")
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Mapping

from bed2gff.core.features import DerivedTranscript
from bed2gff.core.genes import GeneSpan
from bed2gff.io.gff import (
    FEATURE_CDS,
    FEATURE_EXON,
    FEATURE_GENE,
    FEATURE_START_CODON,
    FEATURE_STOP_CODON,
    FEATURE_TRANSCRIPT,
    ID_PREFIXES,
    FeatureRecord,
)
from bed2gff.utils.sorting import position_key

logger = logging.getLogger(__name__)


# =============================================================================
# Record Builders
# =============================================================================


def gene_feature(span: GeneSpan, source: str) -> FeatureRecord:
    """Gene-level record for a finalized span."""
    return FeatureRecord(
        seqid=span.chrom,
        source=source,
        feature_type=FEATURE_GENE,
        start=span.start + 1,
        end=span.end,
        strand=span.strand,
        attributes={"ID": span.gene_id, "gene_id": span.gene_id},
    )


def _child(
    tx: DerivedTranscript,
    feature_type: str,
    start: int,
    end: int,
    exon_number: int,
    source: str,
    phase: int | None = None,
) -> FeatureRecord:
    tid = tx.transcript_id
    return FeatureRecord(
        seqid=tx.chrom,
        source=source,
        feature_type=feature_type,
        start=start + 1,
        end=end,
        strand=tx.strand,
        phase=phase,
        attributes={
            "ID": f"{ID_PREFIXES[feature_type]}:{tid}.{exon_number}",
            "Parent": tid,
            "gene_id": tx.gene_id,
            "transcript_id": tid,
            "exon_number": str(exon_number),
        },
    )


def transcript_features(tx: DerivedTranscript, source: str) -> list[FeatureRecord]:
    """All records of one transcript, in emission order.

    Args:
        tx: Derived transcript.
        source: GFF3 source column.

    Returns:
        Transcript record followed by its children.
    """
    records = [
        FeatureRecord(
            seqid=tx.chrom,
            source=source,
            feature_type=FEATURE_TRANSCRIPT,
            start=tx.start + 1,
            end=tx.end,
            strand=tx.strand,
            attributes={
                "ID": tx.transcript_id,
                "Parent": tx.gene_id,
                "gene_id": tx.gene_id,
                "transcript_id": tx.transcript_id,
            },
        )
    ]

    cds_by_exon = {seg.exon_number: seg for seg in tx.cds}
    start_by_exon = {piece.exon_number: piece for piece in tx.start_codon}
    utrs_by_exon = defaultdict(list)
    for utr in tx.utrs:
        utrs_by_exon[utr.exon_number].append(utr)

    for exon in tx.exons_in_translation_order:
        n = exon.exon_number
        records.append(_child(tx, FEATURE_EXON, exon.start, exon.end, n, source))

        cds = cds_by_exon.get(n)
        if cds is not None:
            records.append(
                _child(tx, FEATURE_CDS, cds.start, cds.end, n, source, phase=cds.phase)
            )

        codon = start_by_exon.get(n)
        if codon is not None:
            records.append(
                _child(
                    tx, FEATURE_START_CODON, codon.start, codon.end, n, source,
                    phase=codon.phase,
                )
            )

        for utr in utrs_by_exon.get(n, ()):
            records.append(_child(tx, utr.kind, utr.start, utr.end, n, source))

    for codon in tx.stop_codon:
        records.append(
            _child(
                tx, FEATURE_STOP_CODON, codon.start, codon.end, codon.exon_number,
                source, phase=codon.phase,
            )
        )

    return records


# =============================================================================
# Emission and Ordering
# =============================================================================


def emit_records(
    transcripts: Iterable[DerivedTranscript],
    spans: Mapping[str, GeneSpan],
    source: str,
) -> list[FeatureRecord]:
    """Concatenate gene and transcript records in emission order.

    The gene record is emitted once, right before the first transcript
    of that gene.

    Raises:
        KeyError: If a transcript's gene has no finalized span.
    """
    records: list[FeatureRecord] = []
    seen_genes: set[str] = set()

    for tx in transcripts:
        if tx.gene_id not in seen_genes:
            seen_genes.add(tx.gene_id)
            records.append(gene_feature(spans[tx.gene_id], source))
        records.extend(transcript_features(tx, source))

    return records


def sort_records(records: Iterable[FeatureRecord]) -> list[FeatureRecord]:
    """Stable sort by natural chromosome order, then 1-based start."""
    return sorted(records, key=lambda r: position_key(r.seqid, r.start))


def merge_features(
    transcripts: Iterable[DerivedTranscript],
    spans: Mapping[str, GeneSpan],
    source: str,
) -> list[FeatureRecord]:
    """Emit and sort the full output record stream.

    Args:
        transcripts: Derived transcripts in input order.
        spans: Finalized gene spans keyed by gene id.
        source: GFF3 source column.

    Returns:
        Records grouped by chromosome with non-decreasing start.
    """
    records = sort_records(emit_records(transcripts, spans, source))
    logger.debug(f"Merged {len(records)} feature records")
    return records
