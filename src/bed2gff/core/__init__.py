"""Core conversion logic for bed2gff.

This module contains the pure parts of the BED to GFF3 conversion:

- features: derive exons, CDS, UTRs and codons from one BED record
- genes: fold transcripts into gene spans, concurrently
- merge: build and order the output feature records

Example:
    >>> from bed2gff.core import derive, GeneSpanAccumulator, merge_features
    >>> tx = derive(record, "gene1")
"""

from bed2gff.core.features import (
    CdsSegment,
    CodonSegment,
    DerivedTranscript,
    Exon,
    UtrSegment,
    derive,
    validate_record,
)
from bed2gff.core.genes import GeneSpan, GeneSpanAccumulator, combine_spans, fold
from bed2gff.core.merge import (
    emit_records,
    gene_feature,
    merge_features,
    sort_records,
    transcript_features,
)

__all__ = [
    "CdsSegment",
    "CodonSegment",
    "DerivedTranscript",
    "Exon",
    "UtrSegment",
    "derive",
    "validate_record",
    "GeneSpan",
    "GeneSpanAccumulator",
    "combine_spans",
    "fold",
    "emit_records",
    "gene_feature",
    "merge_features",
    "sort_records",
    "transcript_features",
]
