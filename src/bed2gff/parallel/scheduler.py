"""Parallel conversion of BED records into GFF3 feature records.

The scheduler ties the pieces together:

1. Every transcript is resolved to its gene before any work starts.
2. Transcripts are split into chunks and derived on a worker pool.
3. Gene spans are reduced into a shared accumulator.
4. Once every chunk is done the spans are finalized and the output
   records are emitted and sorted.

Any failure aborts the run with the first error; nothing is written.

Example:
    >>> from bed2gff.config import Config
    >>> from bed2gff.parallel.scheduler import convert_files
    >>> result = convert_files("in.bed", "isoforms.txt", "out.gff3", Config())
    >>> result.n_transcripts
    1532
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Sequence

import attrs

from bed2gff.config import Config
from bed2gff.core.features import DerivedTranscript, derive
from bed2gff.core.genes import GeneSpan, GeneSpanAccumulator
from bed2gff.core.merge import merge_features
from bed2gff.errors import InconsistentGeneRecord
from bed2gff.io.bed import BedRecord, read_bed
from bed2gff.io.gff import FeatureRecord, write_gff
from bed2gff.io.isoforms import IsoformIndex, load_isoforms
from bed2gff.parallel.chunker import TranscriptChunk, TranscriptChunker
from bed2gff.parallel.executor import (
    ExecutionStats,
    ExecutorBackend,
    ParallelExecutor,
    ProgressCallback,
    get_memory_stats,
)
from bed2gff.utils.logging import Timer

logger = logging.getLogger(__name__)


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(slots=True)
class ChunkResult:
    """Output of one chunk.

    Attributes:
        chunk_id: Chunk identifier.
        offset: Input position of the chunk's first transcript.
        transcripts: Derived transcripts in input order.
        partial_spans: Gene spans of this chunk alone; empty when the
            chunk folded directly into a shared accumulator.
        warnings: Inconsistencies found while building partial spans.
    """

    chunk_id: str
    offset: int
    transcripts: list[DerivedTranscript]
    partial_spans: list[GeneSpan] = attrs.Factory(list)
    warnings: list[InconsistentGeneRecord] = attrs.Factory(list)


@attrs.define(slots=True)
class ConversionResult:
    """Outcome of a conversion run.

    Attributes:
        records: Output feature records, sorted.
        genes: Finalized gene spans keyed by gene id.
        n_transcripts: Number of transcripts converted.
        warnings: Non-fatal inconsistencies.
        stats: Executor statistics.
    """

    records: list[FeatureRecord]
    genes: dict[str, GeneSpan]
    n_transcripts: int
    warnings: tuple[InconsistentGeneRecord, ...] = ()
    stats: ExecutionStats | None = None

    @property
    def n_genes(self) -> int:
        return len(self.genes)


# =============================================================================
# Worker Function
# =============================================================================


def derive_chunk(
    chunk: TranscriptChunk,
    accumulator: GeneSpanAccumulator | None = None,
) -> ChunkResult:
    """Derive every transcript of a chunk and fold its gene spans.

    Args:
        chunk: Chunk of (record, gene_id) pairs.
        accumulator: Shared accumulator (serial and thread backends). When
            None, spans are folded into a chunk-local accumulator and
            returned as partial spans for the caller to merge.

    Returns:
        ChunkResult for the chunk.

    Raises:
        DerivationError: If any record in the chunk is invalid.
    """
    if accumulator is None:
        target = GeneSpanAccumulator(n_stripes=1, log_warnings=False)
    else:
        target = accumulator
    transcripts = []

    for i, (record, gene_id) in enumerate(chunk.items):
        transcript = derive(record, gene_id)
        transcripts.append(transcript)
        target.fold(transcript, chunk.offset + i)

    if accumulator is not None:
        return ChunkResult(chunk.chunk_id, chunk.offset, transcripts)

    return ChunkResult(
        chunk.chunk_id,
        chunk.offset,
        transcripts,
        partial_spans=list(target.finalize().values()),
        warnings=list(target.warnings),
    )


# =============================================================================
# Scheduling
# =============================================================================


def resolve_genes(
    records: Sequence[BedRecord],
    isoforms: IsoformIndex,
) -> list[tuple[BedRecord, str]]:
    """Pair every record with its gene id.

    Raises:
        UnmappedTranscript: For the first record missing from the mapping.
    """
    return [(record, isoforms.gene_for(record.name)) for record in records]


def convert_records(
    records: Sequence[BedRecord],
    isoforms: IsoformIndex,
    config: Config | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ConversionResult:
    """Convert BED records into sorted GFF3 feature records.

    Args:
        records: BED records in emission order (usually sorted by
            natural chromosome order and start).
        isoforms: Transcript to gene mapping.
        config: Run configuration; defaults to ``Config()``.
        progress_callback: Called with (completed, total, chunk_id).

    Returns:
        ConversionResult with records, gene spans and statistics.

    Raises:
        UnmappedTranscript: If a record's transcript has no gene.
        DerivationError: If a record is structurally invalid.
    """
    config = config or Config()
    items = resolve_genes(records, isoforms)

    chunker = TranscriptChunker(
        n_workers=config.parallel.max_workers,
        chunks_per_worker=config.parallel.chunks_per_worker,
        min_chunk_size=config.parallel.min_chunk_size,
    )
    plan = chunker.create_plan(items)
    logger.debug(f"Chunk plan: {plan.summary()}")

    executor = ParallelExecutor(
        n_workers=config.parallel.max_workers,
        backend=config.parallel.backend,
        progress_callback=progress_callback,
    )
    accumulator = GeneSpanAccumulator()

    # Worker processes cannot share the accumulator's locks
    if executor.backend == ExecutorBackend.PROCESSES:
        func = derive_chunk
    else:
        func = functools.partial(derive_chunk, accumulator=accumulator)

    results, stats = executor.map_chunks(func, plan.chunks, continue_on_error=False)

    transcripts: list[DerivedTranscript] = []
    for task in results:
        chunk_result: ChunkResult = task.result
        transcripts.extend(chunk_result.transcripts)
        for span in chunk_result.partial_spans:
            accumulator.merge(span)
        accumulator.add_warnings(chunk_result.warnings)

    genes = accumulator.finalize()
    feature_records = merge_features(transcripts, genes, config.output.source)

    logger.info(
        f"Converted {len(transcripts)} transcripts of {len(genes)} genes "
        f"into {len(feature_records)} features"
    )
    if accumulator.warnings:
        logger.warning(f"{len(accumulator.warnings)} inconsistent gene records")

    return ConversionResult(
        records=feature_records,
        genes=genes,
        n_transcripts=len(transcripts),
        warnings=accumulator.warnings,
        stats=stats,
    )


def convert_files(
    bed_path: Path | str,
    isoforms_path: Path | str,
    output_path: Path | str,
    config: Config | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ConversionResult:
    """Read a BED file and an isoforms file, convert, and write GFF3.

    The output file is only created after conversion succeeds.

    Args:
        bed_path: BED3/BED12 input, optionally gzip-compressed.
        isoforms_path: geneId<TAB>transcriptId mapping.
        output_path: GFF3 output; ``.gz`` selects gzip.
        config: Run configuration.
        progress_callback: Called with (completed, total, chunk_id).

    Returns:
        ConversionResult of the run.
    """
    config = config or Config()
    logger.debug(f"Configuration: {config.to_dict()}")

    with Timer("Reading inputs", logger):
        isoforms = load_isoforms(isoforms_path)
        records = read_bed(bed_path)

    with Timer("Deriving features", logger):
        result = convert_records(records, isoforms, config, progress_callback)

    with Timer("Writing GFF3", logger):
        write_gff(result.records, output_path, header=config.output.write_header)

    memory = get_memory_stats()
    logger.info(f"Memory usage: {memory.peak_mb:.1f} MB peak")
    return result
