"""Parallel execution for bed2gff.

- chunker: split transcripts into contiguous chunks
- executor: run a function over chunks on a serial, thread or process pool
- scheduler: derive, aggregate and merge a whole run

Example:
    >>> from bed2gff.parallel import convert_records
    >>> result = convert_records(records, isoforms, config)
"""

from bed2gff.parallel.chunker import ChunkPlan, TranscriptChunk, TranscriptChunker
from bed2gff.parallel.executor import (
    ExecutionStats,
    ExecutorBackend,
    MemoryStats,
    ParallelExecutor,
    TaskResult,
    get_memory_stats,
)
from bed2gff.parallel.scheduler import (
    ChunkResult,
    ConversionResult,
    convert_files,
    convert_records,
    derive_chunk,
    resolve_genes,
)

__all__ = [
    # Chunking
    "ChunkPlan",
    "TranscriptChunk",
    "TranscriptChunker",
    # Execution
    "ExecutionStats",
    "ExecutorBackend",
    "MemoryStats",
    "ParallelExecutor",
    "TaskResult",
    "get_memory_stats",
    # Scheduling
    "ChunkResult",
    "ConversionResult",
    "convert_files",
    "convert_records",
    "derive_chunk",
    "resolve_genes",
]
