"""Transcript chunking for parallel processing.

Work is split into contiguous runs of transcripts of roughly equal size.
Each chunk remembers the input position of its first transcript, so
results can be put back into input order however the chunks complete.

Example:
    >>> from bed2gff.parallel.chunker import TranscriptChunker
    >>> chunker = TranscriptChunker(n_workers=8)
    >>> plan = chunker.create_plan(work_items)
    >>> for chunk in plan:
    ...     print(chunk.chunk_id, len(chunk))
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Iterator

import attrs

from bed2gff.config import DEFAULT_CHUNKS_PER_WORKER, DEFAULT_MIN_CHUNK_SIZE

if TYPE_CHECKING:
    from bed2gff.io.bed import BedRecord

logger = logging.getLogger(__name__)

WorkItem = tuple["BedRecord", str]


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(slots=True)
class TranscriptChunk:
    """A processing unit of consecutive transcripts.

    Attributes:
        chunk_id: Unique identifier for this chunk.
        offset: Input position of the first transcript.
        items: (record, gene_id) pairs in input order.
    """

    chunk_id: str
    offset: int
    items: list[WorkItem] = attrs.Factory(list)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def end(self) -> int:
        """Input position just past the last transcript."""
        return self.offset + len(self.items)

    def __str__(self) -> str:
        return f"{self.chunk_id}[{self.offset}:{self.end}]"


@attrs.define(slots=True)
class ChunkPlan:
    """Complete chunking plan for a run.

    Attributes:
        chunks: Chunks in input order.
        total_items: Number of transcripts across all chunks.
        chunk_size: Target transcripts per chunk.
    """

    chunks: list[TranscriptChunk]
    total_items: int
    chunk_size: int

    def __len__(self) -> int:
        return len(self.chunks)

    def __iter__(self) -> Iterator[TranscriptChunk]:
        return iter(self.chunks)

    def summary(self) -> dict:
        """Summary statistics of the plan."""
        sizes = [len(c) for c in self.chunks]
        return {
            "n_chunks": len(self.chunks),
            "total_items": self.total_items,
            "chunk_size": self.chunk_size,
            "min_size": min(sizes) if sizes else 0,
            "max_size": max(sizes) if sizes else 0,
        }


# =============================================================================
# Chunker
# =============================================================================


class TranscriptChunker:
    """Split transcripts into chunks for a worker pool.

    The target is ``n_workers * chunks_per_worker`` chunks so a slow chunk
    does not leave the other workers idle, but no chunk is smaller than
    ``min_chunk_size`` transcripts (except the last one).
    """

    def __init__(
        self,
        n_workers: int = 1,
        chunks_per_worker: int = DEFAULT_CHUNKS_PER_WORKER,
        min_chunk_size: int = DEFAULT_MIN_CHUNK_SIZE,
    ) -> None:
        """Initialize the chunker.

        Args:
            n_workers: Size of the worker pool.
            chunks_per_worker: Target number of chunks per worker.
            min_chunk_size: Smallest chunk size in transcripts.
        """
        self.n_workers = max(1, n_workers)
        self.chunks_per_worker = max(1, chunks_per_worker)
        self.min_chunk_size = max(1, min_chunk_size)

    def chunk_size_for(self, n_items: int) -> int:
        """Target chunk size for a given number of transcripts."""
        target_chunks = self.n_workers * self.chunks_per_worker
        return max(self.min_chunk_size, math.ceil(n_items / target_chunks))

    def create_plan(self, items: list[WorkItem]) -> ChunkPlan:
        """Partition work items into contiguous chunks.

        Args:
            items: (record, gene_id) pairs in input order.

        Returns:
            ChunkPlan covering every item exactly once.
        """
        size = self.chunk_size_for(len(items))
        chunks = [
            TranscriptChunk(
                chunk_id=f"chunk_{idx:04d}",
                offset=offset,
                items=items[offset : offset + size],
            )
            for idx, offset in enumerate(range(0, len(items), size))
        ]

        logger.debug(
            f"Split {len(items)} transcripts into {len(chunks)} chunks "
            f"of up to {size}"
        )
        return ChunkPlan(chunks=chunks, total_items=len(items), chunk_size=size)
