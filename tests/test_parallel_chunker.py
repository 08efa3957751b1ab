"""Tests for bed2gff.parallel.chunker module."""

import pytest

from bed2gff.parallel.chunker import ChunkPlan, TranscriptChunk, TranscriptChunker


def items(n: int) -> list:
    """Stand-in work items; the chunker never looks inside them."""
    return [(f"record_{i}", f"gene_{i}") for i in range(n)]


# =============================================================================
# Data Structure Tests
# =============================================================================


class TestTranscriptChunk:
    """Tests for TranscriptChunk."""

    def test_bounds(self) -> None:
        chunk = TranscriptChunk(chunk_id="chunk_0002", offset=20, items=items(5))

        assert len(chunk) == 5
        assert chunk.end == 25
        assert str(chunk) == "chunk_0002[20:25]"


class TestChunkPlan:
    """Tests for ChunkPlan."""

    def test_summary(self) -> None:
        plan = ChunkPlan(
            chunks=[
                TranscriptChunk("chunk_0000", 0, items(4)),
                TranscriptChunk("chunk_0001", 4, items(1)),
            ],
            total_items=5,
            chunk_size=4,
        )

        assert plan.summary() == {
            "n_chunks": 2,
            "total_items": 5,
            "chunk_size": 4,
            "min_size": 1,
            "max_size": 4,
        }

    def test_empty_summary(self) -> None:
        plan = ChunkPlan(chunks=[], total_items=0, chunk_size=1)
        assert plan.summary()["max_size"] == 0


# =============================================================================
# Chunker Tests
# =============================================================================


class TestTranscriptChunker:
    """Tests for TranscriptChunker."""

    def test_min_chunk_size_floor(self) -> None:
        """Test small inputs are not split below the minimum size."""
        chunker = TranscriptChunker(n_workers=8, chunks_per_worker=4, min_chunk_size=64)
        assert chunker.chunk_size_for(100) == 64

    def test_target_chunk_count(self) -> None:
        """Test large inputs target workers * chunks_per_worker chunks."""
        chunker = TranscriptChunker(n_workers=4, chunks_per_worker=2, min_chunk_size=1)
        plan = chunker.create_plan(items(100))

        assert plan.chunk_size == 13
        assert len(plan) == 8

    @pytest.mark.parametrize("n", [0, 1, 7, 64, 65, 1000])
    def test_covers_every_item_once(self, n: int) -> None:
        """Test chunks are contiguous and cover the input in order."""
        work = items(n)
        plan = TranscriptChunker(n_workers=3, min_chunk_size=5).create_plan(work)

        flattened = [item for chunk in plan for item in chunk.items]
        assert flattened == work
        assert plan.total_items == n
        for chunk in plan:
            assert work[chunk.offset] == chunk.items[0]

    def test_chunk_ids(self) -> None:
        plan = TranscriptChunker(n_workers=2, min_chunk_size=1).create_plan(items(3))
        assert [c.chunk_id for c in plan] == ["chunk_0000", "chunk_0001", "chunk_0002"]

    def test_clamps_arguments(self) -> None:
        chunker = TranscriptChunker(n_workers=0, chunks_per_worker=0, min_chunk_size=0)
        assert (chunker.n_workers, chunker.chunks_per_worker, chunker.min_chunk_size) == (1, 1, 1)
