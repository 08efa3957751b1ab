"""Tests for bed2gff.parallel.executor module.

Tests cover:
- Memory statistics
- ParallelExecutor with each backend
- Fail-fast error propagation
- Progress callbacks
"""

import operator

import pytest

from bed2gff.errors import InvalidBlockStructure, UnmappedTranscript
from bed2gff.io.bed import BedRecord
from bed2gff.parallel.chunker import TranscriptChunk
from bed2gff.parallel.executor import ExecutorBackend, ParallelExecutor, get_memory_stats
from bed2gff.parallel.scheduler import derive_chunk


def fail_on_second(chunk: TranscriptChunk) -> int:
    if chunk.offset == 1:
        raise UnmappedTranscript(chunk.items[0][0])
    return len(chunk)


def make_chunks(n: int) -> list[TranscriptChunk]:
    return [
        TranscriptChunk(chunk_id=f"chunk_{i:04d}", offset=i, items=[(f"tx{i}", "g")])
        for i in range(n)
    ]


# =============================================================================
# Memory Tests
# =============================================================================


class TestMemoryStats:
    """Tests for memory statistics."""

    def test_get_memory_stats(self) -> None:
        """Test live memory statistics are positive."""
        stats = get_memory_stats()
        assert stats.current_mb > 0
        assert stats.peak_mb >= stats.current_mb


# =============================================================================
# Executor Tests
# =============================================================================


class TestParallelExecutor:
    """Tests for ParallelExecutor."""

    def test_single_worker_is_serial(self) -> None:
        executor = ParallelExecutor(n_workers=1, backend="processes")
        assert executor.backend == ExecutorBackend.SERIAL

    def test_backend_from_string(self) -> None:
        executor = ParallelExecutor(n_workers=2, backend="threads")
        assert executor.backend == ExecutorBackend.THREADS

    def test_empty_chunks(self) -> None:
        results, stats = ParallelExecutor(n_workers=2).map_chunks(len, [])

        assert results == []
        assert stats.total_tasks == 0
        assert stats.peak_memory_mb is None

    @pytest.mark.parametrize("backend", ["serial", "threads", "processes"])
    def test_results_in_chunk_order(self, backend: str) -> None:
        """Test results come back in chunk order on every backend."""
        chunks = make_chunks(6)
        executor = ParallelExecutor(n_workers=3, backend=backend)

        results, stats = executor.map_chunks(len, chunks)

        assert [r.chunk_id for r in results] == [c.chunk_id for c in chunks]
        assert all(r.success and r.result == 1 for r in results)
        assert stats.successful == 6
        assert stats.failed == 0
        assert stats.total_duration >= 0
        assert stats.peak_memory_mb > 0

    @pytest.mark.parametrize("backend", ["serial", "threads"])
    def test_fail_fast_reraises_worker_exception(self, backend: str) -> None:
        """Test the worker's exception type and message reach the caller."""
        executor = ParallelExecutor(n_workers=2, backend=backend)

        with pytest.raises(UnmappedTranscript) as exc_info:
            executor.map_chunks(fail_on_second, make_chunks(4))

        assert exc_info.value.transcript_id == "tx1"

    def test_fail_fast_from_worker_process(self) -> None:
        """Test an exception raised in a worker process is re-raised intact."""
        bad = BedRecord(
            chrom="chr1",
            start=0,
            end=200,
            name="broken",
            strand="+",
            thick_start=0,
            thick_end=0,
            block_sizes=(100,),
            block_starts=(0,),
            line_number=12,
        )
        chunks = [
            TranscriptChunk("chunk_0000", 0, [(bad, "g")]),
            TranscriptChunk("chunk_0001", 1, [(bad, "g")]),
        ]
        executor = ParallelExecutor(n_workers=2, backend="processes")

        with pytest.raises(InvalidBlockStructure) as exc_info:
            executor.map_chunks(derive_chunk, chunks)

        assert exc_info.value.transcript_id == "broken"
        assert exc_info.value.line_number == 12

    def test_continue_on_error(self) -> None:
        """Test failures are recorded when continuing on error."""
        executor = ParallelExecutor(n_workers=1)

        results, stats = executor.map_chunks(
            fail_on_second, make_chunks(3), continue_on_error=True
        )

        assert [r.success for r in results] == [True, False, True]
        assert "tx1" in results[1].error
        assert stats.failed == 1

    def test_progress_callback(self) -> None:
        """Test the callback sees every completion."""
        calls = []
        executor = ParallelExecutor(
            n_workers=2,
            backend="threads",
            progress_callback=lambda done, total, cid: calls.append((done, total)),
        )

        executor.map_chunks(len, make_chunks(5))

        assert sorted(calls) == [(i, 5) for i in range(1, 6)]

    def test_plain_function_chunks(self) -> None:
        """Test chunks without a chunk_id are labelled unknown."""
        executor = ParallelExecutor(n_workers=1)

        results, _ = executor.map_chunks(operator.neg, [1, 2])

        assert [r.result for r in results] == [-1, -2]
        assert results[0].chunk_id == "unknown"
