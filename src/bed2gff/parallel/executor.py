"""Local parallel execution of chunked work.

This module runs a function over a list of chunks with a serial, thread
or process backend and collects per-chunk results and timing.

Features:
    - Multiple execution backends (serial, threads, processes)
    - Fail-fast: the first failure cancels pending chunks and is re-raised
    - Progress callbacks for rich progress bars
    - Memory statistics via psutil

Example:
    >>> from bed2gff.parallel.executor import ParallelExecutor
    >>> executor = ParallelExecutor(n_workers=8, backend="processes")
    >>> results, stats = executor.map_chunks(process_chunk, chunks)
"""

from __future__ import annotations

import logging
import platform
import resource
import time
from concurrent.futures import (
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from enum import Enum
from typing import Any, Callable, Sequence, TypeVar

import attrs
import psutil

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int, str], None]


# =============================================================================
# Enums
# =============================================================================


class ExecutorBackend(Enum):
    """Available execution backends."""

    SERIAL = "serial"
    THREADS = "threads"
    PROCESSES = "processes"


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(slots=True)
class MemoryStats:
    """Memory usage statistics."""

    current_mb: float
    peak_mb: float


@attrs.define(slots=True)
class TaskResult:
    """Result from one chunk."""

    chunk_id: str
    success: bool
    result: Any | None = None
    error: str | None = None
    exception: BaseException | None = None
    duration_seconds: float = 0.0


@attrs.define(slots=True)
class ExecutionStats:
    """Statistics from parallel execution.

    ``peak_memory_mb`` is the parent process peak RSS after the run; it is
    None when there was nothing to run.
    """

    total_tasks: int
    successful: int
    failed: int
    total_duration: float
    peak_memory_mb: float | None = None


# =============================================================================
# Memory Monitoring
# =============================================================================


def get_memory_stats() -> MemoryStats:
    """Get current memory usage statistics.

    Returns:
        MemoryStats with current memory information.
    """
    process = psutil.Process()
    mem_info = process.memory_info()

    # ru_maxrss is KB on Linux and bytes on macOS
    peak_raw = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    if platform.system() == "Darwin":
        peak_mb = peak_raw / 1024 / 1024
    else:
        peak_mb = peak_raw / 1024

    return MemoryStats(
        current_mb=mem_info.rss / 1024 / 1024,
        peak_mb=max(peak_mb, mem_info.rss / 1024 / 1024),
    )


# =============================================================================
# Task Wrapper
# =============================================================================


def _timed_call(func: Callable[[Any], Any], chunk: Any) -> TaskResult:
    """Run one chunk and wrap the outcome.

    Module level so it can be pickled for the process backend.
    """
    chunk_id = getattr(chunk, "chunk_id", "unknown")
    start_time = time.perf_counter()
    try:
        result = func(chunk)
    except Exception as e:
        return TaskResult(
            chunk_id=chunk_id,
            success=False,
            error=str(e),
            exception=e,
            duration_seconds=time.perf_counter() - start_time,
        )
    return TaskResult(
        chunk_id=chunk_id,
        success=True,
        result=result,
        duration_seconds=time.perf_counter() - start_time,
    )


# =============================================================================
# Parallel Executor
# =============================================================================


class ParallelExecutor:
    """Execute a function over chunks in parallel.

    With ``continue_on_error=False`` the first failing chunk cancels every
    chunk not yet started and its exception is re-raised unchanged.
    Functions run on the process backend must be picklable (module-level
    functions or ``functools.partial`` of them).

    Example:
        >>> executor = ParallelExecutor(n_workers=4, backend="threads")
        >>> results, stats = executor.map_chunks(func, chunks)
        >>> print(f"Processed {stats.successful}/{stats.total_tasks} chunks")
    """

    def __init__(
        self,
        n_workers: int = 1,
        backend: ExecutorBackend | str = ExecutorBackend.PROCESSES,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            n_workers: Number of parallel workers (1 = serial).
            backend: Execution backend.
            progress_callback: Called with (completed, total, chunk_id).
        """
        self.n_workers = max(1, n_workers)
        self.backend = (
            ExecutorBackend(backend) if isinstance(backend, str) else backend
        )
        self.progress_callback = progress_callback

        # Auto-select serial if n_workers=1
        if self.n_workers == 1:
            self.backend = ExecutorBackend.SERIAL

    def map_chunks(
        self,
        func: Callable[[T], R],
        chunks: Sequence[T],
        continue_on_error: bool = False,
    ) -> tuple[list[TaskResult], ExecutionStats]:
        """Apply function to each chunk.

        Args:
            func: Function taking a chunk, returning a result.
            chunks: Chunks to process.
            continue_on_error: Keep going after a failed chunk.

        Returns:
            Tuple of (results in chunk order, execution stats).

        Raises:
            Exception: The first chunk failure, when not continuing on error.
        """
        if not chunks:
            return [], ExecutionStats(
                total_tasks=0,
                successful=0,
                failed=0,
                total_duration=0.0,
            )

        logger.info(
            f"Processing {len(chunks)} chunks with {self.n_workers} workers "
            f"(backend={self.backend.value})"
        )

        start_time = time.perf_counter()

        if self.backend == ExecutorBackend.SERIAL:
            results = self._execute_serial(func, chunks, continue_on_error)
        else:
            results = self._execute_pool(func, chunks, continue_on_error)

        total_duration = time.perf_counter() - start_time
        successful = sum(1 for r in results if r.success)
        failed = len(results) - successful

        stats = ExecutionStats(
            total_tasks=len(results),
            successful=successful,
            failed=failed,
            total_duration=total_duration,
            peak_memory_mb=get_memory_stats().peak_mb,
        )

        logger.info(
            f"Completed: {successful}/{len(chunks)} chunks, "
            f"duration={total_duration:.1f}s"
        )

        return results, stats

    def _fail(self, task_result: TaskResult) -> None:
        logger.error(f"Task {task_result.chunk_id} failed: {task_result.error}")
        if task_result.exception is not None:
            raise task_result.exception
        raise RuntimeError(task_result.error)

    def _execute_serial(
        self,
        func: Callable,
        chunks: Sequence,
        continue_on_error: bool,
    ) -> list[TaskResult]:
        """Serial execution with progress tracking."""
        results = []
        total = len(chunks)

        for i, chunk in enumerate(chunks):
            task_result = _timed_call(func, chunk)
            results.append(task_result)

            if self.progress_callback:
                self.progress_callback(i + 1, total, task_result.chunk_id)

            if not task_result.success and not continue_on_error:
                self._fail(task_result)

        return results

    def _execute_pool(
        self,
        func: Callable,
        chunks: Sequence,
        continue_on_error: bool,
    ) -> list[TaskResult]:
        """Pooled execution; results are returned in chunk order."""
        pool_class = (
            ThreadPoolExecutor
            if self.backend == ExecutorBackend.THREADS
            else ProcessPoolExecutor
        )
        ordered: list[TaskResult | None] = [None] * len(chunks)
        total = len(chunks)
        completed = 0

        with pool_class(max_workers=self.n_workers) as executor:
            futures: dict[Future, int] = {
                executor.submit(_timed_call, func, chunk): i
                for i, chunk in enumerate(chunks)
            }

            for future in as_completed(futures):
                completed += 1
                task_result = future.result()
                ordered[futures[future]] = task_result

                if self.progress_callback:
                    self.progress_callback(completed, total, task_result.chunk_id)

                if not task_result.success and not continue_on_error:
                    executor.shutdown(wait=False, cancel_futures=True)
                    self._fail(task_result)

        return [r for r in ordered if r is not None]
