"""Configuration management for bed2gff.

Run-wide settings (worker count, execution backend, output labelling) are
collected in attrs classes and passed explicitly to the scheduler and the
writer rather than read from module globals.

Example:
    >>> from bed2gff.config import Config
    >>> config = Config.from_options(threads=4, backend="threads")
    >>> config.parallel.max_workers
    4
"""

from __future__ import annotations

import os
from typing import Any

import attrs

# =============================================================================
# Default Configuration Values
# =============================================================================

# Parallel processing defaults
DEFAULT_BACKEND = "processes"
DEFAULT_CHUNKS_PER_WORKER = 4
DEFAULT_MIN_CHUNK_SIZE = 64  # Transcripts per chunk

# Output defaults
DEFAULT_SOURCE = "bed2gff"

BACKENDS = ("serial", "threads", "processes")


def default_workers() -> int:
    """Available parallelism of this machine."""
    return os.cpu_count() or 1


def _positive(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if value < 1:
        raise ValueError(f"{attribute.name} must be >= 1, got {value}")


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class ParallelConfig:
    """Configuration for parallel processing.

    Attributes:
        max_workers: Size of the worker pool.
        backend: Execution backend (serial, threads, processes).
        chunks_per_worker: Target number of chunks handed to each worker.
        min_chunk_size: Smallest number of transcripts per chunk.
    """

    max_workers: int = attrs.field(factory=default_workers, validator=_positive)
    backend: str = attrs.field(
        default=DEFAULT_BACKEND, validator=attrs.validators.in_(BACKENDS)
    )
    chunks_per_worker: int = attrs.field(
        default=DEFAULT_CHUNKS_PER_WORKER, validator=_positive
    )
    min_chunk_size: int = attrs.field(default=DEFAULT_MIN_CHUNK_SIZE, validator=_positive)


@attrs.define
class OutputConfig:
    """Configuration for GFF3 output.

    Attributes:
        source: Value of the GFF3 source column.
        write_header: Whether to write the ``##gff-version`` header block.
    """

    source: str = DEFAULT_SOURCE
    write_header: bool = True


@attrs.define
class Config:
    """Main configuration container for bed2gff.

    Attributes:
        parallel: Parallel processing configuration.
        output: Output configuration.
    """

    parallel: ParallelConfig = attrs.Factory(ParallelConfig)
    output: OutputConfig = attrs.Factory(OutputConfig)

    @classmethod
    def from_options(
        cls,
        threads: int | None = None,
        backend: str | None = None,
        source: str | None = None,
        header: bool = True,
    ) -> Config:
        """Build a configuration from command-line options.

        Args:
            threads: Worker count; None uses all available CPUs.
            backend: Execution backend name; None uses the default.
            source: GFF3 source label; None uses the default.
            header: Whether to write the header block.

        Returns:
            Validated configuration object.

        Raises:
            ValueError: If an option is out of range.
        """
        parallel = ParallelConfig(
            max_workers=threads if threads is not None else default_workers(),
            backend=backend or DEFAULT_BACKEND,
        )
        output = OutputConfig(source=source or DEFAULT_SOURCE, write_header=header)
        return cls(parallel=parallel, output=output)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return attrs.asdict(self)
