"""Transparent gzip handling for input and output files."""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import IO


def is_gzipped(path: Path | str) -> bool:
    """Whether a path is treated as gzip-compressed (``.gz`` suffix)."""
    return Path(path).suffix == ".gz"


def open_text(path: Path | str, mode: str = "r") -> IO[str]:
    """Open a plain or gzip-compressed text file.

    Args:
        path: File path; a ``.gz`` suffix selects gzip.
        mode: ``"r"`` or ``"w"``.

    Returns:
        Text-mode file handle.
    """
    if is_gzipped(path):
        return gzip.open(path, mode + "t", encoding="utf-8")
    return open(path, mode, encoding="utf-8")
