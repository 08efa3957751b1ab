"""Transcript-to-gene mapping.

The isoforms file is a two-column, tab-separated table with one
``geneId<TAB>transcriptId`` pair per line. It is loaded completely before
conversion starts.

Example:
    >>> from bed2gff.io.isoforms import load_isoforms
    >>> index = load_isoforms("isoforms.txt")
    >>> index.gene_for("ENST00000275493")
    'ENSG00000146648'
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Mapping

from bed2gff.errors import MalformedRecord, UnmappedTranscript
from bed2gff.io.compression import open_text

logger = logging.getLogger(__name__)


class IsoformIndex(Mapping[str, str]):
    """Read-only mapping of transcript id to gene id.

    Example:
        >>> index = IsoformIndex({"tx1": "gene1"})
        >>> index.gene_for("tx1")
        'gene1'
        >>> index.gene_for("tx2")
        Traceback (most recent call last):
        ...
        bed2gff.errors.UnmappedTranscript: ...
    """

    def __init__(self, mapping: Mapping[str, str] | None = None) -> None:
        self._mapping: dict[str, str] = dict(mapping or {})

    def __getitem__(self, transcript_id: str) -> str:
        return self._mapping[transcript_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:
        return f"IsoformIndex({len(self)} transcripts)"

    def gene_for(self, transcript_id: str) -> str:
        """Look up the gene of a transcript.

        Raises:
            UnmappedTranscript: If the transcript is not in the mapping.
        """
        try:
            return self._mapping[transcript_id]
        except KeyError:
            raise UnmappedTranscript(transcript_id) from None

    @property
    def n_genes(self) -> int:
        """Number of distinct genes."""
        return len(set(self._mapping.values()))


def load_isoforms(path: Path | str) -> IsoformIndex:
    """Load an isoforms file.

    Blank lines and ``#`` comments are skipped. Extra columns are ignored.
    When a transcript appears twice with different genes the later line
    wins and a warning is logged.

    Args:
        path: Isoforms file, optionally gzip-compressed.

    Returns:
        IsoformIndex keyed by transcript id.

    Raises:
        MalformedRecord: If a line has fewer than two columns.
    """
    mapping: dict[str, str] = {}

    with open_text(path) as handle:
        for line_number, line in enumerate(handle, 1):
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#"):
                continue

            parts = line.split("\t")
            if len(parts) < 2 or not parts[0] or not parts[1]:
                raise MalformedRecord(
                    line_number,
                    "isoforms line must be geneId<TAB>transcriptId",
                )

            gene_id, transcript_id = parts[0].strip(), parts[1].strip()
            previous = mapping.get(transcript_id)
            if previous is not None and previous != gene_id:
                logger.warning(
                    f"Transcript {transcript_id} mapped to both {previous} and "
                    f"{gene_id}; using {gene_id}"
                )
            mapping[transcript_id] = gene_id

    index = IsoformIndex(mapping)
    logger.info(f"Loaded {len(index)} transcripts for {index.n_genes} genes from {path}")
    return index
