"""Input/output handlers for bed2gff.

- BED: transcript records (BED3 or BED12)
- Isoforms: two-column gene/transcript mapping
- GFF3: feature records and the output writer

Files ending in ``.gz`` are read and written through gzip transparently.

Example:
    >>> from bed2gff.io import read_bed, load_isoforms
    >>> records = read_bed("transcripts.bed")
    >>> isoforms = load_isoforms("isoforms.txt")
"""

from bed2gff.io.bed import BedRecord, bed_sort_key, iter_bed, parse_bed_line, read_bed
from bed2gff.io.compression import is_gzipped, open_text
from bed2gff.io.gff import FeatureRecord, GFF3Writer, format_attributes, write_gff
from bed2gff.io.isoforms import IsoformIndex, load_isoforms

__all__ = [
    "BedRecord",
    "bed_sort_key",
    "iter_bed",
    "parse_bed_line",
    "read_bed",
    "is_gzipped",
    "open_text",
    "FeatureRecord",
    "GFF3Writer",
    "format_attributes",
    "write_gff",
    "IsoformIndex",
    "load_isoforms",
]
