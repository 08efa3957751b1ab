"""bed2gff: parallel BED12 to GFF3 conversion.

bed2gff turns transcript records in BED12 layout into hierarchical GFF3
(gene, transcript, exon, CDS, UTR, start/stop codon) using a
transcript-to-gene mapping to build gene spans.

Example:
    >>> import bed2gff
    >>> bed2gff.__version__
    '0.2.0'

Modules:
    io: BED, isoform mapping and GFF3 handlers
    core: Feature derivation, gene aggregation, record merging
    parallel: Chunking, worker pools and the conversion scheduler
    utils: Intervals, natural ordering and logging
"""

__version__ = "0.2.0"

from bed2gff.config import Config
from bed2gff.core.features import derive
from bed2gff.parallel.scheduler import convert_files, convert_records

__all__ = [
    "__version__",
    "Config",
    "derive",
    "convert_files",
    "convert_records",
]
