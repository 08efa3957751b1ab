"""Command-line interface for bed2gff.

This module provides the ``bed2gff`` entry point. It reads a BED file and
an isoforms mapping, converts in parallel, and writes GFF3.

Example:
    $ bed2gff --bed transcripts.bed --isoforms isoforms.txt -o annotation.gff3
    $ bed2gff -b transcripts.bed.gz -i isoforms.txt -o annotation.gff3.gz -t 16
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from bed2gff import __version__
from bed2gff.config import BACKENDS, Config
from bed2gff.errors import Bed2GffError
from bed2gff.parallel.scheduler import convert_files
from bed2gff.utils.logging import setup_logging

# Initialize rich console for pretty output
console = Console(stderr=True)


@click.command()
@click.version_option(__version__, prog_name="bed2gff")
@click.option(
    "--bed",
    "-b",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="BED3/BED12 file to convert (.gz accepted).",
)
@click.option(
    "--isoforms",
    "-i",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Isoforms mapping file: geneId<TAB>transcriptId per line.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Output GFF3 file (.gz compresses).",
)
@click.option(
    "--threads",
    "-t",
    type=click.IntRange(min=1),
    default=None,
    help="Number of workers [default: all CPUs].",
)
@click.option(
    "--backend",
    type=click.Choice(BACKENDS),
    default="processes",
    show_default=True,
    help="Execution backend for the worker pool.",
)
@click.option(
    "--source",
    default="bed2gff",
    show_default=True,
    help="Value of the GFF3 source column.",
)
@click.option("--no-header", is_flag=True, help="Do not write the GFF3 header block.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Also log to this file.")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
def main(
    bed: Path,
    isoforms: Path,
    output: Path,
    threads: Optional[int],
    backend: str,
    source: str,
    no_header: bool,
    log_file: Optional[Path],
    verbose: bool,
    quiet: bool,
) -> None:
    """Convert a BED12 file into GFF3 gene, transcript and exon features.

    Every transcript in the BED file must appear in the isoforms file,
    which assigns it to a gene. Output is grouped by chromosome and sorted
    by start; run a dedicated sorter if a total order is required.
    """
    verbosity = 0 if quiet else (2 if verbose else 1)
    setup_logging(verbosity=verbosity, log_file=log_file)

    config = Config.from_options(
        threads=threads,
        backend=backend,
        source=source,
        header=not no_header,
    )

    if not quiet:
        console.print(f"[blue]BED:[/blue] {bed}")
        console.print(f"[blue]Isoforms:[/blue] {isoforms}")
        console.print(f"[blue]Output:[/blue] {output}")
        console.print(
            f"[blue]Workers:[/blue] {config.parallel.max_workers} "
            f"({config.parallel.backend})"
        )

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
        disable=quiet,
    )

    try:
        with progress:
            task_id = progress.add_task("Deriving features", total=None)

            def on_progress(completed: int, total: int, chunk_id: str) -> None:
                progress.update(task_id, completed=completed, total=total)

            result = convert_files(bed, isoforms, output, config, on_progress)

    except Bed2GffError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    except OSError as e:
        console.print(f"[red]Error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise SystemExit(1)

    if not quiet:
        console.print("")
        console.print("[bold]Conversion Summary:[/bold]")
        console.print(f"  Genes:           {result.n_genes:,}")
        console.print(f"  Transcripts:     {result.n_transcripts:,}")
        console.print(f"  Features:        {len(result.records):,}")
        if result.warnings:
            console.print(f"  [yellow]Inconsistent genes: {len(result.warnings):,}[/yellow]")
        stats = result.stats
        if stats is not None and stats.total_tasks:
            console.print(f"  Chunks:          {stats.total_tasks:,}")
            console.print(f"  Derivation time: {stats.total_duration:.2f}s")
            if stats.peak_memory_mb is not None:
                console.print(f"  Peak memory:     {stats.peak_memory_mb:.1f} MB")
        console.print("")
        console.print(f"[green]Wrote GFF3:[/green] {output}")


if __name__ == "__main__":
    main()
