"""
Command-line interface for BlastMeta.

Usage examples
--------------
# Build the full report
blastmeta run \\
    --results-dir ./blast_results \\
    --metadata ./SraRunTable.tsv \\
    --facet sex --facet material \\
    --output-dir ./report

# Parse a single BLAST results file to CSV
blastmeta parse blast_results/batch01.csv -o batch01_parsed.csv

# List the columns available for --facet
blastmeta columns ./SraRunTable.tsv
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from blastmeta import __version__
from blastmeta.config import PLOT_FORMATS, JoinMode, ReportConfig
from blastmeta.errors import BlastMetaError
from blastmeta.utils import get_logger

console = Console(stderr=True)


def _fail(exc: Exception) -> None:
    get_logger().error(str(exc))
    raise click.ClickException(str(exc))


# ======================================================================
# Top-level group
# ======================================================================


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__, prog_name="BlastMeta")
def main():
    """BlastMeta: BLAST hit statistics joined to sample metadata."""
    pass


# ======================================================================
# blastmeta run — full report
# ======================================================================


@main.command("run")
@click.option(
    "--results-dir",
    "-r",
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help="Directory of comma-separated BLAST results files.",
)
@click.option(
    "--metadata",
    "-m",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Tab-separated sample metadata table with a header row.",
)
@click.option(
    "--output-dir", "-o", default="blastmeta_output", type=click.Path(), help="Output directory."
)
@click.option("--pattern", default="*", help="Glob selecting results files (default: all).")
@click.option("--run-column", default="Run", help="Metadata column holding run ids (default: Run).")
@click.option(
    "--join",
    "join_mode",
    default=JoinMode.METADATA.value,
    type=click.Choice([m.value for m in JoinMode]),
    help="Side of the join that keeps every row (default: metadata).",
)
@click.option(
    "--facet",
    "-f",
    "facets",
    multiple=True,
    help="Metadata column to split identity histograms by (repeatable).",
)
@click.option("--bins", default=20, type=click.IntRange(min=1), help="Histogram bins (default: 20).")
@click.option(
    "--top-n", default=30, type=click.IntRange(min=1), help="Scientific names shown in the heatmap."
)
@click.option(
    "--plot-format",
    default="pdf",
    type=click.Choice(list(PLOT_FORMATS)),
    help="Format saved alongside each PNG.",
)
def run_cmd(
    results_dir,
    metadata,
    output_dir,
    pattern,
    run_column,
    join_mode,
    facets,
    bins,
    top_n,
    plot_format,
):
    """Build the complete report."""
    from blastmeta.pipeline import run_report

    cfg = ReportConfig(
        results_dir=Path(results_dir),
        metadata_path=Path(metadata),
        output_dir=Path(output_dir),
        results_pattern=pattern,
        run_column=run_column,
        join_mode=join_mode,
        facets=facets,
        bins=bins,
        top_n_species=top_n,
        plot_format=plot_format,
    )
    get_logger(cfg.log_file)

    try:
        result = run_report(cfg)
    except (BlastMetaError, FileNotFoundError) as exc:
        _fail(exc)

    tbl = Table(title="Report Results", show_lines=True)
    tbl.add_column("Item", style="bold cyan")
    tbl.add_column("Value", style="green")
    for label, value in result.summary_rows():
        tbl.add_row(label, str(value))
    tbl.add_row("Tables", f"{len(result.tables)} files in {cfg.tables_dir}")
    tbl.add_row("Plots", f"{len(result.plots)} files in {cfg.plots_dir}")
    tbl.add_row("Report", str(result.report_path))
    console.print(tbl)


# ======================================================================
# blastmeta parse — one results file
# ======================================================================


@main.command("parse")
@click.argument("results_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default=None, type=click.Path(), help="CSV to write (default: stdout).")
def parse_cmd(results_file: str, output: Optional[str]):
    """Parse one BLAST results file and split the query identifier."""
    from blastmeta.parse import parse_alignment_file

    get_logger()
    try:
        df = parse_alignment_file(Path(results_file))
    except BlastMetaError as exc:
        _fail(exc)

    if output:
        df.to_csv(output, index=False)
        console.print(f"[green]Parsed {len(df):,} records → {output}[/green]")
    else:
        click.echo(df.to_csv(index=False), nl=False)


# ======================================================================
# blastmeta columns — inspect metadata
# ======================================================================


@main.command("columns")
@click.argument("metadata", type=click.Path(exists=True, dir_okay=False))
@click.option("--run-column", default="Run", help="Metadata column holding run ids.")
def columns_cmd(metadata: str, run_column: str):
    """List metadata columns and their distinct values."""
    from blastmeta.metadata import read_metadata

    get_logger()
    try:
        table = read_metadata(Path(metadata), run_column=run_column)
    except BlastMetaError as exc:
        _fail(exc)

    tbl = Table(title=f"{Path(metadata).name}: {len(table):,} run(s)", show_lines=True)
    tbl.add_column("Column", style="bold")
    tbl.add_column("Distinct", justify="right")
    tbl.add_column("Examples")
    for name in table.columns:
        values = table.require_column(name)
        uniq = [v for v in values.unique() if v != ""]
        tbl.add_row(name, str(len(uniq)), ", ".join(uniq[:4]))
    click.echo(f"{len(table.columns)} column(s)")
    console.print(tbl)


if __name__ == "__main__":
    main()
