"""
Full report orchestrator.

Chains every module together:
  Discover → Parse/Aggregate → Read metadata → Join → Tables → Plots → HTML

Single-threaded batch run; the first unreadable or malformed input
aborts the whole report.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd
from rich.console import Console
from rich.panel import Panel

from blastmeta.aggregate import load_results_dir, summarise_alignments
from blastmeta.config import ReportConfig
from blastmeta.join import join_metadata, unmatched_samples
from blastmeta.metadata import MetadataTable, read_metadata
from blastmeta.report import count_table, facet_summary, render_html_report
from blastmeta.utils import fmt_elapsed, get_logger, slugify
from blastmeta.visualize import plot_count_heatmap, plot_identity_by_facet, plot_identity_histogram

console = Console(stderr=True)


@dataclass
class ReportResult:
    """Container for all report outputs."""

    result_files: list[Path] = field(default_factory=list)
    alignments: Optional[pd.DataFrame] = None
    metadata: Optional[MetadataTable] = None
    joined: Optional[pd.DataFrame] = None
    counts: Optional[pd.DataFrame] = None
    sample_summary: Optional[pd.DataFrame] = None
    unmatched: list[str] = field(default_factory=list)
    tables: dict[str, Path] = field(default_factory=dict)
    plots: list[Path] = field(default_factory=list)
    report_path: Optional[Path] = None
    elapsed_seconds: float = 0.0

    def summary_rows(self) -> list[tuple[str, object]]:
        n_hits = len(self.alignments) if self.alignments is not None else 0
        n_runs = len(self.metadata) if self.metadata is not None else 0
        n_joined = len(self.joined) if self.joined is not None else 0
        n_species = len(self.counts) if self.counts is not None else 0
        return [
            ("Results files", len(self.result_files)),
            ("Alignment records", f"{n_hits:,}"),
            ("Metadata runs", f"{n_runs:,}"),
            ("Joined rows", f"{n_joined:,}"),
            ("Samples without metadata", len(self.unmatched)),
            ("Scientific names", f"{n_species:,}"),
        ]


# ---------------------------------------------------------------------------
# Result table writer
# ---------------------------------------------------------------------------


def _write_result_tables(result: ReportResult, cfg: ReportConfig) -> None:
    """Write report tables as CSV for programmatic access."""
    log = get_logger()
    tables_dir = cfg.tables_dir
    tables_dir.mkdir(parents=True, exist_ok=True)

    outputs = {
        "alignments": (result.alignments, False),
        "joined": (result.joined, False),
        "sample_summary": (result.sample_summary, False),
        "count_table": (result.counts, True),
        "unmatched_samples": (pd.DataFrame({"sample_id": result.unmatched}), False),
    }
    for name, (df, index) in outputs.items():
        if df is None:
            continue
        path = tables_dir / f"{name}.csv"
        df.to_csv(path, index=index)
        result.tables[name] = path
        log.info(f"Saved table → {path}")


def run_report(cfg: ReportConfig) -> ReportResult:
    """
    Execute the complete BlastMeta report.

    Parameters
    ----------
    cfg : ReportConfig
        Must carry ``results_dir`` and ``metadata_path``.

    Returns
    -------
    ReportResult with every intermediate table and output path.

    Raises
    ------
    FileNotFoundError
        Missing results directory or metadata file.
    MalformedRecordError
        Any malformed alignment row.
    MetadataFieldNotFound
        Run column or a facet field absent from the metadata.
    """
    if cfg.results_dir is None or cfg.metadata_path is None:
        raise ValueError("Both results_dir and metadata_path must be set.")

    cfg.ensure_dirs()
    log = get_logger(cfg.log_file)
    log.info(cfg.input_summary)
    result = ReportResult()
    t0 = time.perf_counter()

    console.print(
        Panel.fit(
            "[bold magenta]BlastMeta[/bold magenta]: BLAST hits by sample metadata\n"
            f"Results: {cfg.results_dir}\n"
            f"Metadata: {cfg.metadata_path}\n"
            f"Output: {cfg.output_dir}",
            border_style="blue",
        )
    )

    # ================================================================
    # Step 1: Parse and aggregate BLAST results
    # ================================================================
    log.info("[bold]Step 1/4: Parsing BLAST results[/bold]")
    result.alignments, result.result_files = load_results_dir(
        cfg.results_dir, cfg.results_pattern
    )
    result.sample_summary = summarise_alignments(result.alignments)

    # ================================================================
    # Step 2: Metadata join
    # ================================================================
    log.info("[bold]Step 2/4: Joining sample metadata[/bold]")
    result.metadata = read_metadata(cfg.metadata_path, run_column=cfg.run_column)
    for facet in cfg.facets:
        result.metadata.require_column(facet)
    result.unmatched = unmatched_samples(result.alignments, result.metadata)
    result.joined = join_metadata(result.alignments, result.metadata, how=cfg.join_mode)
    result.counts = count_table(result.joined, row="sci_name", column=cfg.run_column)

    _write_result_tables(result, cfg)

    # ================================================================
    # Step 3: Plots
    # ================================================================
    log.info("[bold]Step 3/4: Generating plots[/bold]")
    plots_dir = cfg.plots_dir
    histograms = plot_identity_histogram(
        result.joined, plots_dir / "identity_histogram.png", cfg=cfg
    )
    result.plots.extend(histograms)

    facet_sections = {}
    for facet in cfg.facets:
        facet_plots = plot_identity_by_facet(
            result.joined, facet, plots_dir / f"identity_by_{slugify(facet)}.png", cfg=cfg
        )
        result.plots.extend(facet_plots)
        facet_sections[facet] = (
            facet_summary(result.joined, facet, run_column=cfg.run_column),
            [p for p in facet_plots if p.suffix == ".png"],
        )

    heatmaps = plot_count_heatmap(
        result.counts, plots_dir / "count_heatmap.png", top_n=cfg.top_n_species, cfg=cfg
    )
    result.plots.extend(heatmaps)

    # ================================================================
    # Step 4: HTML document
    # ================================================================
    log.info("[bold]Step 4/4: Rendering report[/bold]")
    result.report_path = render_html_report(
        cfg.report_path,
        summary=result.summary_rows(),
        histogram_plots=[p for p in histograms if p.suffix == ".png"],
        facet_sections=facet_sections,
        sample_summary=result.sample_summary,
        counts=result.counts,
        heatmap_plots=[p for p in heatmaps if p.suffix == ".png"],
        unmatched=result.unmatched,
    )

    # ================================================================
    # Done
    # ================================================================
    result.elapsed_seconds = time.perf_counter() - t0
    console.print(
        Panel.fit(
            f"[bold green]Report completed in {fmt_elapsed(result.elapsed_seconds)}[/bold green]\n"
            f"Report: {result.report_path}",
            border_style="green",
        )
    )
    return result
