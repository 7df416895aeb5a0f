"""
Configuration management for BlastMeta.

Centralises input locations, join behaviour, and plotting settings so
that every module shares a single source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class JoinMode(str, Enum):
    """Which side of the metadata join keeps all of its rows."""

    METADATA = "metadata"  # every metadata row kept; unmatched hits dropped
    ALIGNMENTS = "alignments"  # every hit kept
    OUTER = "outer"  # both sides kept, rows flagged


PLOT_FORMATS = ("png", "pdf", "svg")


# ---------------------------------------------------------------------------
# Report configuration dataclass
# ---------------------------------------------------------------------------


@dataclass
class ReportConfig:
    """Master configuration object passed through the pipeline."""

    # --- Inputs ---
    results_dir: Optional[Path] = None  # directory of BLAST CSV files
    metadata_path: Optional[Path] = None  # tab-separated sample table
    results_pattern: str = "*"  # glob applied inside results_dir

    # --- Outputs ---
    output_dir: Path = field(default_factory=lambda: Path("blastmeta_output"))
    log_file: Optional[Path] = None  # defaults to output_dir / "blastmeta.log"

    # --- Join ---
    run_column: str = "Run"  # SRA run-table key column
    join_mode: JoinMode = JoinMode.METADATA

    # --- Reporting ---
    facets: tuple[str, ...] = ()  # metadata fields with a per-value histogram grid
    bins: int = 20
    top_n_species: int = 30  # rows kept in the count heatmap
    plot_format: str = "pdf"  # saved next to the PNG: png | pdf | svg
    dpi: int = 300

    def __post_init__(self) -> None:
        self.output_dir = Path(self.output_dir)
        if self.results_dir is not None:
            self.results_dir = Path(self.results_dir)
        if self.metadata_path is not None:
            self.metadata_path = Path(self.metadata_path)
        if self.log_file is None:
            self.log_file = self.output_dir / "blastmeta.log"
        else:
            self.log_file = Path(self.log_file)

        self.join_mode = JoinMode(self.join_mode)
        self.facets = tuple(self.facets)
        if self.bins < 1:
            raise ValueError(f"bins must be >= 1, got {self.bins}")
        if self.top_n_species < 1:
            raise ValueError(f"top_n_species must be >= 1, got {self.top_n_species}")
        if self.plot_format not in PLOT_FORMATS:
            raise ValueError(
                f"plot_format must be one of {', '.join(PLOT_FORMATS)}, got '{self.plot_format}'"
            )

    @property
    def tables_dir(self) -> Path:
        return self.output_dir / "tables"

    @property
    def plots_dir(self) -> Path:
        return self.output_dir / "plots"

    @property
    def report_path(self) -> Path:
        return self.output_dir / "report.html"

    def ensure_dirs(self) -> None:
        """Create output, table, and plot directories if they do not exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.tables_dir.mkdir(parents=True, exist_ok=True)
        self.plots_dir.mkdir(parents=True, exist_ok=True)

    @property
    def input_summary(self) -> str:
        facets = ", ".join(self.facets) if self.facets else "none"
        return (
            f"Results={self.results_dir}  Metadata={self.metadata_path}  "
            f"Key={self.run_column}  Join={self.join_mode.value}  Facets={facets}"
        )
