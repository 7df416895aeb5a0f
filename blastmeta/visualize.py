"""
Visualisation module for BlastMeta.

Generates plots from the joined hit table:
  • Histogram of percent identity across all hits
  • Histogram grid of percent identity, one panel per metadata value
  • Heatmap of hit counts (scientific name × run)

Every plot is saved as PNG (embedded in the HTML report) plus the
configured extra format, PDF by default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")  # non-interactive backend

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from blastmeta.config import ReportConfig
from blastmeta.report import facet_levels, filter_records, identity_values
from blastmeta.utils import get_logger


# ---------------------------------------------------------------------------
# Global style
# ---------------------------------------------------------------------------

_STYLE_APPLIED = False


def _apply_style() -> None:
    """Apply matplotlib defaults once."""
    global _STYLE_APPLIED
    if _STYLE_APPLIED:
        return
    plt.rcParams.update(
        {
            "font.family": "sans-serif",
            "font.sans-serif": ["Arial", "Helvetica", "DejaVu Sans"],
            "font.size": 12,
            "axes.titlesize": 15,
            "axes.titleweight": "bold",
            "axes.labelsize": 13,
            "xtick.labelsize": 11,
            "ytick.labelsize": 11,
            "legend.fontsize": 11,
            "figure.dpi": 150,
            "savefig.dpi": 300,
            "savefig.bbox": "tight",
            "savefig.facecolor": "white",
            "axes.spines.top": False,
            "axes.spines.right": False,
            "axes.grid": False,
        }
    )
    _STYLE_APPLIED = True


def _save(fig: plt.Figure, path: Path, dpi: int = 300, extra_format: str = "pdf") -> list[Path]:
    """Save figure as PNG plus *extra_format*. Returns list of saved paths."""
    _apply_style()
    path.parent.mkdir(parents=True, exist_ok=True)
    log = get_logger()
    saved: list[Path] = []

    # Always save PNG
    png_path = path.with_suffix(".png")
    fig.savefig(png_path, dpi=dpi, bbox_inches="tight", facecolor="white")
    saved.append(png_path)
    log.info(f"Saved plot → {png_path}")

    if extra_format != "png":
        extra_path = path.with_suffix(f".{extra_format}")
        fig.savefig(extra_path, format=extra_format, bbox_inches="tight", facecolor="white")
        saved.append(extra_path)
        log.info(f"Saved plot → {extra_path}")

    plt.close(fig)
    return saved


def _bin_edges(bins: int) -> np.ndarray:
    # Percent identity is bounded, so every panel shares the same edges
    return np.linspace(0.0, 100.0, bins + 1)


def _empty_axis(ax: plt.Axes, message: str = "No hits") -> None:
    ax.text(0.5, 0.5, message, transform=ax.transAxes, ha="center", va="center", color="#777777")
    ax.set_xticks([])
    ax.set_yticks([])


# ---------------------------------------------------------------------------
# 1. Percent identity histogram
# ---------------------------------------------------------------------------


def plot_identity_histogram(
    df: pd.DataFrame,
    output_path: Path,
    *,
    title: str = "Percent Identity of BLAST Hits",
    cfg: Optional[ReportConfig] = None,
) -> list[Path]:
    """Histogram of percent identity over every hit in *df*."""
    _apply_style()
    if cfg is None:
        cfg = ReportConfig()

    values = identity_values(df)
    fig, ax = plt.subplots(figsize=(9, 5))
    if len(values) == 0:
        _empty_axis(ax)
    else:
        sns.histplot(
            values,
            bins=_bin_edges(cfg.bins),
            color=sns.color_palette("viridis", 3)[1],
            edgecolor="white",
            linewidth=0.5,
            ax=ax,
        )
        ax.axvline(values.median(), color="#c5221f", linestyle="--", linewidth=1.2)
        ax.text(
            0.02,
            0.95,
            f"n = {len(values):,}\nmedian = {values.median():.1f}%",
            transform=ax.transAxes,
            va="top",
            fontsize=11,
            color="#333333",
        )
        ax.set_xlabel("Percent identity (%)")
        ax.set_ylabel("Hits")
    ax.set_title(title, pad=12)
    fig.tight_layout()

    return _save(fig, output_path, dpi=cfg.dpi, extra_format=cfg.plot_format)


# ---------------------------------------------------------------------------
# 2. Faceted histogram grid
# ---------------------------------------------------------------------------


def plot_identity_by_facet(
    joined: pd.DataFrame,
    field: str,
    output_path: Path,
    *,
    cfg: Optional[ReportConfig] = None,
) -> list[Path]:
    """
    One percent-identity histogram per distinct value of *field*.

    Parameters
    ----------
    joined : pd.DataFrame
        Joined hit table.
    field : str
        Categorical metadata column (e.g. ``sex``); raises
        MetadataFieldNotFound when absent.
    """
    _apply_style()
    if cfg is None:
        cfg = ReportConfig()

    levels = facet_levels(joined, field, run_column=cfg.run_column)
    n = max(1, len(levels))
    ncols = min(3, n)
    nrows = int(np.ceil(n / ncols))

    fig, axes = plt.subplots(
        nrows, ncols, figsize=(5 * ncols, 3.6 * nrows), sharex=True, squeeze=False
    )
    colors = sns.color_palette("husl", n)
    edges = _bin_edges(cfg.bins)

    if not levels:
        _empty_axis(axes[0][0], f"No hits with a value for '{field}'")
    for i, level in enumerate(levels):
        ax = axes[i // ncols][i % ncols]
        values = identity_values(
            filter_records(joined, field, level, run_column=cfg.run_column)
        )
        sns.histplot(values, bins=edges, color=colors[i], edgecolor="white", linewidth=0.5, ax=ax)
        ax.set_title(f"{level} (n={len(values):,})", fontsize=13)
        ax.set_xlabel("Percent identity (%)")
        ax.set_ylabel("Hits")

    for j in range(len(levels), nrows * ncols):
        if levels:
            axes[j // ncols][j % ncols].axis("off")

    fig.suptitle(f"Percent Identity by {field}", fontsize=16, fontweight="bold")
    fig.tight_layout()

    return _save(fig, output_path, dpi=cfg.dpi, extra_format=cfg.plot_format)


# ---------------------------------------------------------------------------
# 3. Count heatmap
# ---------------------------------------------------------------------------


def plot_count_heatmap(
    counts: pd.DataFrame,
    output_path: Path,
    *,
    top_n: int = 30,
    title: str = "Hits per Scientific Name and Run",
    cfg: Optional[ReportConfig] = None,
) -> list[Path]:
    """Heatmap of a count table (log10 colour scale, raw counts annotated)."""
    _apply_style()
    if cfg is None:
        cfg = ReportConfig()

    if counts.empty:
        fig, ax = plt.subplots(figsize=(6, 4))
        _empty_axis(ax)
    else:
        data = counts.head(top_n)
        n_rows, n_cols = data.shape
        fig_w = max(6, 1.0 + n_cols * 0.9)
        fig, ax = plt.subplots(figsize=(fig_w, max(4, n_rows * 0.4)))
        sns.heatmap(
            np.log10(data.clip(lower=1)),
            annot=data.values,
            fmt="d",
            annot_kws={"fontsize": 10},
            cmap="YlOrRd",
            cbar_kws={"label": "log₁₀(hits)", "shrink": 0.6},
            linewidths=0.8,
            linecolor="white",
            ax=ax,
        )
        ax.set_ylabel("")
        ax.set_xlabel(counts.columns.name or "")
        ax.tick_params(axis="y", rotation=0)
        ax.tick_params(axis="x", rotation=45)
    ax.set_title(title, pad=12)
    fig.tight_layout()

    return _save(fig, output_path, dpi=cfg.dpi, extra_format=cfg.plot_format)
