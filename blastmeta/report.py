"""
Descriptive statistics over the joined table, and the HTML report.

Output:
  • filtered views by a categorical metadata field
  • a scientific name × run count table
  • ``report.html`` tying together tables and plots
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd
from jinja2 import Environment, PackageLoader, select_autoescape

from blastmeta import __version__
from blastmeta.errors import MetadataFieldNotFound
from blastmeta.join import alignment_field
from blastmeta.parse import ALIGNMENT_COLUMNS
from blastmeta.utils import ensure_parent, get_logger


# ---------------------------------------------------------------------------
# Filtering / aggregation
# ---------------------------------------------------------------------------


def require_field(joined: pd.DataFrame, field: str) -> pd.Series:
    """Return column *field* of *joined* or raise MetadataFieldNotFound."""
    if field not in joined.columns:
        raise MetadataFieldNotFound(field, [str(c) for c in joined.columns])
    return joined[field]


def _resolve(joined: pd.DataFrame, field: str, run_column: str = "Run") -> str:
    # sample_id is folded into the run column by the join
    if field == "sample_id" and field not in joined.columns:
        return run_column
    if field in ALIGNMENT_COLUMNS:
        return alignment_field(joined, field)
    return field


def filter_records(
    joined: pd.DataFrame, field: str, value: str, *, run_column: str = "Run"
) -> pd.DataFrame:
    """
    Rows of *joined* whose *field* equals *value*.

    Values are compared as text.  A value absent from the data yields an
    empty frame; an absent field raises MetadataFieldNotFound.  ``sample_id``
    names the run column after a join.
    """
    column = require_field(joined, _resolve(joined, field, run_column))
    mask = column.astype(str) == str(value)
    return joined.loc[mask].reset_index(drop=True)


def identity_values(df: pd.DataFrame) -> pd.Series:
    """Non-null percent-identity values of *df*."""
    return df[alignment_field(df, "pident")].dropna().astype(float)


def facet_levels(joined: pd.DataFrame, field: str, *, run_column: str = "Run") -> list[str]:
    """Sorted distinct non-empty values of *field* among rows with hits."""
    column = require_field(joined, _resolve(joined, field, run_column))
    has_hit = joined[alignment_field(joined, "seq_num")].notna()
    values = column[has_hit].astype(str)
    return sorted(v for v in values.unique() if v != "")


def count_table(
    joined: pd.DataFrame,
    *,
    row: str = "sci_name",
    column: str = "Run",
) -> pd.DataFrame:
    """
    Two-dimensional hit counts (*row* × *column*).

    Metadata rows without hits are excluded.  Rows are sorted by total
    count, descending; columns by name.
    """
    rows = require_field(joined, _resolve(joined, row))
    cols = require_field(joined, _resolve(joined, column))
    has_hit = joined[alignment_field(joined, "seq_num")].notna()
    if not has_hit.any():
        return pd.DataFrame(dtype="int64")

    table = pd.crosstab(rows[has_hit], cols[has_hit])
    table = table.loc[table.sum(axis=1).sort_values(ascending=False, kind="stable").index]
    table = table.reindex(sorted(table.columns), axis=1)
    table.index.name = row
    table.columns.name = column
    return table


def facet_summary(joined: pd.DataFrame, field: str, *, run_column: str = "Run") -> pd.DataFrame:
    """
    Per-level hit counts and identity statistics for *field*.

    Columns: <field>, hits, mean_pident, median_pident
    """
    rows = []
    for level in facet_levels(joined, field, run_column=run_column):
        values = identity_values(filter_records(joined, field, level, run_column=run_column))
        rows.append(
            {
                field: level,
                "hits": int(len(values)),
                "mean_pident": round(float(values.mean()), 2) if len(values) else float("nan"),
                "median_pident": round(float(values.median()), 2) if len(values) else float("nan"),
            }
        )
    return pd.DataFrame(rows, columns=[field, "hits", "mean_pident", "median_pident"])


# ---------------------------------------------------------------------------
# HTML document
# ---------------------------------------------------------------------------

_env: Optional[Environment] = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=PackageLoader("blastmeta", "templates"),
            autoescape=select_autoescape(["html", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _env


def _img(path: Path, base: Path) -> dict[str, str]:
    return {"src": Path(os.path.relpath(path, base)).as_posix(), "alt": path.stem}


def _frame_html(df: Optional[pd.DataFrame], *, index: bool = False) -> str:
    if df is None or df.empty:
        return "<p><em>No data.</em></p>"
    return df.to_html(index=index, border=0, na_rep="", float_format=lambda x: f"{x:,.2f}")


def render_html_report(
    output_path: Path,
    *,
    summary: Sequence[tuple[str, object]],
    histogram_plots: Sequence[Path] = (),
    facet_sections: Optional[dict[str, tuple[pd.DataFrame, Sequence[Path]]]] = None,
    sample_summary: Optional[pd.DataFrame] = None,
    counts: Optional[pd.DataFrame] = None,
    heatmap_plots: Sequence[Path] = (),
    unmatched: Sequence[str] = (),
    title: str = "BLAST Hits by Sample Metadata",
) -> Path:
    """
    Write a single HTML document with the run summary, plots, and tables.

    The layout lives in ``templates/report.html.j2``.  Plot paths are
    linked relative to the document so the output directory can be moved
    as a whole.
    """
    log = get_logger()
    output_path = ensure_parent(Path(output_path))
    base = output_path.parent

    template = _environment().get_template("report.html.j2")
    page = template.render(
        title=title,
        generated=f"{datetime.now():%Y-%m-%d %H:%M}",
        version=__version__,
        summary=[(str(label), str(value)) for label, value in summary],
        unmatched=list(unmatched),
        histogram_plots=[_img(p, base) for p in histogram_plots],
        facet_sections=[
            {
                "field": field,
                "table": _frame_html(table),
                "plots": [_img(p, base) for p in plots],
            }
            for field, (table, plots) in (facet_sections or {}).items()
        ],
        sample_summary=None if sample_summary is None else _frame_html(sample_summary),
        heatmap_plots=[_img(p, base) for p in heatmap_plots],
        counts=_frame_html(counts, index=True),
    )
    output_path.write_text(page, encoding="utf-8")
    log.info(f"Saved report → {output_path}")
    return output_path
