"""
Combine per-file BLAST tables into a single alignment table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from blastmeta.parse import ALIGNMENT_COLUMNS, empty_alignment_frame, parse_alignment_file
from blastmeta.utils import get_logger, list_result_files


def aggregate_alignment_files(paths: Iterable[Path]) -> pd.DataFrame:
    """
    Parse every file in *paths* and concatenate the rows.

    The schema is exactly the parser's; rows are not deduplicated and no
    order across files is promised.  An empty *paths* yields an empty
    table with the full schema.  The first malformed file aborts.
    """
    log = get_logger()
    paths = [Path(p) for p in paths]
    frames = [parse_alignment_file(p) for p in paths]

    frames = [f for f in frames if len(f) > 0]
    if not frames:
        log.warning("No alignment records found in any results file.")
        return empty_alignment_frame()

    combined = pd.concat(frames, ignore_index=True)
    combined = combined[list(ALIGNMENT_COLUMNS)]
    log.info(f"Aggregated {len(combined):,} alignment records from {len(paths)} file(s)")
    return combined


def load_results_dir(results_dir: Path, pattern: str = "*") -> tuple[pd.DataFrame, list[Path]]:
    """Discover and aggregate every results file in *results_dir*."""
    log = get_logger()
    paths = list_result_files(results_dir, pattern)
    log.info(f"Found {len(paths)} results file(s) in {results_dir}")
    return aggregate_alignment_files(paths), paths


def summarise_alignments(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-sample hit summary.

    Columns: sample_id, hits, sequences, species, mean_pident, max_bitscore
    """
    columns = ["sample_id", "hits", "sequences", "species", "mean_pident", "max_bitscore"]
    if len(df) == 0:
        return pd.DataFrame(columns=columns)

    summary = (
        df.groupby("sample_id", sort=True)
        .agg(
            hits=("seq_num", "size"),
            sequences=("seq_num", "nunique"),
            species=("sci_name", "nunique"),
            mean_pident=("pident", "mean"),
            max_bitscore=("bitscore", "max"),
        )
        .reset_index()
    )
    summary["mean_pident"] = summary["mean_pident"].round(2)
    return summary[columns]
