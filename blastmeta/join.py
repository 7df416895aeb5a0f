"""
Join the aggregated alignment table onto sample metadata.

The key is ``metadata[run_column] == alignments["sample_id"]``.  The
default join is anchored on metadata: every metadata row survives (with
empty alignment fields when a run has no hits) and hits whose sample has
no metadata row are dropped.  The drop is logged, and ``JoinMode.OUTER``
keeps both sides with ``has_metadata`` / ``has_alignment`` flags.
"""

from __future__ import annotations

import pandas as pd

from blastmeta.config import JoinMode
from blastmeta.metadata import MetadataTable
from blastmeta.parse import ALIGNMENT_COLUMNS
from blastmeta.utils import get_logger

_HIT_KEY = "__hit_sample_id"

_PANDAS_HOW = {
    JoinMode.METADATA: "left",
    JoinMode.ALIGNMENTS: "right",
    JoinMode.OUTER: "outer",
}


def unmatched_samples(alignments: pd.DataFrame, metadata: MetadataTable) -> list[str]:
    """Sample ids that have hits but no metadata row."""
    known = set(metadata.run_ids)
    return sorted(set(alignments["sample_id"]) - known)


def join_metadata(
    alignments: pd.DataFrame,
    metadata: MetadataTable,
    how: JoinMode = JoinMode.METADATA,
) -> pd.DataFrame:
    """
    Join *alignments* onto *metadata*.

    Parameters
    ----------
    alignments : pd.DataFrame
        Aggregated table with ``ALIGNMENT_COLUMNS``.
    metadata : MetadataTable
        Sample table keyed on ``metadata.run_column``.
    how : JoinMode
        Which side keeps every row.

    Returns
    -------
    pd.DataFrame
        Metadata columns first (text, ``""`` where absent), then every
        alignment column except ``sample_id``, which is folded into the
        run column.  Alignment fields are NaN for metadata rows without
        hits.  ``JoinMode.OUTER`` adds boolean ``has_metadata`` and
        ``has_alignment`` columns.
    """
    log = get_logger()
    how = JoinMode(how)
    key = metadata.run_column
    meta = metadata.frame

    missing = unmatched_samples(alignments, metadata)
    if missing:
        dropped = int(alignments["sample_id"].isin(missing).sum())
        if how is JoinMode.METADATA:
            log.warning(
                f"{dropped:,} hit(s) from {len(missing)} sample(s) have no metadata "
                f"and are dropped: {', '.join(missing[:5])}"
                + (" ..." if len(missing) > 5 else "")
            )
        else:
            log.info(f"{dropped:,} hit(s) from {len(missing)} sample(s) have no metadata")

    hits = alignments.rename(columns={"sample_id": _HIT_KEY})
    merged = meta.merge(
        hits,
        how=_PANDAS_HOW[how],
        left_on=key,
        right_on=_HIT_KEY,
        suffixes=("", "_hit"),
        indicator=how is JoinMode.OUTER,
        sort=False,
    )

    # Rows that came only from the alignment side carry the key on the hit column
    merged[key] = merged[key].where(merged[key].notna(), merged[_HIT_KEY])
    merged = merged.drop(columns=[_HIT_KEY])

    meta_cols = list(meta.columns)
    merged[meta_cols] = merged[meta_cols].fillna("")

    if how is JoinMode.OUTER:
        merged["has_metadata"] = merged["_merge"].isin(["both", "left_only"])
        merged["has_alignment"] = merged["_merge"].isin(["both", "right_only"])
        merged = merged.drop(columns=["_merge"])

    hit_cols = [c for c in merged.columns if c not in meta_cols]
    merged = merged[meta_cols + hit_cols].reset_index(drop=True)

    n_without_hits = int(merged[alignment_field(merged, "seq_num")].isna().sum())
    log.info(
        f"Joined table: {len(merged):,} row(s); "
        f"{n_without_hits:,} metadata row(s) without hits (join={how.value})"
    )
    return merged


def alignment_field(joined: pd.DataFrame, name: str) -> str:
    """
    Column name of alignment field *name* in a joined table.

    Alignment columns that clash with a metadata column carry a ``_hit``
    suffix after the join.
    """
    if name not in ALIGNMENT_COLUMNS:
        raise ValueError(f"'{name}' is not an alignment column")
    suffixed = f"{name}_hit"
    if suffixed in joined.columns:
        return suffixed
    return name
