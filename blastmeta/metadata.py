"""
Sample metadata table.

The metadata file is tab-separated with a header row and an arbitrary
column set (an SRA run table, typically).  Every value is kept as text:
run accessions, sample names, and codes must never be coerced to
numbers or NaN.  Missing cells read as the empty string.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator

import pandas as pd

from blastmeta.errors import MetadataFieldNotFound, MetadataFormatError, SampleNotFound
from blastmeta.utils import get_logger


class MetadataTable:
    """Typed mapping of run identifier → {field name: text value}."""

    def __init__(self, frame: pd.DataFrame, run_column: str = "Run") -> None:
        if run_column not in frame.columns:
            raise MetadataFieldNotFound(run_column, list(frame.columns))
        self.frame = frame.reset_index(drop=True)
        self.run_column = run_column

    def __len__(self) -> int:
        return len(self.frame)

    def __contains__(self, run_id: object) -> bool:
        return run_id in set(self.frame[self.run_column])

    def __repr__(self) -> str:
        return (
            f"MetadataTable(rows={len(self)}, run_column={self.run_column!r}, "
            f"columns={len(self.columns)})"
        )

    @property
    def columns(self) -> list[str]:
        return list(self.frame.columns)

    @property
    def run_ids(self) -> list[str]:
        return list(self.frame[self.run_column])

    def require_column(self, name: str) -> pd.Series:
        """Return column *name*, or raise MetadataFieldNotFound."""
        if name not in self.frame.columns:
            raise MetadataFieldNotFound(name, self.columns)
        return self.frame[name]

    def record(self, run_id: str) -> dict[str, str]:
        """Return the first metadata row for *run_id* as a plain dict."""
        hits = self.frame[self.frame[self.run_column] == run_id]
        if hits.empty:
            raise SampleNotFound(run_id)
        return {str(k): str(v) for k, v in hits.iloc[0].items()}

    def records(self) -> Iterator[dict[str, str]]:
        for _, row in self.frame.iterrows():
            yield {str(k): str(v) for k, v in row.items()}

    def duplicated_run_ids(self) -> list[str]:
        dup = self.frame[self.run_column].duplicated(keep=False)
        return sorted(set(self.frame.loc[dup, self.run_column]))


def _check_shape(path: Path) -> None:
    """Raise MetadataFormatError unless every row has as many fields as the header."""
    n_header = None
    line_no = 0
    try:
        with open(path, newline="", encoding="utf-8") as fh:
            reader = csv.reader(fh, delimiter="\t")
            for fields in reader:
                line_no = reader.line_num
                if not fields:
                    continue
                if n_header is None:
                    n_header = len(fields)
                    continue
                if len(fields) != n_header:
                    raise MetadataFormatError(
                        f"expected {n_header} fields (as in the header), found {len(fields)}",
                        path=path,
                        line_no=line_no,
                    )
    except UnicodeDecodeError as exc:
        raise MetadataFormatError(f"not valid UTF-8 text: {exc.reason}", path=path) from exc
    except csv.Error as exc:
        raise MetadataFormatError(str(exc), path=path, line_no=line_no + 1) from exc
    if n_header is None:
        raise MetadataFormatError("metadata table is empty (no header row)", path=path)


def read_metadata(path: Path, run_column: str = "Run") -> MetadataTable:
    """
    Read a tab-separated metadata table with every value as text.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    MetadataFieldNotFound
        If the header has no *run_column*.
    MetadataFormatError
        If the file is empty, not UTF-8, or a row has a different number
        of fields than the header.
    """
    log = get_logger()
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Metadata file not found: {path}")

    _check_shape(path)
    try:
        frame = pd.read_csv(
            path,
            sep="\t",
            dtype=str,
            index_col=False,
            keep_default_na=False,
            na_filter=False,
            encoding="utf-8",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise MetadataFormatError(f"cannot parse metadata table: {exc}", path=path) from exc
    frame.columns = [str(c).strip() for c in frame.columns]
    table = MetadataTable(frame, run_column=run_column)

    dups = table.duplicated_run_ids()
    if dups:
        log.warning(
            f"{len(dups)} run id(s) appear more than once in {path.name}; "
            f"their hits will be repeated in the join: {', '.join(dups[:5])}"
        )
    log.info(f"Loaded metadata for {len(table):,} run(s) with {len(table.columns)} column(s)")
    return table
