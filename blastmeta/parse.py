"""
BLAST tabular-output parser.

Reads one comma-separated results file produced by::

    blastn ... -outfmt "10 sscinames qseqid sseqid pident length mismatch
                        gapopen qstart qend sstart send evalue bitscore"

There is no header row; fields are positional.  The query id is a
composite ``<sample_id>.<seq_num>`` (e.g. ``ERR1942280.1``) and is split
into two columns, so 13 raw fields become 14 columns:

    [sci_name, sample_id, seq_num, subject_id, pident, length, mismatch,
     gapopen, qstart, qend, sstart, send, evalue, bitscore]

Any malformed row fails the whole file.
"""

from __future__ import annotations

import csv
from pathlib import Path

import pandas as pd

from blastmeta.errors import CompositeIdError, MalformedRecordError
from blastmeta.utils import file_size_human, get_logger

COMPOSITE_SEPARATOR = "."

# Raw field order as written by BLAST
RAW_FIELDS = (
    "sci_name",
    "query_id",
    "subject_id",
    "pident",
    "length",
    "mismatch",
    "gapopen",
    "qstart",
    "qend",
    "sstart",
    "send",
    "evalue",
    "bitscore",
)

# Column order of the parsed table
ALIGNMENT_COLUMNS = (
    "sci_name",
    "sample_id",
    "seq_num",
    "subject_id",
    "pident",
    "length",
    "mismatch",
    "gapopen",
    "qstart",
    "qend",
    "sstart",
    "send",
    "evalue",
    "bitscore",
)

_INT_FIELDS = ("length", "mismatch", "gapopen", "qstart", "qend", "sstart", "send")
_FLOAT_FIELDS = ("pident", "evalue", "bitscore")

ALIGNMENT_DTYPES: dict[str, str] = {
    "sci_name": "object",
    "sample_id": "object",
    "seq_num": "object",
    "subject_id": "object",
    **{name: "int64" for name in _INT_FIELDS},
    **{name: "float64" for name in _FLOAT_FIELDS},
}


def split_composite_id(value: str) -> tuple[str, str]:
    """
    Split ``<sample_id>.<seq_num>`` into its two halves.

    Raises CompositeIdError unless *value* contains exactly one separator
    with text on both sides.
    """
    parts = value.split(COMPOSITE_SEPARATOR)
    if len(parts) != 2:
        found = len(parts) - 1
        raise CompositeIdError(
            f"composite identifier '{value}' must contain exactly one "
            f"'{COMPOSITE_SEPARATOR}' (found {found})"
        )
    sample_id, seq_num = parts
    if not sample_id or not seq_num:
        raise CompositeIdError(f"composite identifier '{value}' has an empty part")
    return sample_id, seq_num


def empty_alignment_frame() -> pd.DataFrame:
    """Zero-row table with the full alignment schema."""
    return pd.DataFrame(columns=list(ALIGNMENT_COLUMNS)).astype(ALIGNMENT_DTYPES)


def _parse_row(fields: list[str]) -> dict:
    raw = dict(zip(RAW_FIELDS, (f.strip() for f in fields)))
    sample_id, seq_num = split_composite_id(raw.pop("query_id"))
    record = {
        "sci_name": raw["sci_name"],
        "sample_id": sample_id,
        "seq_num": seq_num,
        "subject_id": raw["subject_id"],
    }
    for name in _INT_FIELDS:
        try:
            record[name] = int(raw[name])
        except ValueError:
            raise MalformedRecordError(f"field '{name}' is not an integer: '{raw[name]}'")
    for name in _FLOAT_FIELDS:
        try:
            record[name] = float(raw[name])
        except ValueError:
            raise MalformedRecordError(f"field '{name}' is not a number: '{raw[name]}'")
    if not 0.0 <= record["pident"] <= 100.0:
        raise MalformedRecordError(f"percent identity out of range: {record['pident']}")
    return record


def parse_alignment_file(path: Path) -> pd.DataFrame:
    """
    Parse one BLAST results file into a typed DataFrame.

    Parameters
    ----------
    path : Path
        Comma-separated BLAST output, no header, 13 fields per row.

    Returns
    -------
    pd.DataFrame
        One row per non-blank input line, columns ``ALIGNMENT_COLUMNS``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    MalformedRecordError
        On the first row with the wrong field count, a non-numeric value
        in a numeric field, or a bad composite identifier.  Also raised when
        the file is not valid UTF-8.
    """
    log = get_logger()
    path = Path(path)

    rows = []
    line_no = 0
    with open(path, newline="", encoding="utf-8") as fh:
        reader = csv.reader(fh)
        try:
            for fields in reader:
                line_no = reader.line_num
                if not fields or all(not f.strip() for f in fields):
                    continue
                if len(fields) != len(RAW_FIELDS):
                    raise MalformedRecordError(
                        f"expected {len(RAW_FIELDS)} fields, found {len(fields)}",
                        path=path,
                        line_no=line_no,
                    )
                try:
                    rows.append(_parse_row(fields))
                except MalformedRecordError as exc:
                    raise type(exc)(str(exc), path=path, line_no=line_no) from exc
        except UnicodeDecodeError as exc:
            raise MalformedRecordError(f"not valid UTF-8 text: {exc.reason}", path=path) from exc
        except csv.Error as exc:
            raise MalformedRecordError(str(exc), path=path, line_no=line_no + 1) from exc

    if not rows:
        log.warning(f"No alignment records in {path.name}")
        return empty_alignment_frame()

    df = pd.DataFrame(rows, columns=list(ALIGNMENT_COLUMNS)).astype(ALIGNMENT_DTYPES)
    log.debug(f"Parsed {len(df):,} records from {path.name} ({file_size_human(path)})")
    return df
