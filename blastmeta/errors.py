"""Exception types raised by BlastMeta."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class BlastMetaError(Exception):
    """Base class for every error raised by the package."""


class MalformedRecordError(BlastMetaError):
    """A row in an alignment results file could not be parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[Path] = None,
        line_no: Optional[int] = None,
    ) -> None:
        self.path = path
        self.line_no = line_no
        if path is not None and line_no is not None:
            message = f"{path}:{line_no}: {message}"
        elif path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class CompositeIdError(MalformedRecordError):
    """The composite ``<sample>.<seq>`` identifier has no or several separators."""


class MetadataFieldNotFound(BlastMetaError, KeyError):
    """A report referenced a column that the metadata table does not have."""

    def __init__(self, field: str, available: Optional[list[str]] = None) -> None:
        self.field = field
        self.available = list(available or [])
        msg = f"Metadata column '{field}' not found"
        if self.available:
            msg += f" (available: {', '.join(self.available)})"
        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class SampleNotFound(BlastMetaError, KeyError):
    """No metadata row exists for the requested run identifier."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"No metadata row for run '{run_id}'")

    def __str__(self) -> str:
        return self.args[0]


class MetadataFormatError(MalformedRecordError):
    """The metadata table is empty, not UTF-8, or has ragged rows."""
