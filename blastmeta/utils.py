"""
Shared utility helpers for BlastMeta.

Covers logging, results-directory discovery, file-size helpers, and
elapsed-time formatting.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

_logger: Optional[logging.Logger] = None
_file_handler: Optional[logging.FileHandler] = None


def get_logger(log_file: Optional[Path] = None) -> logging.Logger:
    """Return (and lazily configure) the package-wide logger.

    When *log_file* is given, DEBUG output is also written there.  A later
    call with a different *log_file* moves the file handler to the new
    path, so consecutive runs in one process each get their own log.
    """
    global _logger, _file_handler
    if _logger is None:
        _logger = logging.getLogger("blastmeta")
        _logger.setLevel(logging.DEBUG)

        # Rich console handler (INFO+)
        rh = RichHandler(console=console, show_path=False, markup=True)
        rh.setLevel(logging.INFO)
        _logger.addHandler(rh)

    # File handler (DEBUG+), optional
    if log_file is not None:
        log_file = Path(log_file).resolve()
        if _file_handler is not None and Path(_file_handler.baseFilename) != log_file:
            _logger.removeHandler(_file_handler)
            _file_handler.close()
            _file_handler = None
        if _file_handler is None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            _file_handler = logging.FileHandler(log_file, encoding="utf-8")
            _file_handler.setLevel(logging.DEBUG)
            fmt = logging.Formatter("%(asctime)s  %(levelname)-8s  %(message)s")
            _file_handler.setFormatter(fmt)
            _logger.addHandler(_file_handler)

    return _logger


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def list_result_files(results_dir: Path, pattern: str = "*") -> list[Path]:
    """
    Return the regular, non-hidden files in *results_dir* matching *pattern*.

    Sorted by name so reruns read files in the same order; nothing
    downstream depends on that order.
    """
    results_dir = Path(results_dir)
    if not results_dir.is_dir():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")
    return sorted(
        p for p in results_dir.glob(pattern) if p.is_file() and not p.name.startswith(".")
    )


def file_size_human(path: Path) -> str:
    """Return human-readable file size string."""
    size = path.stat().st_size
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def fmt_elapsed(seconds: float) -> str:
    """Format seconds into H:MM:SS or M:SS."""
    h, rem = divmod(int(seconds), 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def ensure_parent(path: Path) -> Path:
    """Create parent directories and return *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def slugify(value: str) -> str:
    """Make *value* safe for use in a file name."""
    keep = [c if c.isalnum() or c in "-_" else "_" for c in value.strip()]
    slug = "".join(keep).strip("_")
    return slug or "blank"
