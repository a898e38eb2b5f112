"""batch.py - Run annotate/remove over many files without stopping on errors.

Every file is processed independently: read, transform in memory, write
atomically if changed.  A failure on one file (I/O or otherwise) is logged,
recorded under the ``error`` status, and the run carries on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from annotate_callbacks.annotation import (
    STATUS_ERROR,
    VALID_STATUSES,
    annotate_file,
    remove_annotation,
)
from annotate_callbacks.manifest import MetadataSource

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Files grouped by status, plus per-file error messages."""

    statuses: dict[str, list[Path]] = field(
        default_factory=lambda: {s: [] for s in VALID_STATUSES}
    )
    errors: list[dict[str, str]] = field(default_factory=list)

    def __getitem__(self, status: str) -> list[Path]:
        return self.statuses.get(status, [])

    def add(self, status: str, filepath: Path) -> None:
        self.statuses.setdefault(status, []).append(filepath)

    def add_error(self, filepath: Path, message: str) -> None:
        self.add(STATUS_ERROR, filepath)
        self.errors.append({"file": str(filepath), "error": message})

    def counts(self) -> dict[str, int]:
        """Number of files per status, in canonical status order."""
        return {s: len(paths) for s, paths in self.statuses.items()}

    @property
    def total(self) -> int:
        return sum(len(paths) for paths in self.statuses.values())

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dict for JSON output."""
        return {
            "total": self.total,
            "counts": self.counts(),
            "files": {s: [str(p) for p in paths] for s, paths in self.statuses.items()},
            "errors": list(self.errors),
        }


def _error_message(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


def run_batch(paths: Iterable[Path], operation: Callable[[Path], str]) -> BatchResult:
    """Apply *operation* to each path in lexicographic order.

    *operation* returns a status string.  Exceptions are caught per file and
    filed under ``error``; they never escape this call.
    """
    result = BatchResult()
    for filepath in sorted(paths, key=str):
        try:
            status = operation(filepath)
        except OSError as e:
            logger.warning("%s: I/O failure: %s", filepath, e)
            result.add_error(filepath, _error_message(e))
            continue
        except Exception as e:
            logger.warning("%s: %s: %s", filepath, type(e).__name__, e)
            result.add_error(filepath, _error_message(e))
            continue
        logger.debug("%s: %s", filepath, status)
        result.add(status, filepath)
    return result


def annotate_all(paths: Iterable[Path], source: MetadataSource) -> BatchResult:
    """Annotate every path with the records *source* reports for it."""

    def _annotate(filepath: Path) -> str:
        return annotate_file(source.records_for(filepath), filepath)

    return run_batch(paths, _annotate)


def remove_all(paths: Iterable[Path]) -> BatchResult:
    """Remove the annotation block from every path."""
    return run_batch(paths, remove_annotation)
