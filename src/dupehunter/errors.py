"""Error types raised while hunting duplicates."""

from enum import Enum
from pathlib import Path
from typing import Optional


class ErrorKind(Enum):
    """Every failure a scan can run into."""

    FATAL_CONFIG = "fatal_config"
    TRAVERSAL_ENTRY = "traversal_entry"
    METADATA = "metadata"
    HASH = "hash"
    REPORT_WRITE = "report_write"
    DELETION = "deletion"


class DupeHunterError(Exception):
    """
    Failure tagged with its ErrorKind.

    Only FATAL_CONFIG stops a run. Every other kind is per-file and is
    logged and recorded by the component that hit it.
    """

    def __init__(
        self, kind: ErrorKind, message: str, path: Optional[Path] = None
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.path = path

    def __repr__(self) -> str:
        return f"DupeHunterError({self.kind.name}, {self.message!r})"


class SelectionCancelledError(Exception):
    """Raised by a selection provider when the operator gives no answer."""
