"""Content hashing for duplicate detection."""

import hashlib
from pathlib import Path
from typing import Iterable, Optional, Set

from .errors import DupeHunterError, ErrorKind

CHUNK_SIZE = 8192


def normalize_extensions(extensions: Optional[Iterable[str]]) -> Optional[Set[str]]:
    """
    Normalize an extension allow-list.

    Entries are trimmed, lower-cased and stripped of a leading dot; empty
    entries are dropped.

    Returns:
        Set of extensions, or None if no filter was given
    """
    if extensions is None:
        return None
    normalized = {ext.strip().lower().lstrip(".") for ext in extensions}
    normalized.discard("")
    return normalized


class ContentHasher:
    """Computes SHA-256 digests of whole files."""

    def __init__(self, extensions: Optional[Iterable[str]] = None):
        """
        Initialize content hasher.

        Args:
            extensions: Allowed file extensions (case-insensitive).
                None accepts every file.
        """
        self.extensions = normalize_extensions(extensions)
        self.files_hashed = 0

    def matches_extension(self, file_path: Path) -> bool:
        """Check if file passes the extension filter."""
        if self.extensions is None:
            return True
        # Path(".bashrc").suffix is "" so dotfiles count as extensionless
        suffix = file_path.suffix
        if not suffix:
            return False
        return suffix[1:].lower() in self.extensions

    def compute_file_hash(self, file_path: Path) -> str:
        """
        Compute SHA-256 hash of the full file content.

        Args:
            file_path: Path to the file

        Returns:
            Hex-encoded digest

        Raises:
            DupeHunterError: HASH kind if the file cannot be fully read
        """
        sha256_hash = hashlib.sha256()
        try:
            with open(file_path, "rb") as f:
                for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                    sha256_hash.update(chunk)
        except OSError as e:
            raise DupeHunterError(
                ErrorKind.HASH, f"Failed to hash {file_path}: {e}", file_path
            ) from e
        self.files_hashed += 1
        return sha256_hash.hexdigest()
