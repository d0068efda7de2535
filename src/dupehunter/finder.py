"""Core duplicate file finding logic."""

import os
import stat
import sys
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from colorama import Fore, Style
from tqdm import tqdm

from .errors import DupeHunterError, ErrorKind
from .hasher import ContentHasher


@dataclass(frozen=True)
class CandidateFile:
    """A file considered for duplicate detection."""

    path: Path
    size: int
    is_symlink: bool = False


@dataclass
class DuplicateGroup:
    """
    Files sharing both size and content digest.

    The first path is the original; the rest are duplicates. This is purely
    positional: the original is whichever regular file the scan reached
    first, with symlinks always placed after regular files.
    """

    digest: str
    size: int
    paths: List[Path] = field(default_factory=list)

    @property
    def original(self) -> Path:
        return self.paths[0]

    @property
    def duplicates(self) -> List[Path]:
        return self.paths[1:]

    def __len__(self) -> int:
        return len(self.paths)


class DuplicateFinder:
    """Finds duplicate files below a directory."""

    def __init__(
        self,
        extensions: Optional[Iterable[str]] = None,
        recursive: bool = False,
        ignore_hidden: bool = False,
        verbose: bool = False,
        hasher: Optional[ContentHasher] = None,
    ):
        """
        Initialize duplicate finder.

        Args:
            extensions: Allowed file extensions (default: all files)
            recursive: Descend into subdirectories (default: False)
            ignore_hidden: Skip files and directories whose name starts
                with a dot (default: False)
            verbose: Show candidate counts and a hashing progress bar
            hasher: ContentHasher to use (default: new one built from
                extensions)
        """
        self.recursive = recursive
        self.ignore_hidden = ignore_hidden
        self.verbose = verbose
        self.hasher = hasher if hasher is not None else ContentHasher(extensions)
        self.errors: List[DupeHunterError] = []
        self.error_count = 0

    def find_candidate_files(self, root: Path) -> List[Path]:
        """
        List non-directory entries below root in sorted, depth-first order.

        Symlinked directories are never entered. Unreadable directories are
        logged and skipped. Entries are not stat-ed here; group_by_size
        drops anything that is not a regular file.

        Args:
            root: Directory to enumerate

        Returns:
            List of file paths
        """
        candidates: List[Path] = []

        def on_walk_error(error: OSError) -> None:
            entry = Path(error.filename) if error.filename else root
            self._log_error(
                DupeHunterError(
                    ErrorKind.TRAVERSAL_ENTRY,
                    f"Error accessing entry {entry}: {error.strerror or error}",
                    entry,
                )
            )

        for dirpath, dirnames, filenames in os.walk(
            root, topdown=True, onerror=on_walk_error, followlinks=False
        ):
            if not self.recursive:
                dirnames[:] = []
            else:
                dirnames[:] = sorted(
                    name for name in dirnames if not self._is_hidden(name)
                )

            for name in sorted(filenames):
                if self._is_hidden(name):
                    continue
                candidates.append(Path(dirpath) / name)

        if self.verbose:
            print(f"{Fore.CYAN}Found {len(candidates)} files{Style.RESET_ALL}")

        return candidates

    def group_by_size(self, paths: Iterable[Path]) -> Dict[int, List[CandidateFile]]:
        """
        Bucket files by exact byte size.

        Files failing the extension filter are skipped before their size is
        queried. Entries that are not regular files (after following
        symlinks) are skipped, and entries that cannot be stat-ed are logged
        as metadata errors. Buckets with a single file are dropped.

        Args:
            paths: Candidate file paths

        Returns:
            Dict mapping size to files of that size (2 or more per bucket)
        """
        size_to_files: Dict[int, List[CandidateFile]] = defaultdict(list)
        for file_path in paths:
            if not self.hasher.matches_extension(file_path):
                continue
            try:
                st = os.stat(file_path)
            except OSError as e:
                self._log_error(
                    DupeHunterError(
                        ErrorKind.METADATA,
                        f"Could not access {file_path}: {e}",
                        file_path,
                    )
                )
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            size_to_files[st.st_size].append(
                CandidateFile(file_path, st.st_size, os.path.islink(file_path))
            )

        return {
            size: file_list
            for size, file_list in size_to_files.items()
            if len(file_list) > 1
        }

    def hash_candidates(
        self, size_buckets: Dict[int, List[CandidateFile]]
    ) -> List[Tuple[CandidateFile, str]]:
        """
        Hash every file that shares its size with another file.

        Args:
            size_buckets: Output of group_by_size

        Returns:
            List of (candidate, digest) tuples in hashing order
        """
        candidates = [
            candidate for file_list in size_buckets.values() for candidate in file_list
        ]
        file_hashes: List[Tuple[CandidateFile, str]] = []

        for candidate in tqdm(
            candidates,
            desc="Hashing",
            unit="file",
            disable=not self.verbose,
            file=sys.stderr,
        ):
            try:
                digest = self.hasher.compute_file_hash(candidate.path)
            except DupeHunterError as e:
                self._log_error(e)
                continue
            file_hashes.append((candidate, digest))

        return file_hashes

    def group_by_hash(
        self, file_hashes: Iterable[Tuple[CandidateFile, str]]
    ) -> List[DuplicateGroup]:
        """
        Group hashed files by digest.

        Members keep hashing order, except that symlinks are moved behind
        regular files so a link is never kept as the original of its target.

        Returns:
            DuplicateGroups with 2 or more members, in order of first digest
            occurrence
        """
        hash_to_files: Dict[str, List[CandidateFile]] = defaultdict(list)
        for candidate, digest in file_hashes:
            hash_to_files[digest].append(candidate)

        return [
            DuplicateGroup(
                digest,
                file_list[0].size,
                [c.path for c in sorted(file_list, key=lambda c: c.is_symlink)],
            )
            for digest, file_list in hash_to_files.items()
            if len(file_list) > 1
        ]

    def find_duplicates(self, root: Path) -> List[DuplicateGroup]:
        """
        Find duplicate files below root.

        Sizes are compared first; only files sharing a size with another
        file are hashed.

        Args:
            root: Directory to search

        Returns:
            List of DuplicateGroups
        """
        print("Scanning files...")
        paths = self.find_candidate_files(root)
        size_buckets = self.group_by_size(paths)

        if self.verbose:
            same_size = sum(len(file_list) for file_list in size_buckets.values())
            print(
                f"{Fore.CYAN}{same_size} file(s) share a size with another "
                f"file{Style.RESET_ALL}"
            )

        print("Grouping potential duplicates...")
        file_hashes = self.hash_candidates(size_buckets)
        duplicates = self.group_by_hash(file_hashes)

        if self.verbose and self.error_count > 0:
            print(f"Encountered {self.error_count} error(s) during processing")

        return duplicates

    def _is_hidden(self, name: str) -> bool:
        return self.ignore_hidden and name.startswith(".")

    def _log_error(self, error: DupeHunterError) -> None:
        """Log error message to stderr."""
        tqdm.write(f"ERROR: {error.message}", file=sys.stderr)
        self.errors.append(error)
        self.error_count += 1
