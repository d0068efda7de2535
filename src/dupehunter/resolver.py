"""Disposition of detected duplicate groups: report, preview and deletion."""

import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Set, Union

from colorama import Fore, Style

from .errors import DupeHunterError, ErrorKind, SelectionCancelledError
from .finder import DuplicateGroup


class DispositionMode(Enum):
    """Action applied to duplicate groups. Reporting is independent of it."""

    DRY_RUN = "dry-run"
    INTERACTIVE = "interactive"
    AUTO_DELETE = "auto-delete"
    NONE = "none"


def select_mode(
    dry_run: bool = False, interactive: bool = False, auto_delete: bool = False
) -> DispositionMode:
    """
    Pick the action mode from the operator's flags.

    Precedence is dry-run, then interactive, then auto-delete. Dry-run wins
    over everything so a preview never deletes.
    """
    if dry_run:
        return DispositionMode.DRY_RUN
    if interactive:
        return DispositionMode.INTERACTIVE
    if auto_delete:
        return DispositionMode.AUTO_DELETE
    return DispositionMode.NONE


class SelectionProvider(Protocol):
    """Chooses which of a list of duplicates to delete."""

    def select(self, labels: Sequence[str]) -> Set[int]:
        """
        Return 0-based indices into labels.

        Raises:
            SelectionCancelledError: If the operator gives no answer
        """
        ...


class ConsoleSelectionProvider:
    """
    Reads a selection from the terminal.

    Accepts the 1-based numbers shown next to each duplicate, separated by
    spaces or commas, 'a' for all of them, an empty line for none, and 'q'
    to stop.
    """

    def __init__(self, input_func: Optional[Callable[[str], str]] = None):
        self.input_func = input_func if input_func is not None else input

    def select(self, labels: Sequence[str]) -> Set[int]:
        print(f"\n{Style.BRIGHT}Options:{Style.RESET_ALL}")
        print("  - Enter file number(s) to delete (separated by spaces or commas)")
        print("  - Type 'a' to delete all duplicates in this group")
        print("  - Press Enter to skip this group")
        print("  - Type 'q' to quit")

        while True:
            try:
                choice = self.input_func("Your choice: ").strip().lower()
            except EOFError as e:
                raise SelectionCancelledError("No input available") from e

            if choice == "q":
                raise SelectionCancelledError("Selection cancelled by user")
            if choice == "":
                return set()
            if choice in ("a", "all"):
                return set(range(len(labels)))

            try:
                numbers = [int(x) for x in re.split(r"[\s,]+", choice) if x]
            except ValueError:
                print(
                    f"  {Fore.RED}✗ Invalid input. Please enter numbers "
                    f"separated by spaces or commas.{Style.RESET_ALL}"
                )
                continue

            invalid = [n for n in numbers if not 1 <= n <= len(labels)]
            if invalid:
                print(
                    f"  {Fore.RED}✗ Invalid index: "
                    f"{', '.join(str(n) for n in invalid)}{Style.RESET_ALL}"
                )
                continue
            return {n - 1 for n in numbers}


@dataclass
class ResolutionSummary:
    """What a resolver run did."""

    mode: DispositionMode
    group_count: int = 0
    deleted: List[Path] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)
    would_delete: List[Path] = field(default_factory=list)
    report_path: Optional[Path] = None


class DuplicateResolver:
    """Applies the selected disposition mode to duplicate groups."""

    def __init__(
        self,
        dry_run: bool = False,
        interactive: bool = False,
        auto_delete: bool = False,
        report_path: Optional[Path] = None,
        selection_provider: Optional[SelectionProvider] = None,
    ):
        """
        Initialize resolver.

        Args:
            dry_run: Only list what would be deleted
            interactive: Ask which duplicates to delete, group by group
            auto_delete: Delete every duplicate without asking
            report_path: Write the group listing to this file
            selection_provider: Source of interactive selections
                (default: ConsoleSelectionProvider)
        """
        self.mode = select_mode(dry_run, interactive, auto_delete)
        self.report_path = report_path
        self.selection_provider: SelectionProvider = (
            selection_provider
            if selection_provider is not None
            else ConsoleSelectionProvider()
        )
        self.summary = ResolutionSummary(self.mode)
        self.errors: List[DupeHunterError] = []
        self.error_count = 0

    def resolve(self, groups: List[DuplicateGroup]) -> ResolutionSummary:
        """
        Report on and act upon duplicate groups.

        The report, when requested, is written before any action so it
        always lists the full groups.

        Returns:
            ResolutionSummary of the run

        Raises:
            SelectionCancelledError: If the selection provider fails in
                interactive mode. Deletions made before that stay made.
        """
        self.summary = ResolutionSummary(self.mode, group_count=len(groups))

        if self.report_path is not None:
            if self.write_report(groups, self.report_path):
                self.summary.report_path = self.report_path

        if not groups:
            print("No duplicate files found.")
            return self.summary

        print(f"Found {len(groups)} groups of duplicates.")

        if self.mode is DispositionMode.DRY_RUN:
            self._preview(groups)
        elif self.mode is DispositionMode.INTERACTIVE:
            self._interactive_delete(groups)
        elif self.mode is DispositionMode.AUTO_DELETE:
            self._auto_delete(groups)
        else:
            self.print_groups(groups)
            print(
                "No action taken. Use --interactive or --auto-delete "
                "to remove duplicates."
            )

        return self.summary

    @staticmethod
    def format_report(groups: List[DuplicateGroup]) -> str:
        """Render groups in the plain-text report format."""
        lines: List[str] = []
        for idx, group in enumerate(groups, 1):
            lines.append(f"Duplicate Group {idx}:")
            lines.extend(f"  {file_path}" for file_path in group.paths)
            lines.append("")
        return "".join(f"{line}\n" for line in lines)

    def write_report(self, groups: List[DuplicateGroup], report_path: Path) -> bool:
        """
        Write the report file.

        Returns:
            True if the report was written
        """
        try:
            with open(report_path, "w", encoding="utf-8") as f:
                f.write(self.format_report(groups))
        except OSError as e:
            self._log_error(
                DupeHunterError(
                    ErrorKind.REPORT_WRITE,
                    f"Failed to generate report: {e}",
                    Path(report_path),
                )
            )
            return False
        print(f"Report generated at {report_path}")
        return True

    @staticmethod
    def format_file_size(size_bytes: Union[int, float]) -> str:
        """Format file size in human-readable format."""
        size_float = float(size_bytes)
        for unit in ["B", "KB", "MB", "GB"]:
            if size_float < 1024.0:
                return f"{size_float:.1f} {unit}"
            size_float /= 1024.0
        return f"{size_float:.1f} TB"

    def print_groups(self, groups: List[DuplicateGroup]) -> None:
        """Print groups with the original marked."""
        for idx, group in enumerate(groups, 1):
            print(
                f"\n{Fore.CYAN}{Style.BRIGHT}Group {idx}{Style.RESET_ALL} "
                f"{Style.DIM}({self.format_file_size(group.size)} each, "
                f"SHA-256: {group.digest[:16]}...){Style.RESET_ALL}"
            )
            print(
                f"  {Fore.LIGHTGREEN_EX}{Style.BRIGHT}[Original]{Style.RESET_ALL} "
                f"{group.original}"
            )
            for i, file_path in enumerate(group.duplicates):
                tree_char = "└─" if i == len(group.duplicates) - 1 else "├─"
                print(f"    {tree_char} {file_path}")

    def _preview(self, groups: List[DuplicateGroup]) -> None:
        print(
            f"{Fore.YELLOW}Dry run mode enabled. The following duplicates "
            f"would be deleted:{Style.RESET_ALL}"
        )
        for group in groups:
            for file_path in group.duplicates:
                print(file_path)
                self.summary.would_delete.append(file_path)

    def _auto_delete(self, groups: List[DuplicateGroup]) -> None:
        for group in groups:
            for file_path in group.duplicates:
                self._delete_file(file_path)

    def _interactive_delete(self, groups: List[DuplicateGroup]) -> None:
        for idx, group in enumerate(groups, 1):
            print(
                f"\n{Fore.CYAN}{Style.BRIGHT}--- Duplicate Group "
                f"{idx}/{len(groups)} ---{Style.RESET_ALL}"
            )
            print(
                f"{Fore.LIGHTGREEN_EX}Original:{Style.RESET_ALL} {group.original}"
            )
            print("Duplicates:")
            for i, file_path in enumerate(group.duplicates, 1):
                print(f"  [{i}] {file_path}")

            labels = [str(file_path) for file_path in group.duplicates]
            selection = self.selection_provider.select(labels)

            for index in sorted(selection):
                if 0 <= index < len(group.duplicates):
                    self._delete_file(group.duplicates[index])

    def _delete_file(self, file_path: Path) -> bool:
        try:
            file_path.unlink()
        except OSError as e:
            self._log_error(
                DupeHunterError(
                    ErrorKind.DELETION,
                    f"Failed to delete {file_path}: {e}",
                    file_path,
                )
            )
            self.summary.failed.append(file_path)
            return False
        print(f"{Fore.GREEN}Deleted:{Style.RESET_ALL} {file_path}")
        self.summary.deleted.append(file_path)
        return True

    def _log_error(self, error: DupeHunterError) -> None:
        """Log error message to stderr."""
        print(f"ERROR: {error.message}", file=sys.stderr)
        self.errors.append(error)
        self.error_count += 1
