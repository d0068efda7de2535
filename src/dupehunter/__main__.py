"""CLI interface for dupehunter."""

import argparse
import sys
from typing import List, Optional

from colorama import Fore, Style, init

try:
    from shtab import DIRECTORY, FILE
except ImportError:
    # shtab not installed - tab completion won't work but that's okay
    DIRECTORY = FILE = None  # type: ignore

from . import __version__
from .config import ScanOptions, load_config_file
from .errors import DupeHunterError, SelectionCancelledError
from .finder import DuplicateFinder
from .resolver import DuplicateResolver, SelectionProvider

# Initialize colorama for cross-platform color support
init(autoreset=True)


def get_parser() -> argparse.ArgumentParser:
    """
    Get the argument parser for dupehunter.

    This function is used by tab completion tools (e.g., shtab) to generate
    completion scripts.

    Returns:
        ArgumentParser configured with all dupehunter options
    """
    parser = argparse.ArgumentParser(
        prog="dupehunter",
        description="Finds and manages duplicate files in directories.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --dir ./photos --dry-run
  %(prog)s --dir ~/Music -r --ftype mp3,flac --report dupes.txt
  %(prog)s --dir /data -r --ignore-hidden --interactive
  %(prog)s --dir /data --config dupehunter.yaml --auto-delete
        """,
    )

    dir_arg = parser.add_argument(
        "--dir",
        metavar="DIRECTORY",
        help="Specify the target directory to scan (e.g., ./)",
    )
    if DIRECTORY is not None:
        dir_arg.complete = DIRECTORY  # type: ignore

    parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        help="Recursively search through subdirectories",
    )

    parser.add_argument(
        "--ftype",
        metavar="FILETYPE",
        help="Specify file types to include (e.g., mp3, mp4). "
        "Comma-separated for multiple types.",
    )

    parser.add_argument(
        "--ignore-hidden",
        action="store_true",
        help="Ignore hidden files and directories",
    )

    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Enable interactive mode for deleting duplicates",
    )

    parser.add_argument(
        "--auto-delete",
        action="store_true",
        help="Automatically delete duplicates without confirmation",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview duplicates without deleting them "
        "(overrides --interactive and --auto-delete)",
    )

    report_arg = parser.add_argument(
        "--report",
        metavar="REPORT_FILE",
        help="Generate a report of duplicates to the specified file",
    )
    if FILE is not None:
        report_arg.complete = FILE  # type: ignore

    config_arg = parser.add_argument(
        "--config",
        metavar="CONFIG_FILE",
        help="YAML file with default option values "
        "(command-line flags take precedence)",
    )
    if FILE is not None:
        config_arg.complete = FILE  # type: ignore

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress output (progress shown by default)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments, layering them over a --config file.

    Raises:
        DupeHunterError: If the config file cannot be loaded
    """
    parser = get_parser()
    known, _ = parser.parse_known_args(argv)
    if known.config:
        parser.set_defaults(**load_config_file(known.config))
    return parser.parse_args(argv)


def run(
    options: ScanOptions, selection_provider: Optional[SelectionProvider] = None
) -> int:
    """Scan for duplicates and resolve them according to options."""
    finder = DuplicateFinder(
        extensions=options.extensions,
        recursive=options.recursive,
        ignore_hidden=options.ignore_hidden,
        verbose=options.show_progress,
    )
    resolver = DuplicateResolver(
        dry_run=options.dry_run,
        interactive=options.interactive,
        auto_delete=options.auto_delete,
        report_path=options.report_path,
        selection_provider=selection_provider,
    )

    try:
        duplicates = finder.find_duplicates(options.directory)
        summary = resolver.resolve(duplicates)
    except SelectionCancelledError as e:
        print(f"\nDeletion cancelled: {e}", file=sys.stderr)
        print(f"Deleted {len(resolver.summary.deleted)} file(s) before cancelling.")
        return 0
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 130

    if summary.deleted:
        print(
            f"\n{Fore.GREEN}Deleted {len(summary.deleted)} file(s).{Style.RESET_ALL}"
        )
    error_count = finder.error_count + resolver.error_count
    if error_count > 0:
        print(f"{Fore.YELLOW}{error_count} error(s) reported.{Style.RESET_ALL}")

    print("Duplicate hunting complete.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    try:
        args = parse_args(argv)
    except DupeHunterError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if not args.dir:
        print("Error: the following arguments are required: --dir", file=sys.stderr)
        return 1

    try:
        options = ScanOptions.from_args(args)
    except DupeHunterError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    return run(options)


if __name__ == "__main__":
    sys.exit(main())
