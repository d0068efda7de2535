"""Scan configuration: command-line options and optional YAML defaults."""

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Set, Union

import yaml

from .errors import DupeHunterError, ErrorKind
from .hasher import normalize_extensions

# Option name -> accepted value types in a config file
CONFIG_KEYS: Dict[str, tuple] = {
    "dir": (str,),
    "recursive": (bool,),
    "ftype": (str, list),
    "ignore_hidden": (bool,),
    "dry_run": (bool,),
    "interactive": (bool,),
    "auto_delete": (bool,),
    "report": (str,),
    "no_progress": (bool,),
}


def parse_ftype(value: Optional[str]) -> Optional[Set[str]]:
    """
    Parse a comma-separated extension list such as "mp3, MP4,.flac".

    Returns:
        Set of lowercase extensions, or None if value is None
    """
    if value is None:
        return None
    return normalize_extensions(value.split(","))


def load_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load option defaults from a YAML mapping.

    Keys are option names with either dashes or underscores
    (``dry-run`` or ``dry_run``). ``ftype`` may be a list or a
    comma-separated string.

    Args:
        config_path: Path to YAML file

    Returns:
        Dict of option defaults keyed by argparse destination

    Raises:
        DupeHunterError: FATAL_CONFIG kind if the file cannot be read or
            holds unknown keys or wrongly typed values
    """
    config_path = Path(config_path)
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise DupeHunterError(
            ErrorKind.FATAL_CONFIG,
            f"Cannot read config file {config_path}: {e}",
            config_path,
        ) from e
    except yaml.YAMLError as e:
        raise DupeHunterError(
            ErrorKind.FATAL_CONFIG,
            f"Invalid YAML in config file {config_path}: {e}",
            config_path,
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DupeHunterError(
            ErrorKind.FATAL_CONFIG,
            f"Config file {config_path} must contain a mapping of options",
            config_path,
        )

    defaults: Dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).replace("-", "_")
        if name not in CONFIG_KEYS:
            raise DupeHunterError(
                ErrorKind.FATAL_CONFIG,
                f"Unknown option '{key}' in config file {config_path}",
                config_path,
            )
        if not isinstance(value, CONFIG_KEYS[name]):
            raise DupeHunterError(
                ErrorKind.FATAL_CONFIG,
                f"Option '{key}' in config file {config_path} has invalid "
                f"value {value!r}",
                config_path,
            )
        if name == "ftype" and isinstance(value, list):
            value = ",".join(str(ext) for ext in value)
        defaults[name] = value

    return defaults


def validate_directory(directory: Union[str, Path]) -> Path:
    """
    Check that the scan root is an existing directory.

    Raises:
        DupeHunterError: FATAL_CONFIG kind otherwise
    """
    dir_path = Path(directory)
    if not dir_path.is_dir():
        raise DupeHunterError(
            ErrorKind.FATAL_CONFIG,
            f"The specified path is not a directory: {directory}",
            dir_path,
        )
    return dir_path


@dataclass
class ScanOptions:
    """Validated options for one run."""

    directory: Path
    recursive: bool = False
    extensions: Optional[Set[str]] = None
    ignore_hidden: bool = False
    dry_run: bool = False
    interactive: bool = False
    auto_delete: bool = False
    report_path: Optional[Path] = None
    show_progress: bool = True

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ScanOptions":
        """
        Build options from parsed arguments.

        Raises:
            DupeHunterError: FATAL_CONFIG kind if the directory is invalid
        """
        return cls(
            directory=validate_directory(args.dir),
            recursive=args.recursive,
            extensions=parse_ftype(args.ftype),
            ignore_hidden=args.ignore_hidden,
            dry_run=args.dry_run,
            interactive=args.interactive,
            auto_delete=args.auto_delete,
            report_path=Path(args.report) if args.report else None,
            show_progress=not args.no_progress,
        )
