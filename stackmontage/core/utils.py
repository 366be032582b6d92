"""
Utility functions for the stack montage module.
Basic helpers for file validation, logging setup and reporting.
"""

from pathlib import Path
from typing import Union, List
import logging


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def validate_file_path(filepath: Path, valid_extensions: List[str]) -> None:
    """Validate that a file exists and has the correct extension.

    Args:
        filepath: Path to validate.
        valid_extensions: List of valid file extensions (e.g., ['.tif', '.png']).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If file extension is not valid.
    """
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    if not filepath.is_file():
        raise ValueError(f"Path is not a file: {filepath}")

    extension = filepath.suffix.lower()
    valid_extensions = [ext.lower() for ext in valid_extensions]

    if extension not in valid_extensions:
        raise ValueError(
            f"Invalid file extension: {extension}. "
            f"Valid extensions: {valid_extensions}"
        )


def ensure_directory(directory: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        directory: Directory path.

    Returns:
        Path: Directory path as Path object.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def setup_logging(log_level: str = 'INFO', verbose: bool = True) -> None:
    """Configure root logging the way every entry point of the package does.

    Args:
        log_level: Name of a logging level ('DEBUG', 'INFO', ...).
        verbose: If False, logging is left unconfigured.
    """
    if verbose:
        logging.basicConfig(
            level=getattr(logging, log_level.upper()),
            format=LOG_FORMAT,
        )


def format_bytes(bytes_value: int) -> str:
    """Format bytes value as human-readable string.

    Args:
        bytes_value: Number of bytes.

    Returns:
        str: Formatted string (e.g., "1.5 GB").
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_value < 1024.0:
            return f"{bytes_value:.2f} {unit}"
        bytes_value /= 1024.0
    return f"{bytes_value:.2f} PB"
