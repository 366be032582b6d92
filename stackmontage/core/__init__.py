"""Core infrastructure modules."""

from .config import (
    Config,
    GridConfig,
    CompositingConfig,
    OutputConfig,
    LoggingConfig,
    BLIT_MODES,
    create_default_config,
)
from .exceptions import DimensionMismatch, UnsupportedKind
from .stack import PixelKind, ImageDimensions, ImageHandle, MultiDimStack
from .utils import (
    validate_file_path,
    ensure_directory,
    setup_logging,
    format_bytes,
)

__all__ = [
    # Configuration classes
    "Config",
    "GridConfig",
    "CompositingConfig",
    "OutputConfig",
    "LoggingConfig",
    "BLIT_MODES",
    "create_default_config",

    # Errors
    "DimensionMismatch",
    "UnsupportedKind",

    # Data model
    "PixelKind",
    "ImageDimensions",
    "ImageHandle",
    "MultiDimStack",

    # Utility functions
    "validate_file_path",
    "ensure_directory",
    "setup_logging",
    "format_bytes",
]
