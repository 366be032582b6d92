"""
Stack Montage: montages of multiple stacks and hyperstacks.

Tiles N equally shaped multi-dimensional stacks (X, Y, Z, channel, time) onto
a rows x columns grid, plane by plane, keeping their Z/C/T structure and
packed RGB colour.
"""

__version__ = "0.1.0"
__author__ = "BIOP"

# Core
from .core import (
    Config,
    GridConfig,
    CompositingConfig,
    OutputConfig,
    LoggingConfig,
    create_default_config,
    DimensionMismatch,
    UnsupportedKind,
    PixelKind,
    ImageDimensions,
    ImageHandle,
    MultiDimStack,
    setup_logging,
)

# Montage engine
from .montage import (
    GridSpec,
    compute_grid_layout,
    validate_shapes,
    composite_plane,
    to_multichannel,
    to_packed_rgb,
    StackAssembler,
    montage_stacks,
)

# Data processing
from .data_processing import StackLoader, save_stack

# Export all public components
__all__ = [
    # Version and metadata
    "__version__",
    "__author__",

    # Core
    "Config",
    "GridConfig",
    "CompositingConfig",
    "OutputConfig",
    "LoggingConfig",
    "create_default_config",
    "DimensionMismatch",
    "UnsupportedKind",
    "PixelKind",
    "ImageDimensions",
    "ImageHandle",
    "MultiDimStack",
    "setup_logging",

    # Montage engine
    "GridSpec",
    "compute_grid_layout",
    "validate_shapes",
    "composite_plane",
    "to_multichannel",
    "to_packed_rgb",
    "StackAssembler",
    "montage_stacks",

    # Data processing
    "StackLoader",
    "save_stack",
]
