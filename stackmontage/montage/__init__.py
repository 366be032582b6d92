"""Montage engine: grid layout, validation, compositing and assembly."""

from .grid import GridSpec, compute_grid_layout, resolve_grid
from .validation import validate_shapes
from .color import pack_rgb, unpack_rgb, to_multichannel, to_packed_rgb
from .compositor import BlitMode, blit, composite_plane
from .assembler import StackAssembler, montage_stacks

__all__ = [
    "GridSpec",
    "compute_grid_layout",
    "resolve_grid",
    "validate_shapes",
    "pack_rgb",
    "unpack_rgb",
    "to_multichannel",
    "to_packed_rgb",
    "BlitMode",
    "blit",
    "composite_plane",
    "StackAssembler",
    "montage_stacks",
]
