"""Data processing modules for stack loading and saving."""

from .stack_io import StackLoader, save_stack, TIFF_EXTENSIONS, PICTURE_EXTENSIONS

__all__ = [
    "StackLoader",
    "save_stack",
    "TIFF_EXTENSIONS",
    "PICTURE_EXTENSIONS",
]
