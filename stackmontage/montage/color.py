"""
Packed RGB <-> multi-channel conversion.

Packed samples hold one pixel per ``uint32`` as ``0x00RRGGBB``. The
multi-channel view expands every packed plane into three 8-bit planes
(red, green, blue) that sit innermost within the source channel, so a
stack with extents ``(Z, C, T)`` maps to ``(Z, 3 * C, T)`` and back without
loss. The unused high byte is always cleared when packing.
"""

from __future__ import annotations

import logging

import numpy as np

from ..core.stack import MultiDimStack, PixelKind


logger = logging.getLogger(__name__)

RGB_COMPONENTS = 3


def pack_rgb(components: np.ndarray) -> np.ndarray:
    """Pack a ``(..., 3)`` array of 0-255 values into ``uint32`` samples."""
    components = np.asarray(components)
    if components.shape[-1] != RGB_COMPONENTS:
        raise ValueError(f"Expected a trailing axis of 3 components, got shape {components.shape}")
    rgb = components.astype(np.uint32) & 0xFF
    return (rgb[..., 0] << 16) | (rgb[..., 1] << 8) | rgb[..., 2]


def unpack_rgb(packed: np.ndarray) -> np.ndarray:
    """Split packed samples into a ``(..., 3)`` ``uint8`` array."""
    packed = np.asarray(packed, dtype=np.uint32)
    return np.stack(
        [(packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF],
        axis=-1,
    ).astype(np.uint8)


def to_multichannel(stack: MultiDimStack) -> MultiDimStack:
    """Expand a packed RGB stack into an 8-bit stack with three times the channels."""
    if stack.kind is not PixelKind.RGB:
        raise ValueError(f"Multi-channel view needs a packed RGB stack, got {stack.kind.name}")

    components = unpack_rgb(stack.as_5d())           # T, C, Z, H, W, 3
    components = np.moveaxis(components, -1, 2)      # T, C, 3, Z, H, W
    t, c, _, z, height, width = components.shape
    view = components.reshape(t, c * RGB_COMPONENTS, z, height, width)

    logger.debug(f"Expanded packed RGB ({stack.z}, {stack.c}, {stack.t}) to {c * RGB_COMPONENTS} channels")
    return MultiDimStack.from_5d(view, kind=PixelKind.GRAY8, title=stack.title,
                                 hyperstack=stack.is_hyperstack)


def to_packed_rgb(stack: MultiDimStack) -> MultiDimStack:
    """Inverse of :func:`to_multichannel`."""
    if stack.kind is not PixelKind.GRAY8:
        raise ValueError(f"Packing needs an 8-bit multi-channel stack, got {stack.kind.name}")
    if stack.c % RGB_COMPONENTS != 0:
        raise ValueError(f"Channel count {stack.c} is not a multiple of {RGB_COMPONENTS}")

    t, c, z, height, width = stack.as_5d().shape
    components = stack.as_5d().reshape(t, c // RGB_COMPONENTS, RGB_COMPONENTS, z, height, width)
    packed = pack_rgb(np.moveaxis(components, 2, -1))

    return MultiDimStack.from_5d(packed, kind=PixelKind.RGB, title=stack.title,
                                 hyperstack=stack.is_hyperstack)
