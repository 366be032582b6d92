"""
Plane compositing: one montage plane from one plane of every input.

Tiles are written with an additive blit onto a zero canvas. Cells never
overlap, so the result equals a plain copy; ``mode="copy"`` is offered for
callers that want overwrite semantics explicitly.
"""

from __future__ import annotations

from typing import Literal, Sequence
import logging

import numpy as np

from ..core.stack import PixelKind
from .color import pack_rgb, unpack_rgb
from .grid import GridSpec


logger = logging.getLogger(__name__)

BlitMode = Literal["add", "copy"]


def _saturating_add(target: np.ndarray, source: np.ndarray, kind: PixelKind) -> np.ndarray:
    if kind is PixelKind.GRAY32:
        # Untouched canvas takes the source bits as-is (keeps -0.0 and NaN payloads)
        return np.where(target == 0, source, target + source)
    if kind is PixelKind.RGB:
        total = unpack_rgb(target).astype(np.uint16) + unpack_rgb(source)
        return pack_rgb(np.minimum(total, 255))

    limit = np.iinfo(kind.dtype).max
    total = target.astype(np.int64) + source.astype(np.int64)
    return np.minimum(total, limit).astype(kind.dtype)


def blit(canvas: np.ndarray, tile: np.ndarray, x: int, y: int,
         kind: PixelKind, mode: BlitMode = "add") -> None:
    """Write ``tile`` into ``canvas`` with its top-left corner at ``(x, y)``.

    The part of the tile that falls outside the canvas is dropped.

    Args:
        canvas: Destination plane, modified in place.
        tile: Source plane of the same dtype.
        x, y: Non-negative destination offset.
        kind: Pixel kind of both planes; selects the saturation rule.
        mode: ``"add"`` (saturating for integer kinds) or ``"copy"``.
    """
    if x < 0 or y < 0:
        raise ValueError(f"Blit offset must be non-negative, got ({x}, {y})")

    height = min(tile.shape[0], canvas.shape[0] - y)
    width = min(tile.shape[1], canvas.shape[1] - x)
    if height <= 0 or width <= 0:
        return

    source = tile[:height, :width]
    region = canvas[y:y + height, x:x + width]
    if mode == "copy":
        region[...] = source
    elif mode == "add":
        region[...] = _saturating_add(region, source, kind)
    else:
        raise ValueError(f"Unknown blit mode: {mode}")


def composite_plane(
    planes: Sequence[np.ndarray],
    grid: GridSpec,
    width: int,
    height: int,
    kind: PixelKind,
    mode: BlitMode = "add",
) -> np.ndarray:
    """Tile one plane per input into a fresh canvas.

    Parameters
    ----------
    planes : sequence of np.ndarray
        The planes at one depth index, in input order.
    grid : GridSpec
        Montage layout; image ``i`` lands in cell ``(i // columns, i % columns)``.
    width, height : int
        Size of each source plane.
    kind : PixelKind
        Sample kind of all planes and of the canvas.
    mode : {"add", "copy"}
        Blit mode.

    Returns
    -------
    np.ndarray
        Canvas of shape ``(height * rows, width * columns)``; cells without an
        image stay at the kind's zero value.
    """
    canvas = np.zeros((height * grid.rows, width * grid.columns), dtype=kind.dtype)

    for index in range(min(len(planes), grid.capacity)):
        x, y = grid.offset_of(index, width, height)
        blit(canvas, planes[index], x, y, kind, mode)

    return canvas
