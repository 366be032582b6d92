"""Grid layout for montages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import math


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridSpec:
    """A rows x columns grid; image ``i`` sits in cell ``(i // columns, i % columns)``."""

    rows: int
    columns: int

    def __post_init__(self) -> None:
        if self.rows < 1 or self.columns < 1:
            raise ValueError(f"Grid needs at least one row and one column, got {self.rows}x{self.columns}")

    @property
    def capacity(self) -> int:
        return self.rows * self.columns

    def cell_of(self, index: int) -> Tuple[int, int]:
        """(row, column) of the image at ``index``."""
        return index // self.columns, index % self.columns

    def offset_of(self, index: int, width: int, height: int) -> Tuple[int, int]:
        """Top-left ``(x, y)`` of the cell of image ``index`` for tiles of ``width`` x ``height``."""
        row, column = self.cell_of(index)
        return column * width, row * height


def compute_grid_layout(count: int, max_images: Optional[int] = None) -> GridSpec:
    """Most square grid holding at least ``count`` cells.

    Rows and columns start at ``floor(sqrt(count))``; any remainder is
    absorbed by adding columns, so wide grids are preferred over tall ones.

    Args:
        count: Number of images to place.
        max_images: Optional cap applied to ``count`` first (dialog-style limit).

    Returns:
        GridSpec: The layout.

    Raises:
        ValueError: If ``count < 1``.
    """
    if count < 1:
        raise ValueError(f"Cannot lay out {count} images; need at least one")
    if max_images is not None:
        count = min(count, max_images)

    columns = math.isqrt(count)
    rows = columns
    remainder = count - rows * columns
    if remainder > 0:
        columns += -(-remainder // rows)

    return GridSpec(rows, columns)


def resolve_grid(count: int, rows: Optional[int] = None, columns: Optional[int] = None,
                 max_images: Optional[int] = None) -> GridSpec:
    """Fill in whatever part of the grid the caller left open.

    Both missing: :func:`compute_grid_layout`. One missing: the smallest
    value that still fits ``count`` images.
    """
    for name, value in (('rows', rows), ('columns', columns)):
        if value is not None and value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    if rows is None and columns is None:
        grid = compute_grid_layout(count, max_images=max_images)
    elif rows is None:
        grid = GridSpec(max(1, -(-count // columns)), columns)
    elif columns is None:
        grid = GridSpec(rows, max(1, -(-count // rows)))
    else:
        grid = GridSpec(rows, columns)

    logger.info(f"Montage grid for {count} image(s): {grid.rows} rows x {grid.columns} columns")
    return grid
