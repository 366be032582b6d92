"""
Montage assembly: drive the compositor over every plane of the inputs and
rebuild the Z/C/T structure of the result.

Packed RGB montages take a detour through the 8-bit multi-channel view so the
hyperstack reassembly operates on plain channels, then are packed again.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional, Sequence
import logging

import numpy as np

from ..core.config import Config
from ..core.stack import ImageDimensions, ImageHandle, MultiDimStack, PixelKind
from ..core.utils import format_bytes
from .color import RGB_COMPONENTS, to_multichannel, to_packed_rgb
from .compositor import composite_plane
from .grid import GridSpec, resolve_grid
from .validation import validate_shapes


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class StackAssembler:
    """Build a montage stack from equally shaped input stacks."""

    def __init__(self, config: Optional[Config] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        """Initialize the assembler.

        Args:
            config: Package configuration. If None, uses defaults.
            progress_callback: Called as ``callback(done, total)`` after each plane.
        """
        self.config = config or Config()
        self.config.validate()
        self.progress_callback = progress_callback

    def assemble(self, stacks: Sequence[ImageHandle], grid: GridSpec) -> MultiDimStack:
        """Montage ``stacks`` onto ``grid``.

        Args:
            stacks: Ordered input stacks; image ``i`` goes to cell ``(i // columns, i % columns)``.
            grid: Montage layout.

        Returns:
            MultiDimStack: The montage, ``width * columns`` by ``height * rows``,
            with the common Z/C/T extents of the inputs.

        Raises:
            DimensionMismatch: If the inputs differ in kind or extent.
            UnsupportedKind: If the common bit depth is not supported.
        """
        dims = validate_shapes(stacks)
        kind = PixelKind.resolve(dims.bit_depth)

        if len(stacks) > grid.capacity:
            logger.warning(
                f"Grid {grid.rows}x{grid.columns} holds {grid.capacity} image(s); "
                f"ignoring the last {len(stacks) - grid.capacity} of {len(stacks)}"
            )
            stacks = stacks[:grid.capacity]

        planes = self._composite_all(stacks, grid, dims, kind)
        title = self.config.output.title
        montage = MultiDimStack(planes, z=dims.depth_count, kind=kind, title=title,
                                hyperstack=False, copy=False)

        channels = dims.c
        if kind.is_packed:
            montage = to_multichannel(montage)
            channels = dims.c * RGB_COMPONENTS

        if stacks[0].is_hyperstack:
            montage = montage.to_hyperstack(dims.z, channels, dims.t)

        if kind.is_packed:
            montage = to_packed_rgb(montage)

        logger.info(
            f"Created montage '{title}': {montage.width}x{montage.height}, "
            f"z={montage.z}, c={montage.c}, t={montage.t}, {kind.name}"
        )
        return montage

    def _composite_all(self, stacks: Sequence[ImageHandle], grid: GridSpec,
                       dims: ImageDimensions, kind: PixelKind) -> np.ndarray:
        depth_count = dims.depth_count
        mode = self.config.compositing.blit_mode
        n_workers = min(self.config.compositing.n_workers, depth_count)

        output = np.empty(
            (depth_count, dims.height * grid.rows, dims.width * grid.columns),
            dtype=kind.dtype,
        )
        logger.info(
            f"Compositing {len(stacks)} stack(s) x {depth_count} plane(s) "
            f"({format_bytes(output.nbytes)}) with {n_workers} worker(s)"
        )

        def composite_at(depth: int) -> np.ndarray:
            sources = [stack.get_plane(depth) for stack in stacks]
            return composite_plane(sources, grid, dims.width, dims.height, kind, mode)

        if n_workers <= 1:
            for depth in range(depth_count):
                output[depth] = composite_at(depth)
                self._report(depth + 1, depth_count)
            return output

        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = {executor.submit(composite_at, depth): depth for depth in range(depth_count)}
            try:
                for done, future in enumerate(as_completed(futures), start=1):
                    output[futures[future]] = future.result()
                    self._report(done, depth_count)
            except BaseException:
                for pending in futures:
                    pending.cancel()
                raise

        return output

    def _report(self, done: int, total: int) -> None:
        logger.debug(f"Composited plane {done}/{total}")
        if self.progress_callback is not None:
            self.progress_callback(done, total)


def montage_stacks(
    stacks: Sequence[ImageHandle],
    rows: Optional[int] = None,
    columns: Optional[int] = None,
    config: Optional[Config] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> MultiDimStack:
    """Montage stacks, filling in the grid from the input count where needed.

    Rows and columns fall back to ``config.grid`` and then to
    :func:`~stackmontage.montage.grid.compute_grid_layout`.

    Args:
        stacks: Ordered, non-empty input stacks.
        rows: Number of grid rows.
        columns: Number of grid columns.
        config: Package configuration. If None, uses defaults.
        progress_callback: Called as ``callback(done, total)`` after each plane.

    Returns:
        MultiDimStack: The montage.
    """
    if len(stacks) == 0:
        raise ValueError("At least one stack is required for a montage")

    config = config or Config()
    rows = rows if rows is not None else config.grid.rows
    columns = columns if columns is not None else config.grid.columns
    grid = resolve_grid(len(stacks), rows, columns, max_images=config.grid.max_images)

    return StackAssembler(config, progress_callback).assemble(stacks, grid)
