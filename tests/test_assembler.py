"""Unit tests for montage assembly."""

from __future__ import annotations

import numpy as np
import pytest

from stackmontage import (
    Config,
    DimensionMismatch,
    GridSpec,
    ImageDimensions,
    MultiDimStack,
    PixelKind,
    StackAssembler,
    UnsupportedKind,
    montage_stacks,
)
from stackmontage.montage import pack_rgb, to_multichannel


WIDTH = 4
HEIGHT = 3


def _source_stack(index: int, kind: PixelKind = PixelKind.GRAY16, z: int = 1, c: int = 1,
                  t: int = 1, hyperstack=None) -> MultiDimStack:
    """Stack ``index`` whose plane ``d`` holds a value unique to ``(index, d)``."""
    count = z * c * t
    rng = np.random.default_rng(index)
    if kind is PixelKind.RGB:
        components = rng.integers(0, 256, size=(count, HEIGHT, WIDTH, 3), dtype=np.uint8)
        components[..., 0] = index + 1
        components[..., 1] = np.arange(count, dtype=np.uint8)[:, None, None]
        planes = pack_rgb(components)
    else:
        planes = np.empty((count, HEIGHT, WIDTH), dtype=kind.dtype)
        for depth in range(count):
            planes[depth] = 10 * index + depth + 1
    return MultiDimStack(planes, z=z, c=c, t=t, kind=kind, title=f"stack{index}", hyperstack=hyperstack)


def _cell(plane: np.ndarray, grid: GridSpec, index: int) -> np.ndarray:
    x, y = grid.offset_of(index, WIDTH, HEIGHT)
    return plane[y:y + HEIGHT, x:x + WIDTH]


class _PlaneListHandle:
    """Minimal image handle that is not a MultiDimStack."""

    def __init__(self, planes, bit_depth: int):
        self._planes = planes
        self.bit_depth = bit_depth
        self.dimensions = ImageDimensions(WIDTH, HEIGHT, len(planes), 1, 1, bit_depth)
        self.is_hyperstack = len(planes) > 1
        self.requested = []

    def get_plane(self, index: int) -> np.ndarray:
        self.requested.append(index)
        return self._planes[index]


@pytest.mark.parametrize("kind", list(PixelKind))
@pytest.mark.parametrize("extents", [(1, 1, 1), (2, 1, 2), (2, 3, 1)])
def test_single_input_is_identity(kind: PixelKind, extents: tuple) -> None:
    z, c, t = extents
    source = _source_stack(0, kind, z=z, c=c, t=t)
    montage = montage_stacks([source], rows=1, columns=1)

    assert montage.kind is kind
    assert montage.dimensions == source.dimensions
    assert np.array_equal(montage.planes, source.planes)


def test_unfilled_cells_stay_zero() -> None:
    stacks = [_source_stack(i, z=2, t=2) for i in range(3)]
    grid = GridSpec(2, 2)
    montage = StackAssembler().assemble(stacks, grid)

    assert (montage.width, montage.height) == (2 * WIDTH, 2 * HEIGHT)
    for depth in range(montage.depth_count):
        assert np.all(_cell(montage.get_plane(depth), grid, 3) == 0)


@pytest.mark.parametrize("kind", [PixelKind.GRAY8, PixelKind.GRAY16, PixelKind.GRAY32])
def test_image_lands_in_its_cell_for_every_depth(kind: PixelKind) -> None:
    stacks = [_source_stack(i, kind, z=2, t=2) for i in range(5)]
    grid = GridSpec(2, 3)
    montage = montage_stacks(stacks, rows=2, columns=3)

    for depth in range(montage.depth_count):
        plane = montage.get_plane(depth)
        for index, stack in enumerate(stacks):
            row, column = grid.cell_of(index)
            assert (row, column) == (index // 3, index % 3)
            assert np.array_equal(_cell(plane, grid, index), stack.get_plane(depth))


def test_depth_structure_is_preserved() -> None:
    stacks = [_source_stack(i, z=2, c=3, t=1) for i in range(2)]
    montage = montage_stacks(stacks)

    assert montage.depth_count == 2 * 3 * 1
    assert (montage.z, montage.c, montage.t) == (2, 3, 1)
    assert montage.is_hyperstack
    assert montage.title == "Montage of Stacks"


def test_plain_stack_is_returned_flat() -> None:
    stacks = [_source_stack(i, z=2, c=3, hyperstack=False) for i in range(2)]
    montage = montage_stacks(stacks)

    assert (montage.z, montage.c, montage.t) == (6, 1, 1)
    assert not montage.is_hyperstack


@pytest.mark.parametrize("extents", [(2, 1, 2), (2, 3, 1)])
def test_packed_rgb_detour_matches_direct_tiling(extents: tuple) -> None:
    z, c, t = extents
    stacks = [_source_stack(i, PixelKind.RGB, z=z, c=c, t=t) for i in range(3)]
    grid = GridSpec(2, 2)
    montage = StackAssembler().assemble(stacks, grid)

    expected = np.zeros((z * c * t, 2 * HEIGHT, 2 * WIDTH), dtype=np.uint32)
    for index, stack in enumerate(stacks):
        x, y = grid.offset_of(index, WIDTH, HEIGHT)
        expected[:, y:y + HEIGHT, x:x + WIDTH] = stack.planes

    assert montage.kind is PixelKind.RGB
    assert (montage.z, montage.c, montage.t) == (z, c, t)
    assert np.array_equal(montage.planes, expected)

    # The intermediate view carries three channels per source channel
    assert to_multichannel(montage).c == 3 * c


def test_mismatched_inputs_fail_without_output() -> None:
    stacks = [_source_stack(0, z=1), _source_stack(1, z=2)]
    with pytest.raises(DimensionMismatch) as excinfo:
        montage_stacks(stacks)
    assert excinfo.value.field == "z"


def test_unsupported_kind_fails_before_reading_planes() -> None:
    handle = _PlaneListHandle([np.zeros((HEIGHT, WIDTH), dtype=np.int32)], bit_depth=12)
    with pytest.raises(UnsupportedKind):
        montage_stacks([handle, handle])
    assert handle.requested == []


def test_accepts_any_image_handle() -> None:
    planes = [np.full((HEIGHT, WIDTH), value, dtype=np.uint8) for value in (5, 6)]
    handle = _PlaneListHandle(planes, bit_depth=8)
    montage = montage_stacks([handle, _source_stack(1, PixelKind.GRAY8, z=2)], rows=1, columns=2)

    assert montage.kind is PixelKind.GRAY8
    assert np.all(montage.get_plane(1)[:, :WIDTH] == 6)
    assert np.all(montage.get_plane(1)[:, WIDTH:] == 12)


def test_threaded_compositing_matches_sequential() -> None:
    stacks = [_source_stack(i, z=3, c=2, t=2) for i in range(4)]
    config = Config()
    config.compositing.n_workers = 4
    progress = []

    threaded = montage_stacks(stacks, config=config, progress_callback=lambda done, total: progress.append((done, total)))
    sequential = montage_stacks(stacks)

    assert np.array_equal(threaded.planes, sequential.planes)
    assert len(progress) == 12
    assert progress[-1] == (12, 12)


def test_copy_mode_matches_additive_mode() -> None:
    stacks = [_source_stack(i, PixelKind.RGB, z=2) for i in range(3)]
    config = Config()
    config.compositing.blit_mode = "copy"

    assert np.array_equal(montage_stacks(stacks, config=config).planes, montage_stacks(stacks).planes)


def test_default_grid_and_surplus_inputs() -> None:
    stacks = [_source_stack(i) for i in range(5)]
    montage = montage_stacks(stacks)
    assert (montage.width, montage.height) == (3 * WIDTH, 2 * HEIGHT)

    small = montage_stacks(stacks, rows=1, columns=2)
    assert (small.width, small.height) == (2 * WIDTH, HEIGHT)
    assert np.all(small.get_plane(0)[:, WIDTH:] == 11)


def test_empty_input_is_rejected() -> None:
    with pytest.raises(ValueError):
        montage_stacks([])


def test_float_identity_keeps_signed_zero_and_nan() -> None:
    planes = np.array([[[-0.0, 1.0, np.nan], [0.0, -2.5, -0.0]]], dtype=np.float32)
    source = MultiDimStack(planes)
    montage = montage_stacks([source], rows=1, columns=1)

    assert np.array_equal(montage.planes.view(np.uint32), source.planes.view(np.uint32))


def test_rgb_high_byte_is_cleared_on_construction() -> None:
    planes = np.array([[[0xFF102030, 0x01A0B0C0]]], dtype=np.uint32)
    source = MultiDimStack(planes, kind=PixelKind.RGB)
    assert source.planes.tolist() == [[[0x00102030, 0x00A0B0C0]]]
    assert planes[0, 0, 0] == 0xFF102030

    config = Config()
    config.compositing.blit_mode = "copy"
    montage = montage_stacks([source], rows=1, columns=1, config=config)
    assert np.array_equal(montage.planes, source.planes)


class _FailingHandle(_PlaneListHandle):
    def get_plane(self, index: int) -> np.ndarray:
        if index == 0:
            raise RuntimeError("unreadable plane")
        return super().get_plane(index)


def test_worker_error_reaches_caller() -> None:
    planes = [np.zeros((HEIGHT, WIDTH), dtype=np.uint16) for _ in range(8)]
    handle = _FailingHandle(planes, bit_depth=16)
    config = Config()
    config.compositing.n_workers = 2

    with pytest.raises(RuntimeError, match="unreadable plane"):
        montage_stacks([handle], config=config)
