"""Unit tests for plane compositing and blitting."""

from __future__ import annotations

import numpy as np
import pytest

from stackmontage import GridSpec, PixelKind
from stackmontage.montage import blit, composite_plane, pack_rgb, unpack_rgb


def test_composite_plane_places_tiles_and_zero_fills() -> None:
    planes = [np.full((2, 3), value, dtype=np.uint8) for value in (1, 2, 3)]
    canvas = composite_plane(planes, GridSpec(2, 2), width=3, height=2, kind=PixelKind.GRAY8)

    assert canvas.shape == (4, 6)
    assert canvas.dtype == np.uint8
    assert np.all(canvas[0:2, 0:3] == 1)
    assert np.all(canvas[0:2, 3:6] == 2)
    assert np.all(canvas[2:4, 0:3] == 3)
    assert np.all(canvas[2:4, 3:6] == 0)


def test_composite_plane_float_kind() -> None:
    planes = [np.full((2, 2), 0.25, dtype=np.float32), np.full((2, 2), -1.5, dtype=np.float32)]
    canvas = composite_plane(planes, GridSpec(1, 3), width=2, height=2, kind=PixelKind.GRAY32)

    assert canvas.dtype == np.float32
    assert np.allclose(canvas[:, 0:2], 0.25)
    assert np.allclose(canvas[:, 2:4], -1.5)
    assert np.all(canvas[:, 4:6] == 0.0)


@pytest.mark.parametrize(
    "kind, start, tile, expected",
    [
        (PixelKind.GRAY8, 250, 10, 255),
        (PixelKind.GRAY16, 65530, 10, 65535),
        (PixelKind.GRAY32, 1.5, 2.25, 3.75),
    ],
)
def test_additive_blit_saturates(kind: PixelKind, start, tile, expected) -> None:
    canvas = np.full((2, 2), start, dtype=kind.dtype)
    blit(canvas, np.full((2, 2), tile, dtype=kind.dtype), 0, 0, kind)
    assert np.all(canvas == expected)


def test_additive_blit_saturates_rgb_per_component() -> None:
    canvas = np.full((1, 1), pack_rgb(np.array([250, 0, 5])), dtype=np.uint32)
    tile = np.full((1, 1), pack_rgb(np.array([10, 7, 5])), dtype=np.uint32)

    blit(canvas, tile, 0, 0, PixelKind.RGB)
    assert unpack_rgb(canvas)[0, 0].tolist() == [255, 7, 10]


def test_copy_blit_overwrites() -> None:
    canvas = np.full((2, 2), 250, dtype=np.uint8)
    blit(canvas, np.full((2, 2), 10, dtype=np.uint8), 0, 0, PixelKind.GRAY8, mode="copy")
    assert np.all(canvas == 10)

    with pytest.raises(ValueError):
        blit(canvas, canvas.copy(), 0, 0, PixelKind.GRAY8, mode="blend")


def test_blit_is_clipped_to_canvas() -> None:
    canvas = np.zeros((3, 3), dtype=np.uint16)
    blit(canvas, np.ones((4, 4), dtype=np.uint16), 2, 2, PixelKind.GRAY16)
    assert canvas.sum() == 1
    assert canvas[2, 2] == 1

    blit(canvas, np.ones((4, 4), dtype=np.uint16), 5, 5, PixelKind.GRAY16)
    assert canvas.sum() == 1


def test_composite_plane_ignores_planes_beyond_capacity() -> None:
    planes = [np.full((1, 1), value, dtype=np.uint8) for value in (1, 2, 3)]
    canvas = composite_plane(planes, GridSpec(1, 2), width=1, height=1, kind=PixelKind.GRAY8)
    assert canvas.tolist() == [[1, 2]]


def test_additive_float_blit_on_zero_canvas_keeps_source_bits() -> None:
    canvas = np.zeros((1, 2), dtype=np.float32)
    tile = np.array([[-0.0, np.nan]], dtype=np.float32)
    blit(canvas, tile, 0, 0, PixelKind.GRAY32)
    assert np.array_equal(canvas.view(np.uint32), tile.view(np.uint32))
