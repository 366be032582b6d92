"""
Multi-dimensional image stacks.

A stack is an ordered sequence of 2D planes of one pixel kind, logically
indexed by Z, channel and time. Planes are stored as a single ``(N, H, W)``
array using the linearization ``index = z + Z * (c + C * t)``, so reshaping
the array to ``(T, C, Z, H, W)`` gives the natural 5D view.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, Tuple, Union

import numpy as np

from .exceptions import UnsupportedKind


class PixelKind(Enum):
    """The four supported sample kinds, keyed by ImageJ bit depth.

    ``RGB`` samples are ``uint32`` values ``0x00RRGGBB``; the high byte is
    not part of the pixel and is cleared when a stack is built.
    """

    GRAY8 = 8
    GRAY16 = 16
    RGB = 24
    GRAY32 = 32

    @property
    def bit_depth(self) -> int:
        return self.value

    @property
    def dtype(self) -> np.dtype:
        return _KIND_DTYPES[self]

    @property
    def zero(self):
        return self.dtype.type(0)

    @property
    def is_packed(self) -> bool:
        """True for packed true-colour samples (one uint32 per RGB pixel)."""
        return self is PixelKind.RGB

    @classmethod
    def resolve(cls, kind: Union["PixelKind", int, str, np.dtype, type]) -> "PixelKind":
        """Map a kind, a bit depth or a numpy dtype to a PixelKind.

        ``uint32`` data is never inferred as packed RGB; pass ``PixelKind.RGB``
        (or bit depth 24) explicitly.

        Raises:
            UnsupportedKind: If nothing matches.
        """
        if isinstance(kind, cls):
            return kind
        if isinstance(kind, (int, np.integer)) and not isinstance(kind, bool):
            try:
                return cls(int(kind))
            except ValueError:
                raise UnsupportedKind(kind) from None
        try:
            dtype = np.dtype(kind)
        except TypeError:
            raise UnsupportedKind(kind) from None
        if dtype not in _DTYPE_KINDS:
            raise UnsupportedKind(dtype)
        return _DTYPE_KINDS[dtype]


_KIND_DTYPES = {
    PixelKind.GRAY8: np.dtype(np.uint8),
    PixelKind.GRAY16: np.dtype(np.uint16),
    PixelKind.RGB: np.dtype(np.uint32),
    PixelKind.GRAY32: np.dtype(np.float32),
}

_RGB_HIGH_BYTE = np.uint32(0xFF000000)

_DTYPE_KINDS = {
    np.dtype(np.uint8): PixelKind.GRAY8,
    np.dtype(np.uint16): PixelKind.GRAY16,
    np.dtype(np.float32): PixelKind.GRAY32,
}


@dataclass(frozen=True)
class ImageDimensions:
    """Per-axis extents plus bit depth of a stack."""

    width: int
    height: int
    z: int = 1
    c: int = 1
    t: int = 1
    bit_depth: int = 8

    @property
    def depth_count(self) -> int:
        return self.z * self.c * self.t

    @property
    def is_hyperstack(self) -> bool:
        return self.z > 1 or self.c > 1 or self.t > 1

    def first_difference(self, other: "ImageDimensions") -> Optional[Tuple[str, Any, Any]]:
        """Return ``(field, mine, theirs)`` for the first differing field, or None.

        Fields are compared in the order kind, width, height, z, c, t.
        """
        pairs = (
            ('kind', self.bit_depth, other.bit_depth),
            ('width', self.width, other.width),
            ('height', self.height, other.height),
            ('z', self.z, other.z),
            ('c', self.c, other.c),
            ('t', self.t, other.t),
        )
        for name, mine, theirs in pairs:
            if mine != theirs:
                return name, mine, theirs
        return None


class ImageHandle(Protocol):
    """What the montage core needs from an input image."""

    @property
    def bit_depth(self) -> int: ...

    @property
    def dimensions(self) -> ImageDimensions: ...

    @property
    def is_hyperstack(self) -> bool: ...

    def get_plane(self, index: int) -> np.ndarray: ...


class MultiDimStack:
    """An ordered, uniformly shaped plane sequence with Z/C/T structure.

    The planes are copied on construction and made read-only, so a stack
    never shares a buffer with another stack.

    Args:
        planes: ``(N, H, W)`` array, a single ``(H, W)`` plane or a sequence of planes.
        z, c, t: Extents; ``z * c * t`` must equal ``N``.
        kind: Pixel kind; inferred from the dtype when omitted.
        title: Cosmetic name, e.g. the source file stem.
        hyperstack: Override for the hyperstack flag; defaults to any extent > 1.
        copy: If False, take ownership of an existing ``(N, H, W)`` array
            instead of copying it. The caller must not keep writing to it.
    """

    def __init__(
        self,
        planes,
        z: int = 1,
        c: int = 1,
        t: int = 1,
        kind: Optional[Union[PixelKind, int, str, np.dtype]] = None,
        title: str = '',
        hyperstack: Optional[bool] = None,
        copy: bool = True,
    ):
        data = np.array(planes, copy=True) if copy else np.asarray(planes)
        if data.ndim == 2:
            data = data[np.newaxis]
        if data.ndim != 3:
            raise ValueError(f"Planes must be 2D or (N, H, W), got {data.ndim}D with shape {data.shape}")
        if min(z, c, t) < 1:
            raise ValueError(f"Extents must be >= 1, got z={z}, c={c}, t={t}")
        if data.shape[0] != z * c * t:
            raise ValueError(
                f"Plane count {data.shape[0]} does not match z*c*t = {z}*{c}*{t} = {z * c * t}"
            )

        self.kind = PixelKind.resolve(kind if kind is not None else data.dtype)
        if data.dtype != self.kind.dtype:
            raise ValueError(f"Planes of dtype {data.dtype} do not match kind {self.kind.name} ({self.kind.dtype})")
        if self.kind.is_packed and np.any(data & _RGB_HIGH_BYTE):
            data = data & ~_RGB_HIGH_BYTE

        data.flags.writeable = False
        self._planes = data
        self.z = z
        self.c = c
        self.t = t
        self.title = title
        self._hyperstack = hyperstack

    @classmethod
    def from_5d(cls, array: np.ndarray, kind=None, title: str = '',
                hyperstack: Optional[bool] = None) -> "MultiDimStack":
        """Build a stack from a ``(T, C, Z, H, W)`` array."""
        if array.ndim != 5:
            raise ValueError(f"Expected a (T, C, Z, H, W) array, got shape {array.shape}")
        t, c, z, height, width = array.shape
        return cls(array.reshape(t * c * z, height, width), z=z, c=c, t=t,
                   kind=kind, title=title, hyperstack=hyperstack)

    @property
    def planes(self) -> np.ndarray:
        return self._planes

    @property
    def width(self) -> int:
        return self._planes.shape[2]

    @property
    def height(self) -> int:
        return self._planes.shape[1]

    @property
    def bit_depth(self) -> int:
        return self.kind.bit_depth

    @property
    def depth_count(self) -> int:
        return self._planes.shape[0]

    @property
    def dimensions(self) -> ImageDimensions:
        return ImageDimensions(self.width, self.height, self.z, self.c, self.t, self.bit_depth)

    @property
    def is_hyperstack(self) -> bool:
        if self._hyperstack is not None:
            return self._hyperstack
        return self.dimensions.is_hyperstack

    def __len__(self) -> int:
        return self.depth_count

    def __repr__(self) -> str:
        return (
            f"MultiDimStack(title={self.title!r}, kind={self.kind.name}, "
            f"size={self.width}x{self.height}, z={self.z}, c={self.c}, t={self.t})"
        )

    def index_of(self, z: int, c: int, t: int) -> int:
        """Linear plane index of ``(z, c, t)``."""
        if not (0 <= z < self.z and 0 <= c < self.c and 0 <= t < self.t):
            raise IndexError(f"(z={z}, c={c}, t={t}) out of range for extents ({self.z}, {self.c}, {self.t})")
        return z + self.z * (c + self.c * t)

    def get_plane(self, index: int) -> np.ndarray:
        if index < 0 or index >= self.depth_count:
            raise IndexError(f"Plane index {index} out of range (0-{self.depth_count - 1})")
        return self._planes[index]

    def as_5d(self) -> np.ndarray:
        """Read-only ``(T, C, Z, H, W)`` view of the planes."""
        return self._planes.reshape(self.t, self.c, self.z, self.height, self.width)

    def to_hyperstack(self, z: int, c: int, t: int, title: Optional[str] = None) -> "MultiDimStack":
        """Reinterpret the stack with extents ``(z, c, t)``.

        The current Z axis is split into ``(Z, C / current C, T)`` using the
        stack linearization; existing channels stay the innermost channel
        sub-index. For a flat stack (c = t = 1) this is a pure relabel.

        Raises:
            ValueError: If the plane count or channel structure does not fit.
        """
        title = self.title if title is None else title
        if z * c * t != self.depth_count:
            raise ValueError(
                f"Cannot reshape {self.depth_count} planes into z*c*t = {z}*{c}*{t} = {z * c * t}"
            )
        if (z, c, t) == (self.z, self.c, self.t):
            return MultiDimStack(self._planes, z, c, t, kind=self.kind, title=title, hyperstack=True)
        if self.t != 1 or c % self.c != 0:
            raise ValueError(
                f"Cannot split extents ({self.z}, {self.c}, {self.t}) into ({z}, {c}, {t})"
            )

        inner = self.c
        outer = c // inner
        data = self._planes.reshape(inner, t, outer, z, self.height, self.width)
        data = data.transpose(1, 2, 0, 3, 4, 5)
        return MultiDimStack(
            data.reshape(z * c * t, self.height, self.width),
            z, c, t, kind=self.kind, title=title, hyperstack=True,
        )
