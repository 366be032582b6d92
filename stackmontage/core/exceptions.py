"""Errors raised by the montage core."""

from typing import Any


class DimensionMismatch(ValueError):
    """An input stack differs from the first input in kind or extent.

    Attributes:
        index: Position of the offending stack in the input sequence.
        field: Name of the first differing field ('kind', 'width', 'height', 'z', 'c' or 't').
        expected: Value taken from the first stack.
        actual: Value found on the offending stack.
    """

    def __init__(self, index: int, field: str, expected: Any, actual: Any):
        self.index = index
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Dimension mismatch: stack {index} has {field}={actual}, "
            f"expected {field}={expected} (from stack 0)"
        )


class UnsupportedKind(ValueError):
    """Pixel kind is not one of 8-bit, 16-bit, 32-bit float or packed RGB."""

    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(
            f"Unsupported pixel kind: {kind!r}. "
            f"Supported: 8-bit, 16-bit, 24-bit (packed RGB), 32-bit float"
        )
