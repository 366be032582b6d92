"""Shape validation for montage inputs."""

from __future__ import annotations

from typing import Sequence
import logging

from ..core.exceptions import DimensionMismatch
from ..core.stack import ImageDimensions, ImageHandle


logger = logging.getLogger(__name__)


def validate_shapes(stacks: Sequence[ImageHandle]) -> ImageDimensions:
    """Check that every stack matches the first in kind and all five extents.

    Args:
        stacks: Non-empty, ordered input stacks.

    Returns:
        ImageDimensions: The shared dimensions.

    Raises:
        ValueError: If ``stacks`` is empty.
        DimensionMismatch: On the first stack that deviates, naming its index and field.
    """
    if len(stacks) == 0:
        raise ValueError("At least one stack is required for a montage")

    reference = stacks[0].dimensions
    for index, stack in enumerate(stacks[1:], start=1):
        difference = reference.first_difference(stack.dimensions)
        if difference is not None:
            field, expected, actual = difference
            raise DimensionMismatch(index, field, expected, actual)

    logger.debug(f"Validated {len(stacks)} stack(s) with dimensions {reference}")
    return reference
