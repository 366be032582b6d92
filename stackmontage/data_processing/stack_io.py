"""
Reading and writing multi-dimensional stacks.

TIFF files (ImageJ hyperstacks, OME-TIFF, plain multi-page) are read with
tifffile and normalized to the T, C, Z, Y, X order of MultiDimStack.
Single pictures (PNG, JPEG, BMP) are read with Pillow. Montages are written
as ImageJ hyperstack TIFFs.
"""

from pathlib import Path
from typing import Dict, Any, Optional, List, Sequence, Union
import logging

import numpy as np
from PIL import Image
import tifffile

from ..core.config import Config
from ..core.exceptions import UnsupportedKind
from ..core.stack import MultiDimStack, PixelKind
from ..core.utils import validate_file_path, ensure_directory
from ..montage.color import pack_rgb, unpack_rgb


logger = logging.getLogger(__name__)

TIFF_EXTENSIONS = ['.tif', '.tiff']
PICTURE_EXTENSIONS = ['.png', '.jpg', '.jpeg', '.bmp']

# Stack order used by MultiDimStack.as_5d()
STACK_AXES = 'TCZYX'
# Hyperstack order ImageJ expects in a TIFF
IMAGEJ_AXES = 'TZCYX'

# Axes tifffile reports for a generic "stack of images"
_GENERIC_AXES = ('I', 'Q')


class StackLoader:
    """Load image files as MultiDimStack objects."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize the stack loader.

        Args:
            config: Package configuration. If None, uses defaults.
        """
        self.config = config or Config()
        self.metadata: Dict[str, Any] = {}

    def load(self, filepath: Union[str, Path]) -> MultiDimStack:
        """Load a TIFF or picture file.

        Args:
            filepath: Path to the image file.

        Returns:
            MultiDimStack: The stack, titled after the file stem.

        Raises:
            FileNotFoundError: If file doesn't exist.
            ValueError: If the file format is unsupported or unreadable.
            UnsupportedKind: If the sample type has no matching pixel kind.
        """
        filepath = Path(filepath)
        validate_file_path(filepath, TIFF_EXTENSIONS + PICTURE_EXTENSIONS)

        if filepath.suffix.lower() in TIFF_EXTENSIONS:
            return self.load_tiff(filepath)
        return self.load_picture(filepath)

    def load_many(self, filepaths: Sequence[Union[str, Path]]) -> List[MultiDimStack]:
        """Load several files, keeping their order."""
        return [self.load(filepath) for filepath in filepaths]

    def load_tiff(self, filepath: Union[str, Path]) -> MultiDimStack:
        """Load the first series of a TIFF file.

        Args:
            filepath: Path to the TIFF file.

        Returns:
            MultiDimStack: The stack.
        """
        filepath = Path(filepath)
        logger.info(f"Loading TIFF stack: {filepath}")

        try:
            with tifffile.TiffFile(str(filepath)) as tif:
                series = tif.series[0]
                axes = series.axes
                data = series.asarray()
                imagej_metadata = tif.imagej_metadata or {}

            hyperstack = imagej_metadata.get('hyperstack')
            self.metadata = {'axes': axes, 'shape': data.shape, 'dtype': str(data.dtype)}
            self.metadata.update(imagej_metadata)

            stack = self._from_axes(data, axes, title=filepath.stem,
                                    hyperstack=bool(hyperstack) if hyperstack is not None else None)

        except UnsupportedKind:
            raise
        except Exception as e:
            logger.error(f"Failed to load TIFF file: {e}")
            raise ValueError(f"Error loading TIFF file: {e}") from e

        logger.info(f"Successfully loaded {stack}")
        return stack

    def load_picture(self, filepath: Union[str, Path]) -> MultiDimStack:
        """Load a single-plane picture (PNG, JPEG, BMP).

        Colour modes become packed RGB, ``L`` becomes 8-bit, ``I;16`` 16-bit
        and ``F`` 32-bit float.
        """
        filepath = Path(filepath)
        logger.info(f"Loading picture: {filepath}")

        with Image.open(str(filepath)) as img:
            mode = img.mode
            self.metadata = {'mode': mode, 'size': img.size}

            if mode == '1':
                plane = np.asarray(img.convert('L'))
                kind = PixelKind.GRAY8
            elif mode in ('L', 'F') or mode.startswith('I;16'):
                plane = np.asarray(img)
                kind = PixelKind.resolve(plane.dtype.newbyteorder('='))
                plane = plane.astype(kind.dtype)
            elif mode in ('RGB', 'RGBA', 'P', 'PA', 'LA', 'CMYK', 'YCbCr'):
                plane = pack_rgb(np.asarray(img.convert('RGB')))
                kind = PixelKind.RGB
            else:
                raise UnsupportedKind(mode)

        return MultiDimStack(plane, kind=kind, title=filepath.stem)

    def _from_axes(self, data: np.ndarray, axes: str, title: str,
                   hyperstack: Optional[bool]) -> MultiDimStack:
        """Reorder a tifffile series to T, C, Z, Y, X and wrap it."""
        axes = axes.upper()
        if not data.dtype.isnative:
            data = data.astype(data.dtype.newbyteorder('='))

        # Generic stacking axes become Z when there is no Z yet; singletons are dropped
        normalized = []
        for axis, size in zip(axes, data.shape):
            if axis in STACK_AXES + 'S':
                normalized.append(axis)
            elif axis in _GENERIC_AXES and 'Z' not in axes and 'Z' not in normalized:
                normalized.append('Z')
            elif size == 1:
                normalized.append(None)
            else:
                raise ValueError(f"Unhandled TIFF axis '{axis}' (size {size}) in axes {axes}")
        squeeze = tuple(i for i, axis in enumerate(normalized) if axis is None)
        if squeeze:
            data = np.squeeze(data, axis=squeeze)
        axes = ''.join(axis for axis in normalized if axis is not None)

        packed = False
        if 'S' in axes:
            samples = data.shape[axes.index('S')]
            if samples in (3, 4) and data.dtype == np.uint8:
                packed = True
            elif 'C' not in axes:
                axes = axes.replace('S', 'C')
            else:
                raise UnsupportedKind(f"{samples} samples of {data.dtype}")

        for axis in STACK_AXES:
            if axis not in axes:
                data = data[np.newaxis, ...]
                axes = axis + axes

        order = [axes.index(axis) for axis in STACK_AXES]
        if packed:
            data = np.transpose(data, order + [axes.index('S')])
            data = pack_rgb(data[..., :3])
            kind = PixelKind.RGB
        else:
            data = np.transpose(data, order)
            kind = PixelKind.resolve(data.dtype)

        logger.info(f"Normalized TIFF axes {axes} to {STACK_AXES}: {data.shape}")
        return MultiDimStack.from_5d(np.ascontiguousarray(data), kind=kind, title=title,
                                     hyperstack=hyperstack)


def save_stack(stack: MultiDimStack, filepath: Union[str, Path],
               compression: Optional[str] = None) -> Path:
    """Write a stack as an ImageJ hyperstack TIFF.

    Args:
        stack: Stack to write.
        filepath: Output path; parent directories are created.
        compression: Optional tifffile compression name (e.g. 'zlib').

    Returns:
        Path: The written file.
    """
    filepath = Path(filepath)
    ensure_directory(filepath.parent)

    data = np.transpose(stack.as_5d(), (0, 2, 1, 3, 4))  # TCZYX -> TZCYX
    axes = IMAGEJ_AXES
    kwargs: Dict[str, Any] = {}
    if stack.kind is PixelKind.RGB:
        data = unpack_rgb(data)
        axes = IMAGEJ_AXES + 'S'
        kwargs['photometric'] = 'rgb'
    else:
        kwargs['photometric'] = 'minisblack'
    if compression is not None:
        kwargs['compression'] = compression

    tifffile.imwrite(
        str(filepath),
        np.ascontiguousarray(data),
        imagej=True,
        metadata={'axes': axes},
        **kwargs,
    )
    logger.info(f"Saved {stack} to {filepath}")
    return filepath
