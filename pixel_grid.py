# --- START OF FILE pixel_grid.py ---

"""
Pixel Grid Module for Image Tampering Detection & Recovery System
Normalizes an in-memory bitmap (PIL image or numpy array) into an immutable pixel grid
"""

import numpy as np
from PIL import Image
from typing import Tuple

from config import SUPPORTED_CHANNELS, LUMA_WEIGHTS, MAX_SAMPLE_VALUE
from errors import UnsupportedFormat, InvalidDimensions, DimensionMismatch

# PIL modes that are taken as-is, and modes with a lossless conversion
_NATIVE_MODES = ('L', 'RGB', 'RGBA')


class PixelGrid:
    """
    Dense row-major grid of samples in [0, 255], shape (H, W, C) with C in {1, 3, 4}.
    The backing array is read-only.
    """

    def __init__(self, samples):
        try:
            array = np.array(samples, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidDimensions(f"Samples are not a rectangular numeric grid: {e}")

        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        if array.ndim != 3:
            raise InvalidDimensions(f"Pixel grid must be 2-D or 3-D, got {array.ndim}-D")
        if array.shape[0] == 0 or array.shape[1] == 0:
            raise InvalidDimensions(f"Pixel grid is empty: {array.shape[1]} x {array.shape[0]}")
        if array.shape[2] not in SUPPORTED_CHANNELS:
            raise UnsupportedFormat(f"Unsupported channel count: {array.shape[2]}")
        if not np.all(np.isfinite(array)):
            raise UnsupportedFormat("Pixel grid contains non-finite samples")
        if array.min() < 0.0 or array.max() > MAX_SAMPLE_VALUE:
            raise UnsupportedFormat(
                f"Samples must lie in [0, {MAX_SAMPLE_VALUE:g}], got [{array.min():g}, {array.max():g}]"
            )

        array.flags.writeable = False
        self._samples = array

    @property
    def samples(self) -> np.ndarray:
        return self._samples

    @property
    def height(self) -> int:
        return self._samples.shape[0]

    @property
    def width(self) -> int:
        return self._samples.shape[1]

    @property
    def channels(self) -> int:
        return self._samples.shape[2]

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._samples.shape

    def flat(self) -> np.ndarray:
        """Row-major sample sequence of length W*H*C"""
        return self._samples.ravel()

    def luminance(self) -> np.ndarray:
        """(H, W) grayscale derivation. Alpha is ignored."""
        if self.channels == 1:
            return self._samples[:, :, 0].copy()
        r, g, b = (self._samples[:, :, i] for i in range(3))
        return LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b

    def to_grayscale(self) -> 'PixelGrid':
        if self.channels == 1:
            return self
        return PixelGrid(np.clip(self.luminance(), 0.0, MAX_SAMPLE_VALUE))

    def __repr__(self):
        return f"PixelGrid(width={self.width}, height={self.height}, channels={self.channels})"


def _pil_to_array(image_pil):
    mode = image_pil.mode
    if mode == '1':
        image_pil = image_pil.convert('L')
    elif mode == 'P':
        has_alpha = 'transparency' in image_pil.info
        image_pil = image_pil.convert('RGBA' if has_alpha else 'RGB')
    elif mode not in _NATIVE_MODES:
        raise UnsupportedFormat(f"Unsupported image mode: {mode}")
    return np.asarray(image_pil)


def to_pixel_grid(bitmap, grayscale=False, normalized=False):
    """
    Convert a decoded bitmap into a PixelGrid.

    Args:
        bitmap: PIL Image or numpy array of shape (H, W) or (H, W, C)
        grayscale: Return the 1-channel luminance grid instead
        normalized: Samples are in [0, 1] and get scaled to [0, 255]

    Returns:
        PixelGrid
    """
    if isinstance(bitmap, Image.Image):
        array = _pil_to_array(bitmap)
    else:
        array = np.asarray(bitmap)

    if array.dtype == np.bool_:
        array = array.astype(np.uint8) * 255
    elif not (np.issubdtype(array.dtype, np.integer) or np.issubdtype(array.dtype, np.floating)):
        raise UnsupportedFormat(f"Unsupported sample type: {array.dtype}")

    if normalized:
        array = array.astype(np.float64) * MAX_SAMPLE_VALUE

    grid = PixelGrid(array)
    if grayscale:
        return grid.to_grayscale()
    return grid


def check_same_dimensions(original, tampered):
    """Raise DimensionMismatch unless both grids share width and height"""
    if (original.width, original.height) != (tampered.width, tampered.height):
        raise DimensionMismatch(
            f"Image sizes differ: original {original.width} x {original.height}, "
            f"tampered {tampered.width} x {tampered.height}"
        )
