"""
Core pixel operations for Pixel Lab.

This module provides the low-level helpers shared by the pixel transforms
(luminance, half-up rounding, level quantization, parameter checks) and the
Pillow bridge used to get buffers in and out of image files.

Functions:
    round_half_up: Round numbers or arrays with .5 going toward +infinity
    luminance: Per-pixel BT.601 luminance of a buffer as floats
    quantize_to_levels: Snap values to the nearest of N evenly spaced levels
    validate_levels: Check a level count parameter
    load_pixel_buffer: Decode an image file into a PixelBuffer
    save_pixel_buffer: Encode a PixelBuffer to an image file
    save_pixel_buffers: Batch save buffers with the output prefix
"""

import logging
import math
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np
from PIL import Image

from PX_Libs.constants import (
    CHANNEL_MAX,
    DEFAULT_OUTPUT_FORMAT,
    LUMA_BLUE,
    LUMA_GREEN,
    LUMA_RED,
    MAX_LEVELS,
    MIN_LEVELS,
    OUTPUT_FILE_PREFIX,
)
from PX_Libs.errors import ParameterError
from PX_Libs.ImageEditingLib.image_models import PixelBuffer

logger = logging.getLogger(__name__)


def round_half_up(value: Any) -> Any:
    """
    Round with .5 going toward +infinity, floor(x + 0.5), for scalars or numpy arrays.

    2.5 -> 3 and -2.5 -> -2.

    Python's round() and numpy.rint() round half to even, which would make
    0.5 steps land on different levels depending on parity.
    """
    if isinstance(value, np.ndarray):
        return np.floor(value + 0.5)
    return int(math.floor(value + 0.5))


def luminance(buffer: PixelBuffer) -> np.ndarray:
    """
    Compute 0.299R + 0.587G + 0.114B for every pixel.

    Returns:
        Float array of shape (height, width)
    """
    rgba = buffer.to_array().astype(np.float64)
    return LUMA_RED * rgba[..., 0] + LUMA_GREEN * rgba[..., 1] + LUMA_BLUE * rgba[..., 2]


def validate_levels(levels: Any) -> int:
    """
    Check a level count.

    Raises:
        ParameterError: If levels is not an int in [2, 256]
    """
    if isinstance(levels, bool) or not isinstance(levels, (int, np.integer)):
        raise ParameterError(f"levels must be an int, got {type(levels)}")
    if not MIN_LEVELS <= levels <= MAX_LEVELS:
        raise ParameterError(f"levels must be {MIN_LEVELS}-{MAX_LEVELS}, got {levels}")
    return int(levels)


def quantize_to_levels(values: Any, levels: int) -> Any:
    """
    Snap values to the nearest of `levels` evenly spaced values in 0-255.

    step = 255 / (levels - 1); results are clamped to 0-255 and rounded
    half up to integers, so the same helper serves dithering and posterizing.

    Args:
        values: A number or numpy array
        levels: Number of output levels (>= 2)

    Returns:
        An int for scalar input, otherwise a float array of integral values
    """
    step = CHANNEL_MAX / (levels - 1)
    if isinstance(values, np.ndarray):
        snapped = np.floor(values / step + 0.5) * step
        return np.floor(np.clip(snapped, 0, CHANNEL_MAX) + 0.5)
    snapped = math.floor(values / step + 0.5) * step
    return int(math.floor(min(max(snapped, 0.0), float(CHANNEL_MAX)) + 0.5))


def as_pixel_buffer(value: Any) -> PixelBuffer:
    """
    Accept a PixelBuffer or a PIL Image and return a PixelBuffer.

    Raises:
        TypeError: If value is neither
    """
    if isinstance(value, PixelBuffer):
        return value
    if hasattr(value, "convert") and hasattr(value, "tobytes"):
        return PixelBuffer.from_image(value)
    raise TypeError(f"Expected PixelBuffer or PIL Image, got {type(value)}")


def load_pixel_buffer(path: Union[str, Path]) -> PixelBuffer:
    """
    Decode an image file into an RGBA PixelBuffer.

    Raises:
        FileNotFoundError: If the file does not exist
        PIL.UnidentifiedImageError: If Pillow cannot decode the file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    with Image.open(path) as img:
        buffer = PixelBuffer.from_image(img)
    logger.debug(f"Loaded {path.name} as {buffer.width}x{buffer.height} buffer")
    return buffer


def save_pixel_buffer(
    buffer: PixelBuffer,
    path: Union[str, Path],
    format: str = DEFAULT_OUTPUT_FORMAT,
) -> Path:
    """
    Encode a PixelBuffer to disk.

    JPEG has no alpha channel, so the buffer is flattened to RGB for it.

    Returns:
        The path written
    """
    path = Path(path)
    image = buffer.to_image()
    if format.upper() in ("JPEG", "JPG"):
        image = image.convert("RGB")
        format = "JPEG"
    image.save(path, format=format)
    return path


def save_pixel_buffers(buffers: Dict[str, PixelBuffer], output_dir: Path) -> int:
    """
    Save several buffers to disk in PNG format.

    Each buffer is saved under its key with a 'modified_' prefix added.

    Args:
        buffers: Mapping of file name -> PixelBuffer
        output_dir: Directory path where images should be saved

    Returns:
        The number of images successfully saved

    Raises:
        OSError: If directory cannot be accessed or files cannot be written
    """
    if not output_dir.exists():
        raise OSError(f"Output directory does not exist: {output_dir}")

    if not output_dir.is_dir():
        raise OSError(f"Output path is not a directory: {output_dir}")

    saved_count = 0
    for name, buffer in buffers.items():
        save_path = output_dir / f"{OUTPUT_FILE_PREFIX}{Path(name).name}"
        save_pixel_buffer(buffer, save_path, DEFAULT_OUTPUT_FORMAT)
        saved_count += 1
    return saved_count
