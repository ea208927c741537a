"""
Dithering Filter Operations.

Converts an image to a reduced set of gray levels or to a fixed color
palette. Provides:
- Error diffusion: Floyd-Steinberg, Atkinson, Stucki, Burkes, Jarvis-Judice-Ninke
- Ordered dithering: 4x4 Bayer threshold matrix
- Palette dithering: the same algorithms over RGB against a fixed palette
  (bw, gameboy, cga, c64 or any list of colors)

dither() converts the image to luminance and produces grayscale output;
dither_palette() works on color. Both produce fully opaque output and leave
the input buffer untouched.

Example:
    >>> from PX_Libs.ImageEditingLib.image_editing_ops import load_pixel_buffer
    >>> buffer = load_pixel_buffer("photo.jpg")
    >>>
    >>> # Classic 1-bit Floyd-Steinberg
    >>> bw = dither(buffer, "floyd-steinberg", levels=2)
    >>>
    >>> # Four-level ordered dithering
    >>> halftone = dither(buffer, "ordered", levels=4)
    >>>
    >>> # Game Boy look
    >>> retro = dither_palette(buffer, "gameboy", "atkinson")
"""

import logging
from typing import Any, List, Literal, Sequence, Tuple, Union

import numpy as np

from PX_Libs.constants import (
    BAYER_4X4,
    BAYER_SCALE,
    CHANNEL_MAX,
    CHANNELS,
    DEFAULT_DITHER_ALGORITHM,
    DEFAULT_DITHER_LEVELS,
    DIFFUSION_KERNELS,
    DITHER_PALETTES,
    LUMA_BLUE,
    LUMA_GREEN,
    LUMA_RED,
    OPAQUE,
    ORDERED_ALGORITHM,
    ORDERED_BIAS,
    PALETTE_ORDERED_BIAS,
)
from PX_Libs.errors import ParameterError
from PX_Libs.ImageEditingLib.color_quantizer import nearest_color_indices
from PX_Libs.ImageEditingLib.image_editing_ops import (
    luminance,
    quantize_to_levels,
    round_half_up,
    validate_levels,
)
from PX_Libs.ImageEditingLib.image_models import PixelBuffer, Swatch

logger = logging.getLogger(__name__)

DitherAlgorithm = Literal[
    "floyd-steinberg",
    "ordered",
    "atkinson",
    "stucki",
    "burkes",
    "jarvis-judice-ninke",
]


def get_dither_algorithms() -> List[str]:
    """
    Get the names of all supported dithering algorithms.

    Returns:
        Sorted list of algorithm names
    """
    return sorted(list(DIFFUSION_KERNELS.keys()) + [ORDERED_ALGORITHM])


# ============================================================================
# Preprocessing
# ============================================================================

def adjust_brightness_contrast(rgb: np.ndarray, brightness: float, contrast: float) -> np.ndarray:
    """
    Apply brightness then contrast, both in percent (100 = unchanged).

    Brightness scales values; contrast scales the distance from mid-gray.
    Each step clamps to 0-255.

    Args:
        rgb: Float array of channel values

    Returns:
        Float array of integral values in 0-255
    """
    if brightness < 0 or contrast < 0:
        raise ParameterError(
            f"brightness and contrast must be >= 0, got {brightness} and {contrast}"
        )
    out = np.clip(rgb * (brightness / 100.0), 0, CHANNEL_MAX)
    out = np.clip((out - CHANNEL_MAX / 2) * (contrast / 100.0) + CHANNEL_MAX / 2, 0, CHANNEL_MAX)
    return round_half_up(out)


def grayscale_levels(buffer: PixelBuffer, brightness: float = 100.0, contrast: float = 100.0) -> np.ndarray:
    """
    Rounded luminance Y = round(0.299R + 0.587G + 0.114B) for every pixel.

    Returns:
        Float array of shape (height, width) holding integers 0-255
    """
    if brightness == 100 and contrast == 100:
        return round_half_up(luminance(buffer))

    rgba = buffer.to_array().astype(np.float64)
    rgb = adjust_brightness_contrast(rgba[..., :3], brightness, contrast)
    gray = LUMA_RED * rgb[..., 0] + LUMA_GREEN * rgb[..., 1] + LUMA_BLUE * rgb[..., 2]
    return round_half_up(gray)


def _gray_to_buffer(gray: Any, width: int, height: int) -> PixelBuffer:
    values = np.asarray(gray, dtype=np.uint8).reshape(height, width)
    out = np.empty((height, width, CHANNELS), dtype=np.uint8)
    out[..., 0] = values
    out[..., 1] = values
    out[..., 2] = values
    out[..., 3] = OPAQUE
    return PixelBuffer.from_array(out)


# ============================================================================
# Error Diffusion
# ============================================================================

def apply_error_diffusion(
    buffer: PixelBuffer,
    levels: int = DEFAULT_DITHER_LEVELS,
    kernel: str = "floyd-steinberg",
    serpentine: bool = False,
    brightness: float = 100.0,
    contrast: float = 100.0,
) -> PixelBuffer:
    """
    Dither by diffusing each pixel's quantization error to unvisited neighbors.

    Pixels are visited in row-major order. With serpentine=True odd rows run
    right to left and the kernel is mirrored horizontally.

    Args:
        buffer: Source pixels (not modified)
        levels: Number of gray levels (2-256)
        kernel: Diffusion kernel name (see DIFFUSION_KERNELS)
        serpentine: Alternate scan direction per row

    Returns:
        New opaque grayscale PixelBuffer

    Raises:
        ParameterError: If levels or kernel is invalid
    """
    levels = validate_levels(levels)
    if kernel not in DIFFUSION_KERNELS:
        raise ParameterError(
            f"Unknown diffusion kernel: {kernel}. "
            f"Valid kernels: {', '.join(sorted(DIFFUSION_KERNELS))}"
        )
    weights = DIFFUSION_KERNELS[kernel]

    width, height = buffer.width, buffer.height
    work = grayscale_levels(buffer, brightness, contrast).ravel().tolist()
    result = [0] * (width * height)

    for y in range(height):
        reverse = serpentine and y % 2 == 1
        xs = range(width - 1, -1, -1) if reverse else range(width)
        for x in xs:
            i = y * width + x
            old = work[i]
            new = quantize_to_levels(old, levels)
            result[i] = new
            error = old - new
            if error == 0:
                continue

            for dx, dy, weight in weights:
                nx = x - dx if reverse else x + dx
                ny = y + dy
                if 0 <= nx < width and ny < height:
                    work[ny * width + nx] += error * weight

    logger.debug(f"Error diffusion ({kernel}) on {width}x{height}, levels={levels}")
    return _gray_to_buffer(result, width, height)


def apply_floyd_steinberg(buffer: PixelBuffer, levels: int = DEFAULT_DITHER_LEVELS) -> PixelBuffer:
    """Floyd-Steinberg error diffusion without serpentine scanning."""
    return apply_error_diffusion(buffer, levels, "floyd-steinberg", serpentine=False)


# ============================================================================
# Ordered Dithering
# ============================================================================

def bayer_thresholds(width: int, height: int) -> np.ndarray:
    """
    Per-pixel threshold offsets (m + 0.5) / 17 * 255 tiled over the image.

    Returns:
        Float array of shape (height, width)
    """
    matrix = (np.array(BAYER_4X4, dtype=np.float64) + 0.5) / BAYER_SCALE * CHANNEL_MAX
    reps_y = -(-height // 4)
    reps_x = -(-width // 4)
    return np.tile(matrix, (reps_y, reps_x))[:height, :width]


def apply_ordered_dither(
    buffer: PixelBuffer,
    levels: int = DEFAULT_DITHER_LEVELS,
    brightness: float = 100.0,
    contrast: float = 100.0,
) -> PixelBuffer:
    """
    Dither with the 4x4 Bayer matrix.

    Each pixel quantizes gray + threshold(x mod 4, y mod 4) - 127.

    Returns:
        New opaque grayscale PixelBuffer
    """
    levels = validate_levels(levels)
    gray = grayscale_levels(buffer, brightness, contrast)
    shifted = gray + bayer_thresholds(buffer.width, buffer.height) - ORDERED_BIAS
    result = quantize_to_levels(shifted, levels)

    logger.debug(f"Ordered dither on {buffer.width}x{buffer.height}, levels={levels}")
    return _gray_to_buffer(result, buffer.width, buffer.height)


# ============================================================================
# Dispatcher
# ============================================================================

def dither(
    buffer: PixelBuffer,
    algorithm: DitherAlgorithm = DEFAULT_DITHER_ALGORITHM,
    levels: int = DEFAULT_DITHER_LEVELS,
    serpentine: bool = False,
    brightness: float = 100.0,
    contrast: float = 100.0,
) -> PixelBuffer:
    """
    Dither a buffer to `levels` gray levels.

    Args:
        buffer: Source pixels (not modified)
        algorithm: 'floyd-steinberg', 'ordered', 'atkinson', 'stucki',
                   'burkes' or 'jarvis-judice-ninke'
        levels: Number of gray levels (2-256)
        serpentine: Alternate scan direction (error diffusion only)
        brightness: Pre-adjustment in percent (100 = unchanged)
        contrast: Pre-adjustment in percent (100 = unchanged)

    Returns:
        New opaque grayscale PixelBuffer (R == G == B)

    Raises:
        ParameterError: If buffer, algorithm or levels is invalid
    """
    if not isinstance(buffer, PixelBuffer):
        raise ParameterError(f"Expected PixelBuffer, got {type(buffer)}")

    algorithm = str(algorithm).strip().lower()
    levels = validate_levels(levels)

    if algorithm == ORDERED_ALGORITHM:
        return apply_ordered_dither(buffer, levels, brightness, contrast)

    if algorithm in DIFFUSION_KERNELS:
        return apply_error_diffusion(buffer, levels, algorithm, serpentine, brightness, contrast)

    raise ParameterError(
        f"Unknown dither algorithm: {algorithm}. "
        f"Valid algorithms: {', '.join(get_dither_algorithms())}"
    )


# ============================================================================
# Palette Dithering
# ============================================================================

def get_dither_palettes() -> List[str]:
    """Names of the built-in dither palettes."""
    return sorted(DITHER_PALETTES)


def _palette_color(color: Any) -> Tuple[int, int, int]:
    if isinstance(color, Swatch):
        return color.rgb
    try:
        rgb = tuple(int(c) for c in color)
    except (TypeError, ValueError) as e:
        raise ParameterError(f"palette colors must be RGB triples, got {color!r}") from e
    if len(rgb) != 3 or not all(0 <= c <= CHANNEL_MAX for c in rgb):
        raise ParameterError(f"palette colors must be RGB triples in 0-255, got {color!r}")
    return rgb


def resolve_palette(palette: Union[str, Sequence[Any]]) -> np.ndarray:
    """
    Turn a built-in palette name or a list of colors into a (k, 3) array.

    Colors may be (r, g, b) sequences or Swatches, so an extracted palette
    can be used directly.

    Raises:
        ParameterError: If the name is unknown, the list is empty or a color
                        is not an RGB triple in 0-255
    """
    if isinstance(palette, str):
        name = palette.strip().lower()
        if name not in DITHER_PALETTES:
            raise ParameterError(
                f"Unknown palette: {palette}. Valid palettes: {', '.join(get_dither_palettes())}"
            )
        palette = DITHER_PALETTES[name]

    colors = [_palette_color(color) for color in palette]
    if not colors:
        raise ParameterError("palette must contain at least one color")
    return np.array(colors, dtype=np.float64)


def dither_palette(
    buffer: PixelBuffer,
    palette: Union[str, Sequence[Any]],
    algorithm: DitherAlgorithm = DEFAULT_DITHER_ALGORITHM,
    serpentine: bool = False,
    brightness: float = 100.0,
    contrast: float = 100.0,
) -> PixelBuffer:
    """
    Dither a buffer in color to a fixed palette.

    Every pixel becomes the palette color nearest to it in squared RGB
    distance (the first listed color wins ties). Error diffusion spreads the
    per-channel error with the same kernels and scan order as dither().
    Ordered dithering adds (m + 0.5) / 17 * 255 - 128 to every channel
    before the lookup.

    Args:
        buffer: Source pixels (not modified)
        palette: 'bw', 'gameboy', 'cga', 'c64', or a list of RGB triples or Swatches
        algorithm: Any name from get_dither_algorithms()
        serpentine: Alternate scan direction (error diffusion only)
        brightness: Pre-adjustment in percent (100 = unchanged)
        contrast: Pre-adjustment in percent (100 = unchanged)

    Returns:
        New opaque PixelBuffer whose colors all come from the palette

    Raises:
        ParameterError: If buffer, palette or algorithm is invalid
    """
    if not isinstance(buffer, PixelBuffer):
        raise ParameterError(f"Expected PixelBuffer, got {type(buffer)}")

    colors = resolve_palette(palette)
    algorithm = str(algorithm).strip().lower()
    if algorithm != ORDERED_ALGORITHM and algorithm not in DIFFUSION_KERNELS:
        raise ParameterError(
            f"Unknown dither algorithm: {algorithm}. "
            f"Valid algorithms: {', '.join(get_dither_algorithms())}"
        )

    width, height = buffer.width, buffer.height
    rgb = buffer.to_array()[..., :3].astype(np.float64)
    rgb = adjust_brightness_contrast(rgb, brightness, contrast)

    if algorithm == ORDERED_ALGORITHM:
        offsets = bayer_thresholds(width, height) - PALETTE_ORDERED_BIAS
        shifted = rgb + offsets[..., None]
        indices = nearest_color_indices(shifted.reshape(-1, 3), colors)
    else:
        indices = _diffuse_to_palette(rgb, colors, DIFFUSION_KERNELS[algorithm], serpentine)

    out = np.empty((height * width, CHANNELS), dtype=np.uint8)
    out[:, :3] = colors[indices].astype(np.uint8)
    out[:, 3] = OPAQUE

    logger.debug(
        f"Palette dither ({algorithm}) on {width}x{height} with {len(colors)} colors"
    )
    return PixelBuffer.from_array(out.reshape(height, width, CHANNELS))


def _diffuse_to_palette(
    rgb: np.ndarray,
    colors: np.ndarray,
    weights: Sequence[Tuple[int, int, float]],
    serpentine: bool,
) -> np.ndarray:
    height, width = rgb.shape[:2]
    work = rgb.reshape(-1, 3).copy()
    indices = np.empty(width * height, dtype=np.int64)

    for y in range(height):
        reverse = serpentine and y % 2 == 1
        xs = range(width - 1, -1, -1) if reverse else range(width)
        for x in xs:
            i = y * width + x
            old = work[i]
            diff = colors - old
            index = int(np.einsum("kc,kc->k", diff, diff).argmin())
            indices[i] = index
            error = old - colors[index]
            if not error.any():
                continue

            for dx, dy, weight in weights:
                nx = x - dx if reverse else x + dx
                ny = y + dy
                if 0 <= nx < width and ny < height:
                    work[ny * width + nx] += error * weight

    return indices
