"""
Cartoon Filter Operations.

Stylizes an image in four steps, after an optional saturation adjustment:
- Box blur: simplifies detail (edge-clamped, no wraparound)
- Sobel edges: gradient magnitude of the blurred luminance
- Posterize: flattens each blurred channel to a few levels
- Ink: darkens posterized colors where edges are strong

The pipeline has no randomness: the same input and parameters always give
byte-identical output.

Example:
    >>> from PX_Libs.ImageEditingLib.image_editing_ops import load_pixel_buffer
    >>> buffer = load_pixel_buffer("photo.jpg")
    >>>
    >>> cartoon = stylize(buffer, levels=6, edge_threshold=40, blur_radius=2)
    >>>
    >>> # Heavier ink lines
    >>> inked = stylize(buffer, ink_strength=1.0, edge_thickness=2.0)
"""

import logging

import numpy as np
from PIL import ImageEnhance

from PX_Libs.constants import (
    CHANNEL_MAX,
    DEFAULT_BLUR_RADIUS,
    DEFAULT_CARTOON_LEVELS,
    DEFAULT_EDGE_THICKNESS,
    DEFAULT_EDGE_THRESHOLD,
    DEFAULT_INK_STRENGTH,
    DEFAULT_SATURATION,
    LUMA_BLUE,
    LUMA_GREEN,
    LUMA_RED,
    MAX_BLUR_RADIUS,
    OPAQUE,
    SOBEL_X,
    SOBEL_Y,
)
from PX_Libs.errors import ParameterError
from PX_Libs.ImageEditingLib.image_editing_ops import (
    quantize_to_levels,
    round_half_up,
    validate_levels,
)
from PX_Libs.ImageEditingLib.image_models import PixelBuffer

logger = logging.getLogger(__name__)


# ============================================================================
# Box Blur
# ============================================================================

def box_blur(rgba: np.ndarray, radius: int) -> np.ndarray:
    """
    Average R, G and B over a (2r+1) x (2r+1) window around each pixel.

    Window coordinates are clamped to the image edges. Alpha is copied.

    Args:
        rgba: uint8 array of shape (height, width, 4)
        radius: Window radius; 0 returns a copy

    Returns:
        uint8 array of the same shape, averages rounded half up
    """
    if radius < 0:
        raise ParameterError(f"blur radius must be >= 0, got {radius}")
    if radius == 0:
        return rgba.copy()

    height, width = rgba.shape[:2]
    padded = np.pad(
        rgba[..., :3].astype(np.int64),
        ((radius, radius), (radius, radius), (0, 0)),
        mode="edge",
    )
    # Summed-area table with a zero row/column in front
    table = np.zeros((padded.shape[0] + 1, padded.shape[1] + 1, 3), dtype=np.int64)
    table[1:, 1:] = padded.cumsum(axis=0).cumsum(axis=1)

    side = 2 * radius + 1
    sums = (
        table[side:side + height, side:side + width]
        - table[:height, side:side + width]
        - table[side:side + height, :width]
        + table[:height, :width]
    )

    out = rgba.copy()
    out[..., :3] = round_half_up(sums / float(side * side)).astype(np.uint8)
    return out


# ============================================================================
# Sobel Edges
# ============================================================================

def sobel_magnitude(rgba: np.ndarray) -> np.ndarray:
    """
    Gradient magnitude sqrt(Gx^2 + Gy^2) of the luminance, clamped to 0-255.

    Border rows and columns are left at zero.

    Returns:
        Float array of shape (height, width)
    """
    height, width = rgba.shape[:2]
    magnitude = np.zeros((height, width), dtype=np.float64)
    if height < 3 or width < 3:
        return magnitude

    rgb = rgba[..., :3].astype(np.float64)
    gray = LUMA_RED * rgb[..., 0] + LUMA_GREEN * rgb[..., 1] + LUMA_BLUE * rgb[..., 2]

    gx = np.zeros((height - 2, width - 2), dtype=np.float64)
    gy = np.zeros((height - 2, width - 2), dtype=np.float64)
    for ky in range(3):
        for kx in range(3):
            window = gray[ky:ky + height - 2, kx:kx + width - 2]
            gx += SOBEL_X[ky][kx] * window
            gy += SOBEL_Y[ky][kx] * window

    magnitude[1:-1, 1:-1] = np.clip(np.sqrt(gx * gx + gy * gy), 0, CHANNEL_MAX)
    return magnitude


# ============================================================================
# Posterize
# ============================================================================

def posterize(rgba: np.ndarray, levels: int) -> np.ndarray:
    """
    Snap R, G and B independently to `levels` evenly spaced values.

    Returns:
        uint8 array of the same shape; alpha copied
    """
    levels = validate_levels(levels)
    out = rgba.copy()
    out[..., :3] = quantize_to_levels(rgba[..., :3].astype(np.float64), levels).astype(np.uint8)
    return out


def adjust_saturation(buffer: PixelBuffer, saturation: float) -> np.ndarray:
    """
    Scale color saturation by a percentage with Pillow's ImageEnhance.Color.

    Returns:
        uint8 array of shape (height, width, 3)
    """
    image = buffer.to_image().convert("RGB")
    enhanced = ImageEnhance.Color(image).enhance(saturation / 100.0)
    return np.asarray(enhanced, dtype=np.uint8)


# ============================================================================
# Cartoon Pipeline
# ============================================================================

def stylize(
    buffer: PixelBuffer,
    levels: int = DEFAULT_CARTOON_LEVELS,
    edge_threshold: int = DEFAULT_EDGE_THRESHOLD,
    blur_radius: int = DEFAULT_BLUR_RADIUS,
    ink_strength: float = DEFAULT_INK_STRENGTH,
    edge_thickness: float = DEFAULT_EDGE_THICKNESS,
    saturation: float = DEFAULT_SATURATION,
) -> PixelBuffer:
    """
    Produce a cartoon-style copy of the buffer.

    Where the edge magnitude e exceeds edge_threshold each posterized channel
    is multiplied by 1 - ink_strength * (e / 255) * edge_thickness.

    Args:
        buffer: Source pixels (not modified)
        levels: Posterize levels per channel (2-256)
        edge_threshold: Minimum edge magnitude that gets ink (0-255)
        blur_radius: Box blur radius (0-50, 0 = no blur)
        ink_strength: Darkening strength (0-1)
        edge_thickness: Ink multiplier (> 0)
        saturation: Color saturation in percent applied before the blur
                    (100 = unchanged, 0 = grayscale)

    Returns:
        New opaque PixelBuffer

    Raises:
        ParameterError: If any parameter is out of range
    """
    if not isinstance(buffer, PixelBuffer):
        raise ParameterError(f"Expected PixelBuffer, got {type(buffer)}")

    levels = validate_levels(levels)
    if not 0 <= edge_threshold <= CHANNEL_MAX:
        raise ParameterError(f"edge_threshold must be 0-255, got {edge_threshold}")
    if isinstance(blur_radius, bool) or not isinstance(blur_radius, int):
        raise ParameterError(f"blur_radius must be an int, got {type(blur_radius)}")
    if not 0 <= blur_radius <= MAX_BLUR_RADIUS:
        raise ParameterError(f"blur_radius must be 0-{MAX_BLUR_RADIUS}, got {blur_radius}")
    if not 0 <= ink_strength <= 1:
        raise ParameterError(f"ink_strength must be 0-1, got {ink_strength}")
    if edge_thickness <= 0:
        raise ParameterError(f"edge_thickness must be > 0, got {edge_thickness}")
    if saturation < 0:
        raise ParameterError(f"saturation must be >= 0, got {saturation}")

    rgba = buffer.to_array()
    if saturation != 100:
        rgba[..., :3] = adjust_saturation(buffer, saturation)
    blurred = box_blur(rgba, blur_radius)
    edges = sobel_magnitude(blurred)
    poster = posterize(blurred, levels)

    colors = poster[..., :3].astype(np.float64)
    factor = 1.0 - ink_strength * (edges / CHANNEL_MAX) * edge_thickness
    inked = np.where(edges > edge_threshold, factor, 1.0)
    colors = round_half_up(np.clip(colors * inked[..., None], 0, CHANNEL_MAX))

    out = np.empty_like(rgba)
    out[..., :3] = colors.astype(np.uint8)
    out[..., 3] = OPAQUE

    logger.debug(
        f"Cartoonized {buffer.width}x{buffer.height}: levels={levels}, "
        f"threshold={edge_threshold}, radius={blur_radius}, "
        f"edge pixels={int(np.count_nonzero(edges > edge_threshold))}"
    )
    return PixelBuffer.from_array(out)
