"""
Color Palette Extraction.

Reduces an image to a small palette with k-means clustering over a spatial
subsample of its pixels, then offers palette utilities:
- Sorting by population, hue, luminance or vibrancy
- Color harmonies derived from the dominant swatch
- WCAG contrast ratio between two swatches
- Mapping every pixel to its nearest palette color
- Export as a JSON list of hex codes or CSS custom properties

Centroid seeding is random. Pass a seed (or a random.Random) to pin results.

Example:
    >>> from PX_Libs.ImageEditingLib.image_editing_ops import load_pixel_buffer
    >>> buffer = load_pixel_buffer("photo.jpg")
    >>>
    >>> palette = extract_palette(buffer, k=6, seed=7)
    >>> [swatch.hex for swatch in sort_palette(palette, "luminance")]
    >>>
    >>> preview = map_to_palette(buffer, palette)
"""

from colorsys import hls_to_rgb, rgb_to_hls
import json
import logging
import random
from typing import List, Optional, Tuple, Union

import numpy as np

from PX_Libs.constants import (
    CHANNELS,
    HARMONY_MODES,
    KMEANS_ITERATIONS,
    MAX_PALETTE_SIZE,
    MIN_PALETTE_SIZE,
    OPAQUE,
    PALETTE_MIN_DISTANCE_SQ,
    PALETTE_SORT_MODES,
    SAMPLE_GRID_DIVISOR,
)
from PX_Libs.errors import ParameterError
from PX_Libs.ImageEditingLib.image_editing_ops import round_half_up
from PX_Libs.ImageEditingLib.image_models import Palette, PixelBuffer, Swatch

logger = logging.getLogger(__name__)

# Pixel x color pairs compared per chunk when mapping to a palette
MAP_CHUNK_ELEMENTS = 1 << 20


# ============================================================================
# K-Means Extraction
# ============================================================================

class ColorQuantizer:
    """
    K-means palette extractor.

    Example:
        >>> quantizer = ColorQuantizer(seed=42)
        >>> palette = quantizer.extract(buffer, k=8)
        >>> len(palette) <= 8
        True
    """

    def __init__(
        self,
        seed: Union[int, random.Random, None] = None,
        iterations: int = KMEANS_ITERATIONS,
    ) -> None:
        if isinstance(seed, random.Random):
            self._rng = seed
        else:
            self._rng = random.Random(seed)

        if iterations < 1:
            raise ParameterError(f"iterations must be >= 1, got {iterations}")
        self.iterations = iterations

    @staticmethod
    def sampling_step(width: int, height: int) -> int:
        """Grid stride keeping roughly 10,000 samples whatever the resolution."""
        return max(1, min(width, height) // SAMPLE_GRID_DIVISOR)

    def collect_samples(self, buffer: PixelBuffer) -> np.ndarray:
        """
        Take one RGB sample per grid cell.

        Returns:
            Int array of shape (n, 3)
        """
        step = self.sampling_step(buffer.width, buffer.height)
        rgba = buffer.to_array()
        grid = rgba[::step, ::step, :3]
        return grid.reshape(-1, 3).astype(np.int64)

    def extract(self, buffer: PixelBuffer, k: int) -> Palette:
        """
        Compute a palette of at most k practically-distinct colors.

        Args:
            buffer: Source pixels (not modified)
            k: Requested palette size (1-256)

        Returns:
            Between 1 and k swatches, in centroid order

        Raises:
            ParameterError: If k is not an int in range or buffer is not a PixelBuffer
        """
        if not isinstance(buffer, PixelBuffer):
            raise ParameterError(f"Expected PixelBuffer, got {type(buffer)}")
        if isinstance(k, bool) or not isinstance(k, int):
            raise ParameterError(f"k must be an int, got {type(k)}")
        if not MIN_PALETTE_SIZE <= k <= MAX_PALETTE_SIZE:
            raise ParameterError(f"k must be {MIN_PALETTE_SIZE}-{MAX_PALETTE_SIZE}, got {k}")

        samples = self.collect_samples(buffer)
        seed_indices = self._rng.sample(range(len(samples)), min(k, len(samples)))
        centroids = samples[seed_indices].copy()

        for _ in range(self.iterations):
            labels = self._assign(samples, centroids)
            centroids = self._update(samples, labels, centroids)

        labels = self._assign(samples, centroids)
        populations = np.bincount(labels, minlength=len(centroids))

        palette = self._deduplicate(centroids, populations)
        logger.debug(
            f"Extracted {len(palette)} swatches from {len(samples)} samples (k={k})"
        )
        return palette

    @staticmethod
    def _assign(samples: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        # argmin returns the first minimum, so ties go to the lower centroid
        diff = samples[:, None, :] - centroids[None, :, :]
        distances = np.einsum("nkc,nkc->nk", diff, diff)
        return np.argmin(distances, axis=1)

    @staticmethod
    def _update(samples: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        updated = centroids.copy()
        counts = np.bincount(labels, minlength=len(centroids))
        for channel in range(3):
            sums = np.bincount(labels, weights=samples[:, channel], minlength=len(centroids))
            filled = counts > 0
            updated[filled, channel] = round_half_up(sums[filled] / counts[filled]).astype(np.int64)
        return updated

    @staticmethod
    def _deduplicate(centroids: np.ndarray, populations: np.ndarray) -> Palette:
        kept: List[List[int]] = []
        for centroid, population in zip(centroids.tolist(), populations.tolist()):
            for entry in kept:
                dr = centroid[0] - entry[0]
                dg = centroid[1] - entry[1]
                db = centroid[2] - entry[2]
                if dr * dr + dg * dg + db * db <= PALETTE_MIN_DISTANCE_SQ:
                    entry[3] += population
                    break
            else:
                kept.append([centroid[0], centroid[1], centroid[2], population])

        return [Swatch(int(r), int(g), int(b), int(pop)) for r, g, b, pop in kept]


def extract_palette(buffer: PixelBuffer, k: int, seed: Optional[int] = None) -> Palette:
    """
    Extract a palette of at most k colors.

    Convenience wrapper around ColorQuantizer(seed).extract(buffer, k).
    """
    return ColorQuantizer(seed=seed).extract(buffer, k)


# ============================================================================
# Palette Utilities
# ============================================================================

def _hls(swatch: Swatch) -> Tuple[float, float, float]:
    return rgb_to_hls(swatch.r / 255.0, swatch.g / 255.0, swatch.b / 255.0)


def _swatch_from_hls(h: float, l: float, s: float) -> Swatch:
    r, g, b = hls_to_rgb(h % 1.0, l, s)
    return Swatch(round_half_up(r * 255), round_half_up(g * 255), round_half_up(b * 255))


def sort_palette(palette: Palette, mode: str = "population") -> Palette:
    """
    Return the palette sorted for display.

    Args:
        palette: Swatches to sort (not modified)
        mode: 'population' (most common first), 'hue', 'luminance' (dark first)
              or 'vibrancy' (saturation * lightness, most vivid first)

    Raises:
        ParameterError: If mode is unknown
    """
    mode = str(mode).lower()
    if mode not in PALETTE_SORT_MODES:
        raise ParameterError(
            f"Unknown sort mode: {mode}. Valid modes: {', '.join(PALETTE_SORT_MODES)}"
        )

    if mode == "population":
        return sorted(palette, key=lambda s: s.population, reverse=True)
    if mode == "hue":
        return sorted(palette, key=lambda s: _hls(s)[0])
    if mode == "luminance":
        return sorted(palette, key=lambda s: _hls(s)[1])
    return sorted(palette, key=lambda s: _hls(s)[2] * _hls(s)[1], reverse=True)


def palette_harmonies(palette: Palette, mode: str) -> Palette:
    """
    Generate harmony colors around the most populated swatch.

    Hue rotations: complementary (+0.5), analogous (+/-0.08),
    triadic (+0.33, +0.66), tetradic (+0.25, +0.5, +0.75).

    Returns:
        The generated swatches only (population 0); empty for 'none' or an
        empty palette
    """
    mode = str(mode).lower()
    if mode not in HARMONY_MODES:
        raise ParameterError(f"Unknown harmony mode: {mode}. Valid modes: {', '.join(HARMONY_MODES)}")
    if mode == "none" or not palette:
        return []

    dominant = sort_palette(palette, "population")[0]
    h, l, s = _hls(dominant)
    shifts = {
        "complementary": (0.5,),
        "analogous": (0.08, -0.08),
        "triadic": (0.33, 0.66),
        "tetradic": (0.25, 0.5, 0.75),
    }[mode]
    return [_swatch_from_hls(h + shift, l, s) for shift in shifts]


def contrast_ratio(first: Swatch, second: Swatch) -> float:
    """WCAG 2 contrast ratio between two swatches (1.0 to 21.0)."""
    def relative_luminance(swatch: Swatch) -> float:
        channels = []
        for value in swatch.rgb:
            v = value / 255.0
            channels.append(v / 12.92 if v <= 0.03928 else ((v + 0.055) / 1.055) ** 2.4)
        return 0.2126 * channels[0] + 0.7152 * channels[1] + 0.0722 * channels[2]

    l1 = relative_luminance(first) + 0.05
    l2 = relative_luminance(second) + 0.05
    return max(l1, l2) / min(l1, l2)


def map_to_palette(buffer: PixelBuffer, palette: Palette) -> PixelBuffer:
    """
    Replace every pixel with its nearest palette color (opaque output).

    Raises:
        ParameterError: If the palette is empty
    """
    if not palette:
        raise ParameterError("palette must contain at least one swatch")

    rgba = buffer.to_array()
    colors = np.array([s.rgb for s in palette], dtype=np.int64)
    flat = rgba[..., :3].reshape(-1, 3).astype(np.int64)
    nearest = nearest_color_indices(flat, colors)

    out = np.empty((flat.shape[0], CHANNELS), dtype=np.uint8)
    out[:, :3] = colors[nearest]
    out[:, 3] = OPAQUE
    return PixelBuffer.from_array(out.reshape(buffer.height, buffer.width, CHANNELS))


def nearest_color_indices(flat: np.ndarray, colors: np.ndarray) -> np.ndarray:
    """
    Index of the nearest color (squared RGB distance) for each row of `flat`.

    Rows are compared in chunks sized so that each chunk holds about
    MAP_CHUNK_ELEMENTS pixel/color pairs, whatever the palette size.
    Ties go to the lower index.
    """
    chunk = max(1, MAP_CHUNK_ELEMENTS // max(1, len(colors)))
    nearest = np.empty(flat.shape[0], dtype=np.int64)
    for start in range(0, flat.shape[0], chunk):
        stop = start + chunk
        nearest[start:stop] = ColorQuantizer._assign(flat[start:stop], colors)
    return nearest


# ============================================================================
# Export
# ============================================================================

def palette_to_json(palette: Palette, indent: int = 2) -> str:
    """JSON array of the swatches' hex codes, in palette order."""
    return json.dumps([swatch.hex for swatch in palette], indent=indent)


def palette_to_css(palette: Palette) -> str:
    """
    One CSS custom property per swatch, numbered from 1.

    Example:
        >>> print(palette_to_css([Swatch(255, 0, 0), Swatch(0, 0, 255)]))
        --color-1: #FF0000;
        --color-2: #0000FF;
    """
    return "\n".join(f"--color-{i}: {swatch.hex};" for i, swatch in enumerate(palette, start=1))
