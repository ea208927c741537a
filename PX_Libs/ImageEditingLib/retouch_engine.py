"""
Interactive Retouching.

A RetouchSession edits one PixelBuffer in place in response to pointer
positions, one dab per pointer-move event:
- Blur brush: box-averages pixels inside a circular brush
- Clone stamp: copies pixels from a source point at a fixed offset
- Heal brush: replaces each pixel with its best-matching nearby sample
- Smudge: drags the previous dab's pixels to the current position

Blur, clone and heal sample from a snapshot taken when the stroke began, so
dabs that overlap inside one drag do not feed on each other's output. Smudge
reads the live buffer, which is what carries paint along the drag. Every
tool takes an opacity in percent that blends its result over the existing
pixels. Each finished stroke can be undone.

Dabs write straight into the buffer's bytearray through a numpy view, so a
dab costs time proportional to the brush area, not the image.

Example:
    >>> session = RetouchSession(buffer)
    >>>
    >>> # Blur along a drag
    >>> session.begin_stroke()
    >>> for point in [(40, 40), (42, 41), (44, 42)]:
    ...     session.apply_blur(point, radius=8, strength=3)
    >>> session.end_stroke()
    >>>
    >>> # Clone from (10, 10) onto (60, 60) at half opacity
    >>> session.set_clone_source((10, 10))
    >>> session.apply_stroke([(60, 60)], tool="clone", radius=6, opacity=50)
    >>>
    >>> result = session.export()
"""

import logging
import math
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np

from PX_Libs.constants import (
    CHANNELS,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_OPACITY,
    HEAL_DISTANCE_PENALTY,
    HEAL_SEARCH_STEP,
    RETOUCH_TOOLS,
)
from PX_Libs.errors import BoundsError, ParameterError
from PX_Libs.ImageEditingLib.image_editing_ops import round_half_up
from PX_Libs.ImageEditingLib.image_models import BrushStroke, PixelBuffer, Point

logger = logging.getLogger(__name__)


def circular_mask(radius: int) -> np.ndarray:
    """
    Boolean (2r+1) x (2r+1) mask of offsets with dx^2 + dy^2 <= r^2.
    """
    offsets = np.arange(-radius, radius + 1)
    dy, dx = np.meshgrid(offsets, offsets, indexing="ij")
    return dx * dx + dy * dy <= radius * radius


def _check_point(point: Sequence[int], name: str) -> Point:
    if len(point) != 2:
        raise ParameterError(f"{name} must be an (x, y) pair, got {point}")
    return (int(point[0]), int(point[1]))


def _check_opacity(opacity: Any) -> float:
    if isinstance(opacity, bool) or not isinstance(opacity, (int, float)):
        raise ParameterError(f"opacity must be a number, got {type(opacity)}")
    if not 0 <= opacity <= 100:
        raise ParameterError(f"opacity must be 0-100, got {opacity}")
    return float(opacity)


def _blend(current: np.ndarray, source: np.ndarray, opacity: float) -> np.ndarray:
    """Mix source over current by opacity percent, rounding half up."""
    if opacity >= 100:
        return source
    weight = opacity / 100.0
    mixed = current.astype(np.float64) * (1.0 - weight) + source.astype(np.float64) * weight
    return round_half_up(mixed).astype(np.uint8)


class RetouchSession:
    """
    Stateful retouch session over one buffer.

    The session mutates `buffer` in place. Loading a new image means
    creating a new session.
    """

    def __init__(self, buffer: PixelBuffer, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if not isinstance(buffer, PixelBuffer):
            raise ParameterError(f"Expected PixelBuffer, got {type(buffer)}")
        if history_limit < 0:
            raise ParameterError(f"history_limit must be >= 0, got {history_limit}")

        self.buffer = buffer
        self.history_limit = history_limit
        self._clone_source: Optional[Point] = None
        self._snapshot: Optional[np.ndarray] = None
        self._stroke_origin: Optional[Point] = None
        self._last_point: Optional[Point] = None
        self._undo_stack: List[bytes] = []
        self._redo_stack: List[bytes] = []

    # ------------------------------------------------------------------
    # Stroke lifecycle
    # ------------------------------------------------------------------

    @property
    def in_stroke(self) -> bool:
        return self._snapshot is not None

    @property
    def clone_source(self) -> Optional[Point]:
        return self._clone_source

    def begin_stroke(self) -> None:
        """
        Start a drag: snapshot the buffer and record it for undo.

        A stroke already in progress is ended first.
        """
        if self.in_stroke:
            self.end_stroke()

        self._snapshot = self._view().copy()
        self._stroke_origin = None
        self._last_point = None
        self._push_undo(bytes(self.buffer.pixels))

    def end_stroke(self) -> None:
        self._snapshot = None
        self._stroke_origin = None
        self._last_point = None

    def apply_stroke(
        self,
        stroke: BrushStroke,
        tool: str,
        radius: int,
        strength: int = 1,
        aligned: bool = False,
        opacity: float = DEFAULT_OPACITY,
    ) -> None:
        """
        Apply a whole pointer drag.

        Args:
            stroke: Ordered (x, y) positions
            tool: 'blur', 'clone', 'heal' or 'smudge'
            radius: Brush radius in pixels (>= 1)
            strength: Blur neighborhood radius (blur only, >= 1)
            aligned: Move the clone source with the pointer (clone only)
            opacity: Blend of each dab over the existing pixels, 0-100

        Raises:
            ParameterError: If tool is unknown or parameters are invalid
        """
        tool = str(tool).lower()
        if tool not in RETOUCH_TOOLS:
            raise ParameterError(f"Unknown tool: {tool}. Valid tools: {', '.join(RETOUCH_TOOLS)}")
        self._check_radius(radius)
        opacity = _check_opacity(opacity)
        if tool == "clone" and self._clone_source is None:
            raise ParameterError("clone source not set; call set_clone_source() first")

        self.begin_stroke()
        try:
            for point in stroke:
                if tool == "blur":
                    self.apply_blur(point, radius, strength, opacity)
                elif tool == "clone":
                    self.apply_clone(point, radius, aligned=aligned, opacity=opacity)
                elif tool == "heal":
                    self.apply_heal(point, radius, opacity)
                else:
                    self.apply_smudge(point, radius, opacity)
        finally:
            self.end_stroke()

        logger.debug(f"Applied {tool} stroke with {len(stroke)} dabs, radius={radius}")

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def apply_blur(
        self, center: Point, radius: int, strength: int, opacity: float = DEFAULT_OPACITY
    ) -> None:
        """
        Replace pixels inside the brush circle with their box average.

        The average covers a (2*strength+1)^2 neighborhood of the pre-stroke
        snapshot, clamped to the buffer edges. Alpha is left unchanged.

        Raises:
            ParameterError: If radius or strength is < 1, or opacity is not 0-100
        """
        cx, cy = _check_point(center, "center")
        self._check_radius(radius)
        if isinstance(strength, bool) or not isinstance(strength, int) or strength < 1:
            raise ParameterError(f"strength must be an int >= 1, got {strength}")
        opacity = _check_opacity(opacity)

        if not self.in_stroke:
            self._single_dab(self.apply_blur, (cx, cy), radius, strength, opacity)
            return

        snapshot = self._snapshot
        region = self._brush_region(cx, cy, radius)
        if region is None:
            return
        x0, y0, x1, y1, mask = region

        height, width = snapshot.shape[:2]
        rows = np.clip(np.arange(y0 - strength, y1 + strength), 0, height - 1)
        cols = np.clip(np.arange(x0 - strength, x1 + strength), 0, width - 1)
        padded = snapshot[np.ix_(rows, cols)][..., :3].astype(np.int64)
        side = 2 * strength + 1
        sums = np.zeros((y1 - y0, x1 - x0, 3), dtype=np.int64)
        for ky in range(side):
            for kx in range(side):
                sums += padded[ky:ky + (y1 - y0), kx:kx + (x1 - x0)]
        means = round_half_up(sums / float(side * side)).astype(np.uint8)

        rgb = self._view()[y0:y1, x0:x1, :3]
        rgb[mask] = _blend(rgb[mask], means[mask], opacity)

    def set_clone_source(self, point: Point) -> None:
        """
        Set the clone stamp source.

        Raises:
            BoundsError: If the point lies outside the buffer
        """
        x, y = _check_point(point, "source")
        if not self.buffer.contains(x, y):
            raise BoundsError(
                f"clone source ({x}, {y}) outside {self.buffer.width}x{self.buffer.height} buffer"
            )
        self._clone_source = (x, y)
        self._stroke_origin = None

    def apply_clone(
        self,
        center: Point,
        radius: int,
        aligned: bool = False,
        opacity: float = DEFAULT_OPACITY,
    ) -> None:
        """
        Copy RGBA from source + (dest - center) for each pixel in the brush.

        Destination or source pixels outside the buffer are skipped. With
        aligned=True the source follows the pointer's movement since the
        first dab of the stroke.

        Raises:
            ParameterError: If no clone source is set, radius < 1 or opacity is not 0-100
        """
        cx, cy = _check_point(center, "center")
        self._check_radius(radius)
        opacity = _check_opacity(opacity)
        if self._clone_source is None:
            raise ParameterError("clone source not set; call set_clone_source() first")

        if not self.in_stroke:
            self._single_dab(self.apply_clone, (cx, cy), radius, aligned, opacity)
            return

        sx, sy = self._clone_source
        if aligned:
            if self._stroke_origin is None:
                self._stroke_origin = (cx, cy)
            sx += cx - self._stroke_origin[0]
            sy += cy - self._stroke_origin[1]

        region = self._brush_region(cx, cy, radius)
        if region is None:
            return
        dest_x, dest_y = self._brush_pixels(region)
        src_x = sx + (dest_x - cx)
        src_y = sy + (dest_y - cy)
        valid = self._inside(src_x, src_y)

        dest_x, dest_y = dest_x[valid], dest_y[valid]
        view = self._view()
        view[dest_y, dest_x] = _blend(
            view[dest_y, dest_x], self._snapshot[src_y[valid], src_x[valid]], opacity
        )

    def apply_heal(self, center: Point, radius: int, opacity: float = DEFAULT_OPACITY) -> None:
        """
        Replace each brush pixel with the closest-matching nearby pixel.

        Candidates lie on a grid of HEAL_SEARCH_STEP within 2 * radius of the
        pixel, excluding the pixel itself, and are read from the pre-stroke
        snapshot. A candidate scores its squared RGB distance to the pixel
        plus HEAL_DISTANCE_PENALTY times its offset length; the lowest score
        wins and the first one found wins ties. Alpha is left unchanged.

        Raises:
            ParameterError: If radius < 1 or opacity is not 0-100
        """
        cx, cy = _check_point(center, "center")
        self._check_radius(radius)
        opacity = _check_opacity(opacity)

        if not self.in_stroke:
            self._single_dab(self.apply_heal, (cx, cy), radius, opacity)
            return

        snapshot = self._snapshot
        region = self._brush_region(cx, cy, radius)
        if region is None:
            return
        dest_x, dest_y = self._brush_pixels(region)
        height, width = snapshot.shape[:2]
        target = snapshot[dest_y, dest_x, :3].astype(np.int64)

        best_score = np.full(dest_x.shape, np.inf)
        best_x = dest_x.copy()
        best_y = dest_y.copy()
        reach = 2 * radius
        for oy in range(-reach, reach + 1, HEAL_SEARCH_STEP):
            for ox in range(-reach, reach + 1, HEAL_SEARCH_STEP):
                if (ox == 0 and oy == 0) or ox * ox + oy * oy > reach * reach:
                    continue
                src_x = dest_x + ox
                src_y = dest_y + oy
                valid = self._inside(src_x, src_y)
                sample = snapshot[np.clip(src_y, 0, height - 1), np.clip(src_x, 0, width - 1), :3]
                diff = sample.astype(np.int64) - target
                score = (diff * diff).sum(axis=1) + HEAL_DISTANCE_PENALTY * math.hypot(ox, oy)
                better = valid & (score < best_score)
                best_score[better] = score[better]
                best_x[better] = src_x[better]
                best_y[better] = src_y[better]

        view = self._view()
        view[dest_y, dest_x, :3] = _blend(
            view[dest_y, dest_x, :3], snapshot[best_y, best_x, :3], opacity
        )

    def apply_smudge(self, center: Point, radius: int, opacity: float = DEFAULT_OPACITY) -> None:
        """
        Drag the pixels under the previous dab of the stroke to `center`.

        The first dab of a stroke only records the position. Later dabs blend
        the live buffer's RGBA at previous + (dest - center) over each brush
        pixel; sources outside the buffer are skipped.

        Raises:
            ParameterError: If radius < 1 or opacity is not 0-100
        """
        cx, cy = _check_point(center, "center")
        self._check_radius(radius)
        opacity = _check_opacity(opacity)

        if not self.in_stroke:
            self._single_dab(self.apply_smudge, (cx, cy), radius, opacity)
            return

        previous = self._last_point
        self._last_point = (cx, cy)
        if previous is None:
            return

        region = self._brush_region(cx, cy, radius)
        if region is None:
            return
        dest_x, dest_y = self._brush_pixels(region)
        src_x = dest_x + (previous[0] - cx)
        src_y = dest_y + (previous[1] - cy)
        valid = self._inside(src_x, src_y)

        dest_x, dest_y = dest_x[valid], dest_y[valid]
        view = self._view()
        source = view[src_y[valid], src_x[valid]]
        view[dest_y, dest_x] = _blend(view[dest_y, dest_x], source, opacity)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def undo(self) -> bool:
        """Restore the buffer to before the last stroke. Returns False if nothing to undo."""
        if not self._undo_stack:
            return False
        self.end_stroke()
        self._redo_stack.append(bytes(self.buffer.pixels))
        self.buffer.pixels[:] = self._undo_stack.pop()
        return True

    def redo(self) -> bool:
        if not self._redo_stack:
            return False
        self.end_stroke()
        self._undo_stack.append(bytes(self.buffer.pixels))
        self.buffer.pixels[:] = self._redo_stack.pop()
        return True

    def export(self) -> PixelBuffer:
        """Return a copy of the current result."""
        return self.buffer.copy()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _push_undo(self, state: bytes) -> None:
        self._redo_stack.clear()
        if self.history_limit == 0:
            return
        self._undo_stack.append(state)
        if len(self._undo_stack) > self.history_limit:
            self._undo_stack.pop(0)

    def _single_dab(self, tool: Callable[..., None], *args: Any) -> None:
        # A dab outside begin/end_stroke is its own one-dab stroke
        self.begin_stroke()
        try:
            tool(*args)
        finally:
            self.end_stroke()

    @staticmethod
    def _check_radius(radius: int) -> None:
        if isinstance(radius, bool) or not isinstance(radius, int) or radius < 1:
            raise ParameterError(f"radius must be an int >= 1, got {radius}")

    def _view(self) -> np.ndarray:
        # Writable (h, w, 4) view sharing memory with buffer.pixels
        return np.frombuffer(self.buffer.pixels, dtype=np.uint8).reshape(
            self.buffer.height, self.buffer.width, CHANNELS
        )

    def _inside(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        return (xs >= 0) & (xs < self.buffer.width) & (ys >= 0) & (ys < self.buffer.height)

    @staticmethod
    def _brush_pixels(region: Tuple[int, int, int, int, np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        """Absolute x and y coordinates of the masked pixels of a region."""
        x0, y0, _, _, mask = region
        ys, xs = np.nonzero(mask)
        return xs + x0, ys + y0

    def _brush_region(
        self, cx: int, cy: int, radius: int
    ) -> Optional[Tuple[int, int, int, int, np.ndarray]]:
        """Clip the brush square to the buffer; None when fully outside."""
        x0 = max(0, cx - radius)
        y0 = max(0, cy - radius)
        x1 = min(self.buffer.width, cx + radius + 1)
        y1 = min(self.buffer.height, cy + radius + 1)
        if x0 >= x1 or y0 >= y1:
            return None

        mask = circular_mask(radius)
        mx0 = x0 - (cx - radius)
        my0 = y0 - (cy - radius)
        return x0, y0, x1, y1, mask[my0:my0 + (y1 - y0), mx0:mx0 + (x1 - x0)]
