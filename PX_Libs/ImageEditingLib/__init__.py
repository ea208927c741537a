"""
ImageEditingLib - Core pixel processing functionality

This module provides the pixel buffer model and the pixel transforms
(palette extraction, dithering, cartoon stylization, retouching)
for the Pixel Lab project.
"""

from PX_Libs.ImageEditingLib.image_models import (
    BrushStroke,
    Palette,
    PixelBuffer,
    Point,
    RgbaColor,
    Swatch,
)
from PX_Libs.ImageEditingLib.image_editing_ops import (
    load_pixel_buffer,
    save_pixel_buffer,
    save_pixel_buffers,
)
from PX_Libs.ImageEditingLib.color_quantizer import (
    ColorQuantizer,
    extract_palette,
    map_to_palette,
    palette_harmonies,
    palette_to_css,
    palette_to_json,
    sort_palette,
)
from PX_Libs.ImageEditingLib.dither_filter import (
    dither,
    dither_palette,
    get_dither_algorithms,
    get_dither_palettes,
)
from PX_Libs.ImageEditingLib.cartoon_filter import stylize
from PX_Libs.ImageEditingLib.retouch_engine import RetouchSession

__all__ = [
    "BrushStroke",
    "Palette",
    "PixelBuffer",
    "Point",
    "RgbaColor",
    "Swatch",
    "load_pixel_buffer",
    "save_pixel_buffer",
    "save_pixel_buffers",
    "ColorQuantizer",
    "extract_palette",
    "map_to_palette",
    "palette_harmonies",
    "palette_to_css",
    "palette_to_json",
    "sort_palette",
    "dither",
    "dither_palette",
    "get_dither_algorithms",
    "get_dither_palettes",
    "stylize",
    "RetouchSession",
]
