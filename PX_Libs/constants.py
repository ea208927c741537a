"""
Constants and configuration values for Pixel Lab.

This module centralizes all constant values, magic numbers, and
default parameters used throughout the processing core.
"""

# Pixel buffer layout
CHANNELS = 4
CHANNEL_MAX = 255
OPAQUE = 255

# Luminance weights (ITU-R BT.601)
LUMA_RED = 0.299
LUMA_GREEN = 0.587
LUMA_BLUE = 0.114

# Color quantizer
SAMPLE_GRID_DIVISOR = 100
KMEANS_ITERATIONS = 10
PALETTE_MIN_DISTANCE_SQ = 100
MIN_PALETTE_SIZE = 1
MAX_PALETTE_SIZE = 256
DEFAULT_PALETTE_SIZE = 8

# Palette sort / harmony modes
PALETTE_SORT_MODES = ("population", "hue", "luminance", "vibrancy")
HARMONY_MODES = ("none", "complementary", "analogous", "triadic", "tetradic")

# Dithering
MIN_LEVELS = 2
MAX_LEVELS = 256
DEFAULT_DITHER_LEVELS = 2
DEFAULT_DITHER_ALGORITHM = "floyd-steinberg"
ORDERED_ALGORITHM = "ordered"

BAYER_4X4 = (
    (0, 8, 2, 10),
    (12, 4, 14, 6),
    (3, 11, 1, 9),
    (15, 7, 13, 5),
)
BAYER_SCALE = 17
ORDERED_BIAS = 127
PALETTE_ORDERED_BIAS = 128

# Fixed dither palettes as RGB triples
GRAYSCALE_PALETTE = "grayscale"
DITHER_PALETTES = {
    "bw": ((0, 0, 0), (255, 255, 255)),
    "gameboy": ((15, 56, 15), (48, 98, 48), (139, 172, 15), (155, 188, 15)),
    "cga": ((0, 0, 0), (85, 255, 255), (255, 85, 255), (255, 255, 255)),
    "c64": (
        (0, 0, 0), (255, 255, 255), (136, 0, 0), (170, 255, 238),
        (204, 68, 204), (0, 204, 85), (0, 0, 170), (238, 238, 119),
        (221, 136, 85), (102, 68, 0), (255, 119, 119), (51, 51, 51),
        (119, 119, 119), (170, 255, 102), (0, 136, 255), (187, 187, 187),
    ),
}

# Error diffusion kernels as (dx, dy, weight)
DIFFUSION_KERNELS = {
    "floyd-steinberg": (
        (1, 0, 7 / 16), (-1, 1, 3 / 16), (0, 1, 5 / 16), (1, 1, 1 / 16),
    ),
    "atkinson": (
        (1, 0, 1 / 8), (2, 0, 1 / 8), (-1, 1, 1 / 8),
        (0, 1, 1 / 8), (1, 1, 1 / 8), (0, 2, 1 / 8),
    ),
    "stucki": (
        (1, 0, 8 / 42), (2, 0, 4 / 42),
        (-2, 1, 2 / 42), (-1, 1, 4 / 42), (0, 1, 8 / 42), (1, 1, 4 / 42), (2, 1, 2 / 42),
        (-2, 2, 1 / 42), (-1, 2, 2 / 42), (0, 2, 4 / 42), (1, 2, 2 / 42), (2, 2, 1 / 42),
    ),
    "burkes": (
        (1, 0, 8 / 32), (2, 0, 4 / 32),
        (-2, 1, 2 / 32), (-1, 1, 4 / 32), (0, 1, 8 / 32), (1, 1, 4 / 32), (2, 1, 2 / 32),
    ),
    "jarvis-judice-ninke": (
        (1, 0, 7 / 48), (2, 0, 5 / 48),
        (-2, 1, 3 / 48), (-1, 1, 5 / 48), (0, 1, 7 / 48), (1, 1, 5 / 48), (2, 1, 3 / 48),
        (-2, 2, 1 / 48), (-1, 2, 3 / 48), (0, 2, 5 / 48), (1, 2, 3 / 48), (2, 2, 1 / 48),
    ),
}

# Cartoonizer
DEFAULT_CARTOON_LEVELS = 6
DEFAULT_EDGE_THRESHOLD = 40
DEFAULT_BLUR_RADIUS = 2
DEFAULT_INK_STRENGTH = 0.7
DEFAULT_EDGE_THICKNESS = 1.0
DEFAULT_SATURATION = 100.0
MAX_BLUR_RADIUS = 50

SOBEL_X = (
    (-1, 0, 1),
    (-2, 0, 2),
    (-1, 0, 1),
)
SOBEL_Y = (
    (-1, -2, -1),
    (0, 0, 0),
    (1, 2, 1),
)

# Retouching
DEFAULT_BRUSH_RADIUS = 30
DEFAULT_BLUR_STRENGTH = 5
DEFAULT_HISTORY_LIMIT = 30
HEAL_SEARCH_STEP = 2
HEAL_DISTANCE_PENALTY = 0.1
DEFAULT_OPACITY = 100.0
RETOUCH_TOOLS = ("blur", "clone", "heal", "smudge")

# JPEG / EXIF container
JPEG_SOI = 0xFFD8
JPEG_EOI = 0xFFD9
JPEG_SOS = 0xFFDA
JPEG_APP1 = 0xFFE1
JPEG_TEM = 0xFF01
JPEG_RST_FIRST = 0xFFD0
JPEG_RST_LAST = 0xFFD7
EXIF_SIGNATURE = b"Exif\x00\x00"
TIFF_LITTLE_ENDIAN = b"II"
TIFF_BIG_ENDIAN = b"MM"
TIFF_MAGIC = 42
IFD_ENTRY_SIZE = 12

# File naming
OUTPUT_FILE_PREFIX = "modified_"
DEFAULT_OUTPUT_FORMAT = "PNG"
MAP_LINK_TEMPLATE = "https://www.google.com/maps?q={lat},{lon}"
