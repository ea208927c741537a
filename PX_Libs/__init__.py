"""
PX_Libs - Pixel Lab Library Modules

This package contains the raster processing core of Pixel Lab,
organized into specialized sub-packages:

- ImageEditingLib: Pixel buffers and the pixel transforms (palette, dither, cartoon, retouch)
- MetadataLib: EXIF metadata decoding for JPEG byte streams
- NodesLib: Named node executors wrapping the operations for pipelines
"""

__version__ = "0.1.0"
