"""
MetadataLib - EXIF metadata decoding

This module decodes the EXIF block of JPEG byte streams into flat
tag -> value records and formats them for display.
"""

from PX_Libs.MetadataLib.exif_decoder import (
    MetadataRecord,
    decode_metadata,
    dms_to_decimal,
    find_exif_segment,
    parse_tiff_block,
    rational_to_float,
)
from PX_Libs.MetadataLib.exif_summary import (
    gps_map_link,
    metadata_to_json,
    summarize_metadata,
)

__all__ = [
    "MetadataRecord",
    "decode_metadata",
    "dms_to_decimal",
    "find_exif_segment",
    "parse_tiff_block",
    "rational_to_float",
    "gps_map_link",
    "metadata_to_json",
    "summarize_metadata",
]
