"""
EXIF Metadata Decoder.

Reads the EXIF block embedded in a JPEG byte stream and returns a flat
tag -> value record. The JPEG marker walk finds the APP1 "Exif" segment;
its payload is a TIFF-style block of tag directories (IFDs):
- IFD0 with camera make, model, software, ...
- Exif sub-IFD with exposure settings (merged under the main tag table)
- GPS sub-IFD (merged under the GPS tag table)

GPS latitude / longitude / altitude are converted to signed decimal floats.

Example:
    >>> with open("photo.jpg", "rb") as f:
    ...     record = decode_metadata(f)
    >>> record.get("Model")
    'EOS 5D'
    >>> record.get("GPSLatitude")
    40.446111...
"""

import logging
import struct
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Union

from PX_Libs.constants import (
    EXIF_SIGNATURE,
    IFD_ENTRY_SIZE,
    JPEG_APP1,
    JPEG_EOI,
    JPEG_RST_FIRST,
    JPEG_RST_LAST,
    JPEG_SOI,
    JPEG_SOS,
    JPEG_TEM,
    TIFF_BIG_ENDIAN,
    TIFF_LITTLE_ENDIAN,
    TIFF_MAGIC,
)
from PX_Libs.errors import FormatError
from PX_Libs.MetadataLib.exif_tags import (
    EXIF_IFD_POINTER,
    GPS_IFD_POINTER,
    GPS_TAGS,
    MAIN_TAGS,
    TYPE_ASCII,
    TYPE_BYTE,
    TYPE_LONG,
    TYPE_RATIONAL,
    TYPE_SHORT,
    TYPE_SIZES,
    TYPE_SLONG,
    TYPE_SRATIONAL,
    TYPE_UNDEFINED,
)

logger = logging.getLogger(__name__)

MetadataRecord = Dict[str, Any]
Rational = Tuple[int, int]
ByteSource = Union[bytes, bytearray, memoryview, BinaryIO]


# ============================================================================
# Value Helpers
# ============================================================================

def rational_to_float(value: Rational) -> float:
    """
    Divide a (numerator, denominator) pair.

    A zero denominator reports the numerator as-is.
    """
    numerator, denominator = value
    if denominator == 0:
        return float(numerator)
    return numerator / denominator


def dms_to_decimal(dms: Any, ref: Optional[str] = None) -> float:
    """
    Convert degrees / minutes / seconds rationals to signed decimal degrees.

    Args:
        dms: Three (numerator, denominator) pairs
        ref: 'N', 'S', 'E' or 'W'; 'S' and 'W' negate the result

    Raises:
        FormatError: If dms does not hold three rationals
    """
    if not isinstance(dms, list) or len(dms) != 3:
        raise FormatError(f"GPS coordinate must be three rationals, got {dms!r}")

    degrees, minutes, seconds = (rational_to_float(part) for part in dms)
    decimal = degrees + minutes / 60.0 + seconds / 3600.0
    if ref is not None and ref.strip().upper() in ("S", "W"):
        decimal = -decimal
    return decimal


# ============================================================================
# TIFF Block Reader
# ============================================================================

class TiffReader:
    """
    Bounds-checked reads from a TIFF block in a fixed byte order.

    Offsets are relative to the start of the block.
    """

    def __init__(self, data: bytes) -> None:
        if len(data) < 8:
            raise FormatError(f"TIFF header truncated: {len(data)} bytes")

        order = data[:2]
        if order == TIFF_LITTLE_ENDIAN:
            self.prefix = "<"
        elif order == TIFF_BIG_ENDIAN:
            self.prefix = ">"
        else:
            raise FormatError(f"Unknown TIFF byte order: {order!r}")

        self.data = data
        if self.u16(2) != TIFF_MAGIC:
            raise FormatError(f"Bad TIFF magic number: {self.u16(2)}")

    @property
    def little_endian(self) -> bool:
        return self.prefix == "<"

    def read(self, offset: int, length: int) -> bytes:
        if offset < 0 or length < 0 or offset + length > len(self.data):
            raise FormatError(
                f"Read of {length} bytes at offset {offset} exceeds "
                f"{len(self.data)}-byte EXIF block"
            )
        return self.data[offset:offset + length]

    def unpack(self, fmt: str, offset: int) -> Tuple[Any, ...]:
        size = struct.calcsize(self.prefix + fmt)
        return struct.unpack(self.prefix + fmt, self.read(offset, size))

    def u16(self, offset: int) -> int:
        return self.unpack("H", offset)[0]

    def u32(self, offset: int) -> int:
        return self.unpack("I", offset)[0]

    def first_ifd_offset(self) -> int:
        return self.u32(4)


# ============================================================================
# IFD Parsing
# ============================================================================

def _decode_value(reader: TiffReader, field_type: int, count: int, value_offset: int) -> Any:
    size = TYPE_SIZES[field_type] * count
    if size <= 4:
        raw = reader.read(value_offset, size)
    else:
        raw = reader.read(reader.u32(value_offset), size)

    if field_type == TYPE_ASCII:
        text = raw.split(b"\x00", 1)[0]
        return text.decode("ascii", errors="replace").rstrip()

    if field_type in (TYPE_BYTE, TYPE_UNDEFINED):
        values: List[Any] = list(raw)
    elif field_type == TYPE_SHORT:
        values = list(struct.unpack(f"{reader.prefix}{count}H", raw))
    elif field_type == TYPE_LONG:
        values = list(struct.unpack(f"{reader.prefix}{count}I", raw))
    elif field_type == TYPE_SLONG:
        values = list(struct.unpack(f"{reader.prefix}{count}i", raw))
    else:
        code = "I" if field_type == TYPE_RATIONAL else "i"
        flat = struct.unpack(f"{reader.prefix}{count * 2}{code}", raw)
        values = [(flat[i], flat[i + 1]) for i in range(0, len(flat), 2)]

    return values[0] if count == 1 else values


def read_ifd(
    reader: TiffReader,
    offset: int,
    tag_names: Dict[int, str],
    pointers: Optional[Dict[int, int]] = None,
) -> MetadataRecord:
    """
    Read one tag directory.

    Args:
        reader: TIFF block reader
        offset: Directory offset from the block start
        tag_names: Table of tags to keep; others are skipped
        pointers: If given, sub-IFD pointer tags found here are stored in it
                  (tag -> offset) instead of the record

    Returns:
        Record of known tags found in the directory

    Raises:
        FormatError: If the directory runs past the end of the block
    """
    record: MetadataRecord = {}
    count = reader.u16(offset)
    entries_start = offset + 2

    for index in range(count):
        entry = entries_start + index * IFD_ENTRY_SIZE
        tag, field_type, value_count = reader.unpack("HHI", entry)
        value_offset = entry + 8

        if pointers is not None and tag in (EXIF_IFD_POINTER, GPS_IFD_POINTER):
            pointers[tag] = reader.u32(value_offset)
            continue

        name = tag_names.get(tag)
        if name is None:
            continue
        if field_type not in TYPE_SIZES:
            logger.warning(f"Skipping {name}: unsupported EXIF field type {field_type}")
            continue
        if value_count == 0:
            record[name] = None
            continue

        record[name] = _decode_value(reader, field_type, value_count, value_offset)

    return record


def _convert_gps(record: MetadataRecord) -> None:
    for key, ref_key in (("GPSLatitude", "GPSLatitudeRef"), ("GPSLongitude", "GPSLongitudeRef")):
        if isinstance(record.get(key), list):
            record[key] = dms_to_decimal(record[key], record.get(ref_key))

    altitude = record.get("GPSAltitude")
    if isinstance(altitude, tuple):
        meters = rational_to_float(altitude)
        if record.get("GPSAltitudeRef") == 1:
            meters = -meters
        record["GPSAltitude"] = meters


def parse_tiff_block(data: bytes) -> MetadataRecord:
    """
    Decode the TIFF-style payload that follows the 'Exif\\0\\0' signature.

    Raises:
        FormatError: On an unknown byte order, bad magic, or any read past
                     the end of the block
    """
    reader = TiffReader(data)
    pointers: Dict[int, int] = {}
    record = read_ifd(reader, reader.first_ifd_offset(), MAIN_TAGS, pointers)

    if EXIF_IFD_POINTER in pointers:
        record.update(read_ifd(reader, pointers[EXIF_IFD_POINTER], MAIN_TAGS))

    if GPS_IFD_POINTER in pointers:
        gps = read_ifd(reader, pointers[GPS_IFD_POINTER], GPS_TAGS)
        _convert_gps(gps)
        record.update(gps)

    logger.debug(
        f"Parsed EXIF block ({'little' if reader.little_endian else 'big'}-endian): "
        f"{len(record)} tags"
    )
    return record


# ============================================================================
# JPEG Segment Walk
# ============================================================================

def _read_source(source: ByteSource) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if hasattr(source, "read"):
        return source.read()
    raise TypeError(f"Expected bytes or a binary stream, got {type(source)}")


def find_exif_segment(data: bytes) -> Optional[bytes]:
    """
    Walk the JPEG markers and return the TIFF block of the Exif APP1 segment.

    Returns:
        The bytes after the 'Exif\\0\\0' signature, or None if the stream has
        no Exif segment before the image data

    Raises:
        FormatError: If the stream is not a JPEG or a segment is malformed
    """
    if len(data) < 2 or struct.unpack(">H", data[:2])[0] != JPEG_SOI:
        raise FormatError("Not a JPEG stream: missing start-of-image marker")

    offset = 2
    while offset + 2 <= len(data):
        if data[offset] != 0xFF:
            raise FormatError(f"Expected marker at offset {offset}, found 0x{data[offset]:02X}")

        marker = struct.unpack(">H", data[offset:offset + 2])[0]
        if marker == 0xFFFF:
            # Fill byte before a marker
            offset += 1
            continue
        if marker in (JPEG_SOS, JPEG_EOI):
            break
        if marker == JPEG_TEM or JPEG_RST_FIRST <= marker <= JPEG_RST_LAST:
            offset += 2
            continue

        if offset + 4 > len(data):
            raise FormatError(f"Segment length of marker 0x{marker:04X} truncated")
        length = struct.unpack(">H", data[offset + 2:offset + 4])[0]
        if length < 2:
            raise FormatError(f"Invalid segment length {length} for marker 0x{marker:04X}")

        end = offset + 2 + length
        if end > len(data):
            raise FormatError(
                f"Segment 0x{marker:04X} at offset {offset} extends past end of stream"
            )

        if marker == JPEG_APP1:
            payload = data[offset + 4:end]
            if payload.startswith(EXIF_SIGNATURE):
                logger.debug(f"Found Exif APP1 segment at offset {offset}, {length} bytes")
                return payload[len(EXIF_SIGNATURE):]

        offset = end

    return None


def decode_metadata(source: ByteSource) -> MetadataRecord:
    """
    Decode the EXIF metadata of a JPEG byte stream.

    Args:
        source: File bytes or a binary stream positioned at the file start

    Returns:
        Tag name -> value record; empty when the image carries no EXIF

    Raises:
        FormatError: If the stream is not a recognized JPEG or the metadata
                     is malformed
        TypeError: If source is neither bytes nor a readable stream
    """
    data = _read_source(source)
    tiff = find_exif_segment(data)
    if tiff is None:
        logger.debug("No Exif segment present")
        return {}
    return parse_tiff_block(tiff)
