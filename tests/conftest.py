"""
Pytest configuration and shared fixtures for Pixel Lab tests.

This module provides shared test fixtures and configuration
used across multiple test modules, including builders for
synthetic EXIF blocks and JPEG streams.
"""

import struct

import pytest

from PX_Libs.ImageEditingLib.image_models import PixelBuffer

TYPE_BYTE = 1
TYPE_ASCII = 2
TYPE_SHORT = 3
TYPE_LONG = 4
TYPE_RATIONAL = 5


def _encode_value(prefix, field_type, values):
    """Return (count, raw bytes) for one IFD entry value."""
    if field_type == TYPE_ASCII:
        raw = values.encode("ascii") + b"\x00"
        return len(raw), raw
    if field_type == TYPE_BYTE:
        return len(values), bytes(values)
    if field_type == TYPE_SHORT:
        return len(values), struct.pack(f"{prefix}{len(values)}H", *values)
    if field_type == TYPE_LONG:
        return len(values), struct.pack(f"{prefix}{len(values)}I", *values)
    if field_type == TYPE_RATIONAL:
        flat = [part for pair in values for part in pair]
        return len(values), struct.pack(f"{prefix}{len(flat)}I", *flat)
    raise ValueError(f"unsupported test field type {field_type}")


def _ifd_size(prefix, entries):
    size = 2 + 12 * len(entries) + 4
    for _tag, field_type, values in entries:
        _count, raw = _encode_value(prefix, field_type, values)
        if len(raw) > 4:
            size += len(raw)
    return size


def _ifd_bytes(prefix, entries, start):
    head = struct.pack(f"{prefix}H", len(entries))
    data = b""
    data_offset = start + 2 + 12 * len(entries) + 4
    for tag, field_type, values in entries:
        count, raw = _encode_value(prefix, field_type, values)
        if len(raw) <= 4:
            field = raw.ljust(4, b"\x00")
        else:
            field = struct.pack(f"{prefix}I", data_offset + len(data))
            data += raw
        head += struct.pack(f"{prefix}HHI", tag, field_type, count) + field
    return head + struct.pack(f"{prefix}I", 0) + data


def make_tiff_block(ifd0, exif=None, gps=None, little_endian=True):
    """
    Build a TIFF block from entry lists of (tag, field_type, values).

    ASCII values are str; other values are lists (rationals as pairs).
    Exif and GPS sub-IFDs are linked from IFD0 automatically.
    """
    prefix = "<" if little_endian else ">"
    main = list(ifd0)
    subs = []
    if exif is not None:
        main.append((0x8769, TYPE_LONG, [0]))
        subs.append((0x8769, list(exif)))
    if gps is not None:
        main.append((0x8825, TYPE_LONG, [0]))
        subs.append((0x8825, list(gps)))

    offset = 8 + _ifd_size(prefix, main)
    sub_offsets = {}
    for tag, entries in subs:
        sub_offsets[tag] = offset
        offset += _ifd_size(prefix, entries)

    main = [
        (tag, field_type, [sub_offsets[tag]] if tag in sub_offsets else values)
        for tag, field_type, values in main
    ]

    block = (b"II" if little_endian else b"MM") + struct.pack(f"{prefix}HI", 42, 8)
    block += _ifd_bytes(prefix, main, 8)
    for tag, entries in subs:
        block += _ifd_bytes(prefix, entries, sub_offsets[tag])
    return block


def make_jpeg(tiff_block=None, extra_segments=()):
    """Wrap an optional TIFF block into a minimal JPEG marker stream."""
    data = b"\xFF\xD8"
    # APP0 JFIF header first, like most cameras write
    jfif = b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    data += b"\xFF\xE0" + struct.pack(">H", len(jfif) + 2) + jfif
    for marker, payload in extra_segments:
        data += struct.pack(">H", marker) + struct.pack(">H", len(payload) + 2) + payload
    if tiff_block is not None:
        payload = b"Exif\x00\x00" + tiff_block
        data += b"\xFF\xE1" + struct.pack(">H", len(payload) + 2) + payload
    data += b"\xFF\xDA\x00\x08\x01\x01\x00\x00\x3F\x00" + b"\x12\x34" + b"\xFF\xD9"
    return data


@pytest.fixture
def tiff_builder():
    """Provide make_tiff_block for building synthetic EXIF payloads."""
    return make_tiff_block


@pytest.fixture
def jpeg_builder():
    """Provide make_jpeg for wrapping payloads into JPEG streams."""
    return make_jpeg


@pytest.fixture
def gps_jpeg():
    """
    JPEG whose EXIF places the photo at 40°26'46"N 79°58'56"W, 300 m up.
    """
    ifd0 = [
        (0x010F, TYPE_ASCII, "Canon"),
        (0x0110, TYPE_ASCII, "EOS 5D"),
    ]
    exif = [
        (0x829A, TYPE_RATIONAL, [(1, 250)]),
        (0x829D, TYPE_RATIONAL, [(28, 10)]),
        (0x8827, TYPE_SHORT, [400]),
        (0x920A, TYPE_RATIONAL, [(50, 1)]),
    ]
    gps = [
        (0x0001, TYPE_ASCII, "N"),
        (0x0002, TYPE_RATIONAL, [(40, 1), (26, 1), (46, 1)]),
        (0x0003, TYPE_ASCII, "W"),
        (0x0004, TYPE_RATIONAL, [(79, 1), (58, 1), (56, 1)]),
        (0x0005, TYPE_BYTE, [0]),
        (0x0006, TYPE_RATIONAL, [(300, 1)]),
    ]
    return make_jpeg(make_tiff_block(ifd0, exif=exif, gps=gps))


@pytest.fixture
def temp_project_dir(tmp_path):
    """
    Provide a temporary directory for output files.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path object pointing to a temporary directory
    """
    return tmp_path


@pytest.fixture
def gradient_buffer():
    """
    Provide a 16x8 opaque buffer with a horizontal red ramp and a
    vertical green ramp.
    """
    width, height = 16, 8
    pixels = bytearray()
    for y in range(height):
        for x in range(width):
            pixels += bytes((x * 16, y * 32, 128, 255))
    return PixelBuffer(width, height, pixels)


@pytest.fixture
def sample_rgba_colors():
    """
    Provide a list of sample RGBA color tuples for testing.

    Returns:
        List of (R, G, B, A) tuples with common test colors
    """
    return [
        (255, 0, 0, 255),    # Red
        (0, 255, 0, 255),    # Green
        (0, 0, 255, 255),    # Blue
        (255, 255, 255, 255),  # White
        (0, 0, 0, 255),      # Black
        (128, 128, 128, 255),  # Gray
    ]
