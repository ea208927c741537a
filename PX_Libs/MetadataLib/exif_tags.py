"""
EXIF tag tables.

Two independent lookup tables: one for IFD0 and the Exif sub-IFD, one for
the GPS sub-IFD. GPS tag numbers restart at 0 and would collide with the
main table, so they are never merged into a single mapping.
"""

from typing import Dict

# Pointer tags (followed, never emitted)
EXIF_IFD_POINTER = 0x8769
GPS_IFD_POINTER = 0x8825

# Field type ids and their byte sizes
TYPE_BYTE = 1
TYPE_ASCII = 2
TYPE_SHORT = 3
TYPE_LONG = 4
TYPE_RATIONAL = 5
TYPE_UNDEFINED = 7
TYPE_SLONG = 9
TYPE_SRATIONAL = 10

TYPE_SIZES: Dict[int, int] = {
    TYPE_BYTE: 1,
    TYPE_ASCII: 1,
    TYPE_SHORT: 2,
    TYPE_LONG: 4,
    TYPE_RATIONAL: 8,
    TYPE_UNDEFINED: 1,
    TYPE_SLONG: 4,
    TYPE_SRATIONAL: 8,
}

MAIN_TAGS: Dict[int, str] = {
    # IFD0
    0x0100: "ImageWidth",
    0x0101: "ImageHeight",
    0x010E: "ImageDescription",
    0x010F: "Make",
    0x0110: "Model",
    0x0112: "Orientation",
    0x011A: "XResolution",
    0x011B: "YResolution",
    0x0128: "ResolutionUnit",
    0x0131: "Software",
    0x0132: "ModifyDate",
    0x013B: "Artist",
    0x8298: "Copyright",
    # Exif sub-IFD
    0x829A: "ExposureTime",
    0x829D: "FNumber",
    0x8822: "ExposureProgram",
    0x8827: "ISO",
    0x9003: "DateTimeOriginal",
    0x9004: "CreateDate",
    0x9201: "ShutterSpeedValue",
    0x9202: "ApertureValue",
    0x9204: "ExposureCompensation",
    0x9207: "MeteringMode",
    0x9209: "Flash",
    0x920A: "FocalLength",
    0xA001: "ColorSpace",
    0xA002: "ExifImageWidth",
    0xA003: "ExifImageHeight",
    0xA402: "ExposureMode",
    0xA403: "WhiteBalance",
    0xA405: "FocalLengthIn35mmFormat",
    0xA431: "SerialNumber",
    0xA433: "LensMake",
    0xA434: "LensModel",
}

GPS_TAGS: Dict[int, str] = {
    0x0000: "GPSVersionID",
    0x0001: "GPSLatitudeRef",
    0x0002: "GPSLatitude",
    0x0003: "GPSLongitudeRef",
    0x0004: "GPSLongitude",
    0x0005: "GPSAltitudeRef",
    0x0006: "GPSAltitude",
    0x0007: "GPSTimeStamp",
    0x0010: "GPSImgDirectionRef",
    0x0011: "GPSImgDirection",
    0x001D: "GPSDateStamp",
}
