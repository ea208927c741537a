"""
Human-readable views of a decoded metadata record.

Functions:
    summarize_metadata: Ordered (label, text) rows of the essential tags
    gps_map_link: Map URL for the record's coordinates
    metadata_to_json: JSON text of the full record
"""

import json
from typing import Any, List, Optional, Tuple

from PX_Libs.constants import MAP_LINK_TEMPLATE
from PX_Libs.MetadataLib.exif_decoder import MetadataRecord, rational_to_float


def _number(value: Any) -> Optional[float]:
    if isinstance(value, tuple) and len(value) == 2:
        return rational_to_float(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


def _trim(value: float) -> str:
    # 2.8 -> "2.8", 50.0 -> "50"
    return f"{value:.2f}".rstrip("0").rstrip(".")


def format_exposure(value: Any) -> Optional[str]:
    seconds = _number(value)
    if seconds is None or seconds <= 0:
        return None
    if seconds < 1:
        return f"1/{round(1 / seconds)}s"
    return f"{_trim(seconds)}s"


def summarize_metadata(record: MetadataRecord) -> List[Tuple[str, str]]:
    """
    Build the essential rows shown for a photo.

    Rows whose value is missing or empty are dropped.

    Returns:
        List of (label, text) in display order
    """
    width = record.get("ImageWidth") or record.get("ExifImageWidth")
    height = record.get("ImageHeight") or record.get("ExifImageHeight")
    aperture = _number(record.get("FNumber"))
    focal = _number(record.get("FocalLength"))

    rows: List[Tuple[str, Any]] = [
        ("Camera Make", record.get("Make")),
        ("Camera Model", record.get("Model")),
        ("Lens", record.get("LensModel")),
        ("Date Taken", record.get("DateTimeOriginal")),
        ("Resolution", f"{width} × {height}" if width and height else None),
        ("Aperture", f"f/{_trim(aperture)}" if aperture else None),
        ("Exposure", format_exposure(record.get("ExposureTime"))),
        ("ISO", record.get("ISO")),
        ("Focal Length", f"{_trim(focal)}mm" if focal else None),
        ("Software", record.get("Software")),
    ]

    latitude = record.get("GPSLatitude")
    longitude = record.get("GPSLongitude")
    if isinstance(latitude, float) and isinstance(longitude, float):
        rows.append(("GPS Location", f"{latitude:.5f}, {longitude:.5f}"))

    return [(label, str(value)) for label, value in rows if value is not None and value != ""]


def gps_map_link(record: MetadataRecord) -> Optional[str]:
    """Return a map URL for the decoded coordinates, or None without GPS."""
    latitude = record.get("GPSLatitude")
    longitude = record.get("GPSLongitude")
    if not isinstance(latitude, float) or not isinstance(longitude, float):
        return None
    return MAP_LINK_TEMPLATE.format(lat=latitude, lon=longitude)


def metadata_to_json(record: MetadataRecord, indent: int = 2) -> str:
    """Serialize the record; rational pairs become two-element lists."""
    return json.dumps(record, indent=indent, sort_keys=True)
