"""
Exif Read Node for Pixel Lab Pipelines.

Decodes EXIF metadata from JPEG bytes, a binary stream, or a file path
given on the node itself.
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List

from PX_Libs.MetadataLib.exif_decoder import MetadataRecord, decode_metadata


@dataclass
class ExifNodeConfig:
    """Configuration for Exif Read node.

    Attributes:
        path: JPEG file read when the node gets no input
    """
    path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExifNodeConfig":
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def execute_exif_node(node: Dict[str, Any], inputs: List[Any]) -> MetadataRecord:
    """
    Execute Exif Read node in pipeline.

    Inputs:
        - [0]: JPEG bytes or an open binary stream (optional when the
          node carries a "path")

    Returns:
        Decoded metadata record (empty when the file has no EXIF)

    Raises:
        ValueError: If neither an input nor a path is given, or the
                    metadata is malformed
        FileNotFoundError: If the node path does not exist
    """
    config = ExifNodeConfig.from_dict(node)

    if inputs:
        source = inputs[0]
    elif config.path:
        path = Path(config.path)
        if not path.exists():
            raise FileNotFoundError(f"Image file not found: {path}")
        source = path.read_bytes()
    else:
        raise ValueError("Exif Read node requires JPEG bytes input or a path")

    try:
        return decode_metadata(source)
    except (ValueError, TypeError) as e:
        raise type(e)(f"Exif Read node error: {str(e)}") from e


def create_exif_node(node_id: str, path: str = "") -> Dict[str, Any]:
    """Create Exif Read node for graph."""
    node = {
        "id": node_id,
        "type": "Exif Read",
    }
    node.update(ExifNodeConfig(path=str(path)).to_dict())
    return node
