"""
Retouch Node for Pixel Lab Pipelines.

Replays recorded brush strokes on a copy of the input image, so a
retouch can be stored in a project and re-applied.

Stroke format:
    {
        "tool": "blur" | "clone" | "heal" | "smudge",
        "points": [[x, y], ...],
        "radius": 30,
        "strength": 5,          # blur only
        "source": [x, y],       # clone only, sets the clone source
        "aligned": False,       # clone only
        "opacity": 100,         # blend percent, any tool
    }
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from PX_Libs.constants import DEFAULT_BLUR_STRENGTH, DEFAULT_BRUSH_RADIUS, DEFAULT_OPACITY
from PX_Libs.ImageEditingLib.image_editing_ops import as_pixel_buffer
from PX_Libs.ImageEditingLib.image_models import PixelBuffer
from PX_Libs.ImageEditingLib.retouch_engine import RetouchSession


@dataclass
class RetouchNodeConfig:
    """Configuration for retouch node.

    Attributes:
        strokes: Recorded strokes, replayed in order
    """
    strokes: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetouchNodeConfig":
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def replay_strokes(buffer: PixelBuffer, strokes: List[Dict[str, Any]]) -> PixelBuffer:
    """
    Apply strokes in order to a copy of `buffer`.

    Raises:
        ValueError: If a stroke is malformed or a clone stroke has no source
        IndexError: If a clone source lies outside the image
    """
    session = RetouchSession(buffer.copy())

    for index, stroke in enumerate(strokes):
        if not isinstance(stroke, dict):
            raise ValueError(f"Stroke {index} must be a dict, got {type(stroke)}")

        tool = str(stroke.get("tool", "")).lower()
        points = [tuple(point) for point in stroke.get("points", [])]
        radius = int(stroke.get("radius", DEFAULT_BRUSH_RADIUS))

        source = stroke.get("source")
        if source is not None:
            session.set_clone_source(tuple(source))

        session.apply_stroke(
            points,
            tool,
            radius,
            strength=int(stroke.get("strength", DEFAULT_BLUR_STRENGTH)),
            aligned=bool(stroke.get("aligned", False)),
            opacity=float(stroke.get("opacity", DEFAULT_OPACITY)),
        )

    return session.export()


def execute_retouch_node(node: Dict[str, Any], inputs: List[Any]) -> PixelBuffer:
    """
    Execute retouch node in pipeline.

    Inputs:
        - [0]: Image to retouch (PixelBuffer or PIL Image)

    Returns:
        Retouched copy; the input is left untouched
    """
    if not inputs:
        raise ValueError("Retouch node requires image input")

    buffer = as_pixel_buffer(inputs[0])
    strokes = RetouchNodeConfig.from_dict(node).strokes
    if not isinstance(strokes, list):
        raise ValueError(f"Retouch node strokes must be a list, got {type(strokes)}")

    try:
        return replay_strokes(buffer, strokes)
    except (ValueError, TypeError, IndexError) as e:
        raise type(e)(f"Retouch node error: {str(e)}") from e


def create_retouch_node(
    node_id: str,
    strokes: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Create retouch node for graph."""
    node = {
        "id": node_id,
        "type": "Retouch",
    }
    node.update(RetouchNodeConfig(strokes=list(strokes) if strokes else []).to_dict())
    return node
