"""
Cartoon Node for Pixel Lab Pipelines.

Wraps the cartoon stylization for use in the node executor registry.

Example:
    >>> node = create_cartoon_node("cartoon-1", levels=5, edge_threshold=30)
    >>> result = get_default_registry().execute("Cartoon", node, [buffer])
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from PX_Libs.constants import (
    DEFAULT_BLUR_RADIUS,
    DEFAULT_CARTOON_LEVELS,
    DEFAULT_EDGE_THICKNESS,
    DEFAULT_EDGE_THRESHOLD,
    DEFAULT_INK_STRENGTH,
    DEFAULT_SATURATION,
)
from PX_Libs.ImageEditingLib.cartoon_filter import stylize
from PX_Libs.ImageEditingLib.image_editing_ops import as_pixel_buffer
from PX_Libs.ImageEditingLib.image_models import PixelBuffer


@dataclass
class CartoonNodeConfig:
    """Configuration for cartoon node.

    Attributes:
        levels: Posterize levels per channel (2-256)
        edge_threshold: Minimum Sobel magnitude that gets ink (0-255)
        blur_radius: Box blur radius (0-50)
        ink_strength: Edge darkening strength (0-1)
        edge_thickness: Ink multiplier (> 0)
        saturation: Saturation percent applied before the blur (>= 0)
    """
    levels: int = DEFAULT_CARTOON_LEVELS
    edge_threshold: int = DEFAULT_EDGE_THRESHOLD
    blur_radius: int = DEFAULT_BLUR_RADIUS
    ink_strength: float = DEFAULT_INK_STRENGTH
    edge_thickness: float = DEFAULT_EDGE_THICKNESS
    saturation: float = DEFAULT_SATURATION

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartoonNodeConfig":
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def execute_cartoon_node(node: Dict[str, Any], inputs: List[Any]) -> PixelBuffer:
    """
    Execute cartoon node in pipeline.

    Inputs:
        - [0]: Image to stylize (PixelBuffer or PIL Image)

    Returns:
        Stylized PixelBuffer
    """
    if not inputs:
        raise ValueError("Cartoon node requires image input")

    buffer = as_pixel_buffer(inputs[0])
    config = CartoonNodeConfig.from_dict(node)

    try:
        return stylize(
            buffer,
            levels=int(config.levels),
            edge_threshold=config.edge_threshold,
            blur_radius=int(config.blur_radius),
            ink_strength=float(config.ink_strength),
            edge_thickness=float(config.edge_thickness),
            saturation=float(config.saturation),
        )
    except (ValueError, TypeError) as e:
        raise type(e)(f"Cartoon node error: {str(e)}") from e


def create_cartoon_node(node_id: str, **cartoon_params: Any) -> Dict[str, Any]:
    """Create cartoon node for graph."""
    node = {
        "id": node_id,
        "type": "Cartoon",
    }
    node.update(CartoonNodeConfig.from_dict(cartoon_params).to_dict())
    return node
