"""
Palette Extract Node for Pixel Lab Pipelines.

Runs k-means palette extraction and returns the palette sorted for display,
optionally followed by harmony colors.

Example:
    >>> node = create_palette_node("palette-1", k=6, sort_mode="hue", seed=3)
    >>> palette = get_default_registry().execute("Palette Extract", node, [buffer])
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from PX_Libs.constants import DEFAULT_PALETTE_SIZE
from PX_Libs.ImageEditingLib.color_quantizer import (
    ColorQuantizer,
    palette_harmonies,
    sort_palette,
)
from PX_Libs.ImageEditingLib.image_editing_ops import as_pixel_buffer
from PX_Libs.ImageEditingLib.image_models import Palette


@dataclass
class PaletteNodeConfig:
    """Configuration for palette extract node.

    Attributes:
        k: Requested palette size (1-256)
        sort_mode: 'population', 'hue', 'luminance' or 'vibrancy'
        harmony: 'none', 'complementary', 'analogous', 'triadic' or 'tetradic'
        seed: Random seed for centroid initialization (None = unseeded)
    """
    k: int = DEFAULT_PALETTE_SIZE
    sort_mode: str = "population"
    harmony: str = "none"
    seed: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaletteNodeConfig":
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def execute_palette_node(node: Dict[str, Any], inputs: List[Any]) -> Palette:
    """
    Execute palette extract node in pipeline.

    Inputs:
        - [0]: Image to analyze (PixelBuffer or PIL Image)

    Returns:
        Sorted palette, with harmony swatches appended when requested
    """
    if not inputs:
        raise ValueError("Palette Extract node requires image input")

    buffer = as_pixel_buffer(inputs[0])
    config = PaletteNodeConfig.from_dict(node)

    try:
        palette = ColorQuantizer(seed=config.seed).extract(buffer, int(config.k))
        ordered = sort_palette(palette, config.sort_mode)
        return ordered + palette_harmonies(palette, config.harmony)
    except (ValueError, TypeError) as e:
        raise type(e)(f"Palette Extract node error: {str(e)}") from e


def create_palette_node(node_id: str, **palette_params: Any) -> Dict[str, Any]:
    """Create palette extract node for graph."""
    node = {
        "id": node_id,
        "type": "Palette Extract",
    }
    node.update(PaletteNodeConfig.from_dict(palette_params).to_dict())
    return node
