"""
Dither Node for Pixel Lab Pipelines.

Wraps the dithering operations for use in the node executor registry.
Supports Floyd-Steinberg, ordered (Bayer 4x4) and the other error
diffusion kernels, in grayscale or against a fixed color palette.

Example:
    >>> from PX_Libs.NodesLib.dither_node import create_dither_node
    >>> from PX_Libs.NodesLib.node_executors import get_default_registry
    >>>
    >>> node = create_dither_node("dither-1", algorithm="ordered", levels=4)
    >>> registry = get_default_registry()
    >>> result = registry.execute("Dither", node, [buffer])
    >>>
    >>> retro = create_dither_node("dither-2", palette="c64", serpentine=True)
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Union

from PX_Libs.constants import (
    DEFAULT_DITHER_ALGORITHM,
    DEFAULT_DITHER_LEVELS,
    GRAYSCALE_PALETTE,
)
from PX_Libs.ImageEditingLib.dither_filter import dither, dither_palette
from PX_Libs.ImageEditingLib.image_editing_ops import as_pixel_buffer
from PX_Libs.ImageEditingLib.image_models import PixelBuffer


@dataclass
class DitherNodeConfig:
    """Configuration for dither node.

    Attributes:
        algorithm: 'floyd-steinberg', 'ordered', 'atkinson', 'stucki',
                   'burkes' or 'jarvis-judice-ninke'
        levels: Number of gray levels (2-256)
        serpentine: Alternate scan direction per row (error diffusion only)
        brightness: Pre-adjustment in percent (100 = unchanged)
        contrast: Pre-adjustment in percent (100 = unchanged)
        palette: 'grayscale' for gray levels, a built-in palette name
                 ('bw', 'gameboy', 'cga', 'c64') or a list of RGB triples;
                 levels is ignored for color palettes
    """
    algorithm: str = DEFAULT_DITHER_ALGORITHM
    levels: int = DEFAULT_DITHER_LEVELS
    serpentine: bool = False
    brightness: float = 100.0
    contrast: float = 100.0
    palette: Union[str, List[List[int]]] = GRAYSCALE_PALETTE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DitherNodeConfig":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def execute_dither_node(node: Dict[str, Any], inputs: List[Any]) -> PixelBuffer:
    """
    Execute dither node in pipeline.

    Inputs:
        - [0]: Image to dither (PixelBuffer or PIL Image)

    Returns:
        Dithered PixelBuffer

    Raises:
        ValueError: If no input or invalid parameters
        TypeError: If input is not an image
    """
    if not inputs:
        raise ValueError("Dither node requires image input")

    buffer = as_pixel_buffer(inputs[0])
    config = DitherNodeConfig.from_dict(node)
    grayscale = (
        isinstance(config.palette, str)
        and config.palette.strip().lower() == GRAYSCALE_PALETTE
    )

    try:
        if grayscale:
            return dither(
                buffer,
                algorithm=config.algorithm,
                levels=int(config.levels),
                serpentine=bool(config.serpentine),
                brightness=float(config.brightness),
                contrast=float(config.contrast),
            )
        return dither_palette(
            buffer,
            config.palette,
            algorithm=config.algorithm,
            serpentine=bool(config.serpentine),
            brightness=float(config.brightness),
            contrast=float(config.contrast),
        )
    except (ValueError, TypeError) as e:
        raise type(e)(f"Dither node error: {str(e)}") from e


def create_dither_node(node_id: str, **dither_params: Any) -> Dict[str, Any]:
    """
    Create dither node for graph.

    Args:
        node_id: Unique node identifier
        **dither_params: Any DitherNodeConfig field

    Returns:
        Node dict for graph
    """
    node = {
        "id": node_id,
        "type": "Dither",
    }
    node.update(DitherNodeConfig.from_dict(dither_params).to_dict())
    return node
