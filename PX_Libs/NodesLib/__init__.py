"""
NodesLib - Pipeline nodes for Pixel Lab

Each node module exposes execute_*_node(node, inputs) for the executor
registry and create_*_node(node_id, ...) to build the node dict.
"""

from PX_Libs.NodesLib.node_executors import (
    NodeExecutorRegistry,
    get_default_registry,
    register_default_executors,
)
from PX_Libs.NodesLib.exif_node import (
    ExifNodeConfig,
    create_exif_node,
    execute_exif_node,
)
from PX_Libs.NodesLib.palette_node import (
    PaletteNodeConfig,
    create_palette_node,
    execute_palette_node,
)
from PX_Libs.NodesLib.dither_node import (
    DitherNodeConfig,
    create_dither_node,
    execute_dither_node,
)
from PX_Libs.NodesLib.cartoon_node import (
    CartoonNodeConfig,
    create_cartoon_node,
    execute_cartoon_node,
)
from PX_Libs.NodesLib.retouch_node import (
    RetouchNodeConfig,
    create_retouch_node,
    execute_retouch_node,
    replay_strokes,
)

__all__ = [
    "NodeExecutorRegistry",
    "get_default_registry",
    "register_default_executors",
    "ExifNodeConfig",
    "create_exif_node",
    "execute_exif_node",
    "PaletteNodeConfig",
    "create_palette_node",
    "execute_palette_node",
    "DitherNodeConfig",
    "create_dither_node",
    "execute_dither_node",
    "CartoonNodeConfig",
    "create_cartoon_node",
    "execute_cartoon_node",
    "RetouchNodeConfig",
    "create_retouch_node",
    "execute_retouch_node",
    "replay_strokes",
]
