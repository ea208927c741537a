"""
Node Executors Registry.

This module provides a registry mapping node type names to executor
functions, so pipelines can run Pixel Lab operations by name.

Classes:
    NodeExecutorRegistry: Registry for node executors

Functions:
    get_default_registry: Get the global default registry (singleton)
    register_default_executors: Register all built-in node executors
"""

from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# Executor signature: (node_dict, inputs) -> result
ExecutorFunction = Callable[[Dict[str, Any], List[Any]], Any]


class NodeExecutorRegistry:
    """
    Registry for node type executors.

    Example:
        >>> registry = NodeExecutorRegistry()
        >>> registry.register("Dither", execute_dither_node, input_count=1)
        >>> result = registry.execute("Dither", {"algorithm": "ordered"}, [buffer])
    """

    def __init__(self):
        self._executors: Dict[str, ExecutorFunction] = {}
        self._node_metadata: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        node_type: str,
        executor: ExecutorFunction,
        description: str = "",
        input_count: int = 0,
    ) -> None:
        """
        Register a node executor.

        Args:
            node_type: Unique node type name (e.g., "Dither")
            executor: Callable accepting (node_dict, inputs)
            description: Human-readable description
            input_count: Minimum number of inputs execute() must receive

        Raises:
            ValueError: If node_type is empty, executor is not callable or
                        input_count is negative
            RuntimeError: If node_type is already registered
        """
        node_type = str(node_type).strip()

        if not node_type:
            raise ValueError("node_type cannot be empty")

        if not callable(executor):
            raise ValueError(f"executor must be callable, got {type(executor)}")

        if int(input_count) < 0:
            raise ValueError(f"input_count must be >= 0, got {input_count}")

        if node_type in self._executors:
            raise RuntimeError(f"Node type '{node_type}' is already registered.")

        self._executors[node_type] = executor
        self._node_metadata[node_type] = {
            "description": str(description),
            "input_count": int(input_count),
        }

        logger.debug(f"Registered executor for node type: {node_type}")

    def get_executor(self, node_type: str) -> ExecutorFunction:
        """
        Look up the executor for a node type.

        Raises:
            KeyError: If node_type is not registered
        """
        node_type = str(node_type).strip()

        if node_type not in self._executors:
            available = ", ".join(self.list_node_types())
            raise KeyError(
                f"No executor registered for node type '{node_type}'. "
                f"Available types: {available}"
            )

        return self._executors[node_type]

    def execute(
        self,
        node_type: str,
        node_dict: Dict[str, Any],
        inputs: List[Any],
    ) -> Any:
        """
        Run a node through its registered executor.

        Raises:
            KeyError: If node_type is not registered
            ValueError: If fewer inputs than the registered input_count are given
            Exception: Any exception raised by the executor
        """
        executor = self.get_executor(node_type)
        meta = self._node_metadata[str(node_type).strip()]

        if len(inputs) < meta["input_count"]:
            raise ValueError(
                f"Node type '{node_type}' needs {meta['input_count']} input(s), "
                f"got {len(inputs)}"
            )

        logger.debug(f"Executing {node_type} node ({meta['description']})")
        return executor(node_dict, inputs)

    def list_node_types(self) -> List[str]:
        return sorted(self._executors.keys())


# Global singleton registry
_default_registry: Optional[NodeExecutorRegistry] = None


def get_default_registry() -> NodeExecutorRegistry:
    """
    Get the global default registry (singleton).

    Creates the registry on first call and registers default executors.
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = NodeExecutorRegistry()
        register_default_executors(_default_registry)

    return _default_registry


def register_default_executors(registry: NodeExecutorRegistry) -> None:
    """
    Register all built-in node executors:
    Exif Read, Palette Extract, Dither, Cartoon and Retouch.
    """
    from PX_Libs.NodesLib.exif_node import execute_exif_node
    from PX_Libs.NodesLib.palette_node import execute_palette_node
    from PX_Libs.NodesLib.dither_node import execute_dither_node
    from PX_Libs.NodesLib.cartoon_node import execute_cartoon_node
    from PX_Libs.NodesLib.retouch_node import execute_retouch_node

    # Exif Read may run from its configured path alone
    registry.register(
        node_type="Exif Read",
        executor=execute_exif_node,
        description="Decode EXIF metadata (camera, exposure, GPS) from JPEG bytes",
        input_count=0,
    )

    registry.register(
        node_type="Palette Extract",
        executor=execute_palette_node,
        description="Extract a k-color palette with k-means clustering",
        input_count=1,
    )

    registry.register(
        node_type="Dither",
        executor=execute_dither_node,
        description="Dither to gray levels or a color palette",
        input_count=1,
    )

    registry.register(
        node_type="Cartoon",
        executor=execute_cartoon_node,
        description="Blur, posterize and ink edges for a cartoon look",
        input_count=1,
    )

    registry.register(
        node_type="Retouch",
        executor=execute_retouch_node,
        description="Replay blur, clone, heal and smudge strokes on a copy of the image",
        input_count=1,
    )

    logger.info("Registered default node executors")
