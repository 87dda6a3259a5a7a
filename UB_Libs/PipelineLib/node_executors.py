"""
Node Executors Registry.

Maps node type names to the functions that run them. Each registration also
records how many inputs the node type consumes, and the registry refuses to
run a node handed a different number of upstream results.

Classes:
    NodeSpec: Executor and input arity of one node type
    NodeExecutorRegistry: Registry for node executors

Functions:
    get_default_registry: Get the global default registry (singleton)
    register_default_executors: Register the Image Import, Unblend and Output nodes
"""

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional
import logging

from UB_Libs.constants import NODE_TYPE_IMAGE_IMPORT, NODE_TYPE_OUTPUT, NODE_TYPE_UNBLEND

logger = logging.getLogger(__name__)

# (node_dict, inputs) -> result
ExecutorFunction = Callable[[Dict[str, Any], List[Any]], Any]


@dataclass(frozen=True)
class NodeSpec:
    """
    Attributes:
        executor: Callable taking (node_dict, inputs)
        description: One-line summary shown in error messages and logs
        input_count: Exact number of inputs, or None to accept any number
    """
    executor: ExecutorFunction
    description: str = ""
    input_count: Optional[int] = None


class NodeExecutorRegistry:
    """
    Registry for node type executors.

    Example:
        >>> registry = NodeExecutorRegistry()
        >>> registry.register("Unblend", execute_unblend_node, input_count=2)
        >>> registry.execute("Unblend", node, [composite, mask])
    """

    def __init__(self):
        self._specs: Dict[str, NodeSpec] = {}

    def register(
        self,
        node_type: str,
        executor: ExecutorFunction,
        description: str = "",
        input_count: Optional[int] = None,
    ) -> None:
        """
        Register a node executor.

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
        if input_count is not None and input_count < 0:
            raise ValueError(f"input_count must be >= 0, got {input_count}")
        if node_type in self._specs:
            raise RuntimeError(f"Node type '{node_type}' is already registered")

        self._specs[node_type] = NodeSpec(executor, str(description), input_count)
        logger.debug(f"Registered executor for node type: {node_type}")

    def describe(self, node_type: str) -> NodeSpec:
        """
        Raises:
            KeyError: If node_type is not registered
        """
        node_type = str(node_type).strip()
        if node_type not in self._specs:
            available = ", ".join(self.list_node_types())
            raise KeyError(
                f"No executor registered for node type '{node_type}'. "
                f"Available types: {available}"
            )
        return self._specs[node_type]

    def get_executor(self, node_type: str) -> ExecutorFunction:
        return self.describe(node_type).executor

    def has_executor(self, node_type: str) -> bool:
        return str(node_type).strip() in self._specs

    def list_node_types(self) -> List[str]:
        return sorted(self._specs)

    def execute(self, node_type: str, node_dict: Dict[str, Any], inputs: List[Any]) -> Any:
        """
        Run node_dict with the executor registered for node_type.

        Raises:
            KeyError: If node_type is not registered
            ValueError: If the number of inputs differs from the registered
                input_count
        """
        spec = self.describe(node_type)
        if spec.input_count is not None and len(inputs) != spec.input_count:
            raise ValueError(
                f"Node type '{node_type}' expects {spec.input_count} input(s), "
                f"got {len(inputs)}"
            )
        return spec.executor(node_dict, inputs)

    def as_executor_map(self) -> Dict[str, ExecutorFunction]:
        """Node type -> executor mapping for execute_pipeline(), with input counts enforced."""
        return {node_type: partial(self.execute, node_type) for node_type in self._specs}


_default_registry: Optional[NodeExecutorRegistry] = None


def get_default_registry() -> NodeExecutorRegistry:
    """Global registry, created with the built-in nodes on first use."""
    global _default_registry

    if _default_registry is None:
        _default_registry = NodeExecutorRegistry()
        register_default_executors(_default_registry)

    return _default_registry


def register_default_executors(registry: NodeExecutorRegistry) -> None:
    from UB_Libs.NodesLib.image_import_node import execute_import_image_node
    from UB_Libs.NodesLib.unblend_node import execute_unblend_node
    from UB_Libs.NodesLib.output_node import execute_output_node

    registry.register(
        NODE_TYPE_IMAGE_IMPORT,
        execute_import_image_node,
        description="Load an image file into a pixel buffer",
        input_count=0,
    )
    registry.register(
        NODE_TYPE_UNBLEND,
        execute_unblend_node,
        description="Recover original colors from a composite and its mask",
        input_count=2,
    )
    registry.register(
        NODE_TYPE_OUTPUT,
        execute_output_node,
        description="Encode a pixel buffer and save it to disk",
        input_count=1,
    )

    logger.info("Registered default node executors")
