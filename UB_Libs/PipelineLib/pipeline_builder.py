"""
Pipeline Builder for Node Graph Execution

This module builds an actionable task pipeline from a connected node graph,
determining execution stages based on dependency analysis. Each node is assigned
to a pipeline stage that is one more than the highest stage of its input nodes.

A node's inputs are passed to its executor in connection order, so the
Unblend node must be connected from the image before the mask.
"""

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Set, Tuple

from UB_Libs.ImageEditingLib.errors import PipelineExecutionError
from UB_Libs.NodesLib.image_import_node import create_import_image_node
from UB_Libs.NodesLib.output_node import create_output_node
from UB_Libs.NodesLib.unblend_node import UnblendNodeConfig
from UB_Libs.constants import (
    DEFAULT_OUTPUT_FORMAT,
    FIELD_FROM_NODE,
    FIELD_NODE_ID,
    FIELD_NODE_TYPE,
    FIELD_TO_NODE,
    NODE_ID_IMAGE,
    NODE_ID_MASK,
    NODE_ID_OUTPUT,
    NODE_ID_UNBLEND,
    NODE_TYPE_UNBLEND,
)


def build_dependency_map(nodes: List[Dict[str, Any]], connections: List[Dict[str, str]]) -> Dict[str, List[str]]:
    """
    Build a mapping of each node to its input dependencies.

    Args:
        nodes: List of node dictionaries with 'id' keys
        connections: List of connection dictionaries with 'from_node' and 'to_node' keys

    Returns:
        Dictionary mapping node_id -> list of input node_ids

    Example:
        >>> nodes = [{"id": "n1"}, {"id": "n2"}, {"id": "n3"}]
        >>> connections = [{"from_node": "n1", "to_node": "n2"}, {"from_node": "n2", "to_node": "n3"}]
        >>> build_dependency_map(nodes, connections)
        {'n1': [], 'n2': ['n1'], 'n3': ['n2']}
    """
    dependencies: Dict[str, List[str]] = {}
    for node in nodes:
        node_id = str(node.get(FIELD_NODE_ID, ""))
        if node_id:
            dependencies[node_id] = []

    for connection in connections:
        from_node = str(connection.get(FIELD_FROM_NODE, ""))
        to_node = str(connection.get(FIELD_TO_NODE, ""))

        # Only add valid connections between known nodes
        if from_node and to_node and to_node in dependencies:
            if from_node not in dependencies[to_node]:
                dependencies[to_node].append(from_node)

    return dependencies


def calculate_pipeline_stages(dependencies: Dict[str, List[str]]) -> Dict[str, int]:
    """
    Assign pipeline stage number to each node.

    Source nodes (no dependencies) are assigned stage 0.
    Each subsequent node is assigned: max(input_stages) + 1

    Raises:
        ValueError: If circular dependency detected, or a node depends on an
            unknown node

    Example:
        >>> calculate_pipeline_stages({"n1": [], "n2": ["n1"], "n3": ["n2"]})
        {'n1': 0, 'n2': 1, 'n3': 2}
    """
    for node_id, node_deps in dependencies.items():
        unknown = [dep_id for dep_id in node_deps if dep_id not in dependencies]
        if unknown:
            raise ValueError(
                f"Node '{node_id}' depends on unknown nodes: {', '.join(sorted(unknown))}"
            )

    node_stages: Dict[str, int] = {}
    unassigned: Set[str] = set(dependencies.keys())

    while unassigned:
        progress_made = False

        for node_id in sorted(unassigned):
            node_deps = dependencies.get(node_id, [])

            if all(dep_id in node_stages for dep_id in node_deps):
                input_stages = [node_stages[dep_id] for dep_id in node_deps]
                node_stages[node_id] = max(input_stages) + 1 if input_stages else 0
                unassigned.remove(node_id)
                progress_made = True

        if not progress_made:
            cycle_nodes = ", ".join(sorted(unassigned))
            raise ValueError(
                f"Circular dependency detected: cannot assign stages to nodes: {cycle_nodes}"
            )

    return node_stages


def build_execution_pipeline(
    nodes: List[Dict[str, Any]],
    node_stages: Dict[str, int],
    dependencies: Dict[str, List[str]]
) -> Dict[str, Any]:
    """
    Group nodes by stage and create execution plan.

    Returns:
        Dictionary with pipeline structure:
        {
            "stages": [
                {"stage_number": 0, "can_parallelize": bool, "nodes": [...]},
                ...
            ],
            "max_stage": int,
            "execution_order": ["node-id-1", "node-id-2", ...]
        }

        'can_parallelize' is True when a stage has 2+ nodes. Nodes in the
        same stage never depend on each other.
    """
    if not node_stages:
        return {
            "stages": [],
            "max_stage": -1,
            "execution_order": []
        }

    max_stage = max(node_stages.values())

    stage_buckets: Dict[int, List[Dict[str, Any]]] = {
        stage_num: [] for stage_num in range(max_stage + 1)
    }

    # Keep graph order within a stage
    for node in nodes:
        node_id = str(node.get(FIELD_NODE_ID, ""))
        if node_id in node_stages:
            node_data = node.copy()
            node_data["inputs"] = dependencies.get(node_id, [])
            stage_buckets[node_stages[node_id]].append(node_data)

    stages = []
    for stage_num in range(max_stage + 1):
        stage_nodes = stage_buckets[stage_num]
        stages.append({
            "stage_number": stage_num,
            "can_parallelize": len(stage_nodes) >= 2,
            "nodes": stage_nodes
        })

    execution_order = [
        str(node.get(FIELD_NODE_ID, ""))
        for stage in stages
        for node in stage["nodes"]
    ]

    return {
        "stages": stages,
        "max_stage": max_stage,
        "execution_order": execution_order
    }


def build_pipeline_from_graph(
    nodes: List[Dict[str, Any]],
    connections: List[Dict[str, str]]
) -> Dict[str, Any]:
    """
    Convenience function to build complete pipeline from node graph.

    Raises:
        ValueError: If the graph has a cycle or a connection to an unknown node
    """
    dependencies = build_dependency_map(nodes, connections)

    known = set(dependencies)
    for connection in connections:
        from_node = str(connection.get(FIELD_FROM_NODE, ""))
        if from_node not in known:
            raise ValueError(f"Connection references unknown node: '{from_node}'")

    node_stages = calculate_pipeline_stages(dependencies)
    return build_execution_pipeline(nodes, node_stages, dependencies)


def _run_node(node: Dict[str, Any], node_executors: Dict[str, Any], results: Dict[str, Any]) -> Any:
    node_type = node.get(FIELD_NODE_TYPE, "")
    if node_type not in node_executors:
        raise KeyError(f"No executor registered for node type: {node_type}")

    inputs = [results[dep_id] for dep_id in node.get("inputs", [])]
    return node_executors[node_type](node, inputs)


def execute_pipeline(
    pipeline: Dict[str, Any],
    node_executors: Dict[str, Any],
    use_threading: bool = True,
    max_workers: Optional[int] = None
) -> Dict[str, Any]:
    """
    Execute nodes in pipeline order with optional parallel execution.

    Stages marked with can_parallelize=True execute their nodes in parallel
    using ThreadPoolExecutor when use_threading is enabled.

    Args:
        pipeline: Pipeline structure from build_execution_pipeline()
        node_executors: Dict mapping node types to executor functions
        use_threading: Enable parallel execution for parallelizable stages (default: True)
        max_workers: Maximum number of threads (default: None = CPU count)

    Returns:
        Dictionary mapping node_id -> execution result

    Raises:
        KeyError: If a node type has no registered executor
        PipelineExecutionError: If an executor raises; the original
            exception is chained as __cause__
    """
    results: Dict[str, Any] = {}

    for stage in pipeline.get("stages", []):
        stage_results: Dict[str, Any] = {}
        stage_nodes = stage.get("nodes", [])

        for node in stage_nodes:
            node_type = node.get(FIELD_NODE_TYPE, "")
            if node_type not in node_executors:
                raise KeyError(f"No executor registered for node type: {node_type}")

        if stage.get("can_parallelize", False) and use_threading and len(stage_nodes) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures: Dict[Future, str] = {
                    executor.submit(_run_node, node, node_executors, results): str(node.get(FIELD_NODE_ID, ""))
                    for node in stage_nodes
                }

                for future in as_completed(futures):
                    node_id = futures[future]
                    try:
                        stage_results[node_id] = future.result()
                    except Exception as e:
                        raise PipelineExecutionError(node_id, e) from e
        else:
            for node in stage_nodes:
                node_id = str(node.get(FIELD_NODE_ID, ""))
                try:
                    stage_results[node_id] = _run_node(node, node_executors, results)
                except Exception as e:
                    raise PipelineExecutionError(node_id, e) from e

        results.update(stage_results)

    return results


def build_unblend_graph(
    image_path: str,
    mask_path: str,
    output_path: str,
    config: UnblendNodeConfig,
    save_format: str = DEFAULT_OUTPUT_FORMAT,
    overwrite: bool = False,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, str]]]:
    """
    Build the image + mask -> unblend -> output graph.

    Returns:
        (nodes, connections) ready for build_pipeline_from_graph()
    """
    unblend_node = {FIELD_NODE_ID: NODE_ID_UNBLEND, FIELD_NODE_TYPE: NODE_TYPE_UNBLEND}
    unblend_node.update(config.to_dict())

    nodes = [
        create_import_image_node(NODE_ID_IMAGE, image_path),
        create_import_image_node(NODE_ID_MASK, mask_path),
        unblend_node,
        create_output_node(
            NODE_ID_OUTPUT,
            output_path,
            save_format=save_format,
            overwrite=overwrite,
        ),
    ]
    connections = [
        {FIELD_FROM_NODE: NODE_ID_IMAGE, FIELD_TO_NODE: NODE_ID_UNBLEND},
        {FIELD_FROM_NODE: NODE_ID_MASK, FIELD_TO_NODE: NODE_ID_UNBLEND},
        {FIELD_FROM_NODE: NODE_ID_UNBLEND, FIELD_TO_NODE: NODE_ID_OUTPUT},
    ]
    return nodes, connections
