"""
PipelineLib - Node executor registry and pipeline execution

This module turns a node graph (image import, unblend, output) into staged
execution and runs it.
"""

from UB_Libs.PipelineLib.node_executors import (
    NodeExecutorRegistry,
    NodeSpec,
    get_default_registry,
    register_default_executors,
)
from UB_Libs.PipelineLib.pipeline_builder import (
    build_dependency_map,
    calculate_pipeline_stages,
    build_execution_pipeline,
    build_pipeline_from_graph,
    build_unblend_graph,
    execute_pipeline,
)

__all__ = [
    "NodeExecutorRegistry",
    "NodeSpec",
    "get_default_registry",
    "register_default_executors",
    "build_dependency_map",
    "calculate_pipeline_stages",
    "build_execution_pipeline",
    "build_pipeline_from_graph",
    "build_unblend_graph",
    "execute_pipeline",
]
