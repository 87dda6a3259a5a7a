"""
Overlay Unblend Nodes Library.

This module contains the node implementations used by the unblend pipeline.

Modules:
    image_import_node: Image import node for loading images
    unblend_node: Unblend node recovering overlaid pixels
    output_node: Output node for saving images
"""

from UB_Libs.NodesLib.image_import_node import (
    ImageImportNode,
    execute_import_image_node,
    create_import_image_node,
    get_supported_image_formats,
    is_supported_format,
)
from UB_Libs.NodesLib.unblend_node import (
    UnblendNodeConfig,
    execute_unblend_node,
    create_unblend_node,
)
from UB_Libs.NodesLib.output_node import (
    OutputNodeConfig,
    OutputNodeHandler,
    execute_output_node,
    create_output_node,
)

__all__ = [
    "ImageImportNode",
    "execute_import_image_node",
    "create_import_image_node",
    "get_supported_image_formats",
    "is_supported_format",
    "UnblendNodeConfig",
    "execute_unblend_node",
    "create_unblend_node",
    "OutputNodeConfig",
    "OutputNodeHandler",
    "execute_output_node",
    "create_output_node",
]
