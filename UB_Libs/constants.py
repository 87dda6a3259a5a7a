"""
Constants and configuration values for Overlay Unblend.

This module centralizes all constant values and default settings used
throughout the package.
"""

# Node types
NODE_TYPE_IMAGE_IMPORT = "Image Import"
NODE_TYPE_UNBLEND = "Unblend"
NODE_TYPE_OUTPUT = "Output"

# Node ids used by the command line graph
NODE_ID_IMAGE = "image"
NODE_ID_MASK = "mask"
NODE_ID_UNBLEND = "unblend"
NODE_ID_OUTPUT = "output"

# Node/Connection field names
FIELD_NODE_ID = "id"
FIELD_NODE_TYPE = "type"
FIELD_FROM_NODE = "from_node"
FIELD_TO_NODE = "to_node"

# Unblend defaults
DEFAULT_OVERLAY_COLOR = (255, 255, 255)
DEFAULT_ROUNDING = "truncate"
DEFAULT_BACKEND = "python"

# Output defaults
DEFAULT_OUTPUT_FORMAT = "WEBP"
DEFAULT_OUTPUT_QUALITY = 95
DEFAULT_LOSSLESS = True

# Supported file formats
SUPPORTED_STANDARD_IMAGES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".webp"}
LOSSLESS_FORMATS = {"WEBP"}
