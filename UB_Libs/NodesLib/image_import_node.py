"""
Image Import Node for Overlay Unblend.

This module provides the ImageImportNode class that loads an image (the
composite or its mask) from the file system and hands it downstream as a
PixelBuffer.

Classes:
    ImageImportNode: Data model for image import node

Functions:
    execute_import_image_node: Pipeline executor for image import nodes
    create_import_image_node: Helper to create image import node dictionary
    get_supported_image_formats: Get list of supported image formats
    is_supported_format: Check a path's extension
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from UB_Libs.ImageEditingLib.image_editing_ops import load_image
from UB_Libs.ImageEditingLib.image_models import PixelBuffer
from UB_Libs.constants import NODE_TYPE_IMAGE_IMPORT, SUPPORTED_STANDARD_IMAGES


def get_supported_image_formats() -> List[str]:
    """
    Get list of supported image formats.

    Returns:
        List of file extensions (e.g., ['.bmp', '.gif', ...])
    """
    return sorted(list(SUPPORTED_STANDARD_IMAGES))


def is_supported_format(file_path: Path) -> bool:
    """
    Check if a file path has a supported image extension.

    Args:
        file_path: Path to the file

    Returns:
        True if the extension is supported
    """
    return Path(file_path).suffix.lower() in SUPPORTED_STANDARD_IMAGES


@dataclass
class ImageImportNode:
    """Data model for an image import node.

    Attributes:
        node_id: Unique identifier for this node
        file_path: Path to the image file to import
        cache_buffer: Whether to cache the decoded buffer (default True)
        cached_buffer: Cached PixelBuffer
    """

    node_id: str
    file_path: Path
    cache_buffer: bool = True
    cached_buffer: Optional[PixelBuffer] = field(default=None, init=False)

    def __post_init__(self):
        """Validate input parameters."""
        self.file_path = Path(self.file_path)

        if not self.file_path.exists():
            raise FileNotFoundError(f"Image file not found: {self.file_path}")

        if not self.file_path.is_file():
            raise ValueError(f"Path is not a file: {self.file_path}")

    def is_valid(self) -> bool:
        return self.file_path.is_file() and is_supported_format(self.file_path)

    def load_buffer(self) -> PixelBuffer:
        """
        Load and decode the image from disk.

        Returns:
            RGB PixelBuffer

        Raises:
            ImageDecodeError: If the file is not a decodable image
            OSError: If the file cannot be read
        """
        if self.cached_buffer is not None and self.cache_buffer:
            return self.cached_buffer

        buffer = load_image(self.file_path)

        if self.cache_buffer:
            self.cached_buffer = buffer

        return buffer

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        return {
            "node_id": self.node_id,
            "file_path": str(self.file_path),
            "cache_buffer": self.cache_buffer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageImportNode":
        """Create from dictionary representation."""
        return cls(
            node_id=data.get("node_id", ""),
            file_path=Path(data.get("file_path", "")),
            cache_buffer=data.get("cache_buffer", True),
        )


def execute_import_image_node(node: Dict[str, Any], inputs: List[Any]) -> PixelBuffer:
    """
    Pipeline executor for image import nodes.

    Args:
        node: Node dictionary containing:
            - 'file_path': Path to image file (required)
        inputs: Should be empty list (import nodes have no inputs)

    Returns:
        Decoded PixelBuffer

    Raises:
        KeyError: If required fields are missing
        FileNotFoundError: If image file not found
        ImageDecodeError: If the image cannot be decoded
    """
    file_path = node.get("file_path")
    if not file_path:
        raise KeyError("Image import node missing required 'file_path' field")

    node_id = node.get("id", node.get("node_id", "unknown"))

    import_node = ImageImportNode(
        node_id=node_id,
        file_path=Path(file_path),
        cache_buffer=False,
    )

    return import_node.load_buffer()


def create_import_image_node(node_id: str, file_path: str) -> Dict[str, Any]:
    """
    Helper to create an image import node dictionary for graph building.

    Args:
        node_id: Unique node identifier
        file_path: Image file to load

    Returns:
        Node dictionary
    """
    return {
        "id": node_id,
        "type": NODE_TYPE_IMAGE_IMPORT,
        "file_path": str(file_path),
    }
