"""
Output Node for Overlay Unblend.

This node encodes a PixelBuffer and writes it to disk. WebP lossless is the
default so recovered pixels are stored exactly.

Classes:
    OutputNodeConfig: Configuration for output node
    OutputNodeHandler: Handles path validation and file output

Functions:
    execute_output_node: Pipeline executor for output nodes
    create_output_node: Helper to create output node dictionary
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from UB_Libs.ImageEditingLib.image_editing_ops import get_save_kwargs, save_image
from UB_Libs.ImageEditingLib.image_models import PixelBuffer
from UB_Libs.constants import (
    DEFAULT_LOSSLESS,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_OUTPUT_QUALITY,
    NODE_TYPE_OUTPUT,
)


@dataclass
class OutputNodeConfig:
    """Configuration for output node execution.

    Attributes:
        output_path: Output file path
        save_format: Image format to save as (WEBP, PNG, JPG, default: WEBP)
        lossless: Lossless compression for formats that support it (default: True)
        quality: Quality 1-100 for lossy formats (default: 95)
        create_directories: Create output directories if they don't exist (default: True)
        overwrite: Overwrite existing files (default: False)
        base_directory: Optional base directory to restrict outputs (None = no restriction)
    """
    output_path: str = "output.webp"
    save_format: str = DEFAULT_OUTPUT_FORMAT
    lossless: bool = DEFAULT_LOSSLESS
    quality: int = DEFAULT_OUTPUT_QUALITY
    create_directories: bool = True
    overwrite: bool = False
    base_directory: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutputNodeConfig":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)

    def get_save_kwargs(self) -> Dict[str, Any]:
        """Get PIL Image.save() kwargs based on format."""
        return get_save_kwargs(self.save_format, self.lossless, self.quality)


class OutputNodeHandler:
    """Handles output path validation and file I/O for output nodes."""

    def __init__(self, config: OutputNodeConfig):
        """Initialize handler with configuration."""
        self.config = config
        self._base_dir = None
        if config.base_directory:
            base_path = Path(config.base_directory)
            if not base_path.is_absolute():
                raise ValueError(f"base_directory must be an absolute path: {config.base_directory}")
            self._base_dir = base_path.resolve()

    def resolve_filename(self) -> Path:
        """
        Resolve and validate the output filename.

        Raises:
            ValueError: If path contains traversal sequences or is outside base_directory
        """
        path_str = self.config.output_path
        path = Path(path_str)

        if ".." in path.parts:
            raise ValueError(
                f"Path traversal detected: output_path contains '..': {path_str}"
            )

        if path.is_absolute():
            resolved_path = path.resolve()
        elif self._base_dir:
            resolved_path = (self._base_dir / path).resolve()
        else:
            resolved_path = path.resolve()

        if self._base_dir:
            try:
                resolved_path.relative_to(self._base_dir)
            except ValueError:
                raise ValueError(
                    f"Security: output_path '{path_str}' resolves to '{resolved_path}' "
                    f"which is outside the allowed base directory '{self._base_dir}'"
                )

        return resolved_path

    def save_buffer(self, buffer: PixelBuffer) -> Path:
        """
        Encode buffer and save it to the resolved filename.

        Returns:
            Path where the image was saved

        Raises:
            TypeError: If buffer is not a PixelBuffer
            ValueError: If file exists and overwrite=False
            ImageEncodeError: If the buffer cannot be encoded
            OSError: If file cannot be written
        """
        if not isinstance(buffer, PixelBuffer):
            raise TypeError(f"Expected PixelBuffer, got {type(buffer)}")

        output_file = self.resolve_filename()

        if output_file.exists() and not self.config.overwrite:
            raise ValueError(
                f"Output file already exists: {output_file}. "
                f"Set overwrite=True to replace."
            )

        return save_image(
            buffer,
            output_file,
            save_format=self.config.save_format,
            lossless=self.config.lossless,
            quality=self.config.quality,
            create_directories=self.config.create_directories,
        )


def execute_output_node(node: Dict[str, Any], inputs: List[Any]) -> Path:
    """
    Pipeline executor for output nodes.

    Args:
        node: Node dictionary containing OutputNodeConfig fields;
            'output_path' is required
        inputs: Should contain exactly one element: the PixelBuffer to save

    Returns:
        Path where image was saved

    Raises:
        ValueError: If inputs empty, invalid config, or file already exists
        TypeError: If input is not a PixelBuffer
        OSError: If file cannot be written
    """
    if not inputs:
        raise ValueError("Output node requires 1 input image")

    if not node.get("output_path"):
        raise KeyError("Output node missing required 'output_path' field")

    config = OutputNodeConfig.from_dict(node)
    handler = OutputNodeHandler(config)
    return handler.save_buffer(inputs[0])


def create_output_node(
    node_id: str,
    output_path: str = "output.webp",
    save_format: str = DEFAULT_OUTPUT_FORMAT,
    lossless: bool = DEFAULT_LOSSLESS,
    quality: int = DEFAULT_OUTPUT_QUALITY,
    create_directories: bool = True,
    overwrite: bool = False,
) -> Dict[str, Any]:
    """
    Helper to create an output node dictionary for graph building.

    Args:
        node_id: Unique node identifier
        output_path: Output path/filename
        save_format: Image format (WEBP, PNG, JPG, BMP, ...)
        lossless: Lossless compression where supported
        quality: Quality 1-100 for lossy formats
        create_directories: Create output directories if missing
        overwrite: Overwrite existing files

    Returns:
        Node dictionary ready for graph building
    """
    return {
        "id": node_id,
        "type": NODE_TYPE_OUTPUT,
        "output_path": str(output_path),
        "save_format": save_format,
        "lossless": lossless,
        "quality": quality,
        "create_directories": create_directories,
        "overwrite": overwrite,
    }
