"""
Unblend Node.

Recovers the original colors of an overlaid image. The node takes two inputs,
the composite image and its mask, and outputs the recovered image.

Example:
    >>> node = create_unblend_node("unblend-1", alpha=0.5, overlay_color=(255, 255, 255))
    >>> recovered = registry.execute("Unblend", node, [composite, mask])
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from UB_Libs.ImageEditingLib.image_models import PixelBuffer, RgbColor
from UB_Libs.ImageEditingLib.unblend_filter import UnblendFilter, UnblendOptions
from UB_Libs.constants import (
    DEFAULT_BACKEND,
    DEFAULT_OVERLAY_COLOR,
    DEFAULT_ROUNDING,
    NODE_TYPE_UNBLEND,
)


@dataclass
class UnblendNodeConfig:
    """Configuration for unblend node.

    Attributes:
        alpha: Blend factor used to create the composite, in (0, 1]
        overlay_color: RGB overlay color
        rounding: 'truncate' or 'nearest'
        backend: 'python' or 'numpy'
        workers: Thread count for the python backend (None = serial)
    """
    alpha: float = 0.5
    overlay_color: RgbColor = DEFAULT_OVERLAY_COLOR
    rounding: str = DEFAULT_ROUNDING
    backend: str = DEFAULT_BACKEND
    workers: Optional[int] = None

    def to_options(self) -> UnblendOptions:
        """Validated compositing parameters for the filter."""
        return UnblendOptions(
            alpha=self.alpha,
            overlay_color=tuple(self.overlay_color),
            rounding=self.rounding,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "alpha": self.alpha,
            "overlay_color": list(self.overlay_color),
            "rounding": self.rounding,
            "backend": self.backend,
            "workers": self.workers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnblendNodeConfig":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def execute_unblend_node(node: Dict[str, Any], inputs: List[Any]) -> PixelBuffer:
    """
    Execute unblend node in pipeline.

    Node dict should contain:
        - 'alpha': Blend factor (required)
        - 'overlay_color': [r, g, b] overlay color
        - 'rounding', 'backend', 'workers': optional

    Inputs:
        - [0]: Composite image (PixelBuffer)
        - [1]: Mask image (PixelBuffer)

    Returns:
        Recovered PixelBuffer

    Raises:
        KeyError: If alpha is missing
        ValueError: If inputs are missing or parameters invalid
        TypeError: If inputs are not PixelBuffers
    """
    if not inputs or len(inputs) < 2:
        raise ValueError("Unblend node requires 2 inputs: image and mask")

    composite = inputs[0]
    mask = inputs[1]

    if not isinstance(composite, PixelBuffer):
        raise TypeError(f"Expected PixelBuffer for image input, got {type(composite)}")

    if not isinstance(mask, PixelBuffer):
        raise TypeError(f"Expected PixelBuffer for mask input, got {type(mask)}")

    if "alpha" not in node:
        raise KeyError("Unblend node missing required 'alpha' field")

    config = UnblendNodeConfig.from_dict(node)
    return UnblendFilter().unblend_buffer(
        composite,
        mask,
        config.to_options(),
        backend=config.backend,
        workers=config.workers,
    )


def create_unblend_node(
    node_id: str,
    alpha: float,
    overlay_color: RgbColor = DEFAULT_OVERLAY_COLOR,
    rounding: str = DEFAULT_ROUNDING,
    backend: str = DEFAULT_BACKEND,
    workers: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Create unblend node for graph.

    Args:
        node_id: Unique node identifier
        alpha: Blend factor used to create the composite
        overlay_color: RGB overlay color
        rounding: 'truncate' or 'nearest'
        backend: 'python' or 'numpy'
        workers: Thread count for the python backend

    Returns:
        Node dict for graph
    """
    return {
        "id": node_id,
        "type": NODE_TYPE_UNBLEND,
        "alpha": alpha,
        "overlay_color": list(overlay_color),
        "rounding": rounding,
        "backend": backend,
        "workers": workers,
    }
