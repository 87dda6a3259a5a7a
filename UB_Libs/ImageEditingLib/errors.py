"""
Exception types for the unblend system.

Every error derives from UnblendError so callers (the CLI in particular) can
catch the whole family at once, and from the builtin exception the rest of
the code base would raise for the same situation, so ``except ValueError``
style handlers keep working.
"""


class UnblendError(Exception):
    """Base class for all unblend failures."""


class DimensionMismatchError(UnblendError, ValueError):
    """Mask and composite buffers differ in width or height."""

    def __init__(self, composite_size, mask_size):
        self.composite_size = tuple(composite_size)
        self.mask_size = tuple(mask_size)
        super().__init__(
            f"Mask size {self.mask_size[0]}x{self.mask_size[1]} does not match "
            f"image size {self.composite_size[0]}x{self.composite_size[1]}"
        )


class DegenerateAlphaError(UnblendError, ValueError):
    """Alpha is zero, non-finite or outside (0, 1]."""

    def __init__(self, alpha):
        self.alpha = alpha
        super().__init__(f"alpha must be in (0, 1], got {alpha!r}")


class InvalidOverlayColorError(UnblendError, ValueError):
    """Overlay color is not three integer channels in [0, 255]."""


class OutOfRangeAccessError(UnblendError, IndexError):
    """Pixel coordinate lies outside the buffer."""

    def __init__(self, x, y, width, height):
        self.x = x
        self.y = y
        super().__init__(
            f"Pixel ({x}, {y}) is outside buffer of size {width}x{height}"
        )


class BufferSizeError(UnblendError, ValueError):
    """Raw channel data does not hold width * height * 3 bytes."""


class ImageDecodeError(UnblendError, OSError):
    """Encoded image bytes could not be decoded."""


class ImageEncodeError(UnblendError, OSError):
    """Pixel buffer could not be encoded."""


class PipelineExecutionError(UnblendError, RuntimeError):
    """A node raised while a pipeline was executing."""

    def __init__(self, node_id, cause):
        self.node_id = node_id
        super().__init__(f"Error executing node {node_id}: {cause}")
