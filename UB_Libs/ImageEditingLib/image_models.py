"""
Image data models for Overlay Unblend.

This module defines the pixel containers every image operation reads and writes.

Classes:
    Pixel: Immutable RGB triple with 8-bit channels
    PixelBuffer: Row-major 2D grid of Pixels with bounds-checked access

Type Aliases:
    RgbColor: A tuple of 3 integers representing RGB color values (0-255)

Constants:
    BLACK: Pixel(0, 0, 0), the "not overlaid" mask value
    WHITE: Pixel(255, 255, 255), the conventional "overlaid" mask value
"""

from typing import Any, Iterator, List, NamedTuple, Optional, Sequence, Tuple
import numbers

import numpy as np
from PIL import Image

from UB_Libs.ImageEditingLib.errors import BufferSizeError, OutOfRangeAccessError

RgbColor = Tuple[int, int, int]

CHANNELS = 3


class Pixel(NamedTuple):
    r: int = 0
    g: int = 0
    b: int = 0

    @classmethod
    def from_sequence(cls, value: Sequence[int]) -> "Pixel":
        """
        Build a Pixel from any sequence of at least three channel values.

        Extra items (an alpha channel, for instance) are ignored.

        Raises:
            ValueError: If fewer than three channels are given or a channel
                is not an integer in 0-255
        """
        if isinstance(value, cls):
            return value

        channels = tuple(value)
        if len(channels) < CHANNELS:
            raise ValueError(f"Pixel needs 3 channels, got {len(channels)}: {value!r}")

        for channel in channels[:CHANNELS]:
            if isinstance(channel, bool) or not isinstance(channel, numbers.Integral):
                raise ValueError(f"Channel values must be integers: {value!r}")
            if not 0 <= channel <= 255:
                raise ValueError(f"Channel value out of range 0-255: {value!r}")
        r, g, b = (int(channel) for channel in channels[:CHANNELS])
        return cls(r, g, b)


BLACK = Pixel(0, 0, 0)
WHITE = Pixel(255, 255, 255)


class PixelBuffer:
    """
    Row-major grid of RGB pixels.

    Pixel (x, y) is stored at index ``y * width + x`` of ``pixels``. The
    length of ``pixels`` is always ``width * height``.

    Coordinates are valid when ``0 <= x < width`` and ``0 <= y < height``.
    Reads and writes outside that range raise OutOfRangeAccessError rather
    than returning a default pixel or dropping the write.

    Example:
        >>> buffer = PixelBuffer(2, 1, bytes([255, 0, 0, 0, 0, 255]))
        >>> buffer.get_pixel(1, 0)
        Pixel(r=0, g=0, b=255)
    """

    def __init__(self, width: int, height: int, data: Optional[bytes] = None):
        """
        Create a buffer, zero-filled or populated from interleaved RGB bytes.

        Args:
            width: Buffer width in pixels (>= 0)
            height: Buffer height in pixels (>= 0)
            data: Optional bytes-like holding width * height * 3 channel values

        Raises:
            ValueError: If width or height is negative
            BufferSizeError: If data has the wrong length
        """
        width = int(width)
        height = int(height)
        if width < 0 or height < 0:
            raise ValueError(f"Buffer dimensions must be non-negative, got {width}x{height}")

        self.width = width
        self.height = height

        count = width * height
        if data is None:
            self.pixels: List[Pixel] = [BLACK] * count
            return

        raw = bytes(data)
        if len(raw) != count * CHANNELS:
            raise BufferSizeError(
                f"Expected {count * CHANNELS} bytes for {width}x{height} RGB data, "
                f"got {len(raw)}"
            )
        self.pixels = [
            Pixel(raw[i], raw[i + 1], raw[i + 2])
            for i in range(0, len(raw), CHANNELS)
        ]

    @classmethod
    def from_image(cls, image: Any) -> "PixelBuffer":
        """Copy a PIL Image (any mode) into a new buffer, converting to RGB."""
        if image.mode != "RGB":
            image = image.convert("RGB")
        width, height = image.size
        return cls(width, height, image.tobytes())

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Copy an (H, W, 3) uint8 array into a new buffer."""
        if array.ndim != 3 or array.shape[2] != CHANNELS:
            raise ValueError(f"Expected array of shape (H, W, 3), got {array.shape}")
        height, width = array.shape[:2]
        return cls(width, height, np.ascontiguousarray(array, dtype=np.uint8).tobytes())

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_pixel(self, x: int, y: int) -> Pixel:
        if not self.contains(x, y):
            raise OutOfRangeAccessError(x, y, self.width, self.height)
        return self.pixels[y * self.width + x]

    def set_pixel(self, x: int, y: int, value: Sequence[int]) -> None:
        if not self.contains(x, y):
            raise OutOfRangeAccessError(x, y, self.width, self.height)
        self.pixels[y * self.width + x] = Pixel.from_sequence(value)

    def fill(self, value: Sequence[int]) -> None:
        """Set every pixel to value."""
        pixel = Pixel.from_sequence(value)
        self.pixels = [pixel] * (self.width * self.height)

    def same_size(self, other: "PixelBuffer") -> bool:
        return self.size == other.size

    def copy(self) -> "PixelBuffer":
        clone = PixelBuffer(0, 0)
        clone.width = self.width
        clone.height = self.height
        clone.pixels = list(self.pixels)
        return clone

    def to_bytes(self) -> bytes:
        """Interleaved row-major RGB bytes, the layout encoders expect."""
        return bytes(channel for pixel in self.pixels for channel in pixel)

    def to_array(self) -> np.ndarray:
        """(H, W, 3) uint8 copy of the buffer."""
        flat = np.frombuffer(self.to_bytes(), dtype=np.uint8)
        return flat.reshape((self.height, self.width, CHANNELS)).copy()

    def to_image(self) -> Any:
        """New PIL RGB Image holding the buffer contents."""
        return Image.frombytes("RGB", self.size, self.to_bytes())

    def __iter__(self) -> Iterator[Tuple[int, int, Pixel]]:
        for index, pixel in enumerate(self.pixels):
            y, x = divmod(index, self.width)
            yield x, y, pixel

    def __len__(self) -> int:
        return len(self.pixels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and self.pixels == other.pixels

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"
