"""
Unblend Filter: recover original colors from an overlaid image.

An overlay composites a solid color over an image with the linear blend

    final = original * alpha + overlay * (1 - alpha)

Given the composite, a mask of overlaid pixels, alpha and the overlay color,
the filter solves for the original color independently per channel:

    original = clamp((final - overlay * (1 - alpha)) / alpha, 0, 255)

Pixels whose mask value is exactly black (0, 0, 0) are left untouched. Any
other mask value marks the pixel as overlaid.

Backends:
    - python: per-pixel loop over PixelBuffer, optionally sharded by row
      across a thread pool
    - numpy: vectorized over the whole image

Both backends compute in float64 and produce identical output.

Example:
    >>> options = UnblendOptions(alpha=0.5, overlay_color=(255, 255, 255))
    >>> UnblendFilter().unblend_pixel((200, 200, 200), options)
    Pixel(r=145, g=145, b=145)
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence
import logging
import math
import numbers

import numpy as np

from UB_Libs.ImageEditingLib.errors import (
    DegenerateAlphaError,
    DimensionMismatchError,
    InvalidOverlayColorError,
)
from UB_Libs.ImageEditingLib.image_models import BLACK, Pixel, PixelBuffer, RgbColor

logger = logging.getLogger(__name__)

RoundingMode = Literal["truncate", "nearest"]
Backend = Literal["python", "numpy"]

ROUNDING_MODES = ("truncate", "nearest")
BACKENDS = ("python", "numpy")


def get_available_backends() -> List[str]:
    """
    Get the unblend backends that can be requested.

    Returns:
        ['python', 'numpy']
    """
    return list(BACKENDS)


@dataclass(frozen=True)
class UnblendOptions:
    """Known compositing parameters, validated once at construction.

    Attributes:
        alpha: Fraction of the original color kept by the overlay, in (0, 1]
        overlay_color: RGB overlay color, each channel 0-255
        rounding: How the clamped float is narrowed to a channel value.
            'truncate' drops the fraction, 'nearest' rounds half to even.
    """
    alpha: float
    overlay_color: RgbColor = (255, 255, 255)
    rounding: RoundingMode = "truncate"

    def __post_init__(self) -> None:
        object.__setattr__(self, "alpha", _validate_alpha(self.alpha))
        object.__setattr__(self, "overlay_color", _validate_overlay_color(self.overlay_color))
        if self.rounding not in ROUNDING_MODES:
            raise ValueError(
                f"Unsupported rounding mode: {self.rounding}. "
                f"Use one of: {', '.join(ROUNDING_MODES)}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "alpha": self.alpha,
            "overlay_color": list(self.overlay_color),
            "rounding": self.rounding,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnblendOptions":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                   if k in cls.__dataclass_fields__}
        return cls(**filtered)


def _validate_alpha(alpha: Any) -> float:
    if isinstance(alpha, bool) or not isinstance(alpha, numbers.Real):
        raise DegenerateAlphaError(alpha)
    value = float(alpha)
    if not math.isfinite(value) or not 0.0 < value <= 1.0:
        raise DegenerateAlphaError(alpha)
    return value


def _validate_overlay_color(color: Any) -> Pixel:
    if isinstance(color, (str, bytes)) or not isinstance(color, Sequence):
        raise InvalidOverlayColorError(f"overlay_color must be an (r, g, b) sequence, got {color!r}")
    if len(color) != 3:
        raise InvalidOverlayColorError(
            f"overlay_color must have 3 channels, got {len(color)}: {color!r}"
        )
    for channel in color:
        if isinstance(channel, bool) or not isinstance(channel, numbers.Integral):
            raise InvalidOverlayColorError(f"overlay_color channels must be integers, got {color!r}")
        if not 0 <= channel <= 255:
            raise InvalidOverlayColorError(f"overlay_color channels must be 0-255, got {color!r}")
    return Pixel(int(color[0]), int(color[1]), int(color[2]))


class UnblendFilter:
    def __init__(self) -> None:
        pass

    def unblend_channel(
        self,
        final: int,
        overlay: int,
        alpha: float,
        rounding: RoundingMode = "truncate",
    ) -> int:
        value = (float(final) - float(overlay) * (1.0 - alpha)) / alpha
        return self._narrow(self._clamp_channel(value), rounding)

    def unblend_pixel(self, final_pixel: Sequence[int], options: UnblendOptions) -> Pixel:
        r, g, b = Pixel.from_sequence(final_pixel)
        vr, vg, vb = options.overlay_color
        alpha = options.alpha
        rounding = options.rounding
        return Pixel(
            self.unblend_channel(r, vr, alpha, rounding),
            self.unblend_channel(g, vg, alpha, rounding),
            self.unblend_channel(b, vb, alpha, rounding),
        )

    def blend_channel(self, original: int, overlay: int, alpha: float) -> int:
        value = float(original) * alpha + float(overlay) * (1.0 - alpha)
        return self._narrow(self._clamp_channel(value), "nearest")

    def blend_pixel(self, original_pixel: Sequence[int], options: UnblendOptions) -> Pixel:
        r, g, b = Pixel.from_sequence(original_pixel)
        vr, vg, vb = options.overlay_color
        alpha = options.alpha
        return Pixel(
            self.blend_channel(r, vr, alpha),
            self.blend_channel(g, vg, alpha),
            self.blend_channel(b, vb, alpha),
        )

    def is_masked(self, mask_pixel: Sequence[int]) -> bool:
        """True when mask_pixel marks an overlaid pixel (anything but exact black)."""
        return Pixel.from_sequence(mask_pixel) != BLACK

    def count_masked(self, mask: PixelBuffer) -> int:
        return sum(1 for pixel in mask.pixels if pixel != BLACK)

    def unblend_rows(
        self,
        composite: PixelBuffer,
        mask: PixelBuffer,
        options: UnblendOptions,
        rows: Iterable[int],
        recovered: PixelBuffer,
    ) -> None:
        """
        Unblend the given rows of composite into recovered.

        Each output pixel depends only on the composite and mask pixel at
        the same coordinate, so rows may be processed in any order or from
        several threads at once.
        """
        for y in rows:
            for x in range(composite.width):
                if mask.get_pixel(x, y) == BLACK:
                    continue
                final_pixel = composite.get_pixel(x, y)
                recovered.set_pixel(x, y, self.unblend_pixel(final_pixel, options))

    def unblend_buffer(
        self,
        composite: PixelBuffer,
        mask: PixelBuffer,
        options: UnblendOptions,
        backend: Backend = "python",
        workers: Optional[int] = None,
    ) -> PixelBuffer:
        """
        Recover the original image from a composite.

        Args:
            composite: The overlaid image
            mask: Same-size buffer; black = untouched, anything else = overlaid
            options: Alpha, overlay color and rounding mode
            backend: 'python' or 'numpy'
            workers: Number of threads for the python backend (None or 1 = serial)

        Returns:
            New PixelBuffer, equal to composite at unmasked pixels

        Raises:
            DimensionMismatchError: If mask and composite sizes differ
            ValueError: If backend or workers is invalid
        """
        self._check_dimensions(composite, mask)

        if backend not in BACKENDS:
            raise ValueError(f"Invalid backend: {backend}. Use 'python' or 'numpy'.")
        if workers is not None and workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        logger.info(
            f"Unblending {composite.width}x{composite.height} image "
            f"({self.count_masked(mask)} masked pixels) with alpha={options.alpha}, "
            f"overlay_color={tuple(options.overlay_color)}, backend={backend}"
        )

        if backend == "numpy":
            return self._unblend_buffer_numpy(composite, mask, options)

        recovered = composite.copy()

        if not workers or workers == 1 or composite.height < 2:
            self.unblend_rows(composite, mask, options, range(composite.height), recovered)
            return recovered

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self.unblend_rows, composite, mask, options, rows, recovered)
                for rows in self._row_shards(composite.height, workers)
            ]
            for future in futures:
                future.result()

        return recovered

    def blend_buffer(
        self,
        original: PixelBuffer,
        mask: PixelBuffer,
        options: UnblendOptions,
    ) -> PixelBuffer:
        """
        Forward composite: overlay options.overlay_color onto original
        wherever mask is not black.
        """
        self._check_dimensions(original, mask)

        composite = original.copy()
        for x, y, mask_pixel in mask:
            if mask_pixel == BLACK:
                continue
            composite.set_pixel(x, y, self.blend_pixel(original.get_pixel(x, y), options))
        return composite

    def _unblend_buffer_numpy(
        self,
        composite: PixelBuffer,
        mask: PixelBuffer,
        options: UnblendOptions,
    ) -> PixelBuffer:
        composite_array = composite.to_array()
        selected = np.any(mask.to_array() != 0, axis=2)

        overlay = np.array(options.overlay_color, dtype=np.float64)
        values = (composite_array.astype(np.float64) - overlay * (1.0 - options.alpha)) / options.alpha
        values = np.clip(np.nan_to_num(values, nan=0.0, posinf=255.0, neginf=0.0), 0.0, 255.0)
        if options.rounding == "nearest":
            values = np.rint(values)
        recovered_values = values.astype(np.uint8)

        result = np.where(selected[..., None], recovered_values, composite_array)
        return PixelBuffer.from_array(result)

    def _check_dimensions(self, image: PixelBuffer, mask: PixelBuffer) -> None:
        if not image.same_size(mask):
            raise DimensionMismatchError(image.size, mask.size)

    def _row_shards(self, height: int, workers: int) -> List[range]:
        shard_count = min(workers, height)
        step = math.ceil(height / shard_count)
        return [range(start, min(start + step, height)) for start in range(0, height, step)]

    def _clamp_channel(self, value: float) -> float:
        # NaN compares false against everything; pin it to 0.
        if math.isnan(value):
            return 0.0
        return max(0.0, min(255.0, value))

    def _narrow(self, value: float, rounding: RoundingMode) -> int:
        if rounding == "nearest":
            return int(round(value))
        return int(value)


def unblend(
    composite: PixelBuffer,
    mask: PixelBuffer,
    alpha: float,
    overlay_color: RgbColor,
    rounding: RoundingMode = "truncate",
    backend: Backend = "python",
    workers: Optional[int] = None,
) -> PixelBuffer:
    """
    Recover the original image from loose compositing parameters.

    Raises:
        DegenerateAlphaError: If alpha is not in (0, 1]
        InvalidOverlayColorError: If overlay_color is not a valid RGB triple
        DimensionMismatchError: If mask and composite sizes differ
    """
    options = UnblendOptions(alpha=alpha, overlay_color=overlay_color, rounding=rounding)
    return UnblendFilter().unblend_buffer(composite, mask, options, backend=backend, workers=workers)


def blend(
    original: PixelBuffer,
    mask: PixelBuffer,
    alpha: float,
    overlay_color: RgbColor,
) -> PixelBuffer:
    """Overlay overlay_color onto original at every non-black mask pixel."""
    options = UnblendOptions(alpha=alpha, overlay_color=overlay_color)
    return UnblendFilter().blend_buffer(original, mask, options)
