"""
ImageEditingLib - Core pixel model and unblend computation

This module provides the pixel buffer model, the unblend filter, image
decode/encode operations and the error types for Overlay Unblend.
"""

from UB_Libs.ImageEditingLib.image_models import BLACK, WHITE, Pixel, PixelBuffer, RgbColor
from UB_Libs.ImageEditingLib.errors import (
    BufferSizeError,
    DegenerateAlphaError,
    DimensionMismatchError,
    ImageDecodeError,
    ImageEncodeError,
    InvalidOverlayColorError,
    OutOfRangeAccessError,
    PipelineExecutionError,
    UnblendError,
)
from UB_Libs.ImageEditingLib.unblend_filter import (
    UnblendFilter,
    UnblendOptions,
    blend,
    unblend,
)
from UB_Libs.ImageEditingLib.image_editing_ops import (
    decode_image,
    encode_image,
    load_image,
    read_file,
    save_image,
)

__all__ = [
    "BLACK",
    "WHITE",
    "Pixel",
    "PixelBuffer",
    "RgbColor",
    "BufferSizeError",
    "DegenerateAlphaError",
    "DimensionMismatchError",
    "ImageDecodeError",
    "ImageEncodeError",
    "InvalidOverlayColorError",
    "OutOfRangeAccessError",
    "PipelineExecutionError",
    "UnblendError",
    "UnblendFilter",
    "UnblendOptions",
    "blend",
    "unblend",
    "decode_image",
    "encode_image",
    "load_image",
    "read_file",
    "save_image",
]
