"""
Image decode/encode and file operations for Overlay Unblend.

This module is the boundary between encoded image files and PixelBuffers.
Pillow does all format work; everything past this module sees row-major RGB
pixels only.

Functions:
    read_file: Read a file's raw bytes
    decode_image: Decode encoded bytes into a PixelBuffer
    load_image: Read and decode an image file
    encode_image: Encode a PixelBuffer into bytes
    save_image: Encode a PixelBuffer and write it to disk
"""

from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Union
import logging

from PIL import Image, UnidentifiedImageError

from UB_Libs.ImageEditingLib.errors import ImageDecodeError, ImageEncodeError
from UB_Libs.ImageEditingLib.image_models import PixelBuffer
from UB_Libs.constants import (
    DEFAULT_LOSSLESS,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_OUTPUT_QUALITY,
    LOSSLESS_FORMATS,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_file(path: PathLike) -> bytes:
    """
    Read the full contents of a file.

    Args:
        path: File to read

    Returns:
        The file's bytes

    Raises:
        OSError: If the file does not exist or cannot be read
    """
    path = Path(path)
    if not path.is_file():
        raise OSError(f"could not open {path}")

    data = path.read_bytes()
    logger.info(f"{path}: read {len(data)} bytes")
    return data


def decode_image(data: bytes, source: str = "<bytes>") -> PixelBuffer:
    """
    Decode encoded image bytes (WebP, PNG, JPEG, ...) into an RGB PixelBuffer.

    Alpha channels and palettes are discarded by conversion to RGB.

    Raises:
        ImageDecodeError: If Pillow cannot identify or decode the data
    """
    try:
        with Image.open(BytesIO(data)) as image:
            image.load()
            buffer = PixelBuffer.from_image(image)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"failed to decode image {source}: {e}") from e

    logger.info(f"decoded {source}: width={buffer.width}, height={buffer.height}")
    return buffer


def load_image(path: PathLike) -> PixelBuffer:
    """Read and decode an image file."""
    path = Path(path)
    return decode_image(read_file(path), source=str(path))


def get_save_kwargs(
    save_format: str = DEFAULT_OUTPUT_FORMAT,
    lossless: bool = DEFAULT_LOSSLESS,
    quality: int = DEFAULT_OUTPUT_QUALITY,
) -> Dict[str, Any]:
    """Get PIL Image.save() kwargs for a format."""
    # PIL uses "JPEG" not "JPG"
    fmt = save_format.upper()
    if fmt == "JPG":
        fmt = "JPEG"

    kwargs: Dict[str, Any] = {"format": fmt}

    if fmt in LOSSLESS_FORMATS:
        kwargs["lossless"] = bool(lossless)
    if fmt in ("JPEG", "WEBP"):
        kwargs["quality"] = max(1, min(100, int(quality)))

    return kwargs


def encode_image(
    buffer: PixelBuffer,
    save_format: str = DEFAULT_OUTPUT_FORMAT,
    lossless: bool = DEFAULT_LOSSLESS,
    quality: int = DEFAULT_OUTPUT_QUALITY,
) -> bytes:
    """
    Encode a PixelBuffer.

    Args:
        buffer: Pixels to encode
        save_format: Pillow format name (WEBP, PNG, JPG, ...)
        lossless: Use lossless compression where the format supports it
        quality: Quality 1-100 for lossy formats

    Returns:
        Encoded bytes

    Raises:
        ImageEncodeError: If Pillow cannot encode the buffer in that format
    """
    kwargs = get_save_kwargs(save_format, lossless, quality)
    out = BytesIO()
    try:
        buffer.to_image().save(out, **kwargs)
    except (KeyError, OSError, ValueError) as e:
        raise ImageEncodeError(f"failed to encode image as {kwargs['format']}: {e}") from e
    return out.getvalue()


def save_image(
    buffer: PixelBuffer,
    path: PathLike,
    save_format: str = DEFAULT_OUTPUT_FORMAT,
    lossless: bool = DEFAULT_LOSSLESS,
    quality: int = DEFAULT_OUTPUT_QUALITY,
    create_directories: bool = False,
) -> Path:
    """
    Encode a PixelBuffer and write it to path.

    Missing parent directories are created only once encoding succeeded.

    Returns:
        The path written

    Raises:
        ImageEncodeError: If encoding fails
        OSError: If the file cannot be written
    """
    path = Path(path)
    data = encode_image(buffer, save_format, lossless, quality)
    if create_directories:
        path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Saving to {path}")
    path.write_bytes(data)
    return path
