"""
Pytest configuration and shared fixtures for Overlay Unblend tests.

This module provides shared test fixtures used across multiple test modules.
"""

import random

import pytest

from UB_Libs.ImageEditingLib.image_models import BLACK, WHITE, PixelBuffer


@pytest.fixture
def random_buffer():
    """
    Factory for seeded random RGB buffers.

    Returns:
        Callable (width, height, seed) -> PixelBuffer
    """
    def _make(width, height, seed=0):
        rng = random.Random(seed)
        data = bytes(rng.randrange(256) for _ in range(width * height * 3))
        return PixelBuffer(width, height, data)

    return _make


@pytest.fixture
def checker_mask():
    """
    Factory for masks alternating white and black pixels.

    Returns:
        Callable (width, height) -> PixelBuffer
    """
    def _make(width, height):
        mask = PixelBuffer(width, height)
        for y in range(height):
            for x in range(width):
                mask.set_pixel(x, y, WHITE if (x + y) % 2 == 0 else BLACK)
        return mask

    return _make


@pytest.fixture
def write_image(tmp_path):
    """
    Factory saving a PixelBuffer to tmp_path as PNG.

    Returns:
        Callable (buffer, name) -> Path
    """
    def _write(buffer, name="image.png"):
        path = tmp_path / name
        buffer.to_image().save(path, format="PNG")
        return path

    return _write
