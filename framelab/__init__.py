"""Bitmap frame transforms with reference verification, an affine renderer and a simulated heap allocator."""

__version__ = "0.1.0"
__all__ = ["bmpio", "frames", "reference", "fast", "allocator"]