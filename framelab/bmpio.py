"""Reading and writing 24-bit BMP images as packed RGB/RGBA pixel buffers.

Pixel buffers are laid out row by row from the top left corner to the bottom
right corner, without any padding: RGBRGB... or RGBARGBA...
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass

__all__ = [
    "Components",
    "BmpError",
    "InvalidFormatError",
    "InvalidSignatureError",
    "InvalidBitsPerPixelError",
    "Bitmap",
    "decode_bmp",
    "load_bmp",
    "encode_bmp",
    "save_bmp",
    "write_bmp",
    "format_frame",
]

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
HEADER_SIZE = FILE_HEADER_SIZE + INFO_HEADER_SIZE
SEPARATOR = "*" * 103


class Components(enum.IntEnum):
    """Number of bytes per pixel in a decoded buffer."""

    RGB = 3
    RGBA = 4


class BmpError(Exception):
    """Base class for bitmap decoding errors."""


class InvalidFormatError(BmpError):
    """The file is truncated or its layout is not a readable bitmap."""


class InvalidSignatureError(BmpError):
    """The file does not start with the 'BM' signature."""


class InvalidBitsPerPixelError(BmpError):
    """The bitmap is neither 24 nor 32 bits per pixel."""


@dataclass(frozen=True)
class Bitmap:
    """A decoded image: packed pixels plus dimensions."""

    pixels: bytes
    width: int
    height: int
    components: Components = Components.RGB


def _row_padding(width: int) -> int:
    return (4 - (width * 3) % 4) % 4


def _u32(value: int) -> bytes:
    return (value & 0xFFFFFFFF).to_bytes(4, "little")


def _header(width: int, height: int) -> bytes:
    size = HEADER_SIZE + width * height * 3
    file_header = b"BM" + _u32(size) + bytes(4) + _u32(HEADER_SIZE)
    info_header = (
        _u32(INFO_HEADER_SIZE)
        + _u32(width)
        + _u32(height)
        + (1).to_bytes(2, "little")
        + (24).to_bytes(2, "little")
    )
    info_header += bytes(INFO_HEADER_SIZE - len(info_header))
    return file_header + info_header


def decode_bmp(data: bytes, components: Components = Components.RGB) -> Bitmap:
    """Decode the bytes of a BMP file into a top-down pixel buffer."""
    components = Components(components)
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise InvalidFormatError("bitmap headers are truncated")
    file_header = data[:FILE_HEADER_SIZE]
    info_header = data[FILE_HEADER_SIZE:HEADER_SIZE]
    if file_header[:2] != b"BM":
        raise InvalidSignatureError("missing 'BM' signature")
    if info_header[14] not in (24, 32):
        raise InvalidBitsPerPixelError(
            f"unsupported bits per pixel: {info_header[14]}"
        )
    width = int.from_bytes(info_header[4:8], "little")
    height = int.from_bytes(info_header[8:12], "little")
    if width == 0 or height == 0:
        return Bitmap(b"", width, height, components)

    stride = width * 3 + _row_padding(width)
    if len(data) < HEADER_SIZE + stride * height:
        raise InvalidFormatError("pixel data is truncated")

    row_size = width * components
    out = bytearray(row_size * height)
    body = memoryview(data)[HEADER_SIZE:]
    for file_row in range(height):
        source = bytes(body[file_row * stride : file_row * stride + width * 3])
        target = bytearray(row_size)
        target[0::components] = source[2::3]
        target[1::components] = source[1::3]
        target[2::components] = source[0::3]
        if components == Components.RGBA:
            target[3::4] = b"\xff" * width
        y = height - 1 - file_row
        out[y * row_size : (y + 1) * row_size] = target
    return Bitmap(bytes(out), width, height, components)


def load_bmp(path: str | os.PathLike, components: Components = Components.RGB) -> Bitmap:
    """Read and decode a BMP file from disk."""
    with open(path, "rb") as handle:
        return decode_bmp(handle.read(), components)


def encode_bmp(
    pixels: bytes, width: int, height: int, components: Components = Components.RGB
) -> bytes:
    """Encode a top-down RGB/RGBA buffer as a 24-bit BMP file."""
    components = Components(components)
    row_size = width * components
    if len(pixels) < row_size * height:
        raise ValueError(
            f"pixel buffer holds {len(pixels)} bytes, "
            f"{row_size * height} needed for {width}x{height}"
        )
    pad = bytes(_row_padding(width))
    parts = [_header(width, height)]
    for y in range(height - 1, -1, -1):
        source = bytes(pixels[y * row_size : (y + 1) * row_size])
        row = bytearray(width * 3)
        row[0::3] = source[2::components]
        row[1::3] = source[1::components]
        row[2::3] = source[0::components]
        parts.append(bytes(row))
        parts.append(pad)
    return b"".join(parts)


def save_bmp(
    path: str | os.PathLike,
    pixels: bytes,
    width: int,
    height: int,
    components: Components = Components.RGB,
) -> None:
    """Encode a pixel buffer and write it to a BMP file."""
    encoded = encode_bmp(pixels, width, height, components)
    with open(path, "wb") as handle:
        handle.write(encoded)


def write_bmp(path: str | os.PathLike, width: int, height: int, pixels: bytes) -> None:
    """Dump a 3-byte-per-pixel buffer as a BMP file, keeping byte order as is.

    Rows are written bottom-up with padding, but channels are not swapped,
    so an RGB buffer ends up stored as if it were BGR.
    """
    row_size = width * 3
    pad = bytes(_row_padding(width))
    with open(path, "wb") as handle:
        handle.write(_header(width, height))
        for i in range(height):
            start = row_size * (height - i - 1)
            handle.write(bytes(pixels[start : start + row_size]))
            handle.write(pad)


def format_frame(width: int, height: int, pixels: bytes) -> str:
    """Render a pixel buffer as text, one '[RRR,GGG,BBB]' cell per pixel."""
    lines = [SEPARATOR]
    row_size = width * 3
    for row in range(height):
        start = row * row_size
        cells = (
            f"[{pixels[i]:03d},{pixels[i + 1]:03d},{pixels[i + 2]:03d}]"
            for i in range(start, start + row_size, 3)
        )
        lines.append("".join(cells))
    lines.append(SEPARATOR)
    return "\n".join(lines) + "\n"