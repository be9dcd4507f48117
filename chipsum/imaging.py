"""Minimal BMP and PNG writers for visualising matrix patterns."""

from __future__ import annotations

import os
import struct
import zlib
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]

_BMP_HEADER_SIZE = 54
_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_MAX_STORED_BLOCK = 0xFFFF


def _bmp_row_stride(width: int) -> int:
    """Bytes per BMP row: three bytes per pixel, padded to four."""
    return (width * 3 + 3) // 4 * 4


def bmp_bytes(width: int, height: int, img: bytes) -> bytes:
    """Return a 24-bit BMP file for ``img`` as bytes.

    ``img`` holds the pixel rows already padded to the BMP row stride.
    """
    if width < 0 or height < 0:
        raise ValueError("image dimensions must not be negative")
    stride = _bmp_row_stride(width)
    size = stride * height
    if len(img) < size:
        raise ValueError(f"image data needs {size} bytes, got {len(img)}")
    header = struct.pack(
        "<13i",
        height + _BMP_HEADER_SIZE,
        0,
        _BMP_HEADER_SIZE,
        40,
        width,
        height,
        1 | (3 * 8) << 16,
        0,
        size,
        0,
        0,
        100,
        0,
    )
    return b"BM" + header + bytes(img[:size])


def write_bmp(width: int, height: int, img: bytes, filename: PathLike) -> None:
    """Write ``img`` as a 24-bit BMP file named ``filename``."""
    data = bmp_bytes(width, height, img)
    with open(filename, "wb") as fp:
        fp.write(data)


def flip_bmp(width: int, height: int, img: bytes) -> bytes:
    """Return ``img`` with its RGB rows in reverse order."""
    if width < 0 or height < 0:
        raise ValueError("image dimensions must not be negative")
    row = 3 * width
    body = row * height
    if len(img) < body:
        raise ValueError(f"image data needs {body} bytes, got {len(img)}")
    data = bytes(img)
    rows = [data[i * row:(i + 1) * row] for i in range(height)]
    return b"".join(reversed(rows)) + data[body:]


def _chunk(kind: bytes, payload: bytes) -> bytes:
    crc = zlib.crc32(kind + payload) & 0xFFFFFFFF
    return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", crc)


def png_bytes(width: int, height: int, img: bytes, alpha: bool = False) -> bytes:
    """Return an uncompressed RGB or RGBA PNG file for ``img`` as bytes."""
    if width < 0 or height < 0:
        raise ValueError("image dimensions must not be negative")
    pitch = width * (4 if alpha else 3) + 1
    if pitch > _MAX_STORED_BLOCK:
        raise ValueError("image is too wide for a stored deflate block")
    row_len = pitch - 1
    needed = row_len * height
    if len(img) < needed:
        raise ValueError(f"image data needs {needed} bytes, got {len(img)}")
    data = bytes(img)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 6 if alpha else 2, 0, 0, 0)

    stream = bytearray(b"\x78\x01")
    raw = bytearray()
    for y in range(height):
        stream.append(1 if y == height - 1 else 0)
        stream += struct.pack("<HH", pitch, ~pitch & 0xFFFF)
        line = b"\x00" + data[y * row_len:(y + 1) * row_len]
        stream += line
        raw += line
    stream += struct.pack(">I", zlib.adler32(bytes(raw)) & 0xFFFFFFFF)

    return (
        _PNG_SIGNATURE
        + _chunk(b"IHDR", ihdr)
        + _chunk(b"IDAT", bytes(stream))
        + _chunk(b"IEND", b"")
    )


def write_png(
    width: int, height: int, img: bytes, filename: PathLike, alpha: bool = False
) -> None:
    """Write ``img`` as an uncompressed PNG file named ``filename``."""
    data = png_bytes(width, height, img, alpha)
    with open(filename, "wb") as fp:
        fp.write(data)