#!/usr/bin/env python3
# BMP header codecs - file header and BITMAPINFOHEADER

import logging
from dataclasses import dataclass
from enum import IntEnum

from bmperror import BMPError, Result

logger = logging.getLogger(__name__)

FILE_HEADER_SIZE = 14


class HeaderType(IntEnum):
    """Two-byte magic at offset 0, read as a little-endian uint16."""
    BM = 0x4D42  # Windows 3.1x, 95, NT, ...
    BA = 0x4142  # OS/2 struct bitmap array
    CI = 0x4943  # OS/2 struct color icon
    CP = 0x5043  # OS/2 const color pointer
    IC = 0x4349  # OS/2 struct icon
    PT = 0x5450  # OS/2 pointer


class DIBHeaderType(IntEnum):
    """DIB variants, identified by the size of their header in bytes."""
    BITMAPCOREHEADER = 12
    OS22XBITMAPHEADER16 = 16
    BITMAPINFOHEADER = 40
    BITMAPV2INFOHEADER = 52
    BITMAPV3INFOHEADER = 56
    OS22XBITMAPHEADER64 = 64
    BITMAPV4HEADER = 108
    BITMAPV5HEADER = 124


class BitsPerPixel(IntEnum):
    MONOCHROME = 1
    PALETTIZED4 = 4
    PALETTIZED8 = 8
    RGB16 = 16
    RGB24 = 24
    RGB32 = 32


class Compression(IntEnum):
    BI_RGB = 0
    BI_RLE8 = 1
    BI_RLE4 = 2
    BI_BITFIELDS = 3
    BI_JPEG = 4
    BI_PNG = 5
    BI_ALPHABITFIELDS = 6
    BI_CMYK = 11
    BI_CMYKRLE8 = 12
    BI_CMYKRLE4 = 13


DIB_HEADER_SIZE = DIBHeaderType.BITMAPINFOHEADER.value
PIXEL_DATA_OFFSET = FILE_HEADER_SIZE + DIB_HEADER_SIZE


# ───────────────────────── little-endian helpers ───────────────────────── #
def bytes_to_uint16_le(data, offset=0):
    """Convert 2 bytes to unsigned 16-bit integer (little-endian)"""
    return data[offset] | (data[offset + 1] << 8)


def bytes_to_uint32_le(data, offset=0):
    """Convert 4 bytes to unsigned 32-bit integer (little-endian)"""
    return (data[offset] |
            (data[offset + 1] << 8) |
            (data[offset + 2] << 16) |
            (data[offset + 3] << 24))


def bytes_to_int32_le(data, offset=0):
    """Convert 4 bytes to signed 32-bit integer (little-endian)"""
    value = bytes_to_uint32_le(data, offset)
    if value >= 2**31:
        value -= 2**32
    return value


def uint16_to_bytes_le(value):
    value &= 0xFFFF
    return bytes((value & 0xFF, value >> 8))


def uint32_to_bytes_le(value):
    value &= 0xFFFFFFFF
    return bytes((value & 0xFF,
                  (value >> 8) & 0xFF,
                  (value >> 16) & 0xFF,
                  (value >> 24) & 0xFF))


def int32_to_bytes_le(value):
    # two's complement wraps negatives into the unsigned range
    return uint32_to_bytes_le(value)


def compression_name(code):
    """Convert compression code to readable name"""
    try:
        return Compression(code).name
    except ValueError:
        return f"Unknown ({code})"


def color_depth_description(bits_per_pixel):
    """Get description of color depth"""
    descriptions = {
        BitsPerPixel.MONOCHROME: "1-bit (Monochrome)",
        BitsPerPixel.PALETTIZED4: "4-bit (16 colors)",
        BitsPerPixel.PALETTIZED8: "8-bit (256 colors)",
        BitsPerPixel.RGB16: "16-bit (High Color)",
        BitsPerPixel.RGB24: "24-bit (True Color)",
        BitsPerPixel.RGB32: "32-bit (True Color + Alpha)",
    }
    return descriptions.get(bits_per_pixel, f"{bits_per_pixel}-bit")


def format_file_size(size_bytes):
    """Format file size in human readable format"""
    if size_bytes < 1024:
        return f"{size_bytes} bytes"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes:,} bytes ({size_bytes/1024:.1f} KB)"
    else:
        return f"{size_bytes:,} bytes ({size_bytes/1024/1024:.1f} MB)"


# ───────────────────────────── file header ───────────────────────────── #
@dataclass
class FileHeader:
    header_type: int = HeaderType.BM
    size: int = 0
    rsvd1: bytes = b"\x00\x00"
    rsvd2: bytes = b"\x00\x00"
    offset: int = 0


class FileHeaderCodec:
    """Reads and writes the 14-byte header at the start of every BMP file.

    Layout: magic (2) | file size (4) | reserved 1 (2) | reserved 2 (2) |
    pixel data offset (4).
    """

    SIZE = FILE_HEADER_SIZE

    @staticmethod
    def decode(data) -> Result:
        if data is None or len(data) < FILE_HEADER_SIZE:
            logger.warning("file header truncated: %d bytes",
                           0 if data is None else len(data))
            return Result.failure(BMPError.INVALID_HEADER)

        header_type = bytes_to_uint16_le(data, 0)
        if header_type != HeaderType.BM:
            logger.warning("bad magic %r", bytes(data[0:2]))
            return Result.failure(BMPError.INVALID_HEADER)

        return Result.success(FileHeader(
            header_type=HeaderType.BM,
            size=bytes_to_uint32_le(data, 2),
            rsvd1=bytes(data[6:8]),
            rsvd2=bytes(data[8:10]),
            offset=bytes_to_uint32_le(data, 10),
        ))

    @staticmethod
    def encode(header: FileHeader) -> bytes:
        out = bytearray()
        out += uint16_to_bytes_le(header.header_type)
        out += uint32_to_bytes_le(header.size)
        out += bytes(header.rsvd1[:2]).ljust(2, b"\x00")
        out += bytes(header.rsvd2[:2]).ljust(2, b"\x00")
        out += uint32_to_bytes_le(header.offset)
        return bytes(out)


# ───────────────────────────── DIB header ────────────────────────────── #
@dataclass
class DIBHeader:
    """BITMAPINFOHEADER fields, in on-disk order."""
    size: int = DIB_HEADER_SIZE
    width: int = 0
    height: int = 0
    color_planes: int = 1
    bpp: int = 0
    compression: int = Compression.BI_RGB
    raw_size: int = 0
    hres: int = 0
    vres: int = 0
    n_colors: int = 0
    icolors: int = 0


class DIBHeaderCodec:
    """Reads and writes the 40-byte BITMAPINFOHEADER.

    ``decode`` checks, in this order: the header size (only
    BITMAPINFOHEADER is accepted), the bit depth against the pixel element
    size, the compression mode and the number of color planes. Other DIB
    variants are rejected outright rather than partially parsed.
    """

    SIZE = DIB_HEADER_SIZE

    @staticmethod
    def decode(data, pixel_size: int) -> Result:
        if data is None or len(data) < 4:
            return Result.failure(BMPError.INVALID_DIB)

        size = bytes_to_uint32_le(data, 0)
        if size != DIB_HEADER_SIZE:
            try:
                variant = DIBHeaderType(size).name
            except ValueError:
                variant = "unknown"
            logger.warning("unsupported DIB header: %d bytes (%s)", size, variant)
            return Result.failure(BMPError.UNSUPPORTED_FORMAT)

        if len(data) < DIB_HEADER_SIZE:
            logger.warning("DIB header truncated: %d bytes", len(data))
            return Result.failure(BMPError.INVALID_DIB)

        header = DIBHeader(
            size=size,
            width=bytes_to_int32_le(data, 4),
            height=bytes_to_int32_le(data, 8),
            color_planes=bytes_to_uint16_le(data, 12),
            bpp=bytes_to_uint16_le(data, 14),
            compression=bytes_to_uint32_le(data, 16),
            raw_size=bytes_to_uint32_le(data, 20),
            hres=bytes_to_int32_le(data, 24),
            vres=bytes_to_int32_le(data, 28),
            n_colors=bytes_to_uint32_le(data, 32),
            icolors=bytes_to_uint32_le(data, 36),
        )

        if header.bpp != 8 * pixel_size:
            logger.warning("unsupported bit depth: %s, expected %d-bit",
                           color_depth_description(header.bpp), 8 * pixel_size)
            return Result.failure(BMPError.UNSUPPORTED_FORMAT)

        if header.compression != Compression.BI_RGB:
            logger.warning("unsupported compression: %s",
                           compression_name(header.compression))
            return Result.failure(BMPError.UNSUPPORTED_FORMAT)

        if header.color_planes != 1:
            logger.warning("invalid color plane count: %d", header.color_planes)
            return Result.failure(BMPError.INVALID_DIB)

        if header.width < 0 or header.height < 0:
            logger.warning("negative dimensions %dx%d not supported",
                           header.width, header.height)
            return Result.failure(BMPError.INVALID_DIB)

        return Result.success(header)

    @staticmethod
    def encode(header: DIBHeader) -> bytes:
        out = bytearray()
        out += uint32_to_bytes_le(header.size)
        out += int32_to_bytes_le(header.width)
        out += int32_to_bytes_le(header.height)
        out += uint16_to_bytes_le(header.color_planes)
        out += uint16_to_bytes_le(header.bpp)
        out += uint32_to_bytes_le(header.compression)
        out += uint32_to_bytes_le(header.raw_size)
        out += int32_to_bytes_le(header.hres)
        out += int32_to_bytes_le(header.vres)
        out += uint32_to_bytes_le(header.n_colors)
        out += uint32_to_bytes_le(header.icolors)
        return bytes(out)
