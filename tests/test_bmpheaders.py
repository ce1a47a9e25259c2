import struct

import pytest

from bmperror import BMPError
from bmpheaders import (
    BitsPerPixel, Compression, DIBHeader, DIBHeaderCodec, FileHeader,
    FileHeaderCodec, HeaderType, bytes_to_int32_le, color_depth_description,
    compression_name, format_file_size, int32_to_bytes_le, uint16_to_bytes_le,
)
from conftest import build_bmp


def test_file_header_layout():
    header = FileHeader(size=102, rsvd1=b"\x01\x02", rsvd2=b"\x03\x04",
                        offset=54)
    data = FileHeaderCodec.encode(header)
    assert data == b"BM" + struct.pack("<I", 102) + b"\x01\x02\x03\x04" \
        + struct.pack("<I", 54)
    assert len(data) == FileHeaderCodec.SIZE == 14


def test_file_header_decode():
    status, header = FileHeaderCodec.decode(build_bmp(reserved=b"abcd")[:14])
    assert status == BMPError.SUCCESS
    assert header.header_type == HeaderType.BM
    assert header.size == 54 + 12
    assert header.rsvd1 == b"ab"
    assert header.rsvd2 == b"cd"
    assert header.offset == 54


@pytest.mark.parametrize("magic", [b"MB", b"BA", b"\x00\x00", b"PT"])
def test_file_header_rejects_other_magic(magic):
    status, header = FileHeaderCodec.decode(build_bmp(magic=magic)[:14])
    assert status == BMPError.INVALID_HEADER
    assert header is None


@pytest.mark.parametrize("data", [None, b"", b"BM\x00\x00"])
def test_file_header_rejects_short_input(data):
    assert FileHeaderCodec.decode(data).status == BMPError.INVALID_HEADER


def test_dib_header_layout():
    header = DIBHeader(width=4, height=3, bpp=24, raw_size=36, hres=2835,
                       vres=-1)
    data = DIBHeaderCodec.encode(header)
    assert len(data) == DIBHeaderCodec.SIZE == 40
    assert struct.unpack("<IiiHHIIiiII", data) == (
        40, 4, 3, 1, 24, 0, 36, 2835, -1, 0, 0)


def test_dib_header_decode():
    data = build_bmp(width=5, height=7, hres=1000, vres=2000)[14:54]
    status, header = DIBHeaderCodec.decode(data, 3)
    assert status == BMPError.SUCCESS
    assert (header.width, header.height) == (5, 7)
    assert (header.hres, header.vres) == (1000, 2000)
    assert header.bpp == 24
    assert header.compression == Compression.BI_RGB
    assert header.raw_size == 5 * 7 * 3
    assert DIBHeaderCodec.encode(header) == data


@pytest.mark.parametrize("dib_size", [12, 52, 56, 64, 108, 124, 41])
def test_dib_header_rejects_other_variants(dib_size):
    data = build_bmp(dib_size=dib_size)[14:54]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.UNSUPPORTED_FORMAT


def test_dib_header_bit_depth_must_match_pixel_size():
    data = build_bmp(bpp=32)[14:54]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.UNSUPPORTED_FORMAT
    assert DIBHeaderCodec.decode(data, 4).status == BMPError.SUCCESS


@pytest.mark.parametrize("compression", [1, 2, 3, 4, 5])
def test_dib_header_rejects_compression(compression):
    data = build_bmp(compression=compression)[14:54]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.UNSUPPORTED_FORMAT


def test_dib_header_rejects_plane_count():
    data = build_bmp(planes=2)[14:54]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.INVALID_DIB


def test_dib_header_validation_order():
    # wrong size wins over everything else
    data = build_bmp(dib_size=108, bpp=8, compression=1, planes=0)[14:54]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.UNSUPPORTED_FORMAT
    # bit depth is checked before the plane count
    data = build_bmp(bpp=8, planes=0)[14:54]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.UNSUPPORTED_FORMAT
    # compression is checked before the plane count
    data = build_bmp(compression=1, planes=0)[14:54]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.UNSUPPORTED_FORMAT


def test_dib_header_rejects_negative_dimensions():
    data = build_bmp(width=2, height=-2, payload=b"")[14:54]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.INVALID_DIB


@pytest.mark.parametrize("length", [0, 3, 20, 39])
def test_dib_header_rejects_truncated(length):
    data = build_bmp()[14:14 + length]
    assert DIBHeaderCodec.decode(data, 3).status == BMPError.INVALID_DIB


def test_little_endian_helpers():
    assert uint16_to_bytes_le(0x4D42) == b"BM"
    assert int32_to_bytes_le(-2) == b"\xfe\xff\xff\xff"
    assert bytes_to_int32_le(b"\xfe\xff\xff\xff") == -2
    assert bytes_to_int32_le(b"\xff\xff\xff\x7f") == 2**31 - 1


def test_descriptions():
    assert compression_name(0) == "BI_RGB"
    assert compression_name(99) == "Unknown (99)"
    assert color_depth_description(24) == "24-bit (True Color)"
    assert color_depth_description(2) == "2-bit"
    assert format_file_size(104) == "104 bytes"
    assert format_file_size(2048) == "2,048 bytes (2.0 KB)"


@pytest.mark.parametrize("depth", list(BitsPerPixel))
def test_every_known_depth_has_a_description(depth):
    assert color_depth_description(depth) != f"{int(depth)}-bit"
    assert color_depth_description(int(depth)) == color_depth_description(depth)
