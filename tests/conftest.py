import struct

import pytest


def build_bmp(width=2,
              height=2,
              bpp=24,
              payload=None,
              magic=b"BM",
              dib_size=40,
              planes=1,
              compression=0,
              hres=2835,
              vres=2835,
              offset=54,
              reserved=b"\x00\x00\x00\x00"):
    """Assemble a BMP file byte by byte, independently of bmpheaders."""
    if payload is None:
        payload = bytes(width * height * (bpp // 8))
    raw_size = len(payload)
    file_header = magic + struct.pack("<I", offset + raw_size) + reserved \
        + struct.pack("<I", offset)
    dib = struct.pack("<IiiHHIIiiII", dib_size, width, height, planes, bpp,
                      compression, raw_size, hres, vres, 0, 0)
    gap = bytes(max(0, offset - 54))
    return file_header + dib + gap + payload


@pytest.fixture
def bmp_file(tmp_path):
    """Factory writing ``build_bmp(**kwargs)`` to a temp file."""
    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        path = tmp_path / f"image{counter['n']}.bmp"
        path.write_bytes(build_bmp(**kwargs))
        return path

    return _make
