"""Load, create, edit and write uncompressed BITMAPINFOHEADER bitmaps.

A :class:`BitmapImage` starts out unloaded. Exactly one successful call to
:meth:`~BitmapImage.load` or :meth:`~BitmapImage.create` moves it to the
loaded state, after which pixels can be read and written and the image
saved with :meth:`~BitmapImage.write`. Nothing here raises on bad input or
bad files; every call returns a :class:`~bmperror.BMPError` or a
:class:`~bmperror.Result`.

Pixels are addressed as ``(row, col)`` with the convention documented in
:mod:`pixels`: ``row + col * width``.
"""

import dataclasses
import logging

import numpy as np
from PIL import Image

import bmpconfig
from bmpconfig import dpi_to_ppm, ppm_to_dpi
from bmperror import BMPError, Result
from bmpheaders import (
    DIB_HEADER_SIZE, FILE_HEADER_SIZE, PIXEL_DATA_OFFSET,
    Compression, DIBHeader, DIBHeaderCodec, FileHeader, FileHeaderCodec,
    color_depth_description, compression_name, format_file_size,
)
from pixels import BGR24, PixelBuffer, is_pixel_type

logger = logging.getLogger(__name__)

_INT32_MAX = 2**31 - 1
_UINT32_MAX = 2**32 - 1


class BitmapImage:
    """An in-memory BMP image with a fixed pixel type.

    ``pixel_type`` fixes the bit depth: files whose bits-per-pixel differ
    from ``8 * pixel_type.SIZE`` are rejected by :meth:`load`. ``dpi`` is
    written into the resolution fields by :meth:`create`; it defaults to
    ``bmpconfig.DEFAULT_DPI``.
    """

    def __init__(self, pixel_type=BGR24, dpi: int | None = None):
        if not is_pixel_type(pixel_type):
            raise TypeError(
                f"{pixel_type!r} is not a pixel type (needs SIZE, from_bytes, to_bytes)")
        self._pixel_type = pixel_type
        self._dpi = bmpconfig.DEFAULT_DPI if dpi is None else dpi
        self._loaded = False
        self._file_header: FileHeader | None = None
        self._dib: DIBHeader | None = None
        self._pixels: PixelBuffer | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        if not self._loaded:
            return f"<BitmapImage {self._pixel_type.__name__} unloaded>"
        return (f"<BitmapImage {self._pixel_type.__name__} "
                f"{self._dib.width}x{self._dib.height} @ {self._dpi} DPI>")

    # ───────────────────────── state ────────────────────────── #
    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def dpi(self) -> int:
        return self._dpi

    @property
    def pixel_type(self):
        return self._pixel_type

    @property
    def file_header(self) -> FileHeader | None:
        """A copy of the file header, or ``None`` while unloaded."""
        if self._file_header is None:
            return None
        return dataclasses.replace(self._file_header)

    @property
    def dib_header(self) -> DIBHeader | None:
        """A copy of the DIB header, or ``None`` while unloaded."""
        if self._dib is None:
            return None
        return dataclasses.replace(self._dib)

    def _reset(self):
        if self._pixels is not None:
            self._pixels.release()
        self._pixels = None
        self._file_header = None
        self._dib = None
        self._loaded = False

    def close(self):
        """Release the pixel buffer and forget both headers."""
        self._reset()

    # ───────────────────────── IO ───────────────────────────── #
    def load(self, path) -> BMPError:
        if self._loaded:
            return BMPError.ALREADY_INITIALIZED
        if path is None:
            return BMPError.BAD_INPUT

        try:
            with open(path, "rb") as f:
                status = self._read(f)
        except OSError as exc:
            logger.warning("cannot read %s: %s", path, exc)
            status = BMPError.FILE_ERROR

        if status is not BMPError.SUCCESS:
            logger.warning("load %s failed: %s", path, status.describe())
            self._reset()
            return status

        self._loaded = True
        logger.debug("loaded %s: %dx%d, %d bpp", path, self._dib.width,
                     self._dib.height, self._dib.bpp)
        return BMPError.SUCCESS

    def _read(self, f) -> BMPError:
        status, file_header = FileHeaderCodec.decode(f.read(FILE_HEADER_SIZE))
        if status is not BMPError.SUCCESS:
            return status

        status, dib = DIBHeaderCodec.decode(f.read(DIB_HEADER_SIZE),
                                            self._pixel_type.SIZE)
        if status is not BMPError.SUCCESS:
            return status

        if file_header.offset < PIXEL_DATA_OFFSET:
            logger.warning("pixel data offset %d overlaps the headers",
                           file_header.offset)
            return BMPError.INVALID_HEADER

        status, pixels = PixelBuffer.allocate(self._pixel_type, dib.width,
                                              dib.height)
        if status is not BMPError.SUCCESS:
            return status

        f.seek(file_header.offset)
        status = pixels.read_from(f)
        if status is not BMPError.SUCCESS:
            pixels.release()
            return status

        # write() puts the payload right after the headers
        file_header.offset = PIXEL_DATA_OFFSET
        file_header.size = PIXEL_DATA_OFFSET + pixels.nbytes
        dib.raw_size = pixels.nbytes

        # horizontal and vertical resolution are assumed equal
        self._dpi = ppm_to_dpi(dib.hres)
        self._file_header = file_header
        self._dib = dib
        self._pixels = pixels
        return BMPError.SUCCESS

    def create(self, width: int, height: int) -> BMPError:
        """Start a blank (all zero) image of ``width`` x ``height`` pixels."""
        if self._loaded:
            return BMPError.ALREADY_INITIALIZED
        if not (isinstance(width, int) and isinstance(height, int)) \
                or isinstance(width, bool) or isinstance(height, bool):
            return BMPError.BAD_INPUT
        if not (0 <= width <= _INT32_MAX and 0 <= height <= _INT32_MAX):
            return BMPError.BAD_INPUT

        element_size = self._pixel_type.SIZE
        raw_size = width * height * element_size
        if PIXEL_DATA_OFFSET + raw_size > _UINT32_MAX:
            logger.warning("%dx%d image does not fit a BMP file", width, height)
            return BMPError.BAD_INPUT

        if isinstance(self._dpi, bool) or not isinstance(self._dpi, (int, float)):
            return BMPError.BAD_INPUT
        try:
            resolution = dpi_to_ppm(self._dpi)
        except (ValueError, OverflowError):
            # nan / inf
            return BMPError.BAD_INPUT
        if not 0 <= resolution <= _INT32_MAX:
            logger.warning("%s DPI does not fit the resolution fields", self._dpi)
            return BMPError.BAD_INPUT

        status, pixels = PixelBuffer.allocate(self._pixel_type, width, height)
        if status is not BMPError.SUCCESS:
            return status

        self._dib = DIBHeader(
            size=DIB_HEADER_SIZE,
            width=width,
            height=height,
            color_planes=1,
            bpp=8 * element_size,
            compression=Compression.BI_RGB,
            raw_size=raw_size,
            hres=resolution,
            vres=resolution,
            n_colors=0,
            icolors=0,
        )
        self._file_header = FileHeader(
            size=PIXEL_DATA_OFFSET + raw_size,
            offset=PIXEL_DATA_OFFSET,
        )
        self._pixels = pixels
        self._loaded = True
        logger.debug("created %dx%d image at %d DPI", width, height, self._dpi)
        return BMPError.SUCCESS

    def write(self, path) -> BMPError:
        """Write headers, pixel payload and zero padding up to a 4-byte multiple.

        The padding is computed from the recorded file size, not per
        scanline, so rows are written back to back.
        """
        if not self._loaded:
            return BMPError.NOT_INITIALIZED
        if path is None:
            return BMPError.BAD_INPUT

        padding = (4 - self._file_header.size % 4) % 4
        try:
            with open(path, "wb") as f:
                f.write(FileHeaderCodec.encode(self._file_header))
                f.write(DIBHeaderCodec.encode(self._dib))
                f.write(self._pixels.tobytes())
                f.write(b"\x00" * padding)
        except OSError as exc:
            logger.warning("cannot write %s: %s", path, exc)
            return BMPError.FILE_ERROR

        logger.debug("wrote %s (%d bytes + %d padding)", path,
                     self._file_header.size, padding)
        return BMPError.SUCCESS

    # ───────────────────────── pixels ───────────────────────── #
    def width(self) -> Result:
        if not self._loaded:
            return Result.failure(BMPError.NOT_INITIALIZED)
        return Result.success(self._dib.width)

    def height(self) -> Result:
        if not self._loaded:
            return Result.failure(BMPError.NOT_INITIALIZED)
        return Result.success(self._dib.height)

    def get(self, row: int, col: int) -> Result:
        if not self._loaded or self._pixels is None:
            return Result.failure(BMPError.NOT_INITIALIZED)
        return self._pixels.get(row, col)

    def set(self, row: int, col: int, pixel) -> BMPError:
        if not self._loaded or self._pixels is None:
            return BMPError.NOT_INITIALIZED
        return self._pixels.set(row, col, pixel)

    # ───────────────────── reserved header bytes ────────────── #
    def read_header_rsvd(self) -> Result:
        """The four reserved file-header bytes (reserved 1 then reserved 2)."""
        if not self._loaded:
            return Result.failure(BMPError.NOT_INITIALIZED)
        return Result.success(self._file_header.rsvd1 + self._file_header.rsvd2)

    def write_header_rsvd(self, data) -> BMPError:
        if not self._loaded:
            return BMPError.NOT_INITIALIZED
        if data is None:
            return BMPError.BAD_INPUT
        try:
            data = bytes(data)
        except (TypeError, ValueError):
            return BMPError.BAD_INPUT
        if len(data) != 4:
            return BMPError.BAD_INPUT
        self._file_header.rsvd1 = data[0:2]
        self._file_header.rsvd2 = data[2:4]
        return BMPError.SUCCESS

    ReadHeaderRsvd = read_header_rsvd
    WriteHeaderRsvd = write_header_rsvd

    # ───────────────────────── views ────────────────────────── #
    def summary(self) -> Result:
        """Key/value pairs describing the image, ready for display."""
        if not self._loaded:
            return Result.failure(BMPError.NOT_INITIALIZED)
        fh, dib = self._file_header, self._dib
        return Result.success({
            "File Size": format_file_size(fh.size),
            "Image Dimensions": f"{dib.width} × {dib.height} pixels",
            "Bits per pixel": color_depth_description(dib.bpp),
            "Compression": compression_name(dib.compression),
            "Resolution": f"{self._dpi} DPI ({dib.hres} × {dib.vres} px/m)",
            "Pixel Data Offset": f"0x{fh.offset:04X}",
            "Reserved": (fh.rsvd1 + fh.rsvd2).hex(" "),
        })

    def to_image(self) -> Result:
        """Convert to a top-down RGB/RGBA Pillow image."""
        if not self._loaded:
            return Result.failure(BMPError.NOT_INITIALIZED)
        size = self._pixel_type.SIZE
        if size == 3:
            mode, order = "RGB", [2, 1, 0]
        elif size == 4:
            mode, order = "RGBA", [2, 1, 0, 3]
        else:
            return Result.failure(BMPError.UNSUPPORTED_FORMAT)

        w, h = self._dib.width, self._dib.height
        if w == 0 or h == 0:
            return Result.success(Image.new(mode, (w, h)))

        # scanlines are stored bottom-up
        arr = self._pixels.to_array()[::-1, :, order]
        return Result.success(Image.fromarray(np.ascontiguousarray(arr)))
