"""Pixel element types and the flat pixel store behind a bitmap.

A pixel type is any class exposing ``SIZE`` (bytes per element),
``from_bytes`` and ``to_bytes``. The buffer stores whatever ``to_bytes``
returns and rebuilds pixels with ``from_bytes``, so the type alone decides
its byte order. :class:`BGR24` and :class:`BGR32` cover the two supported
depths.

:class:`PixelBuffer` keeps ``width * height`` elements in a ``uint8``
NumPy array of shape ``(width * height, SIZE)``. Elements are addressed
with a single linear index::

    index(row, col) = row + col * width

``row`` varies fastest and ``col`` selects a run of ``width`` elements,
so ``row`` is the position inside a stored scanline and ``col`` is the
stored scanline number. Reads and writes go through the same function.
"""

import logging
from typing import NamedTuple

import numpy as np

from bmperror import BMPError, Result

logger = logging.getLogger(__name__)


class BGR24(NamedTuple):
    """24-bit pixel: blue, green, red."""

    b: int = 0
    g: int = 0
    r: int = 0

    SIZE = 3

    @classmethod
    def from_bytes(cls, data) -> "BGR24":
        return cls(*data[:cls.SIZE])

    def to_bytes(self) -> bytes:
        return bytes(self)


class BGR32(NamedTuple):
    """32-bit pixel: blue, green, red, alpha."""

    b: int = 0
    g: int = 0
    r: int = 0
    alpha: int = 0

    SIZE = 4

    @classmethod
    def from_bytes(cls, data) -> "BGR32":
        return cls(*data[:cls.SIZE])

    def to_bytes(self) -> bytes:
        return bytes(self)


PIXEL_TYPES = {8 * t.SIZE: t for t in (BGR24, BGR32)}


def is_pixel_type(pixel_type) -> bool:
    return (isinstance(pixel_type, type)
            and isinstance(getattr(pixel_type, "SIZE", None), int)
            and pixel_type.SIZE > 0
            and callable(getattr(pixel_type, "from_bytes", None))
            and callable(getattr(pixel_type, "to_bytes", None)))


def _is_index(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


class PixelBuffer:
    """Fixed-size store of ``width * height`` pixels of one pixel type.

    Build one with :meth:`allocate`; the constructor trusts its arguments.
    """

    def __init__(self, pixel_type, width: int, height: int, data: np.ndarray):
        self.pixel_type = pixel_type
        self.width = width
        self.height = height
        self._data = data

    @classmethod
    def allocate(cls, pixel_type, width: int, height: int) -> Result:
        """Return a zero-filled buffer, or ``OUT_OF_MEMORY`` if it cannot be had."""
        if not (_is_index(width) and _is_index(height)) or width < 0 or height < 0:
            return Result.failure(BMPError.BAD_INPUT)
        try:
            data = np.zeros((int(width) * int(height), pixel_type.SIZE),
                            dtype=np.uint8)
        except (MemoryError, ValueError) as exc:
            # numpy reports sizes beyond the address space as ValueError
            logger.warning("cannot allocate %dx%d pixel buffer: %s",
                           width, height, exc)
            return Result.failure(BMPError.OUT_OF_MEMORY)
        return Result.success(cls(pixel_type, int(width), int(height), data))

    def __len__(self):
        return self.width * self.height

    @property
    def nbytes(self) -> int:
        return len(self) * self.pixel_type.SIZE

    def index(self, row: int, col: int) -> int:
        return row + col * self.width

    def _checked_index(self, row, col) -> Result:
        if not (_is_index(row) and _is_index(col)):
            return Result.failure(BMPError.BAD_INPUT)
        if row < 0 or col < 0:
            return Result.failure(BMPError.OUT_OF_BOUNDS)
        idx = self.index(int(row), int(col))
        if idx >= len(self):
            return Result.failure(BMPError.OUT_OF_BOUNDS)
        return Result.success(idx)

    def get(self, row: int, col: int) -> Result:
        status, idx = self._checked_index(row, col)
        if status is not BMPError.SUCCESS:
            return Result.failure(status)
        return Result.success(self.pixel_type.from_bytes(self._data[idx].tobytes()))

    def set(self, row: int, col: int, pixel) -> BMPError:
        status, idx = self._checked_index(row, col)
        if status is not BMPError.SUCCESS:
            return status
        raw = self._pixel_bytes(pixel)
        if raw is None:
            return BMPError.BAD_INPUT
        self._data[idx] = np.frombuffer(raw, dtype=np.uint8)
        return BMPError.SUCCESS

    def _pixel_bytes(self, pixel) -> bytes | None:
        """Encoded element for ``pixel``, or ``None`` if it cannot be stored."""
        size = self.pixel_type.SIZE
        if isinstance(pixel, self.pixel_type):
            try:
                raw = pixel.to_bytes()
            except (TypeError, ValueError, OverflowError):
                # e.g. a component outside 0..255
                return None
        elif isinstance(pixel, (tuple, list)) and len(pixel) == size:
            if any(not _is_index(c) or not 0 <= c <= 0xFF for c in pixel):
                return None
            raw = bytes(int(c) for c in pixel)
        else:
            return None
        if not isinstance(raw, (bytes, bytearray)) or len(raw) != size:
            return None
        return bytes(raw)

    def read_from(self, stream) -> BMPError:
        """Fill the buffer from exactly :attr:`nbytes` bytes of ``stream``."""
        expected = self.nbytes
        raw = stream.read(expected)
        if len(raw) != expected:
            logger.warning("pixel payload truncated: got %d of %d bytes",
                           len(raw), expected)
            return BMPError.FILE_ERROR
        self._data[...] = np.frombuffer(raw, dtype=np.uint8).reshape(
            self._data.shape)
        return BMPError.SUCCESS

    def tobytes(self) -> bytes:
        return self._data.tobytes()

    def to_array(self) -> np.ndarray:
        """Copy of the pixels as ``(height, width, SIZE)``, one stored scanline per row."""
        return self._data.reshape((self.height, self.width,
                                   self.pixel_type.SIZE)).copy()

    def release(self):
        self._data = None
        self.width = 0
        self.height = 0
