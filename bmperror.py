"""Status codes shared by the bitmap codec.

Every public operation reports failure through a :class:`BMPError` value
instead of raising. Operations that also produce a value return a
:class:`Result`, which unpacks as ``status, value``.
"""

from enum import IntEnum
from typing import Any, NamedTuple


class BMPError(IntEnum):
    SUCCESS = 0

    OUT_OF_MEMORY = 0xE001
    FILE_ERROR = 0xE002
    OUT_OF_BOUNDS = 0xE003
    NOT_INITIALIZED = 0xE004
    INVALID_HEADER = 0xE005
    INVALID_DIB = 0xE006
    UNSUPPORTED_FORMAT = 0xE007
    ALREADY_INITIALIZED = 0xE008
    BAD_INPUT = 0xE009

    def describe(self) -> str:
        """Human readable name, e.g. ``OUT_OF_BOUNDS (0xE003)``."""
        if self is BMPError.SUCCESS:
            return "SUCCESS"
        return f"{self.name} (0x{self.value:04X})"


class Result(NamedTuple):
    """A status paired with the value it guards.

    ``value`` is ``None`` whenever ``status`` is not ``SUCCESS``.
    """

    status: BMPError
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status is BMPError.SUCCESS

    @classmethod
    def success(cls, value=None) -> "Result":
        return cls(BMPError.SUCCESS, value)

    @classmethod
    def failure(cls, status: BMPError) -> "Result":
        return cls(status, None)
