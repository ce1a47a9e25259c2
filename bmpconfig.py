import logging
import os

logger = logging.getLogger(__name__)

# inches -> metres: 1 in = 0.0254 m, so px/m = dpi / 0.0254
INCHES_PER_METRE = 39.3701

_FALLBACK_DPI = 72


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer", name, raw)
        return default
    if value <= 0:
        logger.warning("ignoring %s=%r: must be positive", name, raw)
        return default
    return value


# dots per inch written into new images
DEFAULT_DPI = _int_from_env('BMP_DEFAULT_DPI', _FALLBACK_DPI)


def dpi_to_ppm(dpi: float) -> int:
    """Convert dots per inch to the pixels-per-metre stored in the DIB."""
    return round(dpi * INCHES_PER_METRE)


def ppm_to_dpi(ppm: int) -> int:
    return round(ppm / INCHES_PER_METRE)
