#!/usr/bin/env python3
"""Print a summary of a BMP file's headers.

Example::

    bmpinfo image.bmp
    bmpinfo --pixel 32 -v icon.bmp
"""

import argparse
import logging
import sys
from pathlib import Path

from bitmap import BitmapImage
from bmperror import BMPError
from pixels import PIXEL_TYPES


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bmpinfo",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("file", type=Path, help="BMP file to inspect")
    parser.add_argument(
        "--pixel",
        type=int,
        default=24,
        choices=sorted(PIXEL_TYPES),
        help="bits per pixel the file is expected to use (default: 24)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="log decoding details",
    )
    return parser.parse_args(argv)


def display_info(path: Path, summary: dict) -> None:
    print("BMP File Analysis: " + path.name)
    print("=" * 50)
    for field, value in summary.items():
        print(f"  {field}: {value}")


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with BitmapImage(PIXEL_TYPES[args.pixel]) as bmp:
        status = bmp.load(args.file)
        if status is not BMPError.SUCCESS:
            print(f"Error: {args.file}: {status.describe()}", file=sys.stderr)
            return 1
        _, summary = bmp.summary()
        display_info(args.file, summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
