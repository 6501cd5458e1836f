"""
cube2spheremap — convert six cube-map faces into a light-probe spheremap.

Reads {prefix}_right, _left, _top, _bottom, _front and _back .{extension}
and writes {prefix}_spheremap.bmp (or the file given with -o).

Usage:
    cube2spheremap sky png
    cube2spheremap -aa 5 -size 512 -o probe.bmp sky png
"""

import argparse
import logging
import sys

import spheremap
from errors import SpheremapError
from settings import DEFAULT_OUTPUT_SIZE, SpheremapSettings

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="cube2spheremap",
        description="Convert a cube map (six face images) into a spheremap.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        epilog=(
            "Input files: <prefix>_{right,left,top,bottom,front,back}.<extension>\n"
            "End options with -- (a bare - is not accepted), e.g. when the prefix\n"
            "starts with '-'."
        ),
    )
    parser.add_argument("prefix", help="Input file name prefix")
    parser.add_argument("extension", help="Input file extension, e.g. png")
    parser.add_argument(
        "-aa", dest="aa", default="1", metavar="1|5",
        help="Number of AA samples per pixel (default: 1)",
    )
    parser.add_argument(
        "-size", dest="size", default=str(DEFAULT_OUTPUT_SIZE), metavar="N",
        help=f"Output image size in pixels (default: {DEFAULT_OUTPUT_SIZE})",
    )
    parser.add_argument(
        "-o", dest="output", default=None, metavar="FILE",
        help='Output file (default: "<prefix>_spheremap.bmp")',
    )
    parser.add_argument(
        "-j", dest="workers", default="1", metavar="N",
        help="Render strips on N threads (default: 1)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-h", "-help", action="help", help="Print this help text")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        settings = SpheremapSettings.from_strings(
            aa=args.aa, size=args.size, output_path=args.output, workers=args.workers,
        )
        output_path = spheremap.convert(args.prefix, args.extension, settings)
    except SpheremapError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Done → {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
