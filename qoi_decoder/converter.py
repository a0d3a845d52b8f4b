import argparse
import logging
import sys
from typing import Optional, Sequence

from qoi_decoder.reader import decode, decode_config

logger = logging.getLogger(__name__)


def convert(qoi_path, output_path, image_format: Optional[str] = None):
    """ decodes a QOI file and saves it with Pillow, the format comes from the extension when not given """
    with open(qoi_path, "rb") as file:
        pixels = decode(file)
    pixels.to_image().save(output_path, format=image_format)
    logger.info("converted %s to %s", qoi_path, output_path)


def qoi_to_png(qoi_path, png_path):
    convert(qoi_path, png_path, "PNG")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Decode a QOI image, print its header or convert it to any format Pillow can write."""
    parser = argparse.ArgumentParser(prog="qoi-decode", description=main.__doc__)
    parser.add_argument("infile", help="QOI file to read")
    parser.add_argument("outfile", nargs="?", help="output image, format picked from the extension")
    parser.add_argument("--info", action="store_true", help="only print the header")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.info or args.outfile is None:
            with open(args.infile, "rb") as file:
                config = decode_config(file)
            print(f"{config.width}x{config.height} channels={config.channels} colorspace={config.colorspace}")
        else:
            convert(args.infile, args.outfile)
    # QOIError is a ValueError, Pillow raises ValueError for unknown extensions
    except (OSError, ValueError) as e:
        print(f"{args.infile}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
