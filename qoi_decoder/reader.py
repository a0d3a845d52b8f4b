import logging
import struct
from typing import Optional

from PIL import Image

from qoi_decoder.chunks import match_chunk
from qoi_decoder.errors import InvalidMagic, InvalidEOF, ImageTooLarge
from qoi_decoder.utils import (
    ByteReader,
    Context,
    ImageConfig,
    PixelBuffer,
    QOI_END_MARKER,
    QOI_HEADER_FORMAT,
    QOI_HEADER_SIZE,
    QOI_MAGIC,
    QOI_PIXELS_MAX,
)

logger = logging.getLogger(__name__)


def read_header(byte_reader: ByteReader) -> ImageConfig:
    """
    Consumes the 14 byte header and returns the image config.
    Channels and colorspace are kept for information only, they are not validated.
    """
    header = byte_reader.read(QOI_HEADER_SIZE)
    magic, width, height, channels, colorspace = struct.unpack(QOI_HEADER_FORMAT, header)
    if magic != QOI_MAGIC:
        raise InvalidMagic(QOI_MAGIC, magic)
    config = ImageConfig(width, height, channels, colorspace)
    logger.debug("read header: %r", config)
    return config


def read_pixels(byte_reader: ByteReader, config: ImageConfig) -> PixelBuffer:
    """ decodes width * height pixels, the reader must be positioned right after the header """
    context = Context(config)
    while not context.done:
        if context.run > 0:
            context.repeat_pixel()
            continue
        tag: int = byte_reader.read_byte()
        match_chunk(tag).read(tag, context, byte_reader)
    return context.pixels


def read_end_marker(byte_reader: ByteReader):
    end_marker = byte_reader.read(len(QOI_END_MARKER))
    if end_marker != QOI_END_MARKER:
        raise InvalidEOF(QOI_END_MARKER, end_marker)


def decode_config(input_stream) -> ImageConfig:
    """
    Reads only the header of a QOI payload.
    The stream is left after the header, pass a fresh one to decode.
    """
    return read_header(ByteReader(input_stream))


def decode(input_stream, max_pixels: Optional[int] = QOI_PIXELS_MAX) -> PixelBuffer:
    """
    Decodes a whole QOI payload (header, pixels, end marker).

    :param input_stream: bytes like object or binary stream positioned at the start of the payload
    :param max_pixels: refuse images with more than this many pixels, defaults to the qoi.h limit, no limit when None
    :return: the decoded pixels, only returned when every step succeeded
    """
    byte_reader = ByteReader(input_stream)
    config = read_header(byte_reader)
    if max_pixels is not None and config.pixel_count > max_pixels:
        raise ImageTooLarge(config.width, config.height, max_pixels)
    try:
        pixels = read_pixels(byte_reader, config)
    except (OverflowError, MemoryError) as e:
        raise ImageTooLarge(config.width, config.height, max_pixels) from e
    read_end_marker(byte_reader)
    logger.debug("decoded %dx%d image from %d bytes", config.width, config.height, byte_reader.offset)
    return pixels


def read(input_stream) -> Image.Image:
    return decode(input_stream).to_image()
