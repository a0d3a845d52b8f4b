from typing import List, Type

from qoi_decoder.errors import InvalidRunLength
from qoi_decoder.utils import Context, to_u8bit, Pixel, ByteReader, QOI_RUN_MAX


class GenericChunk:

    TAG: bytes
    TAG_BIT_MASK: bytes

    @classmethod
    def match_tag(cls, input_byte: int) -> bool:
        """ returns whether the given byte matches the chunk's tag """
        return cls.TAG[0] == input_byte & cls.TAG_BIT_MASK[0]

    @classmethod
    def read(cls, tag: int, context: Context, reader: ByteReader) -> Pixel:
        """ Produces the next pixel given the tag byte (already consumed) and the context """
        raise NotImplementedError


class RGBChunk(GenericChunk):

    TAG = to_u8bit(254)
    TAG_BIT_MASK = to_u8bit(255)

    @classmethod
    def read(cls, tag: int, context: Context, reader: ByteReader) -> Pixel:
        red, green, blue = reader.read(3)
        context.next_pixel(Pixel(red, green, blue, context.previous_pixel.a))
        return context.previous_pixel


class RGBAChunk(GenericChunk):

    TAG = to_u8bit(255)
    TAG_BIT_MASK = to_u8bit(255)

    @classmethod
    def read(cls, tag: int, context: Context, reader: ByteReader) -> Pixel:
        red, green, blue, alpha = reader.read(4)
        context.next_pixel(Pixel(red, green, blue, alpha))
        return context.previous_pixel


class INDEXChunk(GenericChunk):

    TAG = to_u8bit(0)
    TAG_BIT_MASK = to_u8bit(192)

    @classmethod
    def read(cls, tag: int, context: Context, reader: ByteReader) -> Pixel:
        # a back reference, the running array stays as it is
        context.next_pixel(context.running_array.get(tag & 0x3f), remember=False)
        return context.previous_pixel


class DIFFChunk(GenericChunk):

    TAG = to_u8bit(64)
    TAG_BIT_MASK = to_u8bit(192)

    @classmethod
    def read(cls, tag: int, context: Context, reader: ByteReader) -> Pixel:
        r_diff: int = ((tag >> 4) & 0x03) - 2
        g_diff: int = ((tag >> 2) & 0x03) - 2
        b_diff: int = (tag & 0x03) - 2
        previous = context.previous_pixel
        context.next_pixel(Pixel(previous.r + r_diff, previous.g + g_diff, previous.b + b_diff, previous.a))
        return context.previous_pixel


class LUMAChunk(GenericChunk):

    TAG = to_u8bit(128)
    TAG_BIT_MASK = to_u8bit(192)

    @classmethod
    def read(cls, tag: int, context: Context, reader: ByteReader) -> Pixel:
        green_diff: int = (tag & 0x3f) - 32
        second_byte: int = reader.read_byte()
        dr_dg: int = ((second_byte >> 4) & 0x0f) - 8
        db_dg: int = (second_byte & 0x0f) - 8
        previous = context.previous_pixel
        cr: int = previous.r + green_diff + dr_dg  # current red
        cg: int = previous.g + green_diff  # current green
        cb: int = previous.b + green_diff + db_dg  # current blue
        context.next_pixel(Pixel(cr, cg, cb, previous.a))
        return context.previous_pixel


class RUNChunk(GenericChunk):

    TAG = to_u8bit(192)
    TAG_BIT_MASK = to_u8bit(192)

    @classmethod
    def read(cls, tag: int, context: Context, reader: ByteReader) -> Pixel:
        length: int = (tag & 0x3f) + 1
        # 63 and 64 collide with the RGB and RGBA tags
        if not 1 <= length <= QOI_RUN_MAX:
            raise InvalidRunLength(length)
        # first pixel of the run is written now, the rest by the decoder loop
        context.next_pixel(context.previous_pixel, remember=False)
        context.run = length - 1
        return context.previous_pixel


# The 8 bit tags have to come before the 2 bit ones, RGB and RGBA would match RUN otherwise

READ_CHUNK_QUEUE: List[Type[GenericChunk]] = [
    RGBAChunk,
    RGBChunk,
    INDEXChunk,
    DIFFChunk,
    LUMAChunk,
    RUNChunk
]


def match_chunk(tag: int) -> Type[GenericChunk]:
    """ returns the chunk class that handles the given tag byte """
    for chunk in READ_CHUNK_QUEUE:
        if chunk.match_tag(tag):
            return chunk
    # unreachable, the 2 bit tags cover every byte
    raise ValueError(f"no chunk matches tag {tag:#04x}")
