import struct
from functools import cache
from io import BytesIO
from typing import BinaryIO, Union

from PIL import Image

from qoi_decoder.errors import UnexpectedEnd


QOI_MAGIC = b"qoif"
QOI_HEADER_SIZE = 14
QOI_HEADER_FORMAT = ">4sIIBB"
QOI_END_MARKER = b"\x00\x00\x00\x00\x00\x00\x00\x01"
QOI_RUNNING_ARRAY_SIZE = 64
QOI_RUN_MAX = 62
QOI_PIXELS_MAX = 400000000  # same limit as the reference qoi.h


@cache
def to_u8bit(num: int):
    if num < 0:
        num = 256 + num
    return struct.pack("=B", num)


def pixel_hash(red: int, green: int, blue: int, alpha: int) -> int:
    """ maps a pixel to its slot in the running array """
    return (red * 3 + green * 5 + blue * 7 + alpha * 11) % QOI_RUNNING_ARRAY_SIZE


class Pixel:

    __slots__ = ("r", "g", "b", "a")

    def __init__(self, red: int, green: int, blue: int, alpha: int):
        # channels wrap like unsigned bytes
        self.r = red & 0xff
        self.g = green & 0xff
        self.b = blue & 0xff
        self.a = alpha & 0xff

    @property
    def qoi_index(self) -> int:
        return pixel_hash(self.r, self.g, self.b, self.a)

    def as_tuple(self):
        return self.r, self.g, self.b, self.a

    def __eq__(self, other):
        if not isinstance(other, Pixel):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __hash__(self):
        return hash(self.as_tuple())

    def __repr__(self):
        return f"Pixel({self.r}, {self.g}, {self.b}, {self.a})"


START_PIXEL = Pixel(0, 0, 0, 255)


class RunningArray:
    """ A 64 value long hash map that is constantly updated """

    DEFAULT_PIXEL = Pixel(0, 0, 0, 0)

    def __init__(self):
        self._pixels = [self.DEFAULT_PIXEL for _ in range(QOI_RUNNING_ARRAY_SIZE)]

    def add(self, pixel: Pixel):
        self._pixels[pixel.qoi_index] = pixel

    def get(self, qoi_index: int) -> Pixel:
        return self._pixels[qoi_index]

    def __len__(self):
        return len(self._pixels)


class ByteReader:
    """
    Reads exact amounts of bytes from either an in memory buffer or a binary stream.
    A source that runs dry, or whose read fails, raises UnexpectedEnd.
    """

    def __init__(self, source: Union[bytes, bytearray, memoryview, BinaryIO]):
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = BytesIO(source)
        self.stream = source
        self._offset = 0

    @property
    def offset(self) -> int:
        """ number of bytes consumed so far """
        return self._offset

    def read(self, number_of_bytes: int) -> bytes:
        """ reads exactly number_of_bytes bytes, retrying on short reads """
        chunks = []
        missing = number_of_bytes
        while missing > 0:
            try:
                data = self.stream.read(missing)
            except OSError as e:
                raise UnexpectedEnd(number_of_bytes, number_of_bytes - missing, self._offset) from e
            if not data:
                raise UnexpectedEnd(number_of_bytes, number_of_bytes - missing, self._offset)
            chunks.append(data)
            missing -= len(data)
            self._offset += len(data)
        return b"".join(chunks)

    def read_byte(self) -> int:
        return self.read(1)[0]


class ImageConfig:

    def __init__(self, width: int, height: int, channels: int = 4, colorspace: int = 0):
        self.width = width
        self.height = height
        # informational only, never used while decoding
        self.channels = channels
        self.colorspace = colorspace

    @property
    def size(self):
        return self.width, self.height

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def __repr__(self):
        return (
            f"ImageConfig(width={self.width}, height={self.height}, "
            f"channels={self.channels}, colorspace={self.colorspace})"
        )


class PixelBuffer:
    """ Row major RGBA pixels, 4 bytes each, straight alpha """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.pix = bytearray(width * height * 4)

    @property
    def size(self):
        return self.width, self.height

    def set(self, position: int, pixel: Pixel):
        offset = position * 4
        self.pix[offset:offset + 4] = bytes(pixel.as_tuple())

    def get(self, x: int, y: int) -> Pixel:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) out of bounds for {self.width}x{self.height}")
        offset = (y * self.width + x) * 4
        return Pixel(*self.pix[offset:offset + 4])

    def tobytes(self) -> bytes:
        return bytes(self.pix)

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, bytes(self.pix), "raw", "RGBA")

    def __len__(self):
        return self.width * self.height

    def __eq__(self, other):
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and self.pix == other.pix


class Context:
    """ State of a single decode: last pixel, pending run, running array and output """

    def __init__(self, config: ImageConfig):
        self.pixels = PixelBuffer(config.width, config.height)
        self.array_position: int = 0
        self.previous_pixel: Pixel = START_PIXEL
        self.running_array = RunningArray()
        self.run: int = 0

    @property
    def done(self) -> bool:
        return self.array_position >= len(self.pixels)

    def next_pixel(self, next_pixel: Pixel, remember: bool = True):
        """ writes the next pixel to the output, remember adds it to the running array """
        if remember:
            self.running_array.add(next_pixel)
        self.pixels.set(self.array_position, next_pixel)
        self.previous_pixel = next_pixel
        self.array_position += 1

    def repeat_pixel(self):
        """ continues the active run """
        self.run -= 1
        self.pixels.set(self.array_position, self.previous_pixel)
        self.array_position += 1
