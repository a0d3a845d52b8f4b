from typing import Optional


class QOIError(ValueError):
    """ base class for everything that can go wrong while decoding a QOI stream """


class InvalidMagic(QOIError):

    def __init__(self, expected: bytes, actual: bytes):
        self.expected = expected
        self.actual = actual
        super().__init__(f"invalid magic: expected {expected!r}, actual {actual!r}")


class UnexpectedEnd(QOIError):

    def __init__(self, wanted: int, got: int, offset: int):
        self.wanted = wanted
        self.got = got
        self.offset = offset
        super().__init__(f"unexpected end of data at offset {offset}: wanted {wanted} bytes, got {got}")


class InvalidRunLength(QOIError):

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"invalid run length: must be between 1 and 62, actual {length}")


class InvalidEOF(QOIError):

    def __init__(self, expected: bytes, actual: bytes):
        self.expected = expected
        self.actual = actual
        super().__init__(f"invalid end marker: expected {expected.hex(' ')}, actual {actual.hex(' ')}")


class ImageTooLarge(QOIError):

    def __init__(self, width: int, height: int, limit: Optional[int]):
        self.width = width
        self.height = height
        self.limit = limit
        if limit is None:
            super().__init__(f"image of {width}x{height} pixels cannot be allocated")
        else:
            super().__init__(f"image of {width}x{height} pixels exceeds the limit of {limit} pixels")
