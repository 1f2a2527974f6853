from enum import IntEnum


class CompressionMethod(IntEnum):
    NONE = 0
    LZ77 = 1
    ZLIB = 2
