from contextlib import contextmanager
from pathlib import Path

from hpitools.hpi.constants import STRING_ENCODING
from hpitools.hpi.errors import TruncatedDataError


class ScrambledStream:
    """Seekable view of an HPI file that undoes the positional XOR scrambling.

    Every byte is descrambled with the key and its absolute position in the
    file, so reads are valid from any offset and in any order.
    """

    def __init__(self, path: Path):
        self.__size = path.stat().st_size
        self.__file = path.open("rb")
        self.__key: int | None = None

    @property
    def size(self) -> int:
        return self.__size

    @property
    def key(self) -> int | None:
        return self.__key

    @property
    def closed(self) -> bool:
        return self.__file.closed

    def set_key(self, key: int):
        # A zero header key means the archive is stored unscrambled
        self.__key = None if key == 0 else ~((key * 4) | (key >> 6)) & 0xFF

    def tell(self) -> int:
        return self.__file.tell()

    def seek(self, offset: int):
        if not 0 <= offset <= self.__size:
            raise TruncatedDataError(
                f"Offset {offset:#x} is outside of the file ({self.__size:#x} bytes)"
            )

        self.__file.seek(offset)

    def read(self, size: int) -> bytes:
        position = self.__file.tell()
        data = self.__file.read(size)

        if len(data) != size:
            raise TruncatedDataError(
                f"Unexpected end of file at {position:#x}. "
                f"Expected {size} bytes, but got {len(data)} bytes."
            )

        return self.__descramble(data, position)

    def read_u8(self) -> int:
        return self.read(1)[0]

    def read_u32(self) -> int:
        return int.from_bytes(self.read(4), byteorder="little")

    def read_string(self) -> str:
        # Names are NUL-terminated and scrambled like everything else
        result = bytearray()

        while (char := self.read(1)) != b"\x00":
            result += char

        return result.decode(STRING_ENCODING)

    @contextmanager
    def preserve_position(self):
        position = self.__file.tell()

        try:
            yield position
        finally:
            self.__file.seek(position)

    def substream(self, offset: int, size: int) -> "SubStream":
        return SubStream(self, offset, size)

    def close(self):
        self.__file.close()

    def __descramble(self, data: bytes, position: int) -> bytes:
        if self.__key is None:
            return data

        key = self.__key
        return bytes(
            ((position + i) ^ key ^ ~byte) & 0xFF for i, byte in enumerate(data)
        )


class SubStream:
    """Bounded window over a ScrambledStream.

    The window is clamped to the end of the underlying file, so a chunk that
    claims more bytes than the file holds simply reads short.
    """

    def __init__(self, parent: ScrambledStream, offset: int, size: int):
        self.__parent = parent
        self.__offset = offset
        self.__size = max(0, min(size, parent.size - offset))
        self.__position = 0

    def __len__(self) -> int:
        return self.__size

    @property
    def offset(self) -> int:
        return self.__offset

    def tell(self) -> int:
        return self.__position

    def seek(self, position: int):
        self.__position = max(0, min(position, self.__size))

    def read(self, size: int = -1) -> bytes:
        remaining = self.__size - self.__position

        if size < 0 or size > remaining:
            size = remaining

        if size == 0:
            return b""

        with self.__parent.preserve_position():
            self.__parent.seek(self.__offset + self.__position)
            data = self.__parent.read(size)

        self.__position += size
        return data
