"""SQSH chunk decoding.

Every chunk starts with a 19 byte header::

    magic             u32  "SQSH"
    marker            u8   always 2
    method            u8   0 stored, 1 LZ77, 2 zlib
    encrypted         u8
    compressed_size   u32
    decompressed_size u32
    checksum          u32  byte sum of the payload as stored

followed by ``compressed_size`` bytes of payload.
"""

import zlib

from hpitools.hpi.constants import (
    CHUNK_SIZE,
    LZ77_WINDOW_SIZE,
    SQSH_HEADER_SIZE,
    SQSH_MAGIC,
)
from hpitools.hpi.dataclasses.chunk_header import ChunkHeader
from hpitools.hpi.enumerators.compression_method import CompressionMethod
from hpitools.hpi.errors import CorruptChunkError
from hpitools.hpi.stream import SubStream


def read_chunk_header(data: bytes) -> ChunkHeader | None:
    if len(data) < SQSH_HEADER_SIZE:
        return None

    return ChunkHeader(
        magic=int.from_bytes(data[0:4], "little"),
        marker=data[4],
        method=data[5],
        encrypted=bool(data[6]),
        compressed_size=int.from_bytes(data[7:11], "little"),
        decompressed_size=int.from_bytes(data[11:15], "little"),
        checksum=int.from_bytes(data[15:19], "little"),
    )


def checksum(data: bytes) -> int:
    return sum(data) & 0xFFFFFFFF


def decrypt(data: bytes) -> bytes:
    return bytes(((byte - i) ^ i) & 0xFF for i, byte in enumerate(data))


def _read_chunk(view: SubStream) -> tuple[ChunkHeader | None, bytes]:
    view.seek(0)
    data = view.read()
    header = read_chunk_header(data)

    if header is None:
        return None, b""

    return header, data[SQSH_HEADER_SIZE : SQSH_HEADER_SIZE + header.compressed_size]


def is_valid(view: SubStream) -> bool:
    header, payload = _read_chunk(view)

    if header is None or header.magic != SQSH_MAGIC:
        return False

    if header.method not in {method.value for method in CompressionMethod}:
        return False

    if len(payload) != header.compressed_size:
        return False

    if header.decompressed_size > CHUNK_SIZE:
        return False

    return checksum(payload) == header.checksum


def lz77_decompress(data: bytes, limit: int | None = None) -> bytes:
    window = bytearray(LZ77_WINDOW_SIZE)
    window_pos = 1
    out = bytearray()

    in_pos = 0
    flags = 0
    mask = 0x100

    try:
        while True:
            if mask == 0x100:
                flags = data[in_pos]
                in_pos += 1
                mask = 1

            if flags & mask == 0:
                byte = data[in_pos]
                in_pos += 1

                out.append(byte)
                window[window_pos] = byte
                window_pos = (window_pos + 1) & 0xFFF
            else:
                token = int.from_bytes(data[in_pos : in_pos + 2], "little")
                in_pos += 2

                offset = token >> 4
                if offset == 0:
                    return bytes(out)

                for _ in range((token & 0x0F) + 2):
                    byte = window[offset]
                    out.append(byte)
                    window[window_pos] = byte
                    offset = (offset + 1) & 0xFFF
                    window_pos = (window_pos + 1) & 0xFFF

            if limit is not None and len(out) > limit:
                raise CorruptChunkError(
                    f"LZ77 stream produced more than {limit} bytes"
                )

            mask <<= 1
    except IndexError:
        raise CorruptChunkError("LZ77 stream ended without an end marker") from None


def decompress(view: SubStream, out: bytearray) -> int:
    """Decompress a valid chunk, append the result to ``out`` and return its length."""
    header, payload = _read_chunk(view)

    if header is None:
        raise CorruptChunkError(f"Chunk at {view.offset:#x} is too short")

    if header.decompressed_size > CHUNK_SIZE:
        raise CorruptChunkError(
            f"Chunk at {view.offset:#x} claims {header.decompressed_size} bytes, "
            f"more than the {CHUNK_SIZE} byte chunk size"
        )

    if header.encrypted:
        payload = decrypt(payload)

    match header.method:
        case CompressionMethod.NONE:
            data = payload
        case CompressionMethod.LZ77:
            data = lz77_decompress(payload, header.decompressed_size)
        case CompressionMethod.ZLIB:
            try:
                # One byte past the declared size is enough to detect a mismatch
                data = zlib.decompressobj().decompress(
                    payload, header.decompressed_size + 1
                )
            except zlib.error as e:
                raise CorruptChunkError(
                    f"Chunk at {view.offset:#x} is not a valid zlib stream: {e}"
                ) from e
        case _:
            raise CorruptChunkError(
                f"Chunk at {view.offset:#x} uses unknown compression method {header.method}"
            )

    if len(data) != header.decompressed_size:
        raise CorruptChunkError(
            f"Chunk at {view.offset:#x} decompressed to {len(data)} bytes, "
            f"expected {header.decompressed_size} bytes"
        )

    out += data
    return len(data)
