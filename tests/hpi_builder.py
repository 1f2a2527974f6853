"""Synthesises HPI archives for the tests.

``tree`` is a dict mapping names to either ``bytes`` (a file) or another dict
(a subdirectory). Everything after the 20 byte header is scrambled with
``key`` exactly like the game tools do it.
"""

import struct
import zlib

from hpitools.hpi.constants import (
    CHUNK_SIZE,
    HAPI_MAGIC,
    HAPI_VERSION_MAGIC,
    HEADER_SIZE,
    SQSH_MAGIC,
)
from hpitools.hpi.enumerators.compression_method import CompressionMethod


def transform_key(key: int) -> int:
    return ~((key * 4) | (key >> 6)) & 0xFF


def scramble(data: bytes, position: int, key: int) -> bytes:
    if key == 0:
        return bytes(data)

    tkey = transform_key(key)
    return bytes(~(byte ^ (position + i) ^ tkey) & 0xFF for i, byte in enumerate(data))


def lz77_literals(data: bytes) -> bytes:
    # Literal-only stream terminated by a zero back-reference token
    tokens = [bytes([byte]) for byte in data] + [None]
    out = bytearray()

    for start in range(0, len(tokens), 8):
        group = tokens[start : start + 8]
        flags = 0

        for bit, token in enumerate(group):
            if token is None:
                flags |= 1 << bit

        out.append(flags)

        for token in group:
            out += b"\x00\x00" if token is None else token

    return bytes(out)


def encrypt_payload(payload: bytes) -> bytes:
    return bytes(((byte ^ i) + i) & 0xFF for i, byte in enumerate(payload))


def encode_chunk(
    data: bytes,
    method: CompressionMethod = CompressionMethod.LZ77,
    encrypted: bool = False,
) -> bytes:
    match method:
        case CompressionMethod.NONE:
            payload = data
        case CompressionMethod.LZ77:
            payload = lz77_literals(data)
        case CompressionMethod.ZLIB:
            payload = zlib.compress(data)

    if encrypted:
        payload = encrypt_payload(payload)

    header = struct.pack(
        "<IBBBIII",
        SQSH_MAGIC,
        2,
        int(method),
        int(encrypted),
        len(payload),
        len(data),
        sum(payload) & 0xFFFFFFFF,
    )
    return header + payload


def build_hpi(
    tree: dict,
    key: int = 0x7D,
    method: CompressionMethod = CompressionMethod.LZ77,
    encrypted: bool = False,
    bank_magic: int = HAPI_VERSION_MAGIC,
) -> bytes:
    body = bytearray(HEADER_SIZE)

    def write_file(data: bytes) -> int:
        info_offset = len(body)
        body.extend(bytes(8))

        chunks = [
            encode_chunk(data[start : start + CHUNK_SIZE], method, encrypted)
            for start in range(0, len(data), CHUNK_SIZE)
        ]

        data_offset = len(body)
        for chunk in chunks:
            body.extend(struct.pack("<I", len(chunk)))
        for chunk in chunks:
            body.extend(chunk)

        struct.pack_into("<II", body, info_offset, data_offset, len(data))
        return info_offset

    def write_directory(node: dict) -> int:
        offset = len(body)
        items = list(node.items())

        body.extend(struct.pack("<II", len(items), 0))
        records = len(body)
        body.extend(bytes(9 * len(items)))

        for index, (name, value) in enumerate(items):
            name_offset = len(body)
            body.extend(name.encode("latin-1") + b"\x00")

            if isinstance(value, dict):
                info_offset, entry_type = write_directory(value), 1
            else:
                info_offset, entry_type = write_file(value), 0

            struct.pack_into(
                "<IIB", body, records + 9 * index, name_offset, info_offset, entry_type
            )

        return offset

    directory_offset = write_directory(tree)
    header = struct.pack(
        "<IIIII", HAPI_MAGIC, bank_magic, len(body), key, directory_offset
    )

    return header + scramble(body[HEADER_SIZE:], HEADER_SIZE, key)
