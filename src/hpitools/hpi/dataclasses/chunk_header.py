from dataclasses import dataclass

from hpitools.hpi.enumerators.compression_method import CompressionMethod


@dataclass(frozen=True)
class ChunkHeader:
    magic: int
    marker: int
    method: CompressionMethod | int
    encrypted: bool
    compressed_size: int
    decompressed_size: int
    checksum: int
