from pathlib import Path
from weakref import ref

from hpitools.hpi import codec
from hpitools.hpi.constants import (
    BANK_MAGIC,
    CHUNK_SIZE,
    HAPI2_VERSION_MAGIC,
    HAPI_MAGIC,
    HAPI_VERSION_MAGIC,
    HEADER_SIZE,
)
from hpitools.hpi.dataclasses.entry import Entry
from hpitools.hpi.dataclasses.header import Header
from hpitools.hpi.enumerators.subtype_reason import SubtypeReason
from hpitools.hpi.errors import (
    ArchiveClosedError,
    CorruptChunkError,
    EntryMismatchError,
    InvalidSignatureError,
    NotAFileError,
    TruncatedDataError,
    UnsupportedSubtypeError,
)
from hpitools.hpi.helpers import ceil_div
from hpitools.hpi.stream import ScrambledStream
from hpitools.hpi.walker import build_directory, flatten


class Archive:
    """Read-only HPI archive.

    The whole directory tree is read when the archive is opened. Any error
    while doing so closes the file and propagates, so an ``Archive`` instance
    that exists is always fully usable until :meth:`close` is called.

    All reads share a single file cursor; an archive must not be used from
    several threads without external locking.
    """

    def __init__(self, path: Path | str):
        self.__path = Path(path)
        self.__valid = False
        self.__stream = ScrambledStream(self.__path)

        try:
            self.__header = self.__read_header()
            self.__stream.set_key(self.__header.key)

            self.__root = build_directory(
                self.__stream, "", "", self.__header.directory_offset, ref(self)
            )
            self.__entries = flatten(self.__root)
        except BaseException:
            self.__stream.close()
            raise

        self.__valid = True

    @classmethod
    def open(cls, path: Path | str) -> "Archive":
        return cls(path)

    @property
    def path(self) -> Path:
        return self.__path

    @property
    def valid(self) -> bool:
        return self.__valid

    @property
    def header(self) -> Header:
        return self.__header

    @property
    def root(self) -> Entry:
        return self.__root

    @property
    def entries(self) -> list[Entry]:
        return self.__entries

    @property
    def files(self) -> list[Entry]:
        return [entry for entry in self.__entries if not entry.is_directory]

    @property
    def directories(self) -> list[Entry]:
        return [entry for entry in self.__entries if entry.is_directory]

    def __read_header(self) -> Header:
        if self.__stream.size < HEADER_SIZE:
            raise TruncatedDataError(
                f"File {self.__path}: {self.__stream.size} bytes is too short for an HPI header"
            )

        magic = self.__stream.read_u32()
        if magic != HAPI_MAGIC:
            raise InvalidSignatureError(self.__path, magic)

        bank_magic = self.__stream.read_u32()
        if bank_magic != HAPI_VERSION_MAGIC:
            if bank_magic == BANK_MAGIC:
                reason = SubtypeReason.SAVEGAME_LIKE
            elif bank_magic == HAPI2_VERSION_MAGIC:
                reason = SubtypeReason.UNSUPPORTED_VERSION
            else:
                reason = SubtypeReason.UNKNOWN

            raise UnsupportedSubtypeError(self.__path, reason.value, bank_magic)

        return Header(
            magic=magic,
            bank_magic=bank_magic,
            data_offset=self.__stream.read_u32(),
            key=self.__stream.read_u32(),
            directory_offset=self.__stream.read_u32(),
        )

    def __ensure_open(self):
        if not self.__valid:
            raise ArchiveClosedError(f"Archive {self.__path} is closed")

    def find(self, path: str) -> Entry | None:
        self.__ensure_open()
        wanted = path.strip("/").replace("\\", "/").lower()

        for entry in self.__entries:
            if entry.path.lower() == wanted:
                return entry

        return None

    def getdata(self, entry: Entry) -> bytes:
        self.__ensure_open()

        if entry.owner is None or entry.owner() is not self:
            raise EntryMismatchError(
                f"Entry '{entry.path}' does not belong to {self.__path}"
            )

        if entry.is_directory:
            raise NotAFileError(f"Entry '{entry.path}' is a directory, not a file")

        chunk_count = ceil_div(entry.size, CHUNK_SIZE)

        self.__stream.seek(entry.offset)
        chunk_sizes = [self.__stream.read_u32() for _ in range(chunk_count)]

        chunk_offset = entry.offset + 4 * chunk_count
        data = bytearray()

        for index, chunk_size in enumerate(chunk_sizes):
            view = self.__stream.substream(chunk_offset, chunk_size)

            if not codec.is_valid(view):
                raise CorruptChunkError(
                    f"Chunk {index} of '{entry.path}' at {chunk_offset:#x} is corrupted"
                )

            codec.decompress(view, data)
            chunk_offset += chunk_size

        if len(data) != entry.size:
            raise CorruptChunkError(
                f"Entry '{entry.path}' decompressed to {len(data)} bytes, "
                f"expected {entry.size} bytes"
            )

        return bytes(data)

    def extract(self, entry: Entry, output_path: Path):
        data = self.getdata(entry)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)

    def close(self):
        self.__valid = False
        self.__stream.close()

    def __enter__(self) -> "Archive":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
