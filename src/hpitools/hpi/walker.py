"""Reconstruction of the directory tree from the offset graph on disk.

A directory record is ``entry_count:u32, reserved:u32`` followed by
``entry_count`` records of ``name_offset:u32, info_offset:u32, type:u8``.
Names and infos live at arbitrary offsets, so the cursor is restored after
every record before the next one is read. A directory offset may only be
referenced once, which rules out cycles and shared subtrees.
"""

from dataclasses import dataclass, field
from weakref import ref

from hpitools.hpi.dataclasses.entry import Entry
from hpitools.hpi.enumerators.entry_type import EntryType
from hpitools.hpi.errors import (
    CorruptArchiveError,
    TruncatedDataError,
    UnknownEntryTypeError,
)
from hpitools.hpi.helpers import join_path
from hpitools.hpi.stream import ScrambledStream


def read_file_info(
    stream: ScrambledStream,
    parent_path: str,
    name: str,
    offset: int,
    owner: ref | None = None,
) -> Entry:
    stream.seek(offset)

    data_offset = stream.read_u32()
    data_size = stream.read_u32()

    if data_offset > stream.size:
        raise TruncatedDataError(
            f"Data of '{join_path(parent_path, name)}' starts at {data_offset:#x}, "
            f"past the end of the file ({stream.size:#x} bytes)"
        )

    return Entry(
        name=name,
        parent_path=parent_path,
        offset=data_offset,
        size=data_size,
        is_directory=False,
        owner=owner,
    )


@dataclass
class _Directory:
    parent_path: str
    name: str
    offset: int
    remaining: int
    position: int
    children: list[Entry] = field(default_factory=list)

    @property
    def path(self) -> str:
        return join_path(self.parent_path, self.name)


def _open_directory(
    stream: ScrambledStream,
    parent_path: str,
    name: str,
    offset: int,
    visited: set[int],
) -> _Directory:
    if offset in visited:
        raise CorruptArchiveError(
            f"Directory '{join_path(parent_path, name)}' at {offset:#x} "
            "is referenced more than once"
        )

    visited.add(offset)

    stream.seek(offset)
    entry_count = stream.read_u32()
    stream.read_u32()  # reserved

    return _Directory(parent_path, name, offset, entry_count, stream.tell())


def build_directory(
    stream: ScrambledStream,
    parent_path: str,
    name: str,
    offset: int,
    owner: ref | None = None,
) -> Entry:
    visited: set[int] = set()
    stack = [_open_directory(stream, parent_path, name, offset, visited)]

    while True:
        directory = stack[-1]

        if directory.remaining == 0:
            stack.pop()
            stream.seek(directory.position)

            entry = Entry(
                name=directory.name,
                parent_path=directory.parent_path,
                offset=directory.offset,
                size=0,
                is_directory=True,
                children=tuple(directory.children),
                owner=owner,
            )

            if not stack:
                return entry

            stack[-1].children.append(entry)
            continue

        stream.seek(directory.position)
        name_offset = stream.read_u32()
        info_offset = stream.read_u32()
        entry_type = stream.read_u8()

        directory.position = stream.tell()
        directory.remaining -= 1

        with stream.preserve_position():
            stream.seek(name_offset)
            item_name = stream.read_string()

            match entry_type:
                case EntryType.FILE:
                    directory.children.append(
                        read_file_info(
                            stream, directory.path, item_name, info_offset, owner
                        )
                    )
                case EntryType.DIRECTORY:
                    stack.append(
                        _open_directory(
                            stream, directory.path, item_name, info_offset, visited
                        )
                    )
                case _:
                    raise UnknownEntryTypeError(
                        entry_type, join_path(directory.path, item_name)
                    )


def flatten(root: Entry) -> list[Entry]:
    """List every entry of the tree, root first.

    The rest follow in the order the walker finishes them: each file as it is
    read, each directory right after its last descendant.
    """
    entries = [root]
    pending = [iter(root.children)]
    open_directories: list[Entry] = []

    while pending:
        child = next(pending[-1], None)

        if child is None:
            pending.pop()

            if open_directories:
                entries.append(open_directories.pop())
        elif child.is_directory:
            open_directories.append(child)
            pending.append(iter(child.children))
        else:
            entries.append(child)

    return entries
