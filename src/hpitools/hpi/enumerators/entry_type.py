from enum import IntEnum


class EntryType(IntEnum):
    FILE = 0
    DIRECTORY = 1
