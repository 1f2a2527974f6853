from enum import Enum


class SubtypeReason(str, Enum):
    SAVEGAME_LIKE = "savegame-like"
    UNSUPPORTED_VERSION = "unsupported-version"
    UNKNOWN = "unknown"
