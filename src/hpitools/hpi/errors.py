class HPIError(ValueError):
    """Base class for every error raised while reading an HPI archive."""


class InvalidSignatureError(HPIError):
    def __init__(self, path, signature: int):
        super().__init__(f"File {path}: Invalid HAPI signature: {signature:#010x}")
        self.signature = signature


class UnsupportedSubtypeError(HPIError):
    def __init__(self, path, reason: str, signature: int):
        super().__init__(
            f"File {path}: Unsupported bank subtype ({reason}): {signature:#010x}"
        )
        self.reason = reason
        self.signature = signature


class UnknownEntryTypeError(HPIError):
    def __init__(self, entry_type: int, path: str):
        super().__init__(f"Unknown entry type {entry_type} for '{path}'")
        self.entry_type = entry_type


class TruncatedDataError(HPIError):
    pass


class CorruptArchiveError(HPIError):
    pass


class CorruptChunkError(HPIError):
    pass


class EntryMismatchError(HPIError):
    pass


class NotAFileError(HPIError):
    pass


class ArchiveClosedError(HPIError):
    pass


class UnsafePathError(HPIError):
    pass
