from dataclasses import dataclass


@dataclass(frozen=True)
class Header:
    magic: int
    bank_magic: int
    data_offset: int
    key: int
    directory_offset: int
