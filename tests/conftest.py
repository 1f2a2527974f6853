from pathlib import Path

import pytest

from hpi_builder import build_hpi, scramble

SAMPLE_TREE = {
    "readme.txt": b"Total Annihilation\r\n" * 20,
    "units": {
        "armcom.fbi": b"[UNITINFO]\r\n{\r\n\tUnitName=ARMCOM;\r\n}\r\n",
        "empty.fbi": b"",
        "scripts": {
            "armcom.cob": bytes(range(256)) * 4,
        },
    },
    "sounds": {},
}


@pytest.fixture
def sample_tree() -> dict:
    return SAMPLE_TREE


@pytest.fixture
def make_archive(tmp_path: Path):
    counter = iter(range(1000))

    def factory(tree: dict = SAMPLE_TREE, **kwargs) -> Path:
        path = tmp_path / f"archive{next(counter)}.hpi"
        path.write_bytes(build_hpi(tree, **kwargs))
        return path

    return factory


@pytest.fixture
def sample_archive(make_archive) -> Path:
    return make_archive()


@pytest.fixture
def write_scrambled():
    """Overwrite the bytes at ``position`` so that they decode to ``value``."""

    def patch(path: Path, position: int, value: int | bytes):
        if isinstance(value, int):
            value = bytes([value])

        data = bytearray(path.read_bytes())
        key = int.from_bytes(data[12:16], "little")
        data[position : position + len(value)] = scramble(value, position, key)
        path.write_bytes(data)

    return patch
