from pathlib import Path, PurePosixPath

from hpitools.hpi.constants import PATH_SEPARATOR
from hpitools.hpi.errors import UnsafePathError


def ceil_div(value: int, divisor: int) -> int:
    return -(-value // divisor)


def join_path(parent_path: str, name: str) -> str:
    if not parent_path:
        return name

    return f"{parent_path}{PATH_SEPARATOR}{name}"


def get_output_path(output_dir: Path, entry_path: str) -> Path:
    # Archive names come from untrusted data, never let them escape output_dir
    parts = [
        part
        for part in PurePosixPath(entry_path.replace("\\", PATH_SEPARATOR)).parts
        if part not in ("", ".", PATH_SEPARATOR)
    ]

    if not parts or ".." in parts:
        raise UnsafePathError(
            f"Refusing to extract '{entry_path}' outside of {output_dir}"
        )

    return output_dir.joinpath(*parts)
