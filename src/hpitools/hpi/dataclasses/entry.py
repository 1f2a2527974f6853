from dataclasses import dataclass, field
from weakref import ref

from hpitools.hpi.constants import PATH_SEPARATOR


@dataclass(frozen=True)
class Entry:
    name: str
    parent_path: str
    offset: int
    size: int
    is_directory: bool
    children: tuple["Entry", ...] = ()
    # Weak back-reference to the owning archive, used for identity checks only
    owner: ref | None = field(default=None, compare=False, repr=False)

    @property
    def path(self) -> str:
        if not self.parent_path:
            return self.name

        return f"{self.parent_path}{PATH_SEPARATOR}{self.name}"
