from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any


class EntryKind(StrEnum):
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class Entry:
    """One filesystem object met during a traversal."""

    path: Path
    name: str
    kind: EntryKind
    depth: int
    is_symlink: bool = False

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIR

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @classmethod
    def from_dir_entry(cls, raw: os.DirEntry[str], depth: int, *, follow_links: bool) -> Entry:
        """Build an Entry from a scandir record.

        Raises OSError when the record cannot be statted. With ``follow_links``
        a dangling symlink counts as unstattable.
        """
        is_symlink = raw.is_symlink()
        if is_symlink and follow_links:
            raw.stat(follow_symlinks=True)

        if is_symlink and not follow_links:
            kind = EntryKind.SYMLINK
        elif raw.is_dir(follow_symlinks=follow_links):
            kind = EntryKind.DIR
        elif raw.is_file(follow_symlinks=follow_links):
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER

        return cls(
            path=Path(raw.path),
            name=raw.name,
            kind=kind,
            depth=depth,
            is_symlink=is_symlink,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path),
            "name": self.name,
            "kind": self.kind.value,
            "depth": self.depth,
            "is_symlink": self.is_symlink,
        }
