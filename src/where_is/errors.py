from __future__ import annotations

from pathlib import Path


class WhereIsError(Exception):
    """Base class for traversal errors."""


class InvalidRoot(WhereIsError):
    """The starting path is missing, not a directory, or cannot be opened."""

    def __init__(self, root: Path, reason: str) -> None:
        super().__init__(f"invalid root {root}: {reason}")
        self.root = root
        self.reason = reason


class EntryUnreadable(WhereIsError):
    """A path inside the tree could not be listed or statted.

    Finders yield instances of this class as sequence items instead of raising
    them, so a consumer can report the path and keep going.
    """

    def __init__(self, path: Path, cause: OSError, depth: int) -> None:
        super().__init__(f"{path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause
        self.depth = depth

    def __repr__(self) -> str:
        return f"EntryUnreadable(path={str(self.path)!r}, cause={self.cause!r}, depth={self.depth})"
