"""Lazy depth-first search over a directory tree.

A ``Finder`` is configured with a root and a set of predicates, then pulled
one result at a time. Each result is either an ``Entry`` that passed every
predicate or an ``EntryUnreadable`` describing a path that could not be read.
At most one directory handle is open at any moment; the rest of the pending
work is a stack of directory paths.

Finders are not thread-safe for concurrent ``next()`` calls on one instance.
Handing an instance to another thread is fine as long as only one thread
drives it at a time.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Generator, Iterator
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from .config import FinderConfig
from .errors import EntryUnreadable, InvalidRoot
from .predicates import Predicate, build_predicate
from .schemas import Entry, EntryKind

logger = logging.getLogger(__name__)

FinderResult = Entry | EntryUnreadable


@dataclass(slots=True)
class FinderStats:
    directories_opened: int = 0
    entries_seen: int = 0
    matched: int = 0
    errors: int = 0


class Finder:
    def __init__(
        self,
        root: str | Path,
        *,
        follow_links: bool = False,
        yield_root: bool = False,
        sort_by_name: bool = False,
        min_depth: int = 0,
        max_depth: int | None = None,
    ) -> None:
        self._walker: Iterator[FinderResult] | None = None
        self._closed = False
        if min_depth < 0:
            raise ValueError("min_depth must be >= 0")
        if max_depth is not None and max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if max_depth is not None and max_depth < min_depth:
            raise ValueError("max_depth must be >= min_depth")

        self.root = Path(root)
        self.follow_links = follow_links
        self.yield_root = yield_root
        self.sort_by_name = sort_by_name
        self.min_depth = min_depth
        self.max_depth = max_depth
        self.stats = FinderStats()
        self._predicates: list[Predicate] = []

    @classmethod
    def from_config(cls, config: FinderConfig, root: str | Path | None = None) -> Finder:
        chosen_root = root if root is not None else config.root
        if chosen_root is None:
            raise ValueError("root must be given either directly or in the configuration")

        finder = cls(
            chosen_root,
            follow_links=config.follow_links,
            yield_root=config.yield_root,
            sort_by_name=config.sort_by_name,
            min_depth=config.min_depth,
            max_depth=config.max_depth,
        )
        for predicate_config in config.predicates:
            finder.add_predicate(build_predicate(predicate_config))
        return finder

    @property
    def predicates(self) -> tuple[Predicate, ...]:
        return tuple(self._predicates)

    def add_predicate(self, predicate: Predicate) -> Finder:
        """Require ``predicate`` for every entry yielded from now on."""
        self._predicates.append(predicate)
        return self

    def __iter__(self) -> Finder:
        return self

    def __next__(self) -> FinderResult:
        if self._closed:
            raise StopIteration
        if self._walker is None:
            self._walker = _TreeWalk(
                self.root,
                follow_links=self.follow_links,
                yield_root=self.yield_root,
                sort_by_name=self.sort_by_name,
                min_depth=self.min_depth,
                max_depth=self.max_depth,
                predicates=self._predicates,
                stats=self.stats,
            ).run()
        try:
            return next(self._walker)
        except StopIteration:
            self._finish()
            raise

    def strict(self) -> Iterator[Entry]:
        """Yield matching entries, raising the first ``EntryUnreadable`` met."""
        for result in self:
            if isinstance(result, EntryUnreadable):
                self.close()
                raise result
            yield result

    def close(self) -> None:
        """Stop the traversal and release any open directory handle."""
        if self._closed:
            return
        self._closed = True
        if self._walker is not None:
            self._walker.close()
            self._walker = None

    def __enter__(self) -> Finder:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        self.close()

    def _finish(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._walker = None
        logger.debug(
            "finder done root=%s dirs=%s seen=%s matched=%s errors=%s",
            self.root,
            self.stats.directories_opened,
            self.stats.entries_seen,
            self.stats.matched,
            self.stats.errors,
        )


class _TreeWalk:
    """Traversal state behind a Finder.

    Must not reference the Finder: the running generator has to be freed by
    refcounting as soon as the Finder is dropped.
    """

    def __init__(
        self,
        root: Path,
        *,
        follow_links: bool,
        yield_root: bool,
        sort_by_name: bool,
        min_depth: int,
        max_depth: int | None,
        predicates: list[Predicate],
        stats: FinderStats,
    ) -> None:
        self.root = root
        self.follow_links = follow_links
        self.yield_root = yield_root
        self.sort_by_name = sort_by_name
        self.min_depth = min_depth
        self.max_depth = max_depth
        self.predicates = predicates
        self.stats = stats

    def run(self) -> Iterator[FinderResult]:
        root_entry, root_identity = self._check_root()
        root_handle = self._open_root()

        visited: set[tuple[int, int]] = set()
        if self.follow_links:
            visited.add(root_identity)

        pending: list[tuple[Path, int]] = []
        with root_handle:
            if self.yield_root and self._accepts(root_entry):
                yield root_entry
            if self._may_descend(0):
                subdirectories = yield from self._scan(root_handle, self.root, 0, visited)
                pending.extend((path, 1) for path in reversed(subdirectories))

        while pending:
            directory, depth = pending.pop()
            try:
                handle = os.scandir(directory)
            except OSError as exc:
                yield self._unreadable(directory, exc, depth)
                continue

            self.stats.directories_opened += 1
            logger.debug("finder open dir=%s depth=%s", directory, depth)
            with handle:
                subdirectories = yield from self._scan(handle, directory, depth, visited)
            # reversed so the first subdirectory listed is popped first
            pending.extend((path, depth + 1) for path in reversed(subdirectories))

    def _check_root(self) -> tuple[Entry, tuple[int, int]]:
        try:
            root_stat = os.stat(self.root)
        except FileNotFoundError as exc:
            raise InvalidRoot(self.root, "no such directory") from exc
        except OSError as exc:
            raise InvalidRoot(self.root, exc.strerror or str(exc)) from exc

        if not stat.S_ISDIR(root_stat.st_mode):
            raise InvalidRoot(self.root, "not a directory")

        root_entry = Entry(
            path=self.root,
            name=self.root.name or str(self.root),
            kind=EntryKind.DIR,
            depth=0,
            is_symlink=self.root.is_symlink(),
        )
        return root_entry, (root_stat.st_dev, root_stat.st_ino)

    def _open_root(self):
        # Opened even when max_depth stops descent, so an unreadable root
        # fails before anything is yielded.
        try:
            handle = os.scandir(self.root)
        except OSError as exc:
            raise InvalidRoot(self.root, exc.strerror or str(exc)) from exc
        self.stats.directories_opened += 1
        logger.debug("finder open dir=%s depth=0", self.root)
        return handle

    def _scan(
        self,
        handle,
        directory: Path,
        depth: int,
        visited: set[tuple[int, int]],
    ) -> Generator[FinderResult, None, list[Path]]:
        subdirectories: list[Path] = []
        try:
            raw_entries = sorted(handle, key=lambda raw: raw.name) if self.sort_by_name else handle
            for raw in raw_entries:
                self.stats.entries_seen += 1
                try:
                    entry = Entry.from_dir_entry(raw, depth + 1, follow_links=self.follow_links)
                    descend = (
                        entry.is_dir
                        and self._may_descend(entry.depth)
                        and self._first_visit(entry, raw, visited)
                    )
                except OSError as exc:
                    yield self._unreadable(Path(raw.path), exc, depth + 1)
                    continue

                if descend:
                    subdirectories.append(entry.path)
                if self._accepts(entry):
                    yield entry
        except OSError as exc:
            yield self._unreadable(directory, exc, depth)
        return subdirectories

    def _accepts(self, entry: Entry) -> bool:
        if entry.depth < self.min_depth:
            return False
        if all(predicate(entry) for predicate in self.predicates):
            self.stats.matched += 1
            return True
        return False

    def _may_descend(self, depth: int) -> bool:
        return self.max_depth is None or depth < self.max_depth

    def _first_visit(self, entry: Entry, raw: os.DirEntry[str], visited: set[tuple[int, int]]) -> bool:
        # Without link following the tree has no cycles and each path is reached once.
        if not self.follow_links:
            return True

        entry_stat = raw.stat(follow_symlinks=True)
        identity = (entry_stat.st_dev, entry_stat.st_ino)
        if identity in visited:
            logger.debug("finder skip visited dir=%s", entry.path)
            return False
        visited.add(identity)
        return True

    def _unreadable(self, path: Path, exc: OSError, depth: int) -> EntryUnreadable:
        self.stats.errors += 1
        logger.warning("finder unreadable path=%s error=%s", path, exc)
        return EntryUnreadable(path, exc, depth)
