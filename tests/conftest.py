from __future__ import annotations

import os
from pathlib import Path

import pytest

import where_is.finder as finder_module


class ScandirTracker:
    """Counts directory handles the finder opens and closes."""

    def __init__(self, real_scandir) -> None:
        self._real_scandir = real_scandir
        self.fail_on: set[Path] = set()
        self.calls: list[Path] = []
        self.open_handles = 0
        self.max_open_handles = 0

    def __call__(self, path):
        directory = Path(path)
        self.calls.append(directory)
        if directory in self.fail_on:
            raise PermissionError(13, "Permission denied", str(directory))

        handle = _TrackedHandle(self._real_scandir(path), self)
        self.open_handles += 1
        self.max_open_handles = max(self.max_open_handles, self.open_handles)
        return handle


class _TrackedHandle:
    def __init__(self, inner, tracker: ScandirTracker) -> None:
        self._inner = inner
        self._tracker = tracker
        self._closed = False

    def __iter__(self):
        return self

    def __next__(self):
        return next(self._inner)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._tracker.open_handles -= 1
        self._inner.close()


@pytest.fixture
def scandir_tracker(monkeypatch) -> ScandirTracker:
    tracker = ScandirTracker(os.scandir)
    monkeypatch.setattr(finder_module.os, "scandir", tracker)
    return tracker


def make_tree(root: Path, *files: str) -> Path:
    """Create ``files`` under ``root``; names ending in "/" become directories."""
    for relative in files:
        target = root / relative
        if relative.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("x", encoding="utf-8")
    return root
