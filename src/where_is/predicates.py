from __future__ import annotations

import fnmatch
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import ClassVar, Protocol

from .config import PredicateConfig, PredicateKind
from .schemas import Entry, EntryKind


class Predicate(Protocol):
    """A matching rule evaluated against every entry a Finder meets."""

    kind: ClassVar[str]

    def __call__(self, entry: Entry) -> bool: ...


@dataclass(slots=True, frozen=True)
class NameEquals:
    kind: ClassVar[str] = "name"

    value: str

    def __call__(self, entry: Entry) -> bool:
        return entry.name == self.value


@dataclass(slots=True, frozen=True)
class NameGlob:
    kind: ClassVar[str] = "name_glob"

    pattern: str
    case_sensitive: bool = True

    def __call__(self, entry: Entry) -> bool:
        if self.case_sensitive:
            return fnmatch.fnmatchcase(entry.name, self.pattern)
        return fnmatch.fnmatchcase(entry.name.lower(), self.pattern.lower())


@dataclass(slots=True, frozen=True)
class Extension:
    """Matches names ending in ``.<extension>``; ``tar.gz`` style suffixes work."""

    kind: ClassVar[str] = "extension"

    extension: str
    case_sensitive: bool = False
    _suffix: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        normalized = self.extension.strip().lstrip(".")
        if not normalized:
            raise ValueError("extension must not be empty")
        suffix = f".{normalized}"
        if not self.case_sensitive:
            suffix = suffix.lower()
        object.__setattr__(self, "_suffix", suffix)

    def __call__(self, entry: Entry) -> bool:
        name = entry.name if self.case_sensitive else entry.name.lower()
        # ".bashrc" has no extension
        return name.endswith(self._suffix) and len(name) > len(self._suffix)


@dataclass(slots=True, frozen=True)
class IsDir:
    kind: ClassVar[str] = "is_dir"

    expected: bool = True

    def __call__(self, entry: Entry) -> bool:
        return entry.is_dir is self.expected


@dataclass(slots=True, frozen=True)
class KindIs:
    kind: ClassVar[str] = "kind"

    entry_kind: EntryKind

    def __call__(self, entry: Entry) -> bool:
        return entry.kind is self.entry_kind


@dataclass(slots=True, frozen=True)
class Custom:
    kind: ClassVar[str] = "custom"

    func: Callable[[Entry], bool]
    label: str = "custom"

    def __call__(self, entry: Entry) -> bool:
        return bool(self.func(entry))


@dataclass(slots=True, frozen=True)
class AnyOf:
    """Accepts an entry when at least one of ``predicates`` does."""

    kind: ClassVar[str] = "any_of"

    predicates: tuple[Predicate, ...]

    def __call__(self, entry: Entry) -> bool:
        return any(predicate(entry) for predicate in self.predicates)


def build_predicate(config: PredicateConfig) -> Predicate:
    if config.kind is PredicateKind.IS_DIR:
        return IsDir(expected=bool(config.value))

    value = str(config.value)
    if config.kind is PredicateKind.NAME:
        return NameEquals(value)
    if config.kind is PredicateKind.NAME_GLOB:
        return NameGlob(value, case_sensitive=_flag(config.case_sensitive, default=True))
    if config.kind is PredicateKind.EXTENSION:
        return Extension(value, case_sensitive=_flag(config.case_sensitive, default=False))
    if config.kind is PredicateKind.KIND:
        return KindIs(EntryKind(value.lower()))
    raise ValueError(f"Unsupported predicate kind: {config.kind}")


def _flag(value: bool | None, *, default: bool) -> bool:
    return default if value is None else value
