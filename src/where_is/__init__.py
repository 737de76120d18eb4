"""Lazy filesystem search over a directory tree."""

from .config import FinderConfig, PredicateConfig, load_config
from .errors import EntryUnreadable, InvalidRoot, WhereIsError
from .finder import Finder, FinderResult, FinderStats
from .predicates import AnyOf, Custom, Extension, IsDir, KindIs, NameEquals, NameGlob, Predicate
from .schemas import Entry, EntryKind

__all__ = [
    "AnyOf",
    "Custom",
    "Entry",
    "EntryKind",
    "EntryUnreadable",
    "Extension",
    "Finder",
    "FinderConfig",
    "FinderResult",
    "FinderStats",
    "InvalidRoot",
    "IsDir",
    "KindIs",
    "NameEquals",
    "NameGlob",
    "Predicate",
    "PredicateConfig",
    "WhereIsError",
    "load_config",
]
