from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from where_is import EntryUnreadable, Finder, InvalidRoot, load_config
from where_is.config import FinderConfig, PredicateConfig, PredicateKind
from where_is.predicates import AnyOf, Extension
from where_is.schemas import Entry, EntryKind

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

TYPE_CODES = {
    "f": EntryKind.FILE,
    "d": EntryKind.DIR,
    "l": EntryKind.SYMLINK,
    "o": EntryKind.OTHER,
}

EXIT_UNREADABLE = 1
EXIT_USAGE = 2

app = typer.Typer(help="where-is: find files in a directory tree")
debug_app = typer.Typer(help="Debug commands")
app.add_typer(debug_app, name="debug")


@app.command("find")
def find(
    root: Path | None = typer.Argument(
        None,
        help="Directory to search. Falls back to root in --config.",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Exact file name to match.",
    ),
    globs: list[str] | None = typer.Option(
        None,
        "--glob",
        "-g",
        help="Name glob such as '*.txt'. Repeat to require several.",
    ),
    extensions: list[str] | None = typer.Option(
        None,
        "--ext",
        "-e",
        help="Extension to match. Repeat to accept any of several.",
    ),
    type_code: str | None = typer.Option(
        None,
        "--type",
        "-t",
        help="Entry type: f (file), d (dir), l (symlink), o (other).",
    ),
    follow_links: bool = typer.Option(
        False,
        "--follow-links",
        help="Descend into symlinked directories.",
    ),
    include_root: bool = typer.Option(
        False,
        "--include-root",
        help="Report the root directory itself when it matches.",
    ),
    sort: bool = typer.Option(
        False,
        "--sort",
        help="Visit entries of each directory in name order.",
    ),
    min_depth: int | None = typer.Option(
        None,
        "--min-depth",
        min=0,
        help="Skip entries shallower than N (children of root are depth 1).",
    ),
    max_depth: int | None = typer.Option(
        None,
        "--max-depth",
        min=0,
        help="Do not descend below depth N.",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="JSON or YAML config file with finder options and predicates.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Stop at the first unreadable path.",
    ),
    json_lines: bool = typer.Option(
        False,
        "--json",
        help="Print one JSON object per match.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    """Search ROOT and print every matching path."""
    _configure_logging(verbose)

    try:
        config = load_config(config_path) if config_path is not None else FinderConfig()
        config = _apply_options(
            config,
            name=name,
            globs=globs or [],
            type_code=type_code,
            follow_links=follow_links,
            include_root=include_root,
            sort=sort,
            min_depth=min_depth,
            max_depth=max_depth,
        )
        finder = Finder.from_config(config, root=root)
        if extensions:
            finder.add_predicate(AnyOf(tuple(Extension(extension) for extension in extensions)))
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=EXIT_USAGE) from exc

    error_count = 0
    with finder:
        try:
            for result in finder:
                if isinstance(result, EntryUnreadable):
                    error_count += 1
                    typer.echo(f"where-is: {result}", err=True)
                    if strict:
                        raise typer.Exit(code=EXIT_UNREADABLE)
                    continue
                typer.echo(_format_entry(result, json_lines=json_lines))
        except InvalidRoot as exc:
            typer.echo(f"where-is: {exc}", err=True)
            raise typer.Exit(code=EXIT_USAGE) from exc

    logging.debug(
        "find done matched=%s errors=%s dirs=%s",
        finder.stats.matched,
        error_count,
        finder.stats.directories_opened,
    )
    if error_count:
        raise typer.Exit(code=EXIT_UNREADABLE)


@debug_app.command("config")
def debug_config(
    config_path: Path = typer.Option(
        ...,
        "--config",
        help="Config file path.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Validate a config file and print the resolved settings."""
    try:
        config = load_config(config_path)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=EXIT_USAGE) from exc

    typer.echo(config.model_dump_json(indent=2))
    typer.echo(f"config ok predicates={len(config.predicates)}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


def _apply_options(
    config: FinderConfig,
    *,
    name: str | None,
    globs: list[str],
    type_code: str | None,
    follow_links: bool,
    include_root: bool,
    sort: bool,
    min_depth: int | None,
    max_depth: int | None,
) -> FinderConfig:
    predicates = list(config.predicates)
    if name is not None:
        predicates.append(PredicateConfig(kind=PredicateKind.NAME, value=name))
    for pattern in globs:
        predicates.append(PredicateConfig(kind=PredicateKind.NAME_GLOB, value=pattern))
    if type_code is not None:
        entry_kind = TYPE_CODES.get(type_code.strip().lower())
        if entry_kind is None:
            raise ValueError(f"invalid --type: {type_code} (expected one of f, d, l, o)")
        predicates.append(PredicateConfig(kind=PredicateKind.KIND, value=entry_kind.value))

    # flags only switch behavior on; a config file can enable them too
    payload = config.model_dump()
    payload["follow_links"] = config.follow_links or follow_links
    payload["yield_root"] = config.yield_root or include_root
    payload["sort_by_name"] = config.sort_by_name or sort
    if min_depth is not None:
        payload["min_depth"] = min_depth
    if max_depth is not None:
        payload["max_depth"] = max_depth
    payload["predicates"] = [predicate.model_dump() for predicate in predicates]
    try:
        return FinderConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid options: {exc}") from exc


def _format_entry(entry: Entry, *, json_lines: bool) -> str:
    if json_lines:
        return json.dumps(entry.to_dict(), ensure_ascii=False)
    return str(entry.path)
