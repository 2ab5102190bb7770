"""
Output helpers for the CLI: value masking, snapshot diffs and the
notification reporter used by ``watch``.
"""

import json as _json
import pathlib as _pathlib
import typing as _typing

import click as _click
import rich.console as _rich_console
import rich.markup as _rich_markup

import dynamic_dotenv.errors as errors

MASK = "****"


def display(value: str, show_values: bool) -> str:
    return value if show_values else MASK


def describe_change(
    previous: _typing.Mapping[str, str],
    current: _typing.Mapping[str, str],
) -> dict[str, dict[str, _typing.Any]]:
    """
    Compare two environment snapshots.

    Returns:
        Dict with "added" and "removed" (key -> value) and "modified"
        (key -> [old, new]). Unchanged keys are omitted.
    """
    added = {key: current[key] for key in current if key not in previous}
    removed = {key: previous[key] for key in previous if key not in current}
    modified = {
        key: [previous[key], current[key]]
        for key in current
        if key in previous and previous[key] != current[key]
    }
    return {"added": added, "removed": removed, "modified": modified}


def count_set_from_file(
    baseline: _typing.Mapping[str, str],
    current: _typing.Mapping[str, str],
) -> int:
    """Keys whose value comes from the file: new ones and overridden ones."""
    diff = describe_change(baseline, current)
    return len(diff["added"]) + len(diff["modified"])


class Reporter:
    """Prints watcher notifications as text or JSON lines."""

    def __init__(self, *, as_json: bool, show_values: bool) -> None:
        self._as_json = as_json
        self._show_values = show_values
        self._console = _rich_console.Console(highlight=False)

    def _emit_json(self, payload: dict[str, _typing.Any]) -> None:
        _click.echo(_json.dumps(payload))

    def ready(self, path: _pathlib.Path, loaded: int) -> None:
        if self._as_json:
            self._emit_json({"event": "ready", "path": str(path), "keys": loaded})
            return
        self._console.print(
            f"Watching [bold]{_rich_markup.escape(str(path))}[/bold] "
            f"({loaded} key(s) set from file)"
        )

    def change(self, diff: dict[str, dict[str, _typing.Any]], reverted: bool) -> None:
        if not self._show_values:
            diff = {
                "added": dict.fromkeys(diff["added"], MASK),
                "removed": dict.fromkeys(diff["removed"], MASK),
                "modified": {key: [MASK, MASK] for key in diff["modified"]},
            }
        if self._as_json:
            self._emit_json({"event": "change", "reverted": reverted, **diff})
            return

        header = "File removed, environment reverted" if reverted else "File changed"
        self._console.print(f"[yellow]{header}[/yellow]")
        escape = _rich_markup.escape
        for key, value in diff["added"].items():
            self._console.print(f"  [green]+ {escape(key)}={escape(value)}[/green]")
        for key, value in diff["removed"].items():
            self._console.print(f"  [red]- {escape(key)}={escape(value)}[/red]")
        for key, (old, new) in diff["modified"].items():
            self._console.print(f"  [blue]~ {escape(key)}: {escape(old)} -> {escape(new)}[/blue]")

    def error(self, error: errors.DotenvError) -> None:
        if self._as_json:
            self._emit_json(
                {
                    "event": "error",
                    "code": error.code,
                    "path": str(error.path),
                    "message": error.message,
                }
            )
            return
        self._console.print(f"[red]Error {error.code}:[/red] {_rich_markup.escape(error.message)}")
