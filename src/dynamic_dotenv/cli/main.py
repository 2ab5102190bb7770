"""
Main CLI entry point for dynamic-dotenv.

Provides the command-line interface using Click:

    dynamic-dotenv show      # parse the file once and print it
    dynamic-dotenv watch     # follow the file and report every change
    dynamic-dotenv config    # print the effective settings
"""

import asyncio as _asyncio
import json as _json
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import click as _click
import rich.console as _rich_console
import rich.markup as _rich_markup
import rich.syntax as _rich_syntax
import rich.table as _rich_table
import yaml as _yaml

import dynamic_dotenv
import dynamic_dotenv.cli.report as report
import dynamic_dotenv.config as config
import dynamic_dotenv.engine as engine
import dynamic_dotenv.parser as parser

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}


def _configure_logging(level: str) -> None:
    """Initialise the root logger for CLI output."""
    _logging.basicConfig(
        level=getattr(_logging, level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=True,
    )


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(dynamic_dotenv.__version__, "-v", "--version", prog_name="dynamic-dotenv")
@_click.option(
    "--path",
    type=_click.Path(dir_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Dotenv file to use (default: ./.env or DYNAMIC_DOTENV_PATH)",
)
@_click.option("--verbose", is_flag=True, help="Enable debug logging")
@_click.pass_context
def cli(ctx: _click.Context, path: _pathlib.Path | None, verbose: bool) -> None:
    """
    dynamic-dotenv - keep the environment in sync with a .env file.

    \b
    Examples:
        dynamic-dotenv show                   # Print ./.env as parsed
        dynamic-dotenv --path app.env watch   # Report every change to app.env
        dynamic-dotenv config --json          # Effective settings as JSON
    """
    # Load settings from environment, then override with CLI args
    settings = config.Settings()
    if path is not None:
        settings.path = path
    if verbose:
        settings.log_level = "DEBUG"

    _configure_logging(settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option("--show-values", is_flag=True, help="Print values instead of masking them")
@_click.pass_context
def show(ctx: _click.Context, as_json: bool, show_values: bool) -> None:
    """Parse the dotenv file once and print its keys."""
    settings: config.Settings = ctx.obj["settings"]
    path = settings.resolve_path()

    if not path.exists():
        _click.echo(f"{path} does not exist; nothing to load.")
        return

    outcome = parser.parse_file(path, **settings.parser.to_options())
    if isinstance(outcome, parser.Failed):
        error = outcome.error
        raise _click.ClickException(f"{error.code}: cannot read {path}: {error.message}")

    values = {key: report.display(value, show_values) for key, value in outcome.values.items()}
    if as_json:
        _click.echo(_json.dumps(values, indent=2))
        return

    table = _rich_table.Table(title=str(path))
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(_rich_markup.escape(key), _rich_markup.escape(value))
    _rich_console.Console().print(table)


@cli.command()
@_click.option("--json", "as_json", is_flag=True, help="Output one JSON object per line")
@_click.option("--show-values", is_flag=True, help="Print values instead of masking them")
@_click.option(
    "--timeout",
    type=float,
    default=None,
    help="Stop after this many seconds (default: run until interrupted)",
)
@_click.pass_context
def watch(
    ctx: _click.Context,
    as_json: bool,
    show_values: bool,
    timeout: float | None,
) -> None:
    """Watch the dotenv file and report every change.

    Change reports compare the environment before and after the reload, so
    they list keys added, removed and modified by the file.
    """
    settings: config.Settings = ctx.obj["settings"]
    reporter = report.Reporter(as_json=as_json, show_values=show_values)
    try:
        _asyncio.run(_watch(settings, reporter, timeout))
    except KeyboardInterrupt:
        pass


async def _watch(
    settings: config.Settings,
    reporter: report.Reporter,
    timeout: float | None,
) -> None:
    """Run a DotenvWatcher until ``timeout`` elapses or the task is cancelled."""
    watcher = engine.DotenvWatcher(settings=settings)
    snapshot = dict(watcher.environ)

    def on_ready() -> None:
        nonlocal snapshot
        snapshot = dict(watcher.environ)
        loaded = report.count_set_from_file(watcher.baseline, snapshot)
        reporter.ready(watcher.path, loaded)

    def on_change(values: dict[str, str] | None) -> None:
        nonlocal snapshot
        current = dict(watcher.environ)
        reporter.change(report.describe_change(snapshot, current), reverted=values is None)
        snapshot = current

    watcher.on("ready", on_ready).on("change", on_change).on("error", reporter.error)
    try:
        await _asyncio.wait_for(_asyncio.Event().wait(), timeout)
    except TimeoutError:
        pass
    finally:
        watcher.close()


@cli.command(name="config")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.pass_context
def config_cmd(ctx: _click.Context, as_json: bool) -> None:
    """Show the effective settings and the resolved path."""
    settings: config.Settings = ctx.obj["settings"]
    data = settings.model_dump(mode="json")
    data["path"] = str(settings.resolve_path())

    if as_json:
        _click.echo(_json.dumps(data, indent=2))
        return

    yaml_text = _yaml.dump(data, default_flow_style=False, sort_keys=False)
    console = _rich_console.Console()
    if console.is_terminal:
        syntax = _rich_syntax.Syntax(yaml_text, "yaml", theme="monokai", background_color="default")
        console.print(syntax)
    else:
        _click.echo(yaml_text)


def main() -> None:
    """Main entry point with correct program name."""
    cli(prog_name="dynamic-dotenv")


if __name__ == "__main__":
    main()
