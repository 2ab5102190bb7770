"""
Parse a dotenv file into a flat ``str -> str`` mapping.

``parse_file`` never raises for I/O or decoding problems. It returns a tagged
outcome instead:

- Parsed(values): the file was read; ``values`` may be empty
- Failed(error): the file exists but could not be read or decoded

Malformed lines are not failures: python-dotenv skips them (and logs about
them when ``verbose`` is set).
"""

from __future__ import annotations

import dataclasses as _dataclasses
import inspect as _inspect
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import dotenv as _dotenv

import dynamic_dotenv.constants as constants
import dynamic_dotenv.errors as errors

_logger = _logging.getLogger(__name__)

# Keywords of dotenv_values the caller may set. The path, stream and encoding
# are supplied here.
_FORWARDED_OPTIONS = frozenset(_inspect.signature(_dotenv.dotenv_values).parameters) - {
    "dotenv_path",
    "stream",
    "encoding",
}


@_dataclasses.dataclass(frozen=True)
class Parsed:
    """Successful parse of the watched file."""

    values: dict[str, str]


@_dataclasses.dataclass(frozen=True)
class Failed:
    """The watched file exists but could not be read or decoded."""

    error: errors.ParseError


ParseOutcome = Parsed | Failed


def parse_file(
    path: _pathlib.Path | str,
    *,
    encoding: str = constants.DEFAULT_ENCODING,
    **options: _typing.Any,
) -> ParseOutcome:
    """
    Read and parse a dotenv file.

    Args:
        path: File to read.
        encoding: Encoding used to open the file.
        **options: Forwarded to ``dotenv.dotenv_values`` (``verbose``,
            ``interpolate``). ``interpolate`` defaults to False. Options
            ``dotenv_values`` does not accept are ignored.

    Returns:
        Parsed with the key/value pairs, or Failed wrapping a ParseError.
        Keys declared without a value (a bare ``FOO`` line) are dropped.
    """
    ignored = sorted(set(options) - _FORWARDED_OPTIONS)
    if ignored:
        _logger.debug("Ignoring parser option(s) not understood by python-dotenv: %s", ignored)
    forwarded = {key: value for key, value in options.items() if key in _FORWARDED_OPTIONS}
    forwarded.setdefault("interpolate", False)
    try:
        with open(path, encoding=encoding) as stream:
            raw = _dotenv.dotenv_values(stream=stream, **forwarded)
    except (OSError, UnicodeDecodeError) as e:
        error = errors.ParseError.from_exception(path, e)
        _logger.debug("Could not parse %s: %s", path, error)
        return Failed(error)

    values = {key: value for key, value in raw.items() if value is not None}
    return Parsed(values)
