"""
Error types delivered through the ``error`` notification.

Errors never cross the engine's operation boundaries. They are wrapped in
one of these types and handed to subscribers instead:

- ParseError: the watched file exists but could not be read or decoded
- WatchError: the underlying filesystem watcher reported a failure
"""

from __future__ import annotations

import errno as _errno
import os as _os
import pathlib as _pathlib

import dynamic_dotenv.constants as constants


def errno_code(exc: BaseException) -> str:
    """Return the symbolic errno name (``EACCES``, ``EISDIR``...) for an exception."""
    if isinstance(exc, UnicodeDecodeError):
        return constants.UNDECODABLE_CODE
    if isinstance(exc, OSError) and exc.errno is not None:
        return _errno.errorcode.get(exc.errno, constants.UNKNOWN_ERROR_CODE)
    return constants.UNKNOWN_ERROR_CODE


class DotenvError(Exception):
    """
    Base class for errors reported by a dotenv watcher.

    Attributes:
        code: Machine-readable kind, usually an errno name such as ``EACCES``.
        path: The watched path the error relates to.
        message: Human-readable description.
    """

    def __init__(self, code: str, path: _pathlib.Path | str, message: str) -> None:
        self.code = code
        self.path = _pathlib.Path(path)
        self.message = message
        super().__init__(f"{code}: {message} ({self.path})")

    @classmethod
    def from_exception(cls, path: _pathlib.Path | str, exc: BaseException) -> DotenvError:
        """Wrap an OSError or UnicodeDecodeError, keeping it as ``__cause__``."""
        if isinstance(exc, OSError):
            message = exc.strerror or (_os.strerror(exc.errno) if exc.errno else str(exc))
        else:
            message = str(exc)
        error = cls(errno_code(exc), path, message)
        error.__cause__ = exc
        return error


class ParseError(DotenvError):
    """The watched file exists but could not be read or decoded."""

    pass


class WatchError(DotenvError):
    """The filesystem watcher failed (directory missing, permission denied...)."""

    pass
