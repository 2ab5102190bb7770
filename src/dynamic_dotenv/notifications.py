"""
Notification kinds and the observer registry that delivers them.

A DotenvWatcher publishes three kinds of notification:

- CHANGE: the effective configuration changed. Payload is the parsed
  mapping, or None when the mapping reverted to the baseline.
- ERROR: a DotenvError. Payload is the error.
- READY: the watcher is active and the second startup pass has run.
"""

from __future__ import annotations

import enum as _enum
import logging as _logging
import typing as _typing

_logger = _logging.getLogger(__name__)

Listener = _typing.Callable[..., _typing.Any]


class NotificationKind(_enum.Enum):
    """Kinds of notification a watcher emits."""

    CHANGE = "change"
    """Configuration changed. Payload: dict[str, str] or None."""

    ERROR = "error"
    """Something went wrong. Payload: DotenvError."""

    READY = "ready"
    """Watcher is active. No payload."""


KindLike = NotificationKind | str


def _coerce(kind: KindLike) -> NotificationKind:
    """Accept either an enum member or its string value."""
    if isinstance(kind, NotificationKind):
        return kind
    return NotificationKind(kind)


class Emitter:
    """
    Minimal observer registry keyed by NotificationKind.

    Listeners are called in registration order, synchronously from ``emit``.
    A listener that raises is logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._listeners: dict[NotificationKind, list[Listener]] = {
            kind: [] for kind in NotificationKind
        }

    def on(self, kind: KindLike, listener: Listener) -> None:
        """Subscribe ``listener`` to ``kind``."""
        self._listeners[_coerce(kind)].append(listener)

    def once(self, kind: KindLike, listener: Listener) -> None:
        """Subscribe ``listener`` to the next ``kind`` notification only."""
        resolved = _coerce(kind)

        def _wrapper(*args: _typing.Any) -> _typing.Any:
            self._remove(resolved, _wrapper)
            return listener(*args)

        _wrapper.listener = listener  # type: ignore[attr-defined]
        self._listeners[resolved].append(_wrapper)

    def off(self, kind: KindLike, listener: Listener) -> None:
        """
        Unsubscribe ``listener`` from ``kind``.

        Removes the most recent registration, including one made with
        ``once``. Unknown listeners are ignored.
        """
        resolved = _coerce(kind)
        registered = self._listeners[resolved]
        for i in range(len(registered) - 1, -1, -1):
            candidate = registered[i]
            if candidate is listener or getattr(candidate, "listener", None) is listener:
                del registered[i]
                return

    def listeners(self, kind: KindLike) -> list[Listener]:
        """Return a copy of the listeners for ``kind``, unwrapping ``once`` registrations."""
        return [
            getattr(candidate, "listener", candidate)
            for candidate in self._listeners[_coerce(kind)]
        ]

    def listener_count(self, kind: KindLike) -> int:
        """Number of listeners subscribed to ``kind``."""
        return len(self._listeners[_coerce(kind)])

    def remove_all_listeners(self, kind: KindLike | None = None) -> None:
        """Drop every listener, or every listener for one kind."""
        if kind is None:
            for registered in self._listeners.values():
                registered.clear()
        else:
            self._listeners[_coerce(kind)].clear()

    def emit(self, kind: KindLike, *args: _typing.Any) -> bool:
        """
        Call every listener for ``kind`` with ``args``.

        Returns:
            True if at least one listener was called.
        """
        resolved = _coerce(kind)
        # Copy so listeners may subscribe or unsubscribe while we iterate.
        snapshot = list(self._listeners[resolved])
        for listener in snapshot:
            try:
                listener(*args)
            except Exception:
                _logger.exception("Listener for %s notification failed", resolved.value)
        return bool(snapshot)

    def _remove(self, kind: NotificationKind, registered: Listener) -> None:
        if registered in self._listeners[kind]:
            self._listeners[kind].remove(registered)
