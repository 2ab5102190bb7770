"""
Reconciliation engine: keeps the environment in sync with one dotenv file.

Every filesystem event is answered with a reconciliation pass:

1. reset the environment to the baseline captured at construction
2. if the file exists, parse it
3. on success, overlay the parsed values and (unless suppressed) emit ``change``
4. on failure, emit ``error``, but only when someone listens for errors

Startup runs two passes with ``change`` suppressed: one synchronously in the
constructor, and one when the watcher reports ``ready``. Both describe the
initial state rather than a change. The second one picks up edits that landed
between the first pass and the watcher becoming active.

Example usage:
    import dynamic_dotenv

    async def main():
        watcher = dynamic_dotenv.watch(".env")
        watcher.on("change", lambda values: print("reloaded", values))
        watcher.on("error", lambda error: print("cannot read .env:", error.code))
        ...
        watcher.close()
"""

from __future__ import annotations

import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import dynamic_dotenv.config as config
import dynamic_dotenv.errors as errors
import dynamic_dotenv.notifications as notifications
import dynamic_dotenv.parser as parser
import dynamic_dotenv.store as store
import dynamic_dotenv.watcher as watcher

_logger = _logging.getLogger(__name__)


class Watcher(_typing.Protocol):
    """What the engine needs from a filesystem watcher."""

    def start(self) -> None: ...

    def close(self) -> None: ...


WatcherFactory = _typing.Callable[
    [_pathlib.Path, watcher.Handler, config.WatcherConfig],
    Watcher,
]


def _default_watcher_factory(
    path: _pathlib.Path,
    handler: watcher.Handler,
    watcher_config: config.WatcherConfig,
) -> Watcher:
    return watcher.FileWatcher(path, handler, config=watcher_config)


class DotenvWatcher:
    """
    Watches a dotenv file and mirrors it into a process-wide mapping.

    Subscribe with ``on``/``once`` to ``"change"``, ``"error"`` and
    ``"ready"``. Call ``close()`` to stop watching and restore the mapping
    to the state it had before the watcher was created.

    The engine is the only writer of the mapping. It is driven from a single
    asyncio loop and needs no locking.
    """

    def __init__(
        self,
        path: _pathlib.Path | str | None = None,
        *,
        environ: _typing.MutableMapping[str, str] | None = None,
        settings: config.Settings | None = None,
        watcher_factory: WatcherFactory | None = None,
        **parser_options: _typing.Any,
    ) -> None:
        """
        Capture the baseline, load the file once and start watching.

        Args:
            path: File to watch. Defaults to ``settings.path``, then <cwd>/.env.
            environ: Mapping to keep in sync. Defaults to ``os.environ``.
            settings: Configuration. Defaults to ``Settings()`` (env vars only).
            watcher_factory: Builds the filesystem watcher. The default
                needs a running asyncio loop.
            **parser_options: Forwarded to the parser on top of
                ``settings.parser`` (``encoding``, ``verbose``...).
        """
        self._settings = settings if settings is not None else config.Settings()
        self._path = config.resolve_path(
            path if path is not None else self._settings.path,
        )
        self._parser_options: dict[str, _typing.Any] = {
            **self._settings.parser.to_options(),
            **parser_options,
        }
        self._store = store.SnapshotStore(environ)
        self._emitter = notifications.Emitter()
        self._closed = False

        self.reconcile(suppress_change=True)

        factory = watcher_factory or _default_watcher_factory
        try:
            self._watcher = factory(self._path, self._on_watch_event, self._settings.watcher)
            self._watcher.start()
        except BaseException:
            # No watcher means no close(); undo the initial load here.
            self._closed = True
            self._store.reset()
            raise

    def __enter__(self) -> DotenvWatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "watching"
        return f"<DotenvWatcher {self._path} ({state})>"

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def path(self) -> _pathlib.Path:
        """The watched file."""
        return self._path

    @property
    def baseline(self) -> _typing.Mapping[str, str]:
        """Read-only copy of the mapping as it was before construction."""
        return self._store.baseline

    @property
    def environ(self) -> _typing.MutableMapping[str, str]:
        """The live mapping kept in sync with the file."""
        return self._store.active

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def on(self, kind: notifications.KindLike, listener: notifications.Listener) -> DotenvWatcher:
        """Subscribe to a notification kind. Returns self for chaining."""
        self._emitter.on(kind, listener)
        return self

    def once(self, kind: notifications.KindLike, listener: notifications.Listener) -> DotenvWatcher:
        """Subscribe to the next notification of a kind. Returns self for chaining."""
        self._emitter.once(kind, listener)
        return self

    def off(self, kind: notifications.KindLike, listener: notifications.Listener) -> DotenvWatcher:
        """Unsubscribe a listener. Returns self for chaining."""
        self._emitter.off(kind, listener)
        return self

    def listeners(self, kind: notifications.KindLike) -> list[notifications.Listener]:
        return self._emitter.listeners(kind)

    def listener_count(self, kind: notifications.KindLike) -> int:
        return self._emitter.listener_count(kind)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def reconcile(self, *, suppress_change: bool = False) -> None:
        """
        Bring the mapping in line with the file's current contents.

        Does nothing once the watcher is closed.

        Args:
            suppress_change: Do not emit ``change`` even if the file parsed.
                Used for the two startup passes.
        """
        if self._closed:
            return

        self._store.reset()

        if not _os.path.exists(self._path):
            _logger.debug("%s does not exist; environment left at baseline", self._path)
            return

        outcome = parser.parse_file(self._path, **self._parser_options)
        if isinstance(outcome, parser.Parsed):
            self._store.apply(outcome.values)
            _logger.debug("Loaded %d key(s) from %s", len(outcome.values), self._path)
            if not suppress_change:
                self._emitter.emit(notifications.NotificationKind.CHANGE, dict(outcome.values))
            return

        # Nobody listening means nobody to tell; the mapping stays at baseline.
        if self._emitter.listener_count(notifications.NotificationKind.ERROR):
            self._emitter.emit(notifications.NotificationKind.ERROR, outcome.error)
        else:
            _logger.debug("Dropped unobserved parse error for %s: %s", self._path, outcome.error)

    def _on_watch_event(
        self,
        kind: watcher.WatchEventKind,
        error: errors.WatchError | None,
    ) -> None:
        if self._closed:
            return

        if kind in (watcher.WatchEventKind.ADD, watcher.WatchEventKind.CHANGE):
            self.reconcile()
        elif kind is watcher.WatchEventKind.UNLINK:
            self._store.reset()
            self._emitter.emit(notifications.NotificationKind.CHANGE, None)
        elif kind is watcher.WatchEventKind.ERROR:
            # Forwarded as-is: no listener check, and the mapping is left alone.
            self._emitter.emit(notifications.NotificationKind.ERROR, error)
        elif kind is watcher.WatchEventKind.READY:
            self.reconcile(suppress_change=True)
            self._emitter.emit(notifications.NotificationKind.READY)

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """
        Stop watching and restore the baseline.

        Removes every subscriber first, so nothing is delivered after this
        call. Calling it twice leaves the mapping at baseline.
        """
        self._closed = True
        self._emitter.remove_all_listeners()
        self._watcher.close()
        self._store.reset()


def watch(path: _pathlib.Path | str | None = None, **options: _typing.Any) -> DotenvWatcher:
    """
    Start watching a dotenv file.

    Shorthand for ``DotenvWatcher(path, **options)``. Must be called while an
    asyncio loop is running unless ``watcher_factory`` is given.
    """
    return DotenvWatcher(path, **options)
