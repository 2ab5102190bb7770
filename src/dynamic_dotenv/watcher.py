"""
Filesystem watcher for a single file, built on watchdog.

The watcher schedules a non-recursive watchdog Observer on the file's parent
directory and narrows the raw events down to the one path it cares about.
Every raw event is handed to the asyncio loop with ``call_soon_threadsafe``,
so all classification, debouncing and dispatching happens on the loop thread
and the handler never runs concurrently with itself.

Reported events:
- ADD: the file appeared
- CHANGE: an existing file was written
- UNLINK: the file is gone
- ERROR: the watcher failed; carries a WatchError
- READY: the observer is running

ADD and CHANGE are held back until the file's size and mtime have been stable
for ``stability_threshold`` seconds, so a handler never sees a half-written
file. The initial state of the file is not reported as events.
"""

from __future__ import annotations

import asyncio as _asyncio
import enum as _enum
import errno as _errno
import logging as _logging
import os as _os
import pathlib as _pathlib
import threading as _threading
import typing as _typing

import watchdog.events as _watchdog_events
import watchdog.observers as _watchdog_observers

import dynamic_dotenv.config.types as config_types
import dynamic_dotenv.errors as errors

_logger = _logging.getLogger(__name__)

_WRITE_EVENT_TYPES = frozenset(
    {
        _watchdog_events.EVENT_TYPE_CREATED,
        _watchdog_events.EVENT_TYPE_MODIFIED,
        _watchdog_events.EVENT_TYPE_CLOSED,
    }
)


class WatchEventKind(_enum.Enum):
    """Events a FileWatcher reports to its handler."""

    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"
    ERROR = "error"
    READY = "ready"


Handler = _typing.Callable[[WatchEventKind, errors.WatchError | None], None]


class _PendingWrite:
    """A write waiting for the file to stop changing."""

    def __init__(
        self,
        kind: WatchEventKind,
        signature: tuple[int, int] | None,
        since: float,
    ) -> None:
        self.kind = kind
        self.signature = signature
        self.since = since
        self.timer: _asyncio.TimerHandle | None = None


class _ThreadHandoff(_watchdog_events.FileSystemEventHandler):
    """Runs on watchdog's thread; forwards every event to the loop."""

    def __init__(self, watcher: FileWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: _watchdog_events.FileSystemEvent) -> None:
        try:
            self._watcher.loop.call_soon_threadsafe(self._watcher._on_raw_event, event)
        except RuntimeError:
            # Loop already closed; the watcher is being torn down.
            _logger.debug(
                "Dropped %s event for %s after loop close", event.event_type, event.src_path
            )


class FileWatcher:
    """
    Watch one file and report add/change/unlink/error/ready to a handler.

    The handler is always called on the event loop thread, one event at a
    time, in the order the filesystem produced them. After ``close()`` it is
    never called again.
    """

    def __init__(
        self,
        path: _pathlib.Path | str,
        handler: Handler,
        *,
        config: config_types.WatcherConfig | None = None,
        loop: _asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize the watcher. Nothing is watched until ``start()``.

        Args:
            path: Absolute path of the file to watch.
            handler: Called with (kind, error) for every reported event.
            config: Write-settle and shutdown settings.
            loop: Loop to deliver events on. Defaults to the running loop.

        Raises:
            RuntimeError: If no loop is given and none is running.
        """
        self._path = _pathlib.Path(_os.path.abspath(path))
        self._path_str = str(self._path)
        self._directory_str = str(self._path.parent)
        self._handler = handler
        self._config = config or config_types.WatcherConfig()
        if loop is None:
            try:
                loop = _asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError(
                    "FileWatcher needs a running asyncio event loop. "
                    "Create it from inside a coroutine or pass loop=."
                ) from None
        self.loop = loop

        self._observer: _watchdog_observers.Observer | None = None
        self._started = False
        self._closed = False
        self._exists = False
        self._pending: _PendingWrite | None = None

    @property
    def path(self) -> _pathlib.Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """
        Start the observer and schedule the READY event.

        A failure to start (missing or unreadable directory) is reported as
        an ERROR event rather than raised. READY follows either way.
        """
        if self._started or self._closed:
            raise RuntimeError("FileWatcher can only be started once")
        self._started = True
        self._exists = self._path.exists()

        observer = _watchdog_observers.Observer()
        observer.daemon = True
        try:
            observer.schedule(_ThreadHandoff(self), self._directory_str, recursive=False)
            observer.start()
        except OSError as e:
            _logger.warning("Could not watch %s: %s", self._directory_str, e)
            error = errors.WatchError.from_exception(self._path, e)
            self.loop.call_soon(self._dispatch, WatchEventKind.ERROR, error)
        else:
            self._observer = observer
            _logger.debug("Watching %s", self._path)

        self.loop.call_soon(self._dispatch, WatchEventKind.READY, None)

    def close(self) -> None:
        """Stop watching. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._cancel_pending()

        observer = self._observer
        self._observer = None
        if observer is None:
            return
        observer.stop()
        if observer.is_alive() and _threading.current_thread() is not observer:
            observer.join(timeout=self._config.join_timeout)
        _logger.debug("Stopped watching %s", self._path)

    # -------------------------------------------------------------------------
    # Raw event classification (loop thread)
    # -------------------------------------------------------------------------

    def _matches(self, raw_path: str | bytes) -> bool:
        if not raw_path:
            return False
        return _os.path.normpath(_os.fsdecode(raw_path)) == self._path_str

    def _on_raw_event(self, event: _watchdog_events.FileSystemEvent) -> None:
        if self._closed:
            return

        event_type = event.event_type
        if event.is_directory:
            if (
                event_type == _watchdog_events.EVENT_TYPE_DELETED
                and _os.path.normpath(_os.fsdecode(event.src_path)) == self._directory_str
            ):
                self._on_removed()
                gone = OSError(_errno.ENOENT, _os.strerror(_errno.ENOENT), self._directory_str)
                error = errors.WatchError.from_exception(self._path, gone)
                self._dispatch(WatchEventKind.ERROR, error)
            return

        if event_type == _watchdog_events.EVENT_TYPE_MOVED:
            if self._matches(event.src_path):
                self._on_removed()
            if self._matches(getattr(event, "dest_path", "")):
                self._on_written()
            return

        if not self._matches(event.src_path):
            return

        if event_type in _WRITE_EVENT_TYPES:
            self._on_written()
        elif event_type == _watchdog_events.EVENT_TYPE_DELETED:
            self._on_removed()

    def _on_written(self) -> None:
        kind = WatchEventKind.CHANGE if self._exists else WatchEventKind.ADD
        self._exists = True

        if self._config.stability_threshold <= 0:
            self._dispatch(kind, None)
            return

        now = self.loop.time()
        if self._pending is not None:
            # Keep the first kind: an ADD followed by writes is still an ADD.
            self._pending.signature = self._signature()
            self._pending.since = now
            return

        self._pending = _PendingWrite(kind, self._signature(), now)
        self._pending.timer = self.loop.call_later(self._config.poll_interval, self._poll_pending)

    def _on_removed(self) -> None:
        pending = self._pending
        self._cancel_pending()
        if pending is not None and pending.kind is WatchEventKind.ADD:
            # Appeared and vanished before settling: nothing to report.
            self._exists = False
            return
        if not self._exists:
            return
        self._exists = False
        self._dispatch(WatchEventKind.UNLINK, None)

    # -------------------------------------------------------------------------
    # Write settling
    # -------------------------------------------------------------------------

    def _signature(self) -> tuple[int, int] | None:
        try:
            stat = _os.stat(self._path)
        except OSError:
            return None
        return (stat.st_size, stat.st_mtime_ns)

    def _poll_pending(self) -> None:
        pending = self._pending
        if pending is None or self._closed:
            return

        try:
            stat = _os.stat(self._path)
        except FileNotFoundError:
            # The deleted event that follows settles the state. An add that
            # never settled was never reported, so there is nothing to unlink.
            self._pending = None
            self._exists = pending.kind is not WatchEventKind.ADD
            return
        except OSError:
            # Let the handler read the file and report the problem.
            self._pending = None
            self._dispatch(pending.kind, None)
            return

        now = self.loop.time()
        signature = (stat.st_size, stat.st_mtime_ns)
        if signature != pending.signature:
            pending.signature = signature
            pending.since = now
        elif now - pending.since >= self._config.stability_threshold:
            self._pending = None
            self._dispatch(pending.kind, None)
            return

        pending.timer = self.loop.call_later(self._config.poll_interval, self._poll_pending)

    def _cancel_pending(self) -> None:
        if self._pending is not None and self._pending.timer is not None:
            self._pending.timer.cancel()
        self._pending = None

    def _dispatch(self, kind: WatchEventKind, error: errors.WatchError | None) -> None:
        if self._closed:
            return
        _logger.debug("%s %s", kind.value, self._path)
        self._handler(kind, error)
