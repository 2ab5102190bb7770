"""
Shared pytest fixtures for dynamic-dotenv tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import asyncio as _asyncio
import os as _os
import pathlib as _pathlib
import typing as _typing
import unittest.mock as _mock

import pytest as _pytest

import dynamic_dotenv.config as config
import dynamic_dotenv.errors as errors
import dynamic_dotenv.watcher as watcher

# Settle fast enough for tests while still exercising the debounce path.
FAST_STABILITY_THRESHOLD = 0.05
FAST_POLL_INTERVAL = 0.01

# Upper bound for waiting on a real filesystem event.
EVENT_TIMEOUT = 5.0


# =============================================================================
# Environment isolation
# =============================================================================


@_pytest.fixture(autouse=True)
def restore_os_environ() -> _typing.Iterator[None]:
    """
    Restore os.environ after every test.

    Watchers built without environ= write to the real process environment.
    DYNAMIC_DOTENV_* variables are cleared so settings start from defaults.
    """
    clean = {k: v for k, v in _os.environ.items() if not k.startswith("DYNAMIC_DOTENV_")}
    with _mock.patch.dict(_os.environ, clean, clear=True):
        yield


@_pytest.fixture
def baseline() -> dict[str, str]:
    """The environment a watcher starts from in unit tests."""
    return {"HOME": "/home/test", "SHARED": "from-baseline"}


@_pytest.fixture
def environ(baseline: dict[str, str]) -> dict[str, str]:
    """A private mapping standing in for os.environ."""
    return dict(baseline)


@_pytest.fixture
def dotenv_path(tmp_path: _pathlib.Path) -> _pathlib.Path:
    """Path of a dotenv file that does not exist yet."""
    return tmp_path / ".env"


@_pytest.fixture
def fast_settings() -> config.Settings:
    """Settings with a short write-settle window."""
    return config.Settings(
        watcher=config.WatcherConfig(
            stability_threshold=FAST_STABILITY_THRESHOLD,
            poll_interval=FAST_POLL_INTERVAL,
        )
    )


# =============================================================================
# Fake watcher
# =============================================================================


class FakeWatcher:
    """
    Stand-in for FileWatcher that lets tests fire events by hand.

    Events are delivered synchronously, which is what the real watcher does
    on the loop thread.
    """

    def __init__(
        self,
        path: _pathlib.Path,
        handler: watcher.Handler,
        watcher_config: config.WatcherConfig,
    ) -> None:
        self.path = path
        self.handler = handler
        self.config = watcher_config
        self.started = False
        self.close_calls = 0

    def start(self) -> None:
        self.started = True

    def close(self) -> None:
        self.close_calls += 1

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def fire(
        self,
        kind: watcher.WatchEventKind,
        error: errors.WatchError | None = None,
    ) -> None:
        if self.closed:
            return
        self.handler(kind, error)

    def ready(self) -> None:
        self.fire(watcher.WatchEventKind.READY)

    def add(self) -> None:
        self.fire(watcher.WatchEventKind.ADD)

    def change(self) -> None:
        self.fire(watcher.WatchEventKind.CHANGE)

    def unlink(self) -> None:
        self.fire(watcher.WatchEventKind.UNLINK)


class FakeWatcherFactory:
    """Watcher factory that remembers every FakeWatcher it built."""

    def __init__(self) -> None:
        self.created: list[FakeWatcher] = []

    def __call__(
        self,
        path: _pathlib.Path,
        handler: watcher.Handler,
        watcher_config: config.WatcherConfig,
    ) -> FakeWatcher:
        fake = FakeWatcher(path, handler, watcher_config)
        self.created.append(fake)
        return fake

    @property
    def last(self) -> FakeWatcher:
        return self.created[-1]


@_pytest.fixture
def fake_watchers() -> FakeWatcherFactory:
    """Factory to pass as watcher_factory=; exposes the watchers it built."""
    return FakeWatcherFactory()


# =============================================================================
# Notification recording
# =============================================================================


class Recorder:
    """
    Collects notifications and lets async tests wait for them.

    Every notification is appended to ``events`` as (kind, payload).
    """

    def __init__(self) -> None:
        self.events: list[tuple[str, _typing.Any]] = []
        self._arrived = _asyncio.Event()

    def listener(self, kind: str) -> _typing.Callable[..., None]:
        def _record(*args: _typing.Any) -> None:
            self.events.append((kind, args[0] if args else None))
            self._arrived.set()

        return _record

    def attach(self, target: _typing.Any, *kinds: str) -> "Recorder":
        for kind in kinds or ("change", "error", "ready"):
            target.on(kind, self.listener(kind))
        return self

    def of(self, kind: str) -> list[_typing.Any]:
        return [payload for event_kind, payload in self.events if event_kind == kind]

    async def wait_for(
        self,
        kind: str,
        count: int = 1,
        timeout: float = EVENT_TIMEOUT,
    ) -> list[_typing.Any]:
        """Wait until ``count`` notifications of ``kind`` have arrived."""

        async def _wait() -> None:
            while len(self.of(kind)) < count:
                self._arrived.clear()
                await self._arrived.wait()

        await _asyncio.wait_for(_wait(), timeout)
        return self.of(kind)


@_pytest.fixture
def recorder() -> Recorder:
    """A fresh Recorder."""
    return Recorder()
