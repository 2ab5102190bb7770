"""
End-to-end tests: a real FileWatcher driving the engine against os.environ.

Each test runs inside the event loop, edits the file on disk and waits for
the resulting notification.
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pytest as _pytest

import dynamic_dotenv
import dynamic_dotenv.config as config
import dynamic_dotenv.errors as errors

pytestmark = [_pytest.mark.integration, _pytest.mark.asyncio]


def start(
    dotenv_path: _pathlib.Path,
    settings: config.Settings,
    recorder: _typing.Any,
) -> dynamic_dotenv.DotenvWatcher:
    dd = dynamic_dotenv.watch(dotenv_path, settings=settings)
    recorder.attach(dd)
    return dd


class TestDotenvWatcher:
    """The full add/change/unlink cycle against the process environment."""

    async def test_created_file_is_loaded(
        self,
        dotenv_path: _pathlib.Path,
        fast_settings: config.Settings,
        recorder: _typing.Any,
    ) -> None:
        dd = start(dotenv_path, fast_settings, recorder)
        try:
            await recorder.wait_for("ready")
            assert "DYNAMIC_DOTENV_CREATED" not in _os.environ

            dotenv_path.write_text("DYNAMIC_DOTENV_CREATED=yes\n")
            changes = await recorder.wait_for("change")

            assert changes == [{"DYNAMIC_DOTENV_CREATED": "yes"}]
            assert _os.environ["DYNAMIC_DOTENV_CREATED"] == "yes"
        finally:
            dd.close()
        assert "DYNAMIC_DOTENV_CREATED" not in _os.environ

    async def test_rewritten_file_drops_stale_keys(
        self,
        dotenv_path: _pathlib.Path,
        fast_settings: config.Settings,
        recorder: _typing.Any,
    ) -> None:
        dotenv_path.write_text(
            "DYNAMIC_DOTENV_TO_BE_REWRITTEN=initial\n"
            "DYNAMIC_DOTENV_TO_BE_REMOVED=should_be_gone_after_rewrite\n"
        )
        dd = start(dotenv_path, fast_settings, recorder)
        try:
            assert _os.environ["DYNAMIC_DOTENV_TO_BE_REMOVED"] == "should_be_gone_after_rewrite"
            await recorder.wait_for("ready")

            dotenv_path.write_text("DYNAMIC_DOTENV_TO_BE_REWRITTEN=rewritten\n")
            await recorder.wait_for("change")

            assert _os.environ["DYNAMIC_DOTENV_TO_BE_REWRITTEN"] == "rewritten"
            assert "DYNAMIC_DOTENV_TO_BE_REMOVED" not in _os.environ
        finally:
            dd.close()

    async def test_deleted_file_reverts_environment(
        self,
        dotenv_path: _pathlib.Path,
        fast_settings: config.Settings,
        recorder: _typing.Any,
    ) -> None:
        before = dict(_os.environ)
        dotenv_path.write_text("DYNAMIC_DOTENV_TO_BE_DELETED=present\n")
        dd = start(dotenv_path, fast_settings, recorder)
        try:
            await recorder.wait_for("ready")
            dotenv_path.unlink()

            changes = await recorder.wait_for("change")
            assert changes == [None]
            assert dict(_os.environ) == before
        finally:
            dd.close()

    async def test_undecodable_file_reports_error(
        self,
        dotenv_path: _pathlib.Path,
        fast_settings: config.Settings,
        recorder: _typing.Any,
    ) -> None:
        dotenv_path.write_text("DYNAMIC_DOTENV_GOOD=1\n")
        dd = start(dotenv_path, fast_settings, recorder)
        try:
            await recorder.wait_for("ready")
            dotenv_path.write_bytes(b"DYNAMIC_DOTENV_GOOD=\xff\xfe\n")

            reported = await recorder.wait_for("error")
            assert isinstance(reported[0], errors.ParseError)
            assert reported[0].code == "EILSEQ"
            assert "DYNAMIC_DOTENV_GOOD" not in _os.environ
            assert recorder.of("change") == []
        finally:
            dd.close()

    async def test_no_notifications_after_close(
        self,
        dotenv_path: _pathlib.Path,
        fast_settings: config.Settings,
        recorder: _typing.Any,
    ) -> None:
        dd = start(dotenv_path, fast_settings, recorder)
        await recorder.wait_for("ready")
        dd.close()

        dotenv_path.write_text("DYNAMIC_DOTENV_LATE=1\n")
        with _pytest.raises(TimeoutError):
            await recorder.wait_for("change", timeout=0.3)
        assert "DYNAMIC_DOTENV_LATE" not in _os.environ
