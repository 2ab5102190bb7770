"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with DYNAMIC_DOTENV_ prefix
3. Field defaults

Nested config uses double underscore delimiter:
  DYNAMIC_DOTENV_WATCHER__STABILITY_THRESHOLD=0.5
  DYNAMIC_DOTENV_PARSER__ENCODING=latin-1

Unlike most pydantic-settings classes, Settings never reads a .env file:
the .env file is the thing being watched, and letting it configure its own
watcher would make the configuration depend on the state it manages.
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import dynamic_dotenv.config.types as types
import dynamic_dotenv.constants as constants


def default_path(cwd: _pathlib.Path | None = None) -> _pathlib.Path:
    """Return ``<cwd>/.env``, the path watched when none is configured."""
    if cwd is None:
        cwd = _pathlib.Path(_os.getcwd())
    return cwd / constants.DEFAULT_ENV_FILENAME


def resolve_path(
    path: _pathlib.Path | str | None,
    cwd: _pathlib.Path | None = None,
) -> _pathlib.Path:
    """
    Resolve the effective watched path.

    Args:
        path: Explicit path, absolute or relative. None selects the default.
        cwd: Directory relative paths resolve against. Defaults to os.getcwd().

    Returns:
        An absolute path. Symlinks are not resolved, so events are matched
        against the path as the user spelled it.
    """
    if cwd is None:
        cwd = _pathlib.Path(_os.getcwd())
    if path is None or str(path) == "":
        return default_path(cwd)
    candidate = _pathlib.Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = cwd / candidate
    return _pathlib.Path(_os.path.normpath(candidate))


class Settings(_pydantic_settings.BaseSettings):
    """
    dynamic-dotenv configuration settings.

    All settings can be overridden via environment variables with the
    DYNAMIC_DOTENV_ prefix. For nested config, use double underscore:
    DYNAMIC_DOTENV_WATCHER__POLL_INTERVAL=0.05
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix=constants.ENV_PREFIX,
        env_nested_delimiter="__",  # DYNAMIC_DOTENV_PARSER__ENCODING
        extra="allow",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (DYNAMIC_DOTENV_* env vars)
        3. (defaults via Field definitions), lowest

        dotenv_settings is dropped on purpose, see module docstring.
        """
        return (
            init_settings,
            env_settings,
            file_secret_settings,
        )

    path: _pathlib.Path | None = None
    """File to watch. None means <cwd>/.env."""

    log_level: _typing.Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    """Root log level used by the CLI."""

    parser: types.ParserConfig = _pydantic.Field(default_factory=types.ParserConfig)
    watcher: types.WatcherConfig = _pydantic.Field(default_factory=types.WatcherConfig)

    @_pydantic.field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: _typing.Any) -> _typing.Any:
        if isinstance(value, str):
            return value.upper()
        return value

    def resolve_path(self, cwd: _pathlib.Path | None = None) -> _pathlib.Path:
        """Return the absolute path this configuration watches."""
        return resolve_path(self.path, cwd)
