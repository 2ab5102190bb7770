"""Configuration type definitions for dynamic-dotenv settings.

These are "config section" types nested within the main Settings class:

- ParserConfig: options forwarded to the dotenv parser
- WatcherConfig: write-settle timing and observer shutdown

All types use `extra="allow"` so unknown keys are preserved. Extra parser keys
are handed to the parser, which passes on the ones python-dotenv accepts.
"""

import typing as _typing

import pydantic as _pydantic

import dynamic_dotenv.constants as constants


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config types.

    Unknown fields are preserved rather than silently dropped.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Return fields that were provided but not in the schema."""
        return dict(self.model_extra) if self.model_extra else {}


# =============================================================================
# Parser Settings
# =============================================================================


class ParserConfig(ConfigBase):
    """
    Options for the dotenv parser.

    Env section: DYNAMIC_DOTENV_PARSER__*
    """

    encoding: str = constants.DEFAULT_ENCODING
    """Encoding used to open the watched file."""

    verbose: bool = False
    """Let python-dotenv log about lines it could not parse."""

    interpolate: bool = False
    """Expand ${VAR} references. Off by default; expansion is not supported."""

    def to_options(self) -> dict[str, _typing.Any]:
        """Return the keyword arguments handed to the parser, extras included.

        Extras python-dotenv does not understand are dropped by the parser.
        """
        return self.model_dump()


# =============================================================================
# Watcher Settings
# =============================================================================


class WatcherConfig(ConfigBase):
    """
    Filesystem watcher settings.

    Env section: DYNAMIC_DOTENV_WATCHER__*
    """

    stability_threshold: float = _pydantic.Field(
        default=constants.DEFAULT_STABILITY_THRESHOLD_S, ge=0
    )
    """Seconds the file must stay unchanged before add/change is reported. 0 disables."""

    poll_interval: float = _pydantic.Field(default=constants.DEFAULT_POLL_INTERVAL_S, gt=0)
    """Seconds between stat() polls while a write settles."""

    join_timeout: float = _pydantic.Field(default=constants.DEFAULT_JOIN_TIMEOUT_S, ge=0)
    """Seconds to wait for the observer thread on close."""
