"""
Shared constants for dynamic-dotenv.

This module provides a single source of truth for default values
that are used across multiple modules.
"""

# Watched file defaults
DEFAULT_ENV_FILENAME = ".env"
"""File name watched in the current working directory when no path is given."""

DEFAULT_ENCODING = "utf-8"
"""Encoding used to read the watched file."""

# Settings
ENV_PREFIX = "DYNAMIC_DOTENV_"
"""Prefix for environment variables that configure dynamic-dotenv itself."""

# Write-settle defaults
DEFAULT_STABILITY_THRESHOLD_S = 2.0
"""Seconds a file's size and mtime must stay unchanged before a write is reported."""

DEFAULT_POLL_INTERVAL_S = 0.1
"""Seconds between stat() polls while waiting for a write to settle."""

DEFAULT_JOIN_TIMEOUT_S = 1.0
"""Seconds to wait for the observer thread when the watcher is closed."""

# Error codes
UNDECODABLE_CODE = "EILSEQ"
"""Error code reported when the watched file is not valid in the configured encoding."""

UNKNOWN_ERROR_CODE = "EUNKNOWN"
"""Error code reported when an OSError carries no errno."""
