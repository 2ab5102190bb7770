"""
CLI module for dynamic-dotenv.

Provides the command-line interface using Click.
"""

from dynamic_dotenv.cli.main import cli, main

__all__ = ["main", "cli"]
