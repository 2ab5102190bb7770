"""
dynamic-dotenv - keep os.environ in sync with a .env file

Watches one dotenv file, reloads it into the process environment whenever it
changes, and tells subscribers about it.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("dynamic-dotenv")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)

from dynamic_dotenv.config import Settings  # noqa: E402
from dynamic_dotenv.engine import DotenvWatcher, watch  # noqa: E402
from dynamic_dotenv.errors import DotenvError, ParseError, WatchError  # noqa: E402
from dynamic_dotenv.notifications import NotificationKind  # noqa: E402

__all__ = [
    "__version__",
    "__version_info__",
    "DotenvError",
    "DotenvWatcher",
    "NotificationKind",
    "ParseError",
    "Settings",
    "WatchError",
    "watch",
]
