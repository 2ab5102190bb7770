"""
Snapshot store for the process-wide environment mapping.

The store owns two mappings:

- the baseline, captured once when the store is created and never mutated;
- the active mapping (``os.environ`` unless another one is injected), which
  the rest of the program reads.

The active mapping is never merged incrementally. Every update starts from
the baseline again, so keys removed or renamed in the watched file cannot
linger from an earlier version.
"""

from __future__ import annotations

import logging as _logging
import os as _os
import types as _types
import typing as _typing

_logger = _logging.getLogger(__name__)


class SnapshotStore:
    """
    Holds the active mapping and the baseline it is restored to.

    The store is meant to have a single writer. Readers may look at
    ``active`` at any time.
    """

    def __init__(self, environ: _typing.MutableMapping[str, str] | None = None) -> None:
        """
        Capture the baseline.

        Args:
            environ: Mapping to manage. Defaults to ``os.environ``.
        """
        self._active: _typing.MutableMapping[str, str] = (
            _os.environ if environ is None else environ
        )
        # str values are immutable, so a shallow copy is a deep copy.
        self._baseline: _types.MappingProxyType[str, str] = _types.MappingProxyType(
            dict(self._active)
        )

    @property
    def baseline(self) -> _typing.Mapping[str, str]:
        """Read-only view of the mapping captured at construction."""
        return self._baseline

    @property
    def active(self) -> _typing.MutableMapping[str, str]:
        """The live mapping kept in sync with the watched file."""
        return self._active

    def is_pristine(self) -> bool:
        """Whether the active mapping currently equals the baseline."""
        return dict(self._active) == dict(self._baseline)

    def reset(self) -> None:
        """Restore the active mapping to the baseline. Idempotent."""
        # Rewrite only what differs so untouched keys (PATH...) never vanish.
        for key in [key for key in self._active if key not in self._baseline]:
            del self._active[key]
        for key, value in self._baseline.items():
            if self._active.get(key) != value:
                self._active[key] = value

    def apply(self, values: _typing.Mapping[str, str]) -> None:
        """
        Make the active mapping equal to the baseline overlaid with ``values``.

        Keys in ``values`` win over baseline keys of the same name. Baseline
        keys missing from ``values`` stay visible.
        """
        self.reset()
        for key, value in values.items():
            self._active[key] = value
        _logger.debug("Applied %d key(s) over baseline", len(values))
