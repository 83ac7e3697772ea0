"""
errors.py
---------
Exception hierarchy for the network health monitor.

The engine itself has almost no fallible inputs: keys come from a fixed
catalog and every metric is generated, not measured. What can go wrong is
a caller holding a reference the catalog no longer knows about, or asking
for a flag that does not exist.
"""


class MonitorError(Exception):
    """Base class for every error raised by the monitor."""


class StaleReferenceError(MonitorError, KeyError):
    """A CellKey (or a reset handle's key) is not part of the catalog."""

    def __init__(self, key):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"Unknown cell {self.key!r}: not in the current catalog"


class UnknownFlagError(MonitorError, ValueError):
    """Toggle requested for a flag name the state store does not model."""
