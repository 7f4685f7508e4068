"""State/store layer.

This package is the single owner of the published telemetry snapshot and
the last-known connection status.
"""

from pylmu.state.store import StateStore

__all__ = ["StateStore"]
