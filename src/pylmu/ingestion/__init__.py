"""Ingestion layer.

This package contains the poll loop that fetches raw telemetry from the
simulator and the lenient parsing helpers the schema adapters share.
"""

__all__: list[str] = []
