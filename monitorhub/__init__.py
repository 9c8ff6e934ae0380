"""monitorhub - shared serial monitor sessions over WebSocket."""

__version__ = "0.1.0"
