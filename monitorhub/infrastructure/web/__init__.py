"""Web infrastructure - presentation adapters."""

from .websocket_adapter import FastAPIWebSocketAdapter

__all__ = [
    "FastAPIWebSocketAdapter",
]
