"""Connection port - interface for observer connections."""

from typing import Protocol


class ConnectionPort(Protocol):
    """A network-connected observer of a monitor.

    Presentation layer (WebSocket adapter) implements this.
    """

    async def send_text(self, payload: str) -> None:
        """Send a text frame to the observer."""
        ...

    async def receive_text(self) -> str:
        """Receive the next text frame from the observer."""
        ...

    async def close(self, code: int = 1000) -> None:
        """Close the connection."""
        ...

    def is_connected(self) -> bool:
        """Check if the connection is still open."""
        ...
