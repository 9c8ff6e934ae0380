"""FastAPI WebSocket adapter implementing ConnectionPort."""

from fastapi import WebSocket
from starlette.websockets import WebSocketState


class FastAPIWebSocketAdapter:
    """Adapts a FastAPI WebSocket to the ConnectionPort interface."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    async def send_text(self, payload: str) -> None:
        await self._websocket.send_text(payload)

    async def receive_text(self) -> str:
        return await self._websocket.receive_text()

    async def close(self, code: int = 1000) -> None:
        if self.is_connected():
            await self._websocket.close(code=code)

    def is_connected(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    @property
    def client_host(self) -> str | None:
        client = self._websocket.client
        return client.host if client else None
