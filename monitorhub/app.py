"""FastAPI application with monitor REST API and observer WebSocket endpoint."""

import asyncio
import logging
import os
import signal
from contextlib import asynccontextmanager, suppress
from typing import Any

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .application.services import MonitorService
from .composition import create_container
from .container import Container
from .domain import Board, Port
from .infrastructure.web import FastAPIWebSocketAdapter
from .logging_setup import setup_logging_from_env

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "MONITORHUB_CONFIG_PATH"

# WebSocket close codes
CLOSE_MONITOR_NOT_FOUND = 4004
CLOSE_INTERNAL_ERROR = 1011


class PortBody(BaseModel):
    address: str | None = None
    protocol: str | None = None
    label: str = ""


class MonitorTarget(BaseModel):
    """Board/port pair identifying a monitor."""

    fqbn: str | None = None
    board_name: str = ""
    port: PortBody = Field(default_factory=PortBody)

    def to_board(self) -> Board:
        return Board(fqbn=self.fqbn or None, name=self.board_name)

    def to_port(self) -> Port:
        return Port(
            address=self.port.address or None,
            protocol=self.port.protocol or None,
            label=self.port.label,
        )


class SettingsUpdate(BaseModel):
    """Settings change; omitted sections are left as they are."""

    pluggable_monitor_settings: dict[str, Any] = Field(
        default_factory=dict, alias="pluggableMonitorSettings"
    )
    monitor_ui_settings: dict[str, Any] = Field(default_factory=dict, alias="monitorUISettings")


def monitor_info(monitor: MonitorService) -> dict[str, Any]:
    return {
        "id": str(monitor.id),
        "fqbn": monitor.board.fqbn,
        "address": monitor.port.address,
        "protocol": monitor.port.protocol,
        "state": monitor.state.value,
        "observers": monitor.observer_count,
        "upload_in_progress": monitor.upload_in_progress,
        "websocket": f"/ws/monitors/{monitor.id}",
    }


def _get_container(request: Request) -> Container:
    return request.app.state.container


def _get_monitor_or_404(container: Container, monitor_id: str) -> MonitorService:
    monitor = container.monitor_manager.get_monitor(monitor_id)
    if monitor is None:
        raise HTTPException(status_code=404, detail=f"Monitor not found: {monitor_id}")
    return monitor


def create_app(container: Container | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        container: Pre-built dependencies; built from the environment
            at startup when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        if container is None:
            setup_logging_from_env()
            app.state.container = create_container(
                config_path=os.environ.get(CONFIG_PATH_ENV, "config.yaml")
            )
        else:
            app.state.container = container

        logger.info("monitorhub server started")

        yield

        await app.state.container.close()
        logger.info("monitorhub server stopped")

    app = FastAPI(
        title="monitorhub",
        description="Shared serial monitor sessions over WebSocket",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        container = _get_container(request)
        return {
            "status": "healthy",
            "monitors": container.monitor_manager.monitor_count(),
        }

    @app.get("/api/monitors")
    async def list_monitors(request: Request):
        container = _get_container(request)
        return {"monitors": [monitor_info(m) for m in container.monitor_manager.monitors()]}

    @app.post("/api/monitors")
    async def start_monitor(target: MonitorTarget, request: Request):
        """Start (or join) the monitor for a board/port."""
        container = _get_container(request)
        monitor, status = await container.monitor_manager.start_monitor(
            target.to_board(), target.to_port()
        )
        return {"status": status.value, "monitor": monitor_info(monitor)}

    @app.delete("/api/monitors/{monitor_id}")
    async def stop_monitor(monitor_id: str, request: Request):
        """Stop and dispose a monitor, disconnecting its observers."""
        container = _get_container(request)
        if not await container.monitor_manager.stop_monitor(monitor_id):
            raise HTTPException(status_code=404, detail=f"Monitor not found: {monitor_id}")
        return {"status": "ok"}

    @app.get("/api/monitors/{monitor_id}/settings")
    async def get_settings(monitor_id: str, request: Request):
        monitor = _get_monitor_or_404(_get_container(request), monitor_id)
        return monitor.settings_snapshot()

    @app.put("/api/monitors/{monitor_id}/settings")
    async def change_settings(monitor_id: str, update: SettingsUpdate, request: Request):
        """Change monitor settings; applied live when connected."""
        monitor = _get_monitor_or_404(_get_container(request), monitor_id)
        status = await monitor.change_settings(update.model_dump(by_alias=True))
        return {"status": status.value, "settings": monitor.settings_snapshot()}

    @app.post("/api/uploads/start")
    async def upload_started(target: MonitorTarget, request: Request):
        """Release the port for an upload."""
        container = _get_container(request)
        await container.monitor_manager.notify_upload_started(target.to_board(), target.to_port())
        return {"status": "ok"}

    @app.post("/api/uploads/finish")
    async def upload_finished(target: MonitorTarget, request: Request):
        """Reclaim the port after an upload, resuming a paused monitor."""
        container = _get_container(request)
        status = await container.monitor_manager.notify_upload_finished(
            target.to_board(), target.to_port()
        )
        return {"status": "ok", "monitor_status": status.value if status else None}

    @app.post("/api/shutdown")
    async def shutdown_server(request: Request):
        """Shutdown the server. Only allowed from localhost."""
        client_host = request.client.host if request.client else None
        if client_host not in ("127.0.0.1", "::1", "localhost"):
            logger.warning("Unauthorized shutdown attempt from %s", client_host)
            return JSONResponse(
                {"error": "Unauthorized - shutdown is only allowed from localhost"},
                status_code=403,
            )

        logger.info("Shutdown requested via API by %s", client_host)

        # Send response before shutting down
        asyncio.get_running_loop().call_later(0.5, lambda: os.kill(os.getpid(), signal.SIGTERM))

        return {"status": "ok", "message": "Server shutting down..."}

    @app.websocket("/ws/monitors/{monitor_id}")
    async def websocket_monitor(websocket: WebSocket, monitor_id: str):
        """WebSocket endpoint for monitor observers."""
        connection = FastAPIWebSocketAdapter(websocket)
        logger.info(
            "WebSocket connect attempt client=%s monitor_id=%s", connection.client_host, monitor_id
        )
        await websocket.accept()

        container: Container = websocket.app.state.container

        monitor = container.monitor_manager.get_monitor(monitor_id)
        if monitor is None or monitor.is_disposed:
            logger.warning("WebSocket monitor not found monitor_id=%s", monitor_id)
            await connection.close(code=CLOSE_MONITOR_NOT_FOUND)
            return

        fanout = monitor.fanout
        try:
            await fanout.add(connection)
            while True:
                raw = await connection.receive_text()
                await fanout.handle_incoming(raw)

        except WebSocketDisconnect:
            logger.info("Observer disconnected monitor_id=%s", monitor_id)

        except Exception:
            logger.exception("WebSocket error monitor_id=%s", monitor_id)
            with suppress(Exception):
                await connection.close(code=CLOSE_INTERNAL_ERROR)
        finally:
            await fanout.remove(connection)
            logger.info("WebSocket handler finished monitor_id=%s", monitor_id)

    return app
