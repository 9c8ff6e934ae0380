"""Tests for the HTTP and WebSocket API."""

import time

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from monitorhub.app import create_app
from monitorhub.composition import create_container
from monitorhub.config import Config

TARGET = {
    "fqbn": "arduino:avr:uno",
    "port": {"address": "/dev/ttyACM0", "protocol": "serial"},
}


@pytest.fixture
def client():
    """Test client over the loopback backend."""
    app = create_app(create_container(config=Config()))
    with TestClient(app) as client:
        yield client


def start_monitor(client: TestClient) -> dict:
    response = client.post("/api/monitors", json=TARGET)
    assert response.status_code == 200
    return response.json()


def wait_until(condition, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        assert time.monotonic() < deadline, "Condition not met in time"
        time.sleep(0.01)


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        """Test health reports the monitor count."""
        response = client.get("/health")

        assert response.json() == {"status": "healthy", "monitors": 0}


class TestMonitorEndpoints:
    """Tests for the monitor REST API."""

    def test_start_monitor(self, client):
        """Test starting a monitor connects it."""
        body = start_monitor(client)

        assert body["status"] == "OK"
        assert body["monitor"]["state"] == "connected"
        assert body["monitor"]["websocket"] == f"/ws/monitors/{body['monitor']['id']}"

    def test_start_twice(self, client):
        """Test a second start reports the existing connection."""
        start_monitor(client)

        assert start_monitor(client)["status"] == "ALREADY_CONNECTED"

    def test_start_missing_port(self, client):
        """Test missing identity is reported."""
        response = client.post("/api/monitors", json={"fqbn": "arduino:avr:uno"})

        assert response.json()["status"] == "CONFIG_MISSING"

    def test_list_monitors(self, client):
        """Test running monitors are listed."""
        monitor_id = start_monitor(client)["monitor"]["id"]

        monitors = client.get("/api/monitors").json()["monitors"]

        assert [m["id"] for m in monitors] == [monitor_id]

    def test_stop_monitor(self, client):
        """Test deleting a monitor disposes it."""
        monitor_id = start_monitor(client)["monitor"]["id"]

        assert client.delete(f"/api/monitors/{monitor_id}").status_code == 200
        assert client.get("/api/monitors").json()["monitors"] == []

    def test_stop_unknown(self, client):
        """Test deleting an unknown monitor is a 404."""
        assert client.delete("/api/monitors/nope").status_code == 404


class TestSettingsEndpoints:
    """Tests for the settings REST API."""

    def test_get_settings(self, client):
        """Test settings are returned in wire shape."""
        monitor_id = start_monitor(client)["monitor"]["id"]

        settings = client.get(f"/api/monitors/{monitor_id}/settings").json()

        assert settings["monitorUISettings"]["connected"] is True
        assert settings["pluggableMonitorSettings"]["baudrate"]["selectedValue"] == "9600"

    def test_change_settings(self, client):
        """Test a live settings change is applied."""
        monitor_id = start_monitor(client)["monitor"]["id"]

        response = client.put(
            f"/api/monitors/{monitor_id}/settings",
            json={"pluggableMonitorSettings": {"baudrate": {"selectedValue": "115200"}}},
        )

        body = response.json()
        assert body["status"] == "OK"
        assert body["settings"]["pluggableMonitorSettings"]["baudrate"]["selectedValue"] == "115200"

    @pytest.mark.parametrize(
        "body",
        [
            {"pluggableMonitorSettings": ["x"]},
            {"monitorUISettings": "x"},
        ],
    )
    def test_change_settings_rejects_bad_body(self, client, body):
        """Test non-object settings sections are a validation error."""
        monitor_id = start_monitor(client)["monitor"]["id"]

        response = client.put(f"/api/monitors/{monitor_id}/settings", json=body)

        assert response.status_code == 422
        assert client.get("/api/monitors").json()["monitors"][0]["state"] == "connected"

    def test_settings_unknown_monitor(self, client):
        """Test settings of an unknown monitor are a 404."""
        assert client.get("/api/monitors/nope/settings").status_code == 404


class TestUploadEndpoints:
    """Tests for upload coordination."""

    def test_upload_pauses_and_resumes(self, client):
        """Test an upload pauses the monitor until it finishes."""
        monitor_id = start_monitor(client)["monitor"]["id"]

        client.post("/api/uploads/start", json=TARGET)
        monitors = client.get("/api/monitors").json()["monitors"]
        assert monitors[0]["state"] == "paused"
        assert start_monitor(client)["status"] == "UPLOAD_IN_PROGRESS"

        finished = client.post("/api/uploads/finish", json=TARGET).json()
        assert finished["monitor_status"] == "OK"
        assert client.get("/api/monitors").json()["monitors"][0]["id"] == monitor_id


class TestShutdown:
    """Tests for the shutdown endpoint."""

    def test_shutdown_requires_localhost(self, client):
        """Test remote shutdown is refused."""
        assert client.post("/api/shutdown").status_code == 403


class TestMonitorWebSocket:
    """Tests for the observer WebSocket."""

    def test_unknown_monitor_closed(self, client):
        """Test connecting to an unknown monitor closes with 4004."""
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/monitors/nope") as ws:
                ws.receive_text()

        assert exc_info.value.code == 4004

    def test_observer_receives_settings_and_echo(self, client):
        """Test an observer gets settings on join and echoed output."""
        monitor_id = start_monitor(client)["monitor"]["id"]

        with client.websocket_connect(f"/ws/monitors/{monitor_id}") as ws:
            assert ws.receive_json()["command"] == "ON_SETTINGS_DID_CHANGE"

            ws.send_json({"command": "SEND_MESSAGE", "data": "hello\n"})
            message = ws.receive_json()
            while not isinstance(message, list):
                message = ws.receive_json()

            assert message == ["hello\n"]

    def test_last_observer_leaving_disposes(self, client):
        """Test the monitor goes away when its only observer leaves."""
        monitor_id = start_monitor(client)["monitor"]["id"]

        with client.websocket_connect(f"/ws/monitors/{monitor_id}") as ws:
            ws.receive_json()

        wait_until(lambda: client.get("/api/monitors").json()["monitors"] == [])
