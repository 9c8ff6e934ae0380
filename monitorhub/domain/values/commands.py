"""Observer wire envelope: ``{"command": ..., "data": ...}``."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ClientCommand(str, Enum):
    """Commands sent by observers to the session."""

    SEND_MESSAGE = "SEND_MESSAGE"
    CHANGE_SETTINGS = "CHANGE_SETTINGS"


class MiddlewareCommand(str, Enum):
    """Commands sent by the session to observers."""

    ON_SETTINGS_DID_CHANGE = "ON_SETTINGS_DID_CHANGE"


@dataclass(frozen=True, slots=True)
class Transmit:
    """Send text to the device."""

    text: str


@dataclass(frozen=True, slots=True)
class ReconfigureSettings:
    """Change monitor settings."""

    update: dict[str, Any]


ObserverCommand = Transmit | ReconfigureSettings

SETTINGS_SECTIONS = ("pluggableMonitorSettings", "monitorUISettings")


class InvalidCommandError(ValueError):
    """Raised when an observer frame cannot be decoded into a command."""


def decode_command(raw: str) -> ObserverCommand:
    """Decode an observer frame.

    Raises:
        InvalidCommandError: Malformed JSON, unknown command or bad payload.
    """
    try:
        message = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidCommandError(f"Malformed frame: {e}") from e

    if not isinstance(message, dict):
        raise InvalidCommandError("Frame must be a JSON object")

    command = message.get("command")
    data = message.get("data")

    if command == ClientCommand.SEND_MESSAGE.value:
        if not isinstance(data, str):
            raise InvalidCommandError("SEND_MESSAGE data must be a string")
        return Transmit(data)
    if command == ClientCommand.CHANGE_SETTINGS.value:
        if not isinstance(data, dict):
            raise InvalidCommandError("CHANGE_SETTINGS data must be an object")
        for key in SETTINGS_SECTIONS:
            if data.get(key) is not None and not isinstance(data[key], dict):
                raise InvalidCommandError(f"CHANGE_SETTINGS {key} must be an object")
        return ReconfigureSettings(data)

    raise InvalidCommandError(f"Unknown command: {command!r}")


def encode_settings_changed(data: dict[str, Any]) -> str:
    """Encode a settings notification for observers."""
    return json.dumps({"command": MiddlewareCommand.ON_SETTINGS_DID_CHANGE.value, "data": data})
