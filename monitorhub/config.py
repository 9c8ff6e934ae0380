"""Configuration loading and validation using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from monitorhub.domain import MonitorSetting, RetryPolicy
from monitorhub.infrastructure.config import YAMLConfigLoader

ARDUINO_CLI_SERVICE = "/cc.arduino.cli.commands.v1.ArduinoCoreService"


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = Field(default=8765, ge=1, le=65535)


class DaemonConfig(BaseModel):
    """Upstream daemon configuration."""

    backend: Literal["loopback", "grpc"] = "loopback"
    address: str = "127.0.0.1:50051"
    monitor_method: str = f"{ARDUINO_CLI_SERVICE}/Monitor"
    settings_method: str = f"{ARDUINO_CLI_SERVICE}/EnumerateMonitorPortSettings"
    codec: str = ""

    @model_validator(mode="after")
    def validate_codec(self) -> "DaemonConfig":
        """The grpc backend needs a codec for the daemon's messages."""
        if self.backend == "grpc" and not self.codec:
            raise ValueError("daemon.codec is required for the grpc backend")
        return self


class MonitorConfig(BaseModel):
    """Monitor session configuration."""

    flush_interval_ms: int = Field(default=32, ge=1, le=1000)
    retry_attempts: int = Field(default=10, ge=1, le=100)
    retry_delay: float = Field(default=10.0, ge=0, le=300)
    settings_file: str = ""

    @property
    def flush_interval(self) -> float:
        return self.flush_interval_ms / 1000

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.retry_attempts, delay=self.retry_delay)


class SettingConfig(BaseModel):
    """Default value of one port setting."""

    id: str
    label: str = ""
    kind: str = "enum"
    allowed_values: list[str] = Field(default_factory=list)
    default: str

    @model_validator(mode="after")
    def validate_default(self) -> "SettingConfig":
        """Default must be one of the allowed values when they are listed."""
        if self.allowed_values and self.default not in self.allowed_values:
            raise ValueError(f"Default {self.default!r} not allowed for setting {self.id!r}")
        return self

    def to_setting(self) -> MonitorSetting:
        return MonitorSetting(
            id=self.id,
            label=self.label or self.id,
            kind=self.kind,
            allowed_values=tuple(self.allowed_values),
            selected_value=self.default,
        )


def default_port_settings() -> dict[str, list[SettingConfig]]:
    """Serial port settings used when the config file lists none."""
    return {
        "serial": [
            SettingConfig(
                id="baudrate",
                label="Baudrate",
                allowed_values=[
                    "300", "600", "750", "1200", "2400", "4800", "9600", "19200",
                    "31250", "38400", "57600", "74880", "115200", "230400",
                    "250000", "460800", "500000", "921600", "1000000", "2000000",
                ],
                default="9600",
            ),
            SettingConfig(
                id="bits", label="Data bits", allowed_values=["5", "6", "7", "8", "9"], default="8"
            ),
            SettingConfig(
                id="parity",
                label="Parity",
                allowed_values=["none", "even", "odd", "mark", "space"],
                default="none",
            ),
            SettingConfig(
                id="stop_bits", label="Stop bits", allowed_values=["1", "1.5", "2"], default="1"
            ),
        ]
    }


class Config(BaseModel):
    """Application configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    daemon: DaemonConfig = Field(default_factory=DaemonConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    port_settings: dict[str, list[SettingConfig]] = Field(default_factory=default_port_settings)

    def default_settings(self) -> dict[str, list[MonitorSetting]]:
        return {
            protocol: [s.to_setting() for s in settings]
            for protocol, settings in self.port_settings.items()
        }


def load_config(config_path: Path | str = "config.yaml") -> Config:
    """Load configuration from YAML file."""
    data = YAMLConfigLoader(config_path).load()
    return Config.model_validate(data)
