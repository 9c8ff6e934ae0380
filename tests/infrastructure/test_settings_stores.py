"""Tests for settings sources and stores."""

import pytest
import yaml

from monitorhub.domain import MonitorSetting, SettingsSourceError
from monitorhub.infrastructure.settings import (
    InMemorySettingsStore,
    StaticSettingsSource,
    YAMLSettingsStore,
)


class TestInMemorySettingsStore:
    """Tests for InMemorySettingsStore."""

    def test_load_missing(self):
        """Test unknown keys load as empty."""
        assert InMemorySettingsStore().load("x") == {}

    def test_save_and_load(self):
        """Test saved values are returned as copies."""
        store = InMemorySettingsStore()
        store.save("uno-serial", {"baudrate": "9600"})

        loaded = store.load("uno-serial")
        loaded["baudrate"] = "1"

        assert store.load("uno-serial") == {"baudrate": "9600"}


class TestYAMLSettingsStore:
    """Tests for YAMLSettingsStore."""

    def test_persists_across_instances(self, tmp_path):
        """Test values survive a restart."""
        path = tmp_path / "settings.yaml"
        YAMLSettingsStore(path).save("uno-serial", {"baudrate": "115200"})

        assert YAMLSettingsStore(path).load("uno-serial") == {"baudrate": "115200"}

    def test_creates_parent_directories(self, tmp_path):
        """Test the file may live in a directory that does not exist yet."""
        path = tmp_path / "nested" / "settings.yaml"
        YAMLSettingsStore(path).save("k", {"a": "b"})

        assert yaml.safe_load(path.read_text()) == {"k": {"a": "b"}}

    def test_keeps_other_keys(self, tmp_path):
        """Test saving one key leaves others intact."""
        store = YAMLSettingsStore(tmp_path / "settings.yaml")
        store.save("a", {"x": "1"})
        store.save("b", {"y": "2"})

        assert YAMLSettingsStore(store.path).load("a") == {"x": "1"}

    def test_unreadable_file_treated_as_empty(self, tmp_path):
        """Test a corrupt file does not break loading."""
        path = tmp_path / "settings.yaml"
        path.write_text("a: [unclosed")

        assert YAMLSettingsStore(path).load("a") == {}

    def test_missing_file(self, tmp_path):
        """Test loading before any save."""
        assert YAMLSettingsStore(tmp_path / "none.yaml").load("a") == {}


class TestStaticSettingsSource:
    """Tests for StaticSettingsSource."""

    async def test_port_settings(self, baudrate_setting):
        """Test defaults are served per protocol."""
        source = StaticSettingsSource({"serial": [baudrate_setting]})

        settings = await source.port_settings("serial", "arduino:avr:uno")

        assert settings == {"baudrate": baudrate_setting}

    async def test_unknown_protocol(self):
        """Test protocols without defaults are reported as errors."""
        source = StaticSettingsSource({"serial": [MonitorSetting(id="baudrate")]})

        with pytest.raises(SettingsSourceError):
            await source.port_settings("network", "arduino:avr:uno")
