"""YAML configuration loader."""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class YAMLConfigLoader:
    """Load raw configuration data from a YAML file."""

    def __init__(self, config_path: Path | str = "config.yaml") -> None:
        self._config_path = Path(config_path)

    def load(self) -> dict[str, Any]:
        """Load configuration data.

        Returns:
            Configuration mapping, empty dict if the file does not exist.

        Raises:
            ValueError: The file does not contain a mapping.
        """
        if not self._config_path.exists():
            logger.info("Config file not found path=%s, using defaults", self._config_path)
            return {}

        with open(self._config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping: {self._config_path}")
        return data

    @property
    def path(self) -> Path:
        """Get configuration file path."""
        return self._config_path
