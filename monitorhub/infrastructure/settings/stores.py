"""Settings stores - persisted setting selections."""

import logging
import os
import tempfile
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


class InMemorySettingsStore:
    """Keeps selections for the lifetime of the process."""

    def __init__(self) -> None:
        self._values: dict[str, dict[str, str]] = {}

    def load(self, key: str) -> dict[str, str]:
        return dict(self._values.get(key, {}))

    def save(self, key: str, values: dict[str, str]) -> None:
        self._values[key] = dict(values)


class YAMLSettingsStore:
    """Persists selections to a YAML file, one mapping per board/protocol.

    The file is rewritten atomically on every save.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._values: dict[str, dict[str, str]] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, key: str) -> dict[str, str]:
        return dict(self._read_all().get(key, {}))

    def save(self, key: str, values: dict[str, str]) -> None:
        data = self._read_all()
        if data.get(key) == values:
            return
        data[key] = {k: str(v) for k, v in values.items()}
        self._write_all(data)

    def _read_all(self) -> dict[str, dict[str, str]]:
        if self._values is not None:
            return self._values

        self._values = {}
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as f:
                    raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                logger.warning("Unreadable settings file path=%s error=%s", self._path, e)
                raw = {}
            if isinstance(raw, dict):
                self._values = {
                    str(key): {str(k): str(v) for k, v in entry.items()}
                    for key, entry in raw.items()
                    if isinstance(entry, dict)
                }
        return self._values

    def _write_all(self, data: dict[str, dict[str, str]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".settings-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=True)
            os.replace(tmp_path, self._path)
        except OSError:
            logger.exception("Failed to write settings path=%s", self._path)
            Path(tmp_path).unlink(missing_ok=True)
            raise
