"""Configuration loading helpers for the Pi-hole toolkit."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import ToolkitConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "toolkit_config.yaml"
HOME_ENV = "PIHOLE_TOOLKIT_HOME"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from the toolkit home directory."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None, config_path: Path | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._config_path = config_path
        self._cache: ToolkitConfig | None = None

    @property
    def config_path(self) -> Path:
        return self._config_path or self.locator.config_path()

    def load_config(self) -> ToolkitConfig:
        if self._cache is not None:
            return self._cache
        path = self.config_path
        if path.suffix not in CONFIG_EXTENSIONS:
            raise ValueError(f"Unsupported configuration format: {path.suffix or path.name}")
        if path.exists():
            config = ToolkitConfig.model_validate(_read_file(path))
        else:
            config = ToolkitConfig()
            self.save_config(config)
        self._cache = config
        return config

    def save_config(self, config: ToolkitConfig) -> None:
        _write_file(self.config_path, config.model_dump(mode="json"))
        self._cache = config

    def reload(self) -> ToolkitConfig:
        self._cache = None
        return self.load_config()


__all__ = ["ConfigLocator", "ConfigRepository", "CONFIG_EXTENSIONS", "HOME_ENV"]
