from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from pihole_toolkit.config.loader import CONFIG_FILENAME, ConfigLocator, ConfigRepository
from pihole_toolkit.config.models import ToolkitConfig


def test_config_locator_uses_env_and_creates_directories(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIHOLE_TOOLKIT_HOME", str(tmp_path))
    locator = ConfigLocator()
    assert locator.project_root == tmp_path.resolve()
    assert locator.data_dir.is_dir()
    assert locator.logs_dir.is_dir()
    assert locator.config_path() == tmp_path.resolve() / "data" / CONFIG_FILENAME


def test_load_writes_defaults_when_missing(temp_config_repository: ConfigRepository) -> None:
    config = temp_config_repository.load_config()
    assert config == ToolkitConfig()
    stored = yaml.safe_load(temp_config_repository.config_path.read_text(encoding="utf-8"))
    assert stored["audit"]["adlists_path"] == "/etc/pihole/adlists.list"


def test_save_and_reload_roundtrip(temp_config_repository: ConfigRepository) -> None:
    config = ToolkitConfig.model_validate({"top_limit": 25, "commands": {"use_sudo": True}})
    temp_config_repository.save_config(config)
    loaded = temp_config_repository.reload()
    assert loaded.top_limit == 25
    assert loaded.commands.use_sudo is True


def test_load_is_cached(temp_config_repository: ConfigRepository) -> None:
    first = temp_config_repository.load_config()
    temp_config_repository.config_path.write_text("top_limit: 3\n", encoding="utf-8")
    assert temp_config_repository.load_config() is first
    assert temp_config_repository.reload().top_limit == 3


def test_explicit_json_config_path(tmp_path: Path, temp_config_repository: ConfigRepository) -> None:
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"audit": {"probe": {"workers": 3}}}), encoding="utf-8")
    repository = ConfigRepository(temp_config_repository.locator, config_path=path)
    assert repository.config_path == path
    assert repository.load_config().audit.probe.workers == 3


def test_invalid_config_raises_validation_error(temp_config_repository: ConfigRepository) -> None:
    temp_config_repository.config_path.write_text("audit:\n  probe:\n    timeout: 0\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        temp_config_repository.load_config()


def test_non_mapping_config_rejected(temp_config_repository: ConfigRepository) -> None:
    temp_config_repository.config_path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        temp_config_repository.load_config()


def test_unsupported_extension(tmp_path: Path, temp_config_repository: ConfigRepository) -> None:
    repository = ConfigRepository(temp_config_repository.locator, config_path=tmp_path / "config.ini")
    with pytest.raises(ValueError, match="Unsupported configuration format"):
        repository.load_config()
