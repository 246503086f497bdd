"""Configuration loading helpers for post-loader."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import LoaderConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_STEM = "loader_config"
CONFIG_FILENAME = CONFIG_STEM + CONFIG_EXTENSIONS[0]


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
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("POST_LOADER_HOME")
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
        """First existing config file in extension order, else the YAML default."""

        for suffix in CONFIG_EXTENSIONS:
            candidate = self.data_dir / (CONFIG_STEM + suffix)
            if candidate.exists():
                return candidate
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: LoaderConfig | None = None

    def load(self) -> LoaderConfig:
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        if path.exists():
            config = LoaderConfig.model_validate(_read_file(path))
        else:
            config = LoaderConfig()
            self.save(config)
        self._cache = config
        return config

    def save(self, config: LoaderConfig) -> Path:
        path = self.locator.config_path()
        _write_file(path, config.model_dump(mode="json"))
        self._cache = config
        return path

    def update(self, **changes: object) -> LoaderConfig:
        """Validate ``changes`` on top of the stored config and persist them."""

        payload = self.load().model_dump(mode="json")
        payload.update(changes)
        config = LoaderConfig.model_validate(payload)
        self.save(config)
        return config


__all__ = ["CONFIG_EXTENSIONS", "CONFIG_FILENAME", "CONFIG_STEM", "ConfigLocator", "ConfigRepository"]
