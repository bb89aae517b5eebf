from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .env import load_env_files

logger = logging.getLogger(__name__)

APP = "plugctl"


def config_dir() -> Path:
    """
    Cross-platform config directory:
      - Windows: %APPDATA%\\plugctl
      - macOS/Linux: $XDG_CONFIG_HOME/plugctl or ~/.config/plugctl
    """
    if os.name == "nt":
        base = os.environ.get("APPDATA") or str(Path.home())
        return Path(base) / APP
    return Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))) / APP


def config_path() -> Path:
    return config_dir() / "config.json"


def _env_float(name: str, current: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return current
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return current


@dataclass
class Settings:
    node: str = "localhost:15680"
    plugins_dir: str = ""             # defaults to <config_dir>/plugins
    enabled_plugins_file: str = ""    # defaults to <config_dir>/enabled_plugins.json
    poll_interval_s: float = 1.0
    ping_timeout_s: float = 1.5

    def __post_init__(self):
        if not self.plugins_dir:
            self.plugins_dir = str(config_dir() / "plugins")
        if not self.enabled_plugins_file:
            self.enabled_plugins_file = str(config_dir() / "enabled_plugins.json")

    @staticmethod
    def load(path: Optional[Path] = None) -> "Settings":
        path = path or config_path()

        # .env files never override variables that are already set
        load_env_files([config_dir() / ".env", Path.cwd() / ".env"])

        data: dict = {}
        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable config file %s: %s", path, e)
                data = {}
        if not isinstance(data, dict):
            data = {}

        try:
            s = Settings(
                node=str(data.get("node", Settings.node)),
                plugins_dir=str(data.get("plugins_dir", "")),
                enabled_plugins_file=str(data.get("enabled_plugins_file", "")),
                poll_interval_s=float(data.get("poll_interval_s", Settings.poll_interval_s)),
                ping_timeout_s=float(data.get("ping_timeout_s", Settings.ping_timeout_s)),
            )
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid config file %s: %s", path, e)
            s = Settings()

        # Environment overrides (highest priority short of CLI flags)
        s.node = os.environ.get("PLUGCTL_NODE", s.node)
        s.plugins_dir = os.environ.get("PLUGCTL_PLUGINS_DIR", s.plugins_dir)
        s.enabled_plugins_file = os.environ.get("PLUGCTL_ENABLED_PLUGINS_FILE", s.enabled_plugins_file)
        s.poll_interval_s = _env_float("PLUGCTL_POLL_INTERVAL", s.poll_interval_s)
        s.ping_timeout_s = _env_float("PLUGCTL_PING_TIMEOUT", s.ping_timeout_s)

        return s
