"""
Configuration management for doctainr.

This module provides configuration file support with YAML format and
default settings for the engine connection, synchronization and logging.

Features:
- YAML configuration file at ~/.config/doctainr/config.yaml
  (directory overridable with DOCTAINR_CONFIG_DIR)
- Default values with user overrides
- Engine host resolution (DOCKER_HOST > config file > local socket)
- Live or mock engine selection (DOCTAINR_MOCK=1 forces mock)

Architecture:
- ConfigManager: Main configuration interface
- Merges user config with defaults
- Provides typed access to settings
- Handles missing/invalid config gracefully
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, get_args

import yaml

logger = logging.getLogger(__name__)

DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"
HOST_ENV_VAR = "DOCKER_HOST"
MOCK_ENV_VAR = "DOCTAINR_MOCK"
CONFIG_DIR_ENV_VAR = "DOCTAINR_CONFIG_DIR"

ENGINE_MODES = ("live", "mock")


@dataclass
class EngineConfig:
    """Engine connection settings."""
    host: Optional[str] = None  # None: DOCKER_HOST or the local socket
    mode: str = "live"  # live, mock
    connect_timeout: float = 5.0
    id_length: int = 12


@dataclass
class SyncConfig:
    """Refresh and mutation behavior."""
    call_timeout: Optional[float] = 30.0  # seconds, None disables the deadline
    dedupe_refreshes: bool = False


@dataclass
class SchedulerConfig:
    """Periodic refresh cadence."""
    enabled: bool = True
    containers_interval: float = 1.0
    others_interval: float = 5.0


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file_path: Optional[str] = None  # None for default
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class AppConfig:
    """Main application configuration."""
    engine: EngineConfig = field(default_factory=EngineConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LogConfig = field(default_factory=LogConfig)


class ConfigManager:
    """Configuration manager with YAML file support."""

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
            config_dir = Path(env_dir) if env_dir else Path.home() / ".config" / "doctainr"
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / "config.yaml"
        self._config: AppConfig = AppConfig()

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create config directory {self.config_dir}: {e}")

        self.load_config()

    def load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if self.config_file.exists():
                with open(self.config_file, 'r') as f:
                    user_config = yaml.safe_load(f) or {}
                if not isinstance(user_config, dict):
                    raise ValueError("top level of config must be a mapping")

                self._config = self._merge_configs(AppConfig(), user_config)
                logger.debug(f"Loaded configuration from {self.config_file}")
            else:
                self.save_config()
                logger.info(f"Created default configuration at {self.config_file}")
        except Exception as e:
            logger.error(f"Failed to load config: {e}, using defaults")
            self._config = AppConfig()

    def save_config(self) -> None:
        """Save current configuration to YAML file."""
        try:
            with open(self.config_file, 'w') as f:
                yaml.safe_dump(asdict(self._config), f, default_flow_style=False, indent=2)
            logger.debug(f"Saved configuration to {self.config_file}")
        except OSError as e:
            logger.error(f"Failed to save config: {e}")

    def get_config(self) -> AppConfig:
        """Get current configuration."""
        return self._config

    def _merge_configs(self, default: AppConfig, user: Dict[str, Any]) -> AppConfig:
        """Merge user config with defaults."""
        for section in ('engine', 'sync', 'scheduler', 'logging'):
            if isinstance(user.get(section), dict):
                self._merge_dataclass(getattr(default, section), user[section])

        if default.engine.mode not in ENGINE_MODES:
            logger.warning(f"Unknown engine mode {default.engine.mode!r}, using 'live'")
            default.engine.mode = "live"
        return default

    def _merge_dataclass(self, obj: Any, updates: Dict[str, Any]) -> None:
        """Merge updates into dataclass object, keeping the default for bad values."""
        known = {f.name: f for f in fields(obj)}
        for key, value in updates.items():
            name = f"{type(obj).__name__}.{key}"
            if key not in known:
                logger.warning(f"Ignoring unknown config key {name}")
                continue
            try:
                setattr(obj, key, self._coerce(known[key].type, value))
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring invalid value for {name}: {value!r} ({e})")

    @staticmethod
    def _coerce(annotation: Any, value: Any) -> Any:
        """Convert a YAML value to the field's declared type."""
        args = get_args(annotation)
        optional = type(None) in args
        if optional:
            annotation = next(a for a in args if a is not type(None))

        if value is None:
            if optional:
                return None
            raise ValueError("value is required")
        if annotation is bool:
            if isinstance(value, bool):
                return value
            raise TypeError("expected true or false")
        if isinstance(value, (bool, dict, list)):
            raise TypeError(f"expected {annotation.__name__}")
        return annotation(value)

    def get_log_level(self) -> str:
        """Get configured log level."""
        return self._config.logging.level.upper()


def resolve_docker_host(engine: EngineConfig) -> str:
    env_host = os.environ.get(HOST_ENV_VAR, "").strip()
    if env_host:
        return env_host
    if engine.host:
        return engine.host
    return DEFAULT_DOCKER_HOST


def use_mock_engine(engine: EngineConfig) -> bool:
    flag = os.environ.get(MOCK_ENV_VAR, "").strip().lower()
    if flag in ("1", "true", "yes"):
        return True
    return engine.mode == "mock"
