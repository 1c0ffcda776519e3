"""
Configuration management for logroller.

Settings are merged, later sources winning, from:
- The packaged default.yaml
- An optional user YAML file
- LOGROLLER_* environment variables
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


ENV_OVERRIDES: Dict[str, tuple] = {
    "LOGROLLER_FILENAME": ("roller.filename", str),
    "LOGROLLER_ARCHIVE_DIR": ("roller.archive_dir", str),
    "LOGROLLER_MAX_SIZE_BYTES": ("roller.max_size_bytes", int),
    "LOGROLLER_MAX_BACKUPS": ("roller.max_backups", int),
    "LOGROLLER_MAX_AGE_DAYS": ("roller.max_age_days", int),
    "LOGROLLER_COMPRESS": ("roller.compress_backups", _parse_bool),
    "LOGROLLER_LOCAL_TIME": ("roller.local_time", _parse_bool),
    "LOGROLLER_PREAMBLE_LINES": ("roller.preamble_line_count", int),
    "LOG_LEVEL": ("logging.level", str),
}


@dataclass(frozen=True)
class RollerConfig:
    """Settings for one RollingLogger."""
    
    filename: Optional[str] = None
    archive_dir: Optional[str] = None
    max_size_bytes: int = 100 * 1024 * 1024
    max_backups: int = 0
    max_age_days: int = 0
    compress_backups: bool = False
    local_time: bool = False
    preamble_line_count: int = 0
    
    def __post_init__(self) -> None:
        for name in ("max_size_bytes", "max_backups", "max_age_days", "preamble_line_count"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")


class Config:
    """Configuration manager for logroller."""
    
    def __init__(self, config_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration.
        
        Args:
            config_file: Path to a user YAML file layered over the defaults
            environ: Environment to read overrides from (default: os.environ)
        """
        self._config: Dict[str, Any] = {}
        self._load_config_file(str(DEFAULT_CONFIG_PATH))
        
        if config_file:
            self._load_config_file(config_file)
        
        self._apply_env_overrides(os.environ if environ is None else environ)
    
    def _load_config_file(self, config_file: str) -> None:
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_file}: top level must be a mapping")
        self._config = self._deep_merge(self._config, file_config)
    
    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
    
    def _apply_env_overrides(self, environ: Dict[str, str]) -> None:
        for env_name, (key, convert) in ENV_OVERRIDES.items():
            raw = environ.get(env_name)
            if raw:
                self.set(key, convert(raw))
    
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.
        
        Args:
            key: Configuration key in dot notation (e.g., "roller.max_backups")
            default: Default value if key not found
        
        Returns:
            Configuration value
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
    
    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.
        
        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            config = config.setdefault(k, {})
        config[keys[-1]] = value
    
    def roller_config(self) -> RollerConfig:
        """
        Build the settings for a RollingLogger.
        
        Raises:
            ValueError: If a value is negative or of the wrong type
        """
        section = self.get("roller", {}) or {}
        fields: Dict[str, Callable[[Any], Any]] = {
            "max_size_bytes": int,
            "max_backups": int,
            "max_age_days": int,
            "compress_backups": bool,
            "local_time": bool,
            "preamble_line_count": int,
        }
        values: Dict[str, Any] = {
            name: convert(section[name])
            for name, convert in fields.items()
            if section.get(name) is not None
        }
        for name in ("filename", "archive_dir"):
            if section.get(name):
                values[name] = str(section[name])
        return RollerConfig(**values)
    
    def to_dict(self) -> Dict[str, Any]:
        return self._config.copy()


_config: Optional[Config] = None


def get_config(config_file: Optional[str] = None) -> Config:
    """
    Get global configuration instance.
    
    Args:
        config_file: Optional configuration file path, used on first call only
    
    Returns:
        Configuration instance
    """
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
