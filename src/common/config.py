"""
Configuration management for the kiosk rotation controller.
Loads settings from YAML files.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional


class Config:
    """Manages application configuration from YAML files."""

    # Environment variable -> dotted config key
    ENV_OVERRIDES = {
        'KIOSK_PLAY_MODE': 'kiosk.play_mode',
        'KIOSK_ATTRACT_SCREEN': 'kiosk.attract_screen',
        'KIOSK_LOG_LEVEL': 'logging.level',
        'KIOSK_SINK': 'presentation.sink',
    }

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config file. If None, uses default_config.yaml
        """
        if config_path is None:
            # Default to config/default_config.yaml in project root
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "default_config.yaml"

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            self._config = yaml.safe_load(f) or {}

        # Apply environment variable overrides
        self._apply_env_overrides()

    def _apply_env_overrides(self) -> None:
        """Override config values from environment variables."""
        for env_name, key in self.ENV_OVERRIDES.items():
            if env_name in os.environ:
                self.set(key, os.environ[env_name])

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'kiosk.attract_screen')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config = Config()
            >>> config.get('kiosk.attract_screen')
            'Attract'
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'kiosk.play_mode')
            value: Value to set
        """
        keys = key.split('.')
        config = self._config

        # Navigate to the parent key
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        # Set the final key
        config[keys[-1]] = value

    def save(self, path: Optional[str] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Path to save to. If None, uses original config_path
        """
        save_path = Path(path) if path else self.config_path

        with open(save_path, 'w') as f:
            yaml.dump(self._config, f, default_flow_style=False, indent=2)

    @property
    def log_level(self) -> str:
        """Get logging level name."""
        return str(self.get('logging.level', 'INFO')).upper()

    @property
    def sink_type(self) -> str:
        """Get presentation sink type (log, zmq or http)."""
        return str(self.get('presentation.sink', 'log')).lower()

    def __repr__(self) -> str:
        """String representation."""
        return f"Config(path={self.config_path})"


# Global config instance (can be imported by other modules)
_global_config: Optional[Config] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        config_path: Path to config file (only used on first call)

    Returns:
        Config instance
    """
    global _global_config

    if _global_config is None:
        _global_config = Config(config_path)

    return _global_config
