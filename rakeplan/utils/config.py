"""Configuration management for the rakeplan engine"""

import yaml
from pathlib import Path
from typing import Any, Optional


DEFAULT_CONFIG_PATH = "config/config.yaml"


class ConfigLoader:
    """
    Load and manage project configuration from YAML files

    Supports nested configuration access using dot notation.
    Example: config.get('scheduling.min_maintenance_interval', default=168)
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration loader

        Args:
            config_path: Path to YAML configuration file (defaults to config/config.yaml)
        """
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)

        if not self.config_path.exists():
            # Try relative to project root
            project_root = Path(__file__).parent.parent.parent
            self.config_path = project_root / self.config_path

        self.config = self._load_config()

    @classmethod
    def from_dict(cls, config: dict) -> 'ConfigLoader':
        """
        Build a loader around an in-memory configuration

        Args:
            config: Nested configuration dictionary

        Returns:
            ConfigLoader that never touches the filesystem
        """
        loader = cls.__new__(cls)
        loader.config_path = None
        loader.config = config
        return loader

    def _load_config(self) -> dict:
        """Load configuration from YAML file"""
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                f"Please create config/config.yaml"
            )

        with open(self.config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., 'forecasting.sma_window')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Examples:
            >>> config = ConfigLoader()
            >>> config.get('forecasting.sma_window')
            7
            >>> config.get('forecasting.invalid_key', default='fallback')
            'fallback'
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_path(self, key: str, default: Optional[Path] = None) -> Path:
        """
        Get configuration value as Path object

        Args:
            key: Configuration key
            default: Default Path if key not found

        Returns:
            Path object (relative paths resolve against the project root)
        """
        value = self.get(key, default)

        if value is None:
            raise ValueError(f"Configuration key '{key}' not found and no default provided")

        path = Path(value)

        if not path.is_absolute():
            project_root = Path(__file__).parent.parent.parent
            path = project_root / path

        return path

    def reload(self):
        """Reload configuration from file"""
        if self.config_path is not None:
            self.config = self._load_config()

    def __repr__(self) -> str:
        return f"ConfigLoader(config_path='{self.config_path}')"
