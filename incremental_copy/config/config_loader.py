"""
Configuration Loader

Handles loading and parsing configuration from YAML files, merging
environment variable overrides, and saving configuration back to disk.

Author: incremental-copy Project
License: MIT
"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dotenv import load_dotenv
from pydantic import ValidationError

from ..core.errors import ConfigError
from .schema import Config

DEFAULT_CONFIG_PATH = "incremental-copy.yaml"

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in _TRUE_VALUES


class ConfigLoader:
    """
    Configuration loader and manager.

    Loads configuration from a YAML file, merges environment variables and
    validates the result.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_path: Path to the configuration file. If None, uses
                COPY_CONFIG_PATH or the default location.
        """
        # Load environment variables from .env if present
        load_dotenv()

        self.config_path = config_path or os.getenv(
            "COPY_CONFIG_PATH",
            DEFAULT_CONFIG_PATH
        )
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """
        Load and validate configuration.

        Returns:
            Validated Config object

        Raises:
            ConfigError: If the YAML cannot be parsed or validation fails
        """
        config_data = self._load_yaml()
        config_data = self._merge_env_vars(config_data)

        try:
            self._config = Config(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {self.config_path}: {e}")

        return self._config

    def _load_yaml(self) -> Dict[str, Any]:
        """
        Load YAML configuration file.

        Returns:
            Dictionary with configuration data
        """
        config_file = Path(self.config_path)

        # If config doesn't exist, use defaults
        if not config_file.exists():
            return self._create_default_config()

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML config: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to read config {config_file}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {config_file}")
        return data

    def _create_default_config(self) -> Dict[str, Any]:
        """
        Create default configuration structure.

        Returns:
            Default configuration dictionary
        """
        return {
            "logging": {
                "log_level": "INFO",
                "log_to_file": False,
                "json_format": False
            },
            "copy": {
                "source_root": ".",
                "destination_root": "dist",
                "quiet": False,
                "hash_optimization": True,
                "continue_on_error": False,
                "max_concurrency": 1,
                "hash_algorithm": "sha256"
            },
            "targets": []
        }

    def _merge_env_vars(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge environment variables into configuration.

        Environment variables override config file values.
        Naming convention: SECTION_KEY (e.g., COPY_SOURCE_ROOT, LOG_LEVEL)

        Args:
            config_data: Configuration dictionary from file

        Returns:
            Merged configuration dictionary
        """
        copy_section = config_data.get("copy") or {}

        if os.getenv("COPY_SOURCE_ROOT"):
            copy_section["source_root"] = os.getenv("COPY_SOURCE_ROOT")
        if os.getenv("COPY_DESTINATION_ROOT"):
            copy_section["destination_root"] = os.getenv("COPY_DESTINATION_ROOT")
        if os.getenv("COPY_HASH_ALGORITHM"):
            copy_section["hash_algorithm"] = os.getenv("COPY_HASH_ALGORITHM")
        if os.getenv("COPY_MAX_CONCURRENCY"):
            try:
                copy_section["max_concurrency"] = int(os.getenv("COPY_MAX_CONCURRENCY"))
            except ValueError:
                raise ConfigError(
                    f"COPY_MAX_CONCURRENCY must be an integer: {os.getenv('COPY_MAX_CONCURRENCY')}"
                )

        for env_name, key in (
            ("COPY_QUIET", "quiet"),
            ("COPY_HASH_OPTIMIZATION", "hash_optimization"),
            ("COPY_CONTINUE_ON_ERROR", "continue_on_error"),
        ):
            flag = _env_flag(env_name)
            if flag is not None:
                copy_section[key] = flag

        if copy_section:
            config_data["copy"] = copy_section

        if os.getenv("LOG_LEVEL"):
            logging_section = config_data.get("logging") or {}
            logging_section["log_level"] = os.getenv("LOG_LEVEL")
            config_data["logging"] = logging_section

        return config_data

    def save(self, config: Config, path: Optional[str] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            config: Config object to save
            path: Path to save to (uses default if None)
        """
        save_path = Path(path or self.config_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = config.model_dump(mode="json", by_alias=True)

        with open(save_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

    def reload(self) -> Config:
        """
        Reload configuration from file.

        Returns:
            Reloaded Config object
        """
        return self.load()

    @property
    def config(self) -> Optional[Config]:
        """Get the current configuration object."""
        return self._config


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Convenience function to load configuration.

    Args:
        config_path: Optional path to config file

    Returns:
        Loaded and validated Config object
    """
    loader = ConfigLoader(config_path)
    return loader.load()
