"""
Configuration Module

Handles configuration loading, validation, and management for the copy
engine. It supports YAML-based configuration with environment variable
overrides.

Author: incremental-copy Project
License: MIT
"""

from .config_loader import ConfigLoader, load_config
from .schema import Config, CopyConfig, LoggingConfig, TargetConfig

__all__ = ['ConfigLoader', 'load_config', 'Config', 'CopyConfig', 'LoggingConfig', 'TargetConfig']
