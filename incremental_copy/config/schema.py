"""
Configuration Schema and Models

Defines Pydantic models for the configuration schema, providing validation,
default values, and type checking for all configuration options.

Author: incremental-copy Project
License: MIT
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.models import CopyTarget
from ..sync_engine.fingerprinter import validate_hash_algorithm


class LogLevel(str, Enum):
    """Logging level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level"
    )
    log_to_file: bool = Field(
        default=False,
        description="Enable logging to file"
    )
    log_file_path: Optional[str] = Field(
        default=None,
        description="Log file path (required when log_to_file is enabled)"
    )
    log_rotation_size: int = Field(
        default=10485760,  # 10MB
        description="Log file size before rotation (bytes)"
    )
    log_retention_count: int = Field(
        default=5,
        description="Number of rotated log files to keep"
    )
    json_format: bool = Field(
        default=False,
        description="Emit JSON log records"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def validate_log_file(self):
        """File logging needs a path."""
        if self.log_to_file and not self.log_file_path:
            raise ValueError("log_file_path is required when log_to_file is enabled")
        return self


class CopyConfig(BaseModel):
    """Batch copy settings."""

    model_config = ConfigDict(validate_assignment=True)

    source_root: str = Field(
        default=".",
        description="Directory target sources are relative to"
    )
    destination_root: str = Field(
        default="dist",
        description="Directory target destinations are relative to"
    )
    quiet: bool = Field(
        default=False,
        description="Suppress batch summary logging"
    )
    hash_optimization: bool = Field(
        default=True,
        description="Skip targets whose destination already matches the source"
    )
    continue_on_error: bool = Field(
        default=False,
        description="Record failed targets and keep going instead of aborting"
    )
    max_concurrency: int = Field(
        default=1,
        description="Number of targets processed at once"
    )
    hash_algorithm: str = Field(
        default="sha256",
        description="hashlib algorithm used for content fingerprints"
    )
    chunk_size: int = Field(
        default=65536,
        description="Read size in bytes when fingerprinting"
    )

    @field_validator("max_concurrency", "chunk_size")
    @classmethod
    def validate_positive(cls, v, info):
        """Ensure counts and sizes are positive."""
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1: {v}")
        return v

    @field_validator("hash_algorithm")
    @classmethod
    def validate_algorithm(cls, v):
        """Ensure the fingerprint digest is at least 128 bits."""
        return validate_hash_algorithm(v)


class TargetConfig(BaseModel):
    """A copy target as written in the config file."""

    src: str = Field(
        description="Source path, relative to copy.source_root"
    )
    dest: str = Field(
        description="Destination path, relative to copy.destination_root"
    )
    overwrite: bool = Field(
        default=True,
        description="Replace an existing destination when content differs"
    )
    preserve_timestamps: bool = Field(
        default=False,
        description="Copy access and modification times"
    )
    dereference: bool = Field(
        default=True,
        description="Copy symlink targets instead of the links"
    )

    @field_validator("src", "dest")
    @classmethod
    def validate_not_empty(cls, v):
        """Reject empty paths."""
        if not v.strip():
            raise ValueError("Target paths must not be empty")
        return v

    def to_target(self) -> CopyTarget:
        """Convert to the engine's CopyTarget."""
        return CopyTarget(
            source_path=self.src,
            destination_path=self.dest,
            overwrite=self.overwrite,
            preserve_timestamps=self.preserve_timestamps,
            dereference_symlinks=self.dereference
        )


class Config(BaseModel):
    """
    Root configuration model.

    Loaded from a YAML file and overridable by environment variables.
    """

    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    copy_settings: CopyConfig = Field(default_factory=CopyConfig, alias="copy")
    targets: List[TargetConfig] = Field(
        default=[],
        description="Copy targets, processed in order"
    )

    def copy_targets(self) -> List[CopyTarget]:
        """Targets converted for the engine."""
        return [target.to_target() for target in self.targets]
