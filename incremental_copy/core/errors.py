"""
Error types raised by the copy engine.

Author: incremental-copy Project
License: MIT
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import BatchResult, CopyTarget


class IncrementalCopyError(Exception):
    """Base error for the project."""


class ConfigError(IncrementalCopyError, ValueError):
    """Configuration could not be loaded or validated."""


class CopyTargetError(IncrementalCopyError):
    """
    A target could not be copied and the batch was aborted.

    Attributes:
        target: The target that failed
        source: Resolved source path
        destination: Resolved destination path
        cause: Underlying I/O error
        result: Batch result up to and including the failed target
    """

    def __init__(
        self,
        target: 'CopyTarget',
        source: str,
        destination: str,
        cause: BaseException,
        result: Optional['BatchResult'] = None
    ):
        self.target = target
        self.source = source
        self.destination = destination
        self.cause = cause
        self.result = result
        super().__init__(f"Failed to copy {source} -> {destination}: {cause}")
