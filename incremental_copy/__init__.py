"""
incremental-copy

Copies files only when the destination is missing or differs from the
source, comparing sizes first and streaming content fingerprints second.

Author: incremental-copy Project
License: MIT
"""

from .core import (
    BatchCopyOrchestrator,
    BatchResult,
    ConfigError,
    CopyTarget,
    CopyTargetError,
    IncrementalCopyError,
    SkipDecider,
    TargetFailure,
    copy_all,
    copy_all_sync,
)
from .sync_engine import Fingerprinter
from .utils.file_ops import copy_file, probe_size

__version__ = "0.1.0"
__all__ = [
    'BatchCopyOrchestrator', 'BatchResult', 'ConfigError', 'CopyTarget', 'CopyTargetError',
    'IncrementalCopyError', 'SkipDecider', 'TargetFailure', 'copy_all', 'copy_all_sync',
    'Fingerprinter', 'copy_file', 'probe_size'
]
