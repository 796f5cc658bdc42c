"""
Core Module

Skip decisions and batch copy orchestration.

Author: incremental-copy Project
License: MIT
"""

from .errors import ConfigError, CopyTargetError, IncrementalCopyError
from .models import BatchResult, ComparisonOutcome, CopyTarget, TargetFailure, TargetOutcome
from .orchestrator import BatchCopyOrchestrator, copy_all, copy_all_sync
from .skip_decider import SkipDecider

__all__ = [
    'BatchCopyOrchestrator', 'copy_all', 'copy_all_sync', 'SkipDecider',
    'BatchResult', 'ComparisonOutcome', 'CopyTarget', 'TargetFailure', 'TargetOutcome',
    'ConfigError', 'CopyTargetError', 'IncrementalCopyError'
]
