"""
Copy Models

Value types shared by the skip decider and the batch orchestrator: copy
targets, comparison outcomes, and the aggregate batch result.

Author: incremental-copy Project
License: MIT
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class ComparisonOutcome(Enum):
    """Result of comparing one source/destination pair."""
    PROCEED_WITH_COPY = "proceed_with_copy"
    SKIP_IDENTICAL = "skip_identical"


class TargetOutcome(Enum):
    """How a single target resolved within a batch."""
    COPIED = "copied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class CopyTarget:
    """One requested source-to-destination copy."""
    source_path: str
    destination_path: str
    overwrite: bool = True
    preserve_timestamps: bool = False
    dereference_symlinks: bool = True

    # Short keys used by build-tool target lists
    _ALIASES = {
        'src': 'source_path',
        'dest': 'destination_path',
        'dereference': 'dereference_symlinks',
    }

    _FLAGS = ('overwrite', 'preserve_timestamps', 'dereference_symlinks')

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CopyTarget':
        """
        Create from a mapping.

        Accepts both field names and the short aliases ``src``, ``dest`` and
        ``dereference``. Missing optional keys take their defaults; a
        ``None`` value counts as missing. Flags must be real booleans.
        """
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = cls._ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__:
                raise ValueError(f"Unknown copy target field: {key}")
            if value is None:
                continue
            if name in kwargs:
                raise ValueError(f"Copy target field given twice: {name}")
            if name in cls._FLAGS and not isinstance(value, bool):
                raise ValueError(f"Copy target field {key} must be a boolean: {value!r}")
            kwargs[name] = value

        for required in ('source_path', 'destination_path'):
            if required not in kwargs:
                raise ValueError(f"Copy target is missing {required}")

        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'source_path': self.source_path,
            'destination_path': self.destination_path,
            'overwrite': self.overwrite,
            'preserve_timestamps': self.preserve_timestamps,
            'dereference_symlinks': self.dereference_symlinks,
        }


@dataclass(frozen=True)
class TargetFailure:
    """A target whose copy failed while the batch continued past errors."""
    target: CopyTarget
    source: str
    destination: str
    error_message: str

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'source_path': self.target.source_path,
            'destination_path': self.target.destination_path,
            'source': self.source,
            'destination': self.destination,
            'error': self.error_message,
        }


@dataclass(frozen=True)
class BatchResult:
    """
    Aggregate outcome of one batch.

    Built as a fold: start from ``BatchResult()`` and call ``record`` once per
    resolved target. Each call returns a new value.
    """
    targets_processed: int = 0
    targets_copied: int = 0
    targets_skipped: int = 0
    failures: Tuple[TargetFailure, ...] = field(default_factory=tuple)
    cancelled: bool = False

    @property
    def targets_failed(self) -> int:
        return len(self.failures)

    def record(
        self,
        outcome: TargetOutcome,
        failure: Optional[TargetFailure] = None
    ) -> 'BatchResult':
        """
        Account for one more processed target.

        Args:
            outcome: How the target resolved
            failure: Failure details, required for TargetOutcome.FAILED

        Returns:
            New BatchResult including the target
        """
        processed = self.targets_processed + 1

        if outcome is TargetOutcome.COPIED:
            return replace(self, targets_processed=processed, targets_copied=self.targets_copied + 1)
        if outcome is TargetOutcome.SKIPPED:
            return replace(self, targets_processed=processed, targets_skipped=self.targets_skipped + 1)

        if failure is None:
            raise ValueError("A failed target must carry its failure details")
        return replace(self, targets_processed=processed, failures=self.failures + (failure,))

    def mark_cancelled(self) -> 'BatchResult':
        return replace(self, cancelled=True)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'targets_processed': self.targets_processed,
            'targets_copied': self.targets_copied,
            'targets_skipped': self.targets_skipped,
            'targets_failed': self.targets_failed,
            'failures': [failure.to_dict() for failure in self.failures],
            'cancelled': self.cancelled,
        }
