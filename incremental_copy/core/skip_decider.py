"""
Skip Decider

Decides whether an existing destination already matches its source and the
copy can be skipped. Cheap size checks run first; content fingerprints are
only computed when both sizes agree.

Author: incremental-copy Project
License: MIT
"""

import asyncio
from typing import Optional

from ..utils.file_ops import PathLike, path_exists, probe_size
from ..utils.logger import get_logger
from ..sync_engine.fingerprinter import Fingerprinter
from .models import ComparisonOutcome, CopyTarget

logger = get_logger(__name__)


class SkipDecider:
    """
    Copy/skip decision for a single target.

    Any comparison step that cannot be completed (missing file, unreadable
    file) resolves to PROCEED_WITH_COPY. Only a proven content match skips.
    """

    def __init__(self, fingerprinter: Optional[Fingerprinter] = None):
        """
        Initialize skip decider.

        Args:
            fingerprinter: Fingerprinter used for content comparison
        """
        self.fingerprinter = fingerprinter or Fingerprinter()

    async def compare(
        self,
        target: CopyTarget,
        source: Optional[PathLike] = None,
        destination: Optional[PathLike] = None
    ) -> ComparisonOutcome:
        """
        Compare a target's source and destination.

        Args:
            target: Target being decided
            source: Resolved source path (defaults to target.source_path)
            destination: Resolved destination path (defaults to target.destination_path)

        Returns:
            ComparisonOutcome for the pair
        """
        source = source if source is not None else target.source_path
        destination = destination if destination is not None else target.destination_path

        if not await path_exists(destination):
            logger.debug(f"Destination missing, copying: {destination}")
            return ComparisonOutcome.PROCEED_WITH_COPY

        if target.overwrite is False:
            logger.debug(f"Overwrite disabled, keeping existing: {destination}")
            return ComparisonOutcome.SKIP_IDENTICAL

        source_size, dest_size = await asyncio.gather(
            probe_size(source),
            probe_size(destination)
        )
        if source_size is None or dest_size is None:
            logger.debug(f"Size unavailable, copying: {source} -> {destination}")
            return ComparisonOutcome.PROCEED_WITH_COPY
        if source_size != dest_size:
            logger.debug(f"Size differs ({source_size} != {dest_size}), copying: {destination}")
            return ComparisonOutcome.PROCEED_WITH_COPY

        source_digest, dest_digest = await asyncio.gather(
            self.fingerprinter.fingerprint(source),
            self.fingerprinter.fingerprint(destination)
        )
        if source_digest is None or dest_digest is None:
            logger.debug(f"Fingerprint unavailable, copying: {source} -> {destination}")
            return ComparisonOutcome.PROCEED_WITH_COPY
        if source_digest != dest_digest:
            logger.debug(f"Content differs, copying: {destination}")
            return ComparisonOutcome.PROCEED_WITH_COPY

        logger.debug(f"Identical content, skipping: {destination}")
        return ComparisonOutcome.SKIP_IDENTICAL

    async def should_skip(
        self,
        target: CopyTarget,
        source: Optional[PathLike] = None,
        destination: Optional[PathLike] = None
    ) -> bool:
        """Return True if the copy for ``target`` can be skipped."""
        outcome = await self.compare(target, source, destination)
        return outcome is ComparisonOutcome.SKIP_IDENTICAL
