"""
Orchestrator

Batch copy orchestration: walks a list of copy targets, asks the skip
decider whether each destination is already current, copies the ones that
are not, and folds the per-target outcomes into a BatchResult.

Author: incremental-copy Project
License: MIT
"""

import asyncio
import os
from typing import (
    TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
)

from ..utils.logger import get_logger
from ..utils.file_ops import copy_file as default_copy_file, ensure_parent_directory
from ..sync_engine.fingerprinter import Fingerprinter
from .errors import CopyTargetError
from .models import BatchResult, CopyTarget, TargetFailure, TargetOutcome
from .skip_decider import SkipDecider

if TYPE_CHECKING:
    from ..config.schema import CopyConfig

logger = get_logger(__name__)

CopyPrimitive = Callable[..., None]
TargetLike = Union[CopyTarget, Mapping[str, Any]]
Resolution = Tuple[TargetOutcome, Optional[TargetFailure]]


def _as_target(target: TargetLike) -> CopyTarget:
    if isinstance(target, CopyTarget):
        return target
    return CopyTarget.from_dict(target)


class _BatchRun:
    """State of a single copy_all invocation."""

    def __init__(
        self,
        source_root: str,
        destination_root: str,
        hash_optimization: bool,
        continue_on_error: bool,
        copy_file: CopyPrimitive,
        decider: SkipDecider,
        cancel_event: Optional[asyncio.Event]
    ):
        self.source_root = os.path.abspath(source_root)
        self.destination_root = os.path.abspath(destination_root)
        self.hash_optimization = hash_optimization
        self.continue_on_error = continue_on_error
        self.copy_file = copy_file
        self.decider = decider
        self.cancel_event = cancel_event
        self._destination_locks: Dict[str, asyncio.Lock] = {}

    def resolve(self, target: CopyTarget) -> Tuple[str, str]:
        """Resolve a target's paths under the batch roots."""
        source = os.path.abspath(os.path.join(self.source_root, target.source_path))
        destination = os.path.abspath(os.path.join(self.destination_root, target.destination_path))
        return source, destination

    def is_cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _lock_for(self, destination: str) -> asyncio.Lock:
        key = os.path.normcase(destination)
        lock = self._destination_locks.get(key)
        if lock is None:
            lock = self._destination_locks[key] = asyncio.Lock()
        return lock

    async def resolve_target(self, target: CopyTarget) -> Resolution:
        """
        Decide and, if needed, copy one target.

        Raises:
            CopyTargetError: The copy failed and the batch is fail-fast
        """
        source, destination = self.resolve(target)

        # Targets sharing a destination never interleave their writes
        async with self._lock_for(destination):
            if self.hash_optimization and await self.decider.should_skip(target, source, destination):
                logger.debug(f"Skipped (up to date): {destination}")
                return TargetOutcome.SKIPPED, None

            try:
                await ensure_parent_directory(destination)
                await asyncio.to_thread(
                    self.copy_file,
                    source,
                    destination,
                    preserve_timestamps=target.preserve_timestamps,
                    dereference_symlinks=target.dereference_symlinks,
                    overwrite=True,
                    error_on_exist=False
                )
            except Exception as e:
                if not self.continue_on_error:
                    raise CopyTargetError(target, source, destination, e)

                logger.error(f"Failed to copy {source} -> {destination}: {e}")
                return TargetOutcome.FAILED, TargetFailure(
                    target=target,
                    source=source,
                    destination=destination,
                    error_message=str(e)
                )

        logger.debug(f"Copied: {source} -> {destination}")
        return TargetOutcome.COPIED, None

    async def run_sequential(self, targets: List[CopyTarget]) -> BatchResult:
        result = BatchResult()

        for target in targets:
            if self.is_cancelled():
                return result.mark_cancelled()

            try:
                outcome, failure = await self.resolve_target(target)
            except CopyTargetError as e:
                e.result = result.record(TargetOutcome.FAILED, _failure_from(e))
                raise

            result = result.record(outcome, failure)

        return result

    async def run_concurrent(self, targets: List[CopyTarget], max_concurrency: int) -> BatchResult:
        if not targets:
            return BatchResult()

        semaphore = asyncio.Semaphore(max_concurrency)

        async def bounded(target: CopyTarget) -> Optional[Resolution]:
            async with semaphore:
                if self.is_cancelled():
                    return None
                return await self.resolve_target(target)

        tasks = [asyncio.ensure_future(bounded(target)) for target in targets]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except BaseException:
            await _cancel_all(tasks)
            raise

        error = next(
            (task.exception() for task in tasks
             if task.done() and not task.cancelled() and task.exception() is not None),
            None
        )
        if error is not None:
            await _cancel_all(tasks)

        # Fold completed targets in input order
        result = BatchResult()
        for task in tasks:
            if task.cancelled() or not task.done():
                continue
            if task.exception() is not None:
                continue
            resolution = task.result()
            if resolution is None:
                result = result.mark_cancelled()
                continue
            result = result.record(*resolution)

        if error is not None:
            if isinstance(error, CopyTargetError):
                error.result = result.record(TargetOutcome.FAILED, _failure_from(error))
            raise error

        return result


def _failure_from(error: CopyTargetError) -> TargetFailure:
    return TargetFailure(
        target=error.target,
        source=error.source,
        destination=error.destination,
        error_message=str(error.cause)
    )


async def _cancel_all(tasks: List["asyncio.Future[Any]"]) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def copy_all(
    source_root: str,
    destination_root: str,
    targets: Iterable[TargetLike],
    quiet: bool = False,
    hash_optimization: bool = True,
    *,
    continue_on_error: bool = False,
    max_concurrency: int = 1,
    copy_file: Optional[CopyPrimitive] = None,
    fingerprinter: Optional[Fingerprinter] = None,
    cancel_event: Optional[asyncio.Event] = None
) -> BatchResult:
    """
    Copy every target whose destination is not already up to date.

    Args:
        source_root: Directory target source paths are relative to
        destination_root: Directory target destination paths are relative to
        targets: Copy targets (CopyTarget or mappings accepted by CopyTarget.from_dict)
        quiet: Suppress batch-level info logging
        hash_optimization: Skip targets whose destination already matches;
            when False every target is copied
        continue_on_error: Record failed targets and keep going instead of
            aborting on the first failure
        max_concurrency: Number of targets processed at once
        copy_file: Copy primitive (defaults to utils.file_ops.copy_file)
        fingerprinter: Fingerprinter for content comparison
        cancel_event: When set, targets not yet started are abandoned

    Returns:
        BatchResult for the batch

    Raises:
        CopyTargetError: A target failed and continue_on_error is off
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1: {max_concurrency}")

    target_list = [_as_target(target) for target in targets]
    run = _BatchRun(
        source_root=source_root,
        destination_root=destination_root,
        hash_optimization=hash_optimization,
        continue_on_error=continue_on_error,
        copy_file=copy_file or default_copy_file,
        decider=SkipDecider(fingerprinter),
        cancel_event=cancel_event
    )

    if not quiet:
        logger.info(
            f"Copying {len(target_list)} target(s) from {run.source_root} to {run.destination_root}"
            f"{'' if hash_optimization else ' (hash optimization disabled)'}"
        )

    if max_concurrency == 1:
        result = await run.run_sequential(target_list)
    else:
        result = await run.run_concurrent(target_list, max_concurrency)

    if not quiet:
        logger.info(
            f"Copied {result.targets_copied} of {result.targets_processed} target(s) "
            f"({result.targets_skipped} up to date, {result.targets_failed} failed)"
        )
    if result.cancelled:
        logger.warning(
            f"Batch cancelled after {result.targets_processed} of {len(target_list)} target(s)"
        )

    return result


def copy_all_sync(*args, **kwargs) -> BatchResult:
    """Run copy_all to completion from synchronous code."""
    return asyncio.run(copy_all(*args, **kwargs))


class BatchCopyOrchestrator:
    """
    Runs copy batches with settings taken from a CopyConfig.
    """

    def __init__(
        self,
        config: 'CopyConfig',
        copy_file: Optional[CopyPrimitive] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Copy settings
            copy_file: Copy primitive override
        """
        self.config = config
        self.copy_file = copy_file
        self.fingerprinter = Fingerprinter(
            algorithm=config.hash_algorithm,
            chunk_size=config.chunk_size
        )

        logger.debug("BatchCopyOrchestrator initialized")

    async def run(
        self,
        targets: Iterable[TargetLike],
        cancel_event: Optional[asyncio.Event] = None
    ) -> BatchResult:
        """Copy ``targets`` using the configured roots and options."""
        return await copy_all(
            self.config.source_root,
            self.config.destination_root,
            targets,
            quiet=self.config.quiet,
            hash_optimization=self.config.hash_optimization,
            continue_on_error=self.config.continue_on_error,
            max_concurrency=self.config.max_concurrency,
            copy_file=self.copy_file,
            fingerprinter=self.fingerprinter,
            cancel_event=cancel_event
        )

    def run_sync(self, targets: Iterable[TargetLike]) -> BatchResult:
        """Run a batch to completion from synchronous code."""
        return asyncio.run(self.run(targets))
