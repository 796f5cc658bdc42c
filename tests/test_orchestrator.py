"""
Unit Tests for Batch Copy Orchestrator

Tests batch copying end to end: skip decisions, counters, failure
policies, bounded concurrency, and cancellation.

Author: incremental-copy Project
License: MIT
"""

import asyncio
import threading
import time
import pytest
from collections import defaultdict

from incremental_copy.config.schema import CopyConfig
from incremental_copy.core.errors import CopyTargetError
from incremental_copy.core.models import CopyTarget
from incremental_copy.core.orchestrator import (
    BatchCopyOrchestrator,
    copy_all,
    copy_all_sync
)
from incremental_copy.utils.file_ops import copy_file


@pytest.fixture
def dirs(tmp_path):
    """Create empty source and destination roots."""
    src_dir = tmp_path / "src"
    dest_dir = tmp_path / "dest"
    src_dir.mkdir()
    dest_dir.mkdir()
    return src_dir, dest_dir


def run_batch(src_dir, dest_dir, targets, **options):
    return asyncio.run(copy_all(str(src_dir), str(dest_dir), targets, **options))


class TestCopyScenarios:
    """Test suite for single-target and mixed batches."""

    def test_copy_when_destination_missing(self, dirs):
        """Test that a new file is copied."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")

        result = run_batch(src_dir, dest_dir, [{"src": "a.txt", "dest": "a.txt"}])

        assert result.targets_copied == 1
        assert result.targets_processed == 1
        assert (dest_dir / "a.txt").read_text() == "hello"

    def test_skip_when_identical(self, dirs):
        """Test that an up-to-date destination is skipped."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")
        (dest_dir / "a.txt").write_text("hello")

        result = run_batch(src_dir, dest_dir, [{"src": "a.txt", "dest": "a.txt"}])

        assert result.targets_copied == 0
        assert result.targets_processed == 1
        assert result.targets_skipped == 1

    def test_copy_when_same_length_differs(self, dirs):
        """Test that differing bytes of equal length are copied."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")
        (dest_dir / "a.txt").write_text("world")

        result = run_batch(src_dir, dest_dir, [{"src": "a.txt", "dest": "a.txt"}])

        assert result.targets_copied == 1
        assert (dest_dir / "a.txt").read_text() == "hello"

    def test_copy_when_sizes_differ(self, dirs):
        """Test that a destination of different size is replaced."""
        src_dir, dest_dir = dirs
        long_content = "This is a much longer content that should have a different size"
        (src_dir / "size.txt").write_text(long_content)
        (dest_dir / "size.txt").write_text("Short")

        result = run_batch(src_dir, dest_dir, [CopyTarget("size.txt", "size.txt")])

        assert result.targets_copied == 1
        assert (dest_dir / "size.txt").read_text() == long_content

    def test_mixed_batch(self, dirs):
        """Test identical, differing and new targets in one batch."""
        src_dir, dest_dir = dirs
        (src_dir / "identical.txt").write_text("same")
        (dest_dir / "identical.txt").write_text("same")
        (src_dir / "different.txt").write_text("new")
        (dest_dir / "different.txt").write_text("old")
        (src_dir / "new.txt").write_text("brand new")

        result = run_batch(src_dir, dest_dir, [
            {"src": "identical.txt", "dest": "identical.txt"},
            {"src": "different.txt", "dest": "different.txt"},
            {"src": "new.txt", "dest": "new.txt"},
        ])

        assert result.targets_copied == 2
        assert result.targets_processed == 3
        assert result.targets_skipped == 1

    def test_overwrite_false_keeps_destination(self, dirs):
        """Test that overwrite=False skips an existing, differing destination."""
        src_dir, dest_dir = dirs
        (src_dir / "o.txt").write_text("source content")
        (dest_dir / "o.txt").write_text("destination content")

        result = run_batch(src_dir, dest_dir, [
            {"src": "o.txt", "dest": "o.txt", "overwrite": False}
        ])

        assert result.targets_copied == 0
        assert result.targets_processed == 1
        assert (dest_dir / "o.txt").read_text() == "destination content"

    def test_empty_files(self, dirs):
        """Test that identical empty files are skipped."""
        src_dir, dest_dir = dirs
        (src_dir / "empty.txt").write_bytes(b"")
        (dest_dir / "empty.txt").write_bytes(b"")

        result = run_batch(src_dir, dest_dir, [{"src": "empty.txt", "dest": "empty.txt"}])

        assert result.targets_copied == 0

    def test_nested_destination_is_created(self, dirs):
        """Test that missing destination directories are created."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")

        result = run_batch(src_dir, dest_dir, [{"src": "a.txt", "dest": "assets/img/a.txt"}])

        assert result.targets_copied == 1
        assert (dest_dir / "assets" / "img" / "a.txt").read_text() == "hello"

    def test_destination_root_is_created(self, tmp_path):
        """Test that a missing destination root is created on first copy."""
        src_dir = tmp_path / "src"
        src_dir.mkdir()
        (src_dir / "a.txt").write_text("hello")
        dest_dir = tmp_path / "dist"

        result = run_batch(src_dir, dest_dir, [{"src": "a.txt", "dest": "a.txt"}])

        assert result.targets_copied == 1
        assert (dest_dir / "a.txt").exists()

    def test_absolute_target_paths(self, dirs, tmp_path):
        """Test that absolute target paths are used as given."""
        src_dir, dest_dir = dirs
        outside = tmp_path / "outside.txt"
        outside.write_text("outside")

        result = run_batch(src_dir, dest_dir, [{"src": str(outside), "dest": "in.txt"}])

        assert result.targets_copied == 1
        assert (dest_dir / "in.txt").read_text() == "outside"

    def test_large_identical_file(self, dirs):
        """Test that a multi-megabyte identical file is skipped quickly."""
        src_dir, dest_dir = dirs
        data = b"A" * (4 * 1024 * 1024)
        (src_dir / "large.bin").write_bytes(data)
        (dest_dir / "large.bin").write_bytes(data)

        start = time.monotonic()
        result = run_batch(src_dir, dest_dir, [{"src": "large.bin", "dest": "large.bin"}])
        duration = time.monotonic() - start

        assert result.targets_copied == 0
        assert duration < 5.0

    def test_empty_batch(self, dirs):
        """Test a batch with no targets."""
        src_dir, dest_dir = dirs

        result = run_batch(src_dir, dest_dir, [])

        assert result.targets_processed == 0
        assert result.targets_copied == 0


class TestRepeatedRuns:
    """Test suite for incremental behaviour across runs."""

    def test_second_run_copies_nothing(self, dirs):
        """Test idempotence over an unchanged target set."""
        src_dir, dest_dir = dirs
        for name in ("a.txt", "b.txt", "c.txt"):
            (src_dir / name).write_text(f"content of {name}")
        targets = [{"src": name, "dest": name} for name in ("a.txt", "b.txt", "c.txt")]

        first = run_batch(src_dir, dest_dir, targets)
        second = run_batch(src_dir, dest_dir, targets)

        assert first.targets_copied == 3
        assert first.targets_processed == 3
        assert second.targets_copied == 0
        assert second.targets_processed == 3

    def test_changed_source_is_recopied(self, dirs):
        """Test that a new source for the same destination is picked up."""
        src_dir, dest_dir = dirs
        (src_dir / "source1.txt").write_text("This is the original content.")
        (src_dir / "source2.txt").write_text("This is different content!!!")

        run_batch(src_dir, dest_dir, [{"src": "source1.txt", "dest": "modified.txt"}])
        result = run_batch(src_dir, dest_dir, [{"src": "source2.txt", "dest": "modified.txt"}])

        assert result.targets_copied == 1
        assert (dest_dir / "modified.txt").read_text() == "This is different content!!!"

    def test_hash_optimization_disabled_copies_everything(self, dirs):
        """Test that disabling the optimization copies unconditionally."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")
        (dest_dir / "a.txt").write_text("hello")

        result = run_batch(
            src_dir, dest_dir, [{"src": "a.txt", "dest": "a.txt"}],
            hash_optimization=False
        )

        assert result.targets_copied == 1
        assert result.targets_processed == 1

    def test_sync_wrapper(self, dirs):
        """Test the synchronous entry point."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")

        result = copy_all_sync(str(src_dir), str(dest_dir), [{"src": "a.txt", "dest": "a.txt"}], True, True)

        assert result.targets_copied == 1


class TestCopyPrimitive:
    """Test suite for how the copy primitive is invoked."""

    def test_forwarded_options(self, dirs):
        """Test that target options reach the primitive with overwrite forced on."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")
        calls = []

        def recording_copy(source, destination, **options):
            calls.append((source, destination, options))

        result = run_batch(
            src_dir, dest_dir,
            [{"src": "a.txt", "dest": "b.txt", "preserve_timestamps": True, "dereference": False}],
            copy_file=recording_copy
        )

        assert result.targets_copied == 1
        source, destination, options = calls[0]
        assert source == str(src_dir / "a.txt")
        assert destination == str(dest_dir / "b.txt")
        assert options == {
            "preserve_timestamps": True,
            "dereference_symlinks": False,
            "overwrite": True,
            "error_on_exist": False,
        }

    def test_primitive_not_called_when_skipped(self, dirs):
        """Test that a skipped target never reaches the primitive."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")
        (dest_dir / "a.txt").write_text("hello")
        calls = []

        run_batch(
            src_dir, dest_dir, [{"src": "a.txt", "dest": "a.txt"}],
            copy_file=lambda *args, **kwargs: calls.append(args)
        )

        assert calls == []


class TestFailurePolicy:
    """Test suite for copy failures."""

    def test_fail_fast_raises_with_target(self, dirs):
        """Test that the first failure aborts the batch."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("a")
        (src_dir / "c.txt").write_text("c")

        with pytest.raises(CopyTargetError) as exc_info:
            run_batch(src_dir, dest_dir, [
                {"src": "a.txt", "dest": "a.txt"},
                {"src": "missing.txt", "dest": "b.txt"},
                {"src": "c.txt", "dest": "c.txt"},
            ])

        error = exc_info.value
        assert error.target.source_path == "missing.txt"
        assert isinstance(error.cause, FileNotFoundError)
        assert "missing.txt" in str(error)
        assert error.result.targets_processed == 2
        assert error.result.targets_copied == 1
        assert error.result.targets_failed == 1
        assert not (dest_dir / "c.txt").exists()

    def test_continue_on_error_records_failures(self, dirs):
        """Test that failures are reported distinctly and the batch continues."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("a")
        (src_dir / "c.txt").write_text("c")
        (src_dir / "d.txt").write_text("d")
        (dest_dir / "d.txt").write_text("d")

        result = run_batch(src_dir, dest_dir, [
            {"src": "a.txt", "dest": "a.txt"},
            {"src": "missing.txt", "dest": "b.txt"},
            {"src": "c.txt", "dest": "c.txt"},
            {"src": "d.txt", "dest": "d.txt"},
        ], continue_on_error=True)

        assert result.targets_processed == 4
        assert result.targets_copied == 2
        assert result.targets_skipped == 1
        assert result.targets_failed == 1
        assert result.failures[0].target.source_path == "missing.txt"
        assert (dest_dir / "c.txt").read_text() == "c"

    def test_directory_creation_failure(self, dirs):
        """Test that a blocked destination directory is a target failure."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("a")
        (dest_dir / "blocker").write_text("not a directory")

        with pytest.raises(CopyTargetError) as exc_info:
            run_batch(src_dir, dest_dir, [{"src": "a.txt", "dest": "blocker/sub/a.txt"}])

        assert isinstance(exc_info.value.cause, OSError)

    def test_primitive_error_is_not_a_skip(self, dirs):
        """Test that a raising primitive is not counted as copied or skipped."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("a")

        def failing_copy(source, destination, **options):
            raise PermissionError("permission denied")

        result = run_batch(
            src_dir, dest_dir, [{"src": "a.txt", "dest": "a.txt"}],
            copy_file=failing_copy, continue_on_error=True
        )

        assert result.targets_copied == 0
        assert result.targets_skipped == 0
        assert result.targets_failed == 1
        assert "permission denied" in result.failures[0].error_message

    def test_invalid_concurrency(self, dirs):
        """Test that max_concurrency must be positive."""
        src_dir, dest_dir = dirs

        with pytest.raises(ValueError):
            run_batch(src_dir, dest_dir, [], max_concurrency=0)


class TestConcurrency:
    """Test suite for bounded concurrent batches."""

    def test_concurrent_batch_counts(self, dirs):
        """Test that concurrent processing produces the same counts."""
        src_dir, dest_dir = dirs
        names = [f"file{i}.txt" for i in range(10)]
        for name in names:
            (src_dir / name).write_text(name)
        for name in names[:4]:
            (dest_dir / name).write_text(name)

        result = run_batch(
            src_dir, dest_dir, [{"src": n, "dest": n} for n in names],
            max_concurrency=4
        )

        assert result.targets_processed == 10
        assert result.targets_copied == 6
        assert result.targets_skipped == 4

    def test_same_destination_is_serialised(self, dirs):
        """Test that targets sharing a destination never copy at the same time."""
        src_dir, dest_dir = dirs
        for name in ("a.txt", "b.txt", "c.txt", "d.txt"):
            (src_dir / name).write_text(name)

        lock = threading.Lock()
        active = defaultdict(int)
        peak = defaultdict(int)

        def slow_copy(source, destination, **options):
            with lock:
                active[destination] += 1
                peak[destination] = max(peak[destination], active[destination])
            time.sleep(0.05)
            copy_file(source, destination, **options)
            with lock:
                active[destination] -= 1

        result = run_batch(src_dir, dest_dir, [
            {"src": "a.txt", "dest": "same.txt"},
            {"src": "b.txt", "dest": "same.txt"},
            {"src": "c.txt", "dest": "same.txt"},
            {"src": "d.txt", "dest": "other.txt"},
        ], max_concurrency=4, hash_optimization=False, copy_file=slow_copy)

        assert result.targets_copied == 4
        assert peak[str(dest_dir / "same.txt")] == 1

    def test_concurrent_fail_fast(self, dirs):
        """Test that a failure aborts a concurrent batch."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("a")

        with pytest.raises(CopyTargetError) as exc_info:
            run_batch(src_dir, dest_dir, [
                {"src": "a.txt", "dest": "a.txt"},
                {"src": "missing.txt", "dest": "b.txt"},
            ], max_concurrency=2)

        assert exc_info.value.target.source_path == "missing.txt"
        assert exc_info.value.result.targets_failed == 1

    def test_concurrent_continue_on_error(self, dirs):
        """Test failure recording in a concurrent batch."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("a")
        (src_dir / "c.txt").write_text("c")

        result = run_batch(src_dir, dest_dir, [
            {"src": "a.txt", "dest": "a.txt"},
            {"src": "missing.txt", "dest": "b.txt"},
            {"src": "c.txt", "dest": "c.txt"},
        ], max_concurrency=3, continue_on_error=True)

        assert result.targets_processed == 3
        assert result.targets_copied == 2
        assert result.targets_failed == 1


class TestCancellation:
    """Test suite for abandoning a batch."""

    def test_cancel_before_start(self, dirs):
        """Test that a pre-set event abandons every target."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("a")

        async def run():
            event = asyncio.Event()
            event.set()
            return await copy_all(
                str(src_dir), str(dest_dir), [{"src": "a.txt", "dest": "a.txt"}],
                cancel_event=event
            )

        result = asyncio.run(run())

        assert result.cancelled is True
        assert result.targets_processed == 0
        assert not (dest_dir / "a.txt").exists()

    def test_cancel_mid_batch(self, dirs):
        """Test that targets after the cancellation point are not started."""
        src_dir, dest_dir = dirs
        for name in ("a.txt", "b.txt", "c.txt"):
            (src_dir / name).write_text(name)

        async def run():
            loop = asyncio.get_running_loop()
            event = asyncio.Event()

            def copy_then_cancel(source, destination, **options):
                copy_file(source, destination, **options)
                loop.call_soon_threadsafe(event.set)

            return await copy_all(
                str(src_dir), str(dest_dir),
                [{"src": n, "dest": n} for n in ("a.txt", "b.txt", "c.txt")],
                copy_file=copy_then_cancel,
                cancel_event=event
            )

        result = asyncio.run(run())

        assert result.cancelled is True
        assert result.targets_processed == 1
        assert (dest_dir / "a.txt").exists()
        assert not (dest_dir / "c.txt").exists()


class TestBatchCopyOrchestrator:
    """Test suite for the config-driven orchestrator."""

    def test_run_with_config(self, dirs):
        """Test a batch using CopyConfig settings."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")
        config = CopyConfig(
            source_root=str(src_dir),
            destination_root=str(dest_dir),
            quiet=True,
            hash_algorithm="md5"
        )
        orchestrator = BatchCopyOrchestrator(config)

        first = orchestrator.run_sync([CopyTarget("a.txt", "a.txt")])
        second = orchestrator.run_sync([CopyTarget("a.txt", "a.txt")])

        assert orchestrator.fingerprinter.algorithm == "md5"
        assert first.targets_copied == 1
        assert second.targets_copied == 0

    def test_config_disables_hashing(self, dirs):
        """Test that hash_optimization from config is honoured."""
        src_dir, dest_dir = dirs
        (src_dir / "a.txt").write_text("hello")
        (dest_dir / "a.txt").write_text("hello")
        config = CopyConfig(
            source_root=str(src_dir),
            destination_root=str(dest_dir),
            hash_optimization=False
        )

        result = BatchCopyOrchestrator(config).run_sync([CopyTarget("a.txt", "a.txt")])

        assert result.targets_copied == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
