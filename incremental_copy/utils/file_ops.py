"""
File Operation Utilities

Provides the low-level filesystem operations the copy engine builds on:
size probing, destination directory creation, and the default copy
primitive with atomic temp-then-rename writes.

Author: incremental-copy Project
License: MIT
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

import aiofiles.os

from .logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


async def probe_size(file_path: PathLike) -> Optional[int]:
    """
    Get the size of a file in bytes.

    A missing or inaccessible path is not an error here: callers treat
    ``None`` as "cannot compare".

    Args:
        file_path: Path to the file

    Returns:
        Size in bytes, or None if the path cannot be stat'ed
    """
    try:
        stat_result = await aiofiles.os.stat(file_path)
    except OSError as e:
        logger.debug(f"Cannot stat {file_path}: {e}")
        return None
    return stat_result.st_size


async def path_exists(file_path: PathLike) -> bool:
    """Check whether a path exists; a dangling symlink counts as missing."""
    return await aiofiles.os.path.exists(file_path)


async def ensure_parent_directory(file_path: PathLike) -> Path:
    """
    Ensure the directory containing ``file_path`` exists.

    Creation is idempotent; an already existing directory is not an error.

    Args:
        file_path: Path of the file whose parent should exist

    Returns:
        The parent directory

    Raises:
        OSError: If the directory hierarchy cannot be created
    """
    parent = Path(file_path).parent
    await aiofiles.os.makedirs(parent, exist_ok=True)
    return parent


def copy_file(
    source: PathLike,
    destination: PathLike,
    *,
    preserve_timestamps: bool = False,
    dereference_symlinks: bool = True,
    overwrite: bool = True,
    error_on_exist: bool = False
) -> None:
    """
    Copy a single file onto ``destination``.

    The content is written to a temporary sibling first and renamed into
    place, so an interrupted copy never leaves a partially written
    destination.

    Args:
        source: Source file path
        destination: Destination file path
        preserve_timestamps: Copy access/modification times (copy2 semantics)
        dereference_symlinks: Copy the symlink target's content; when False a
            symlink source is recreated as a symlink
        overwrite: Replace an existing destination
        error_on_exist: Raise when the destination exists and overwrite is off

    Raises:
        FileExistsError: Destination exists, overwrite is off and
            error_on_exist is set
        OSError: Any other filesystem failure
    """
    source_path = Path(source)
    dest_path = Path(destination)

    if not overwrite and os.path.lexists(dest_path):
        if error_on_exist:
            raise FileExistsError(f"Destination already exists: {dest_path}")
        logger.debug(f"Leaving existing destination untouched: {dest_path}")
        return

    dest_path.parent.mkdir(parents=True, exist_ok=True)

    if not dereference_symlinks and source_path.is_symlink():
        _replace_with_symlink(source_path, dest_path)
        return

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{dest_path.name}.",
        suffix=".tmp",
        dir=dest_path.parent
    )
    os.close(fd)
    temp_path = Path(temp_name)

    try:
        shutil.copyfile(source_path, temp_path)
        if preserve_timestamps:
            shutil.copystat(source_path, temp_path)
        else:
            shutil.copymode(source_path, temp_path)
        os.replace(temp_path, dest_path)
    except BaseException:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        raise

    logger.debug(f"Copied: {source_path} -> {dest_path}")


def _replace_with_symlink(source_path: Path, dest_path: Path) -> None:
    """Recreate ``source_path`` (a symlink) at ``dest_path``."""
    link_target = os.readlink(source_path)
    temp_path = dest_path.with_name(f".{dest_path.name}.{os.getpid()}.lnk")

    if os.path.lexists(temp_path):
        temp_path.unlink()
    os.symlink(link_target, temp_path)

    try:
        os.replace(temp_path, dest_path)
    except BaseException:
        if os.path.lexists(temp_path):
            temp_path.unlink()
        raise

    logger.debug(f"Linked: {dest_path} -> {link_target}")
