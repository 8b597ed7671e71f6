"""Recursive deletion of installed files."""
import asyncio
import os
import shutil
from pathlib import Path
from typing import List, Union

from bin_manager.errors import UnsafeRemovalError
from bin_manager.logging import get_logger

logger = get_logger(__name__)


def _is_protected(path: Path) -> bool:
    cwd = Path.cwd().resolve()
    resolved = path.resolve()
    return resolved == cwd or cwd not in resolved.parents


def _remove_sync(path: Path, force: bool, dry_run: bool) -> List[Path]:
    if not path.exists() and not path.is_symlink():
        return []

    if not force and _is_protected(path):
        raise UnsafeRemovalError(str(path))

    if dry_run:
        return [path]

    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
    logger.debug("removed_path", path=str(path))
    return [path]


async def remove(
    path: Union[str, os.PathLike],
    *,
    force: bool = False,
    dry_run: bool = False
) -> List[Path]:
    """Delete a file or directory tree.

    A missing path is not an error. Without ``force`` the current working
    directory and anything outside it are left alone.

    Returns:
        The paths that were (or, with ``dry_run``, would be) deleted
    """
    return await asyncio.to_thread(_remove_sync, Path(path), force, dry_run)
