"""Async filesystem operations for removing entries from the library."""

import asyncio
import logging
import os
from pathlib import Path
from typing import List

from ..exceptions import EntryNotFoundError, FileOperationError, PermissionDeniedError
from ..utils.security import SecurityUtils

logger = logging.getLogger(__name__)

# Album directory, then artist directory
CLEANUP_LEVELS = 2


async def remove_file(file_path: Path) -> None:
    """Delete a single file, mapping OS errors onto the library taxonomy."""
    try:
        await asyncio.get_running_loop().run_in_executor(None, file_path.unlink)
    except FileNotFoundError as e:
        raise EntryNotFoundError(f"File does not exist: {file_path.name}") from e
    except PermissionError as e:
        raise PermissionDeniedError(
            f"Permission denied deleting {file_path.name}; check the library folder's permissions"
        ) from e
    except IsADirectoryError as e:
        raise FileOperationError(f"Not a file: {file_path.name}") from e
    except OSError as e:
        raise FileOperationError(f"Failed to delete {file_path.name}: {e}") from e


def prune_empty_parents(file_path: Path, library_root: Path) -> List[Path]:
    """Remove the now-empty album and artist directories above a deleted file.

    Stops at the first directory that is not empty, not inside the library
    root, or cannot be removed. Never raises.

    Returns:
        The directories that were removed, innermost first.
    """
    removed: List[Path] = []
    root = library_root.resolve()
    directory = file_path.parent

    for _ in range(CLEANUP_LEVELS):
        try:
            # Re-check containment before every rmdir; the file is already gone
            if not SecurityUtils.is_within(directory.resolve(), root):
                break
            with os.scandir(directory) as it:
                if any(True for _ in it):
                    break
            directory.rmdir()
        except OSError as e:
            logger.warning(f"Could not clean up directory {directory}: {e}")
            break

        logger.debug(f"Removed empty directory {directory}")
        removed.append(directory)
        directory = directory.parent

    return removed


async def prune_empty_parents_async(file_path: Path, library_root: Path) -> List[Path]:
    """Run ``prune_empty_parents`` in a worker thread."""
    return await asyncio.get_running_loop().run_in_executor(
        None, prune_empty_parents, file_path, library_root
    )
