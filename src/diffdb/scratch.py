"""
Scratch and working directory lifecycle.

The dump strategy writes to fixed file names, so the directory is wiped
and recreated before every table rather than cleaned up afterwards.
"""

import logging
import os
import shutil
from collections.abc import Iterator
from contextlib import contextmanager

from diffdb.errors import FilesystemError

logger = logging.getLogger(__name__)

DEFAULT_DIR_MODE = 0o744


def cleanup_working_dir(path: str) -> None:
    """
    Remove a directory tree; a missing directory is not an error.

    Raises:
        FilesystemError: If the tree exists but cannot be removed
    """
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise FilesystemError(f"Could not clean up working directory {path}: {e}") from e


def reset_scratch_dir(path: str, mode: int = DEFAULT_DIR_MODE) -> None:
    """
    Remove then recreate a directory so it is guaranteed empty.

    Raises:
        FilesystemError: If the directory cannot be removed or created
    """
    cleanup_working_dir(path)
    try:
        os.mkdir(path, mode)
    except OSError as e:
        raise FilesystemError(f"Could not set up working directory {path}: {e}") from e


def prepare_working_dir(path: str, mode: int = DEFAULT_DIR_MODE) -> None:
    """Create an empty working directory, discarding residue from earlier runs."""
    if not path:
        raise FilesystemError("A working directory is required")
    reset_scratch_dir(path, mode)
    logger.debug(f"Working directory ready: {path}")


@contextmanager
def working_directory(path: str, mode: int = DEFAULT_DIR_MODE) -> Iterator[str]:
    """
    Provide an empty working directory and remove it afterwards, even on error.

    Example:
        >>> with working_directory("/data/diffdb_scratch") as scratch:
        ...     result = run_comparison(context)
    """
    prepare_working_dir(path, mode)
    try:
        yield path
    finally:
        cleanup_working_dir(path)
        logger.debug(f"Working directory removed: {path}")
