"""
Startup recovery for the durable queue backing files.

A rewrite parks the current file under the staging path before writing
its replacement, so the pair of files found at startup says how the
previous process ended:

- current only:  clean shutdown (or crash outside a rewrite)
- staging only:  crash mid-rewrite; the staging file is the last complete
                 state and is restored, which undoes the interrupted
                 remove/pop
- neither:       first run; an empty current file is created
- both:          not produced by any crash window; refused as corruption
"""

from collections import deque
from enum import Enum
from typing import IO

from durable_queue import store
from durable_queue.exceptions import CorruptionDetected, QueueIOError
from shared.log import create_logger
from validation.config import QueueConfig

_, log_debug, log_info, log_warn, log_error = create_logger("Recovery")


class BackingState(Enum):
    """Which backing files were present at startup."""
    CURRENT = "current"
    STAGING = "staging"
    FRESH = "fresh"


def recover_backing_file(config: QueueConfig) -> tuple[IO[str], BackingState]:
    """
    Resolve the backing files into one open current file.

    Args:
        config: Queue configuration naming the current and staging paths

    Returns:
        Tuple of (handle to the current file opened for append+read,
        the BackingState that was found)

    Raises:
        CorruptionDetected: Both files exist
        QueueIOError: Opening, renaming or creating a file failed
    """
    current = store.open_existing(config.current_path)
    try:
        staging = store.open_existing(config.staging_path)
    except QueueIOError:
        if current is not None:
            current.close()
        raise

    if current is not None and staging is not None:
        current.close()
        staging.close()
        log_error(
            f"Both {config.current_path} and {config.staging_path} exist, "
            f"possible corruption detected, resolve manually"
        )
        raise CorruptionDetected(
            f"Both {config.current_path} and {config.staging_path} exist; "
            f"resolve manually before starting the queue",
            config.current_path,
            config.staging_path,
        )

    if staging is not None:
        staging.close()
        log_warn(
            f"Found {config.staging_path} without {config.current_path}: "
            f"previous rewrite was interrupted, restoring last complete queue file"
        )
        store.rename(config.staging_path, config.current_path, config.fsync)
        current = store.open_existing(config.current_path)
        if current is None:
            raise QueueIOError('open', config.current_path, FileNotFoundError(config.current_path))
        return current, BackingState.STAGING

    if current is not None:
        log_debug(f"Opened existing queue file {config.current_path}")
        return current, BackingState.CURRENT

    log_info(f"No queue file at {config.current_path}, creating an empty one")
    store.ensure_parent_dir(config.current_path)
    try:
        return store.create_new(config.current_path), BackingState.FRESH
    except FileExistsError as e:
        raise QueueIOError('create', config.current_path, e) from e


def load_queue(config: QueueConfig) -> tuple[IO[str], deque]:
    """
    Recover the backing file and load its items.

    Returns:
        Tuple of (open current-file handle, deque of items in queue order)

    Raises:
        CorruptionDetected: Both files exist
        QueueIOError: Any open/rename/create/read/append failure
    """
    handle, state = recover_backing_file(config)
    try:
        items, unterminated = store.read_items(handle, config.current_path)
        if unterminated:
            store.terminate_last_line(handle, config.current_path, config.fsync)
    except BaseException:
        handle.close()
        raise

    if state is BackingState.STAGING:
        log_info(f"Recovered {len(items)} item(s) from interrupted rewrite")
    return handle, deque(items)
