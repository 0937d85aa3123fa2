"""
Backing-file primitives for the durable queue.

Stateless operations on the files passed in. Each performs one step of
the persistence protocol and raises QueueIOError tagged with that step
when the filesystem refuses. Locking is the caller's job.

File format: UTF-8 text, one item per line, every line '\\n'-terminated.
"""

import os
from typing import IO, Iterable, Optional

from durable_queue.exceptions import QueueIOError
from shared.log import create_logger

log_trace, log_debug, _, log_warn, _ = create_logger("Store")

ENCODING = 'utf-8'
NEWLINE = '\n'

# rw-r--r--, filtered through the process umask
FILE_MODE = 0o644


def open_existing(path: str) -> Optional[IO[str]]:
    """
    Open an existing backing file for append+read.

    Args:
        path: Backing file path

    Returns:
        Open text handle, or None if the file does not exist

    Raises:
        QueueIOError: step 'open', for any failure other than a missing file
    """
    # No O_CREAT: a missing file must stay missing
    try:
        fd = os.open(path, os.O_RDWR | os.O_APPEND)
    except FileNotFoundError:
        return None
    except OSError as e:
        raise QueueIOError('open', path, e) from e
    return _wrap(fd, 'open', path)


def create_new(path: str) -> IO[str]:
    """
    Create a backing file that must not exist yet, opened for append+read.

    Raises:
        FileExistsError: If path already exists (callers decide what that means)
        QueueIOError: step 'create', for any other failure
    """
    try:
        fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_EXCL | os.O_APPEND, FILE_MODE)
    except FileExistsError:
        raise
    except OSError as e:
        raise QueueIOError('create', path, e) from e
    return _wrap(fd, 'create', path)


def read_items(handle: IO[str], path: str) -> tuple[list[str], bool]:
    """
    Read every item from a backing file, in file order.

    Blank lines are skipped with a warning since items are never empty.
    The handle is left positioned at end of file.

    Args:
        handle: Handle from open_existing/create_new
        path: Path of the handle, for error context

    Returns:
        Tuple of (items, unterminated) where unterminated is True when the
        last line has no trailing newline (an interrupted append)

    Raises:
        QueueIOError: step 'read'
    """
    items = []
    unterminated = False
    try:
        handle.seek(0)
        for lineno, line in enumerate(handle, start=1):
            if line.endswith(NEWLINE):
                line = line[:-1]
            else:
                unterminated = True
            if not line:
                log_warn(f"Skipping blank line {lineno} in {path}")
                continue
            items.append(line)
        handle.seek(0, os.SEEK_END)
    except (OSError, UnicodeDecodeError) as e:
        raise QueueIOError('read', path, e) from e

    log_debug(f"Read {len(items)} item(s) from {path}")
    return items, unterminated


def append_item(handle: IO[str], item: str, path: str, fsync: bool = False) -> None:
    """
    Append one item as a single line.

    The bytes go straight to the file descriptor. If the write fails part
    way, the file is truncated back to its previous size so no fragment of
    the rejected item can reach disk later.

    Raises:
        QueueIOError: step 'append'; step 'truncate' when the partial line
                      could not be cut off again and the file is now dirty
    """
    _append_bytes(handle, (item + NEWLINE).encode(ENCODING), path, fsync)
    log_trace(f"Appended {item!r} to {path}")


def terminate_last_line(handle: IO[str], path: str, fsync: bool = False) -> None:
    """
    Append the newline an interrupted append left out.

    Raises:
        QueueIOError: step 'append' or 'truncate', as append_item
    """
    _append_bytes(handle, NEWLINE.encode(ENCODING), path, fsync)
    log_warn(f"Terminated unfinished last line in {path}")


def write_items(handle: IO[str], items: Iterable[str], path: str, fsync: bool = False) -> None:
    """
    Write all items, one per line, in order.

    Raises:
        QueueIOError: step 'write'
    """
    data = ''.join(item + NEWLINE for item in items).encode(ENCODING)
    try:
        handle.flush()
        _write_all(handle.fileno(), data)
        if fsync:
            os.fsync(handle.fileno())
    except OSError as e:
        raise QueueIOError('write', path, e) from e


def rename(src: str, dst: str, fsync: bool = False) -> None:
    """
    Atomically rename src to dst.

    Raises:
        QueueIOError: step 'rename'
    """
    try:
        os.rename(src, dst)
        if fsync:
            sync_directory(dst)
    except OSError as e:
        raise QueueIOError('rename', src, e) from e
    log_debug(f"Renamed {src} -> {dst}")


def delete(path: str, fsync: bool = False) -> None:
    """
    Delete a backing file.

    Raises:
        QueueIOError: step 'delete'
    """
    try:
        os.remove(path)
        if fsync:
            sync_directory(path)
    except OSError as e:
        raise QueueIOError('delete', path, e) from e
    log_debug(f"Deleted {path}")


def ensure_parent_dir(path: str) -> None:
    """
    Create the directory holding path if it is missing.

    Raises:
        QueueIOError: step 'create'
    """
    parent = os.path.dirname(os.path.abspath(path))
    try:
        os.makedirs(parent, exist_ok=True)
    except OSError as e:
        raise QueueIOError('create', parent, e) from e


def sync_directory(path: str) -> None:
    """fsync the directory containing path so renames and unlinks are durable."""
    parent = os.path.dirname(os.path.abspath(path))
    fd = os.open(parent, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _wrap(fd: int, step: str, path: str) -> IO[str]:
    try:
        return os.fdopen(fd, 'a+', encoding=ENCODING, newline=NEWLINE)
    except OSError as e:
        os.close(fd)
        raise QueueIOError(step, path, e) from e


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        view = view[written:]


def _append_bytes(handle: IO[str], data: bytes, path: str, fsync: bool) -> None:
    fd = handle.fileno()
    try:
        handle.flush()
        size = os.fstat(fd).st_size
    except OSError as e:
        raise QueueIOError('append', path, e) from e

    try:
        _write_all(fd, data)
        if fsync:
            os.fsync(fd)
    except OSError as e:
        try:
            os.ftruncate(fd, size)
        except OSError as truncate_error:
            raise QueueIOError('truncate', path, truncate_error) from e
        log_debug(f"Truncated {path} back to {size} bytes after failed append")
        raise QueueIOError('append', path, e) from e
