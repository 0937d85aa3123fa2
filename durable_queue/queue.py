"""
Durable FIFO queue of text items mirrored to a backing file.

The in-memory deque and the open backing-file handle form one guarded
state object behind a single lock. Every operation holds that lock for
its whole duration, file I/O included.
"""

import os
import threading
from collections import deque
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from typing import IO, Iterator, Optional

from durable_queue import store
from durable_queue.exceptions import (
    CorruptionDetected,
    EmptyQueue,
    ItemNotFound,
    QueueIOError,
    QueueLockError,
)
from durable_queue.recovery import load_queue
from shared.log import create_logger
from validation.config import QueueConfig
from validation import items as item_rules

log_trace, log_debug, log_info, _, log_error = create_logger("Queue")


@dataclass
class _QueueState:
    """Backing-file handle and items; only touched with the queue lock held."""
    handle: IO[str]
    items: deque


class DurableQueue:
    """
    Thread-safe FIFO queue of strings that survives process restarts.

    add() appends one line to the backing file. remove() and pop() rewrite
    the whole file: the current file is renamed to the staging path, a new
    current file is written, then the staging file is deleted. A crash in
    between leaves only the staging file, which the next construction
    restores, so an interrupted remove/pop is undone rather than completed.

    If a rewrite fails after the in-memory removal, the instance is faulted
    and every later call raises QueueLockError; construct a new instance
    to reload from disk.

    Args:
        config: Backing file paths and write options

    Usage:
        queue = DurableQueue(QueueConfig(current_path='/var/lib/app/queue.txt'))
        queue.add('job-17')
        queue.add('job-18')
        queue.remove('job-18')
        queue.pop()  # -> 'job-17'
    """

    def __init__(self, config: QueueConfig):
        self._config = config
        handle, items = load_queue(config)
        self._lock = threading.Lock()
        self._state = _QueueState(handle=handle, items=items)
        self._fault: Optional[BaseException] = None

        log_info(f"Queue ready with {len(items)} item(s) from {config.current_path}")

    @classmethod
    def from_settings(cls, settings=None) -> 'DurableQueue':
        """Build a queue from QueueSettings (env vars / YAML by default)."""
        if settings is None:
            from validation.settings import get_settings
            settings = get_settings()
        return cls(settings.to_config())

    @property
    def config(self) -> QueueConfig:
        return self._config

    @property
    def current_path(self) -> str:
        return self._config.current_path

    @property
    def staging_path(self) -> str:
        return self._config.staging_path

    def add(self, item: str) -> None:
        """
        Append an item to the back of the queue.

        The line is written before the item is pushed in memory, so a failed
        write leaves the queue unchanged. If the partial line cannot be
        truncated away again the queue faults.

        Raises:
            InvalidItemError: Item is empty, not a string or contains a line break
            QueueIOError: Append to the backing file failed
            QueueLockError: Queue faulted earlier
        """
        item_rules.validate_item(item)
        with self._locked() as state:
            try:
                store.append_item(state.handle, item, self._config.current_path, self._config.fsync)
            except QueueIOError as e:
                if e.step == 'truncate':
                    self._set_fault(state, e)
                raise
            state.items.append(item)
            log_trace(f"Added {item!r} ({len(state.items)} queued)")

    def remove(self, item: str) -> str:
        """
        Remove the first occurrence of item and return it.

        Raises:
            ItemNotFound: No queued item equals item; the file is not touched
            QueueIOError: Rewriting the backing file failed (queue faults)
            CorruptionDetected: Staging or new current file already present (queue faults)
            QueueLockError: Queue faulted earlier
        """
        with self._locked() as state:
            try:
                index = state.items.index(item)
            except ValueError:
                raise ItemNotFound(item) from None
            removed = state.items[index]
            del state.items[index]
            self._rewrite(state)
            log_trace(f"Removed {removed!r} at position {index}")
            return removed

    def pop(self) -> str:
        """
        Remove and return the front item.

        Raises:
            EmptyQueue: Nothing is queued; the file is not touched
            QueueIOError: Rewriting the backing file failed (queue faults)
            CorruptionDetected: Staging or new current file already present (queue faults)
            QueueLockError: Queue faulted earlier
        """
        with self._locked() as state:
            if not state.items:
                raise EmptyQueue()
            item = state.items.popleft()
            self._rewrite(state)
            log_trace(f"Popped {item!r}")
            return item

    def snapshot(self) -> list[str]:
        """Return a copy of the queued items in FIFO order."""
        with self._locked() as state:
            return list(state.items)

    def __len__(self) -> int:
        with self._locked() as state:
            return len(state.items)

    def __repr__(self) -> str:
        return f"DurableQueue(current_path={self._config.current_path!r})"

    @contextmanager
    def _locked(self) -> Iterator[_QueueState]:
        with self._lock:
            if self._fault is not None:
                raise QueueLockError(
                    f"Queue for {self._config.current_path} faulted during an earlier "
                    f"operation; reconstruct it to reload from disk"
                ) from self._fault
            yield self._state

    def _rewrite(self, state: _QueueState) -> None:
        """Persist state.items with the rename protocol; fault the queue on failure."""
        try:
            self._replace_backing_file(state)
        except BaseException as e:
            self._set_fault(state, e)
            raise

    def _set_fault(self, state: _QueueState, error: BaseException) -> None:
        """Refuse further calls and release the backing file."""
        self._fault = error
        log_error(f"Operation on {self._config.current_path} failed, queue faulted: {error}")
        # close errors are dropped; _fault already holds the failure
        with suppress(OSError):
            state.handle.close()

    def _replace_backing_file(self, state: _QueueState) -> None:
        config = self._config

        # os.rename would silently overwrite an existing staging file
        if os.path.exists(config.staging_path):
            raise CorruptionDetected(
                f"{config.staging_path} already exists before rewrite",
                config.current_path,
                config.staging_path,
            )

        # 1. park the current file; only staging exists from here on
        store.rename(config.current_path, config.staging_path, config.fsync)

        # 2. fresh current file
        try:
            new_handle = store.create_new(config.current_path)
        except FileExistsError:
            raise CorruptionDetected(
                f"{config.current_path} reappeared during rewrite",
                config.current_path,
                config.staging_path,
            ) from None

        # 3. full contents
        try:
            store.write_items(new_handle, state.items, config.current_path, config.fsync)
        except BaseException:
            new_handle.close()
            raise

        # 4. swap handles
        old_handle, state.handle = state.handle, new_handle
        old_handle.close()

        # 5. back to a single current file
        store.delete(config.staging_path, config.fsync)
        log_debug(f"Rewrote {config.current_path} with {len(state.items)} item(s)")
