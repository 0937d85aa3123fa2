"""
Error taxonomy for the durable queue.

Every failure is raised to the immediate caller as one of these types.
Nothing is retried internally; retries belong to the caller.
"""

from typing import Optional


class DurableQueueError(Exception):
    """Base class for all durable queue errors."""


class CorruptionDetected(DurableQueueError):
    """
    Current and staging files exist at the same time.

    Raised at startup when both backing files are present, and during a
    rewrite when the staging slot or the new current file is unexpectedly
    occupied. Requires manual intervention: neither file is picked.
    """

    def __init__(self, message: str, current_path: str, staging_path: str):
        super().__init__(message)
        self.current_path = current_path
        self.staging_path = staging_path


class QueueIOError(DurableQueueError, OSError):
    """
    Underlying filesystem failure.

    Attributes:
        step: Which step failed ('open', 'read', 'append', 'rename',
              'create', 'write', 'delete', 'truncate'). 'truncate' means a
              failed append could not be cut back off the file
        path: File the step operated on
    """

    STEPS = frozenset({
        'open', 'read', 'append', 'rename', 'create', 'write', 'delete', 'truncate',
    })

    def __init__(self, step: str, path: str, cause: Optional[Exception] = None):
        if step not in self.STEPS:
            raise ValueError(f"Unknown I/O step: {step}")
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{step} failed for {path}{detail}")
        self.step = step
        self.path = path
        if cause is not None:
            self.errno = getattr(cause, "errno", None)


class ItemNotFound(DurableQueueError, LookupError):
    """remove() was called with an item that is not queued."""

    def __init__(self, item: str):
        super().__init__("Item not found in queue")
        self.item = item


class EmptyQueue(DurableQueueError, LookupError):
    """pop() was called on an empty queue."""

    def __init__(self):
        super().__init__("Queue is empty")


class QueueLockError(DurableQueueError):
    """The queue faulted while a previous holder had the lock."""


class InvalidItemError(DurableQueueError, ValueError):
    """Item cannot be stored as a single line."""
