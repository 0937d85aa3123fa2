"""
Durable Queue Module

Provides a thread-safe FIFO queue of text items mirrored to a line-based
file. Items survive process restarts, and a crash in the middle of a
rewrite is rolled back on the next start.
"""

from durable_queue.exceptions import (
    CorruptionDetected,
    DurableQueueError,
    EmptyQueue,
    InvalidItemError,
    ItemNotFound,
    QueueIOError,
    QueueLockError,
)
from durable_queue.queue import DurableQueue
from durable_queue.recovery import BackingState, load_queue, recover_backing_file
from validation.config import QueueConfig

__all__ = [
    'DurableQueue',
    'QueueConfig',
    'BackingState',
    'load_queue',
    'recover_backing_file',
    'DurableQueueError',
    'CorruptionDetected',
    'QueueIOError',
    'ItemNotFound',
    'EmptyQueue',
    'QueueLockError',
    'InvalidItemError',
]
