"""
Validation module for the durable queue.

Provides queue configuration validation, settings loading,
and item validation.
"""

from validation.config import QueueConfig, validate_config
from validation.items import validate_item

__all__ = [
    'QueueConfig',
    'validate_config',
    'validate_item',
]
