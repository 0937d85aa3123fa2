"""
Configuration validation for the durable queue.

Provides a pydantic v2 model describing where the queue keeps its
backing files, with fail-fast validation and sensible defaults.
"""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from shared.log import create_logger

_, _, log_info, log_warn, _ = create_logger("Config")

# Appended to current_path when no staging path is configured
STAGING_SUFFIX = '.old'


class QueueConfig(BaseModel):
    """
    Durable queue configuration with validation.

    Required:
        current_path: Backing file holding one item per line

    Optional tunables:
        staging_path: Where the current file is parked during a rewrite
                      (default: current_path + '.old')
        fsync: Call os.fsync after every write (default: False)
    """

    model_config = ConfigDict(frozen=True)

    current_path: str
    staging_path: str
    fsync: bool = False

    @field_validator('current_path', 'staging_path', mode='after')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Paths must be non-empty and taken as given; '~' is expanded."""
        if not v.strip():
            raise ValueError('path must not be empty')
        if v != v.strip():
            raise ValueError('path must not start or end with whitespace')
        if v.endswith(('/', os.sep)):
            raise ValueError('path must name a file, not a directory')
        return os.path.expanduser(v)

    @field_validator('fsync', mode='before')
    @classmethod
    def validate_boolean(cls, v):
        """Ensure fsync is an actual boolean, not a truthy string."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            lower = v.lower()
            if lower in ('true', '1', 'yes'):
                return True
            if lower in ('false', '0', 'no'):
                return False
            raise ValueError(f"Invalid boolean value: {v}")
        raise ValueError(f"Expected boolean, got {type(v).__name__}")

    @model_validator(mode='before')
    @classmethod
    def default_staging_path(cls, data):
        """Derive staging_path from current_path when it is not given."""
        if isinstance(data, dict) and not data.get('staging_path'):
            current = data.get('current_path')
            if isinstance(current, str) and current.strip():
                data = {**data, 'staging_path': current + STAGING_SUFFIX}
        return data

    @model_validator(mode='after')
    def check_distinct_paths(self) -> 'QueueConfig':
        """The staging file can never be the current file."""
        if os.path.abspath(self.staging_path) == os.path.abspath(self.current_path):
            raise ValueError('staging_path must differ from current_path')
        return self

    def log_config(self) -> None:
        """Log the effective configuration."""
        log_info(
            f"Queue config: current_path={self.current_path}, "
            f"staging_path={self.staging_path}, fsync={self.fsync}"
        )
        if not self.fsync:
            log_warn(
                "fsync disabled: writes survive a process crash but not an OS "
                "crash or power loss before buffers reach the disk"
            )


def validate_config(config_dict: dict) -> tuple[Optional[QueueConfig], Optional[str]]:
    """
    Validate configuration dictionary and return QueueConfig or error message.

    Args:
        config_dict: Dictionary containing configuration values

    Returns:
        Tuple of (QueueConfig, None) on success,
        or (None, error_message) on validation failure
    """
    try:
        config = QueueConfig(**config_dict)
        return (config, None)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field = '.'.join(str(loc) for loc in error['loc'])
            msg = error['msg']
            errors.append(f"{field}: {msg}" if field else msg)
        error_message = '; '.join(errors)
        return (None, error_message)


# Re-export ValidationError for external use
__all__ = ['QueueConfig', 'validate_config', 'ValidationError', 'STAGING_SUFFIX']
