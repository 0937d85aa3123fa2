"""
Shared pytest fixtures for durable queue tests.

Provides reusable fixtures for:
- Backing file paths inside tmp_path
- Validated QueueConfig objects
- Queue construction against those paths
- Reading the backing file back as items
"""

import logging
import os
from contextlib import contextmanager

import pytest


# =============================================================================
# Path / Configuration Fixtures
# =============================================================================

@pytest.fixture
def queue_paths(tmp_path):
    """
    Current and staging paths for a queue living in tmp_path.

    Usage:
        def test_paths(queue_paths):
            current, staging = queue_paths
            assert staging.endswith('.old')
    """
    current = tmp_path / "queue.txt"
    staging = tmp_path / "queue.txt.old"
    return str(current), str(staging)


@pytest.fixture
def queue_config(queue_paths):
    """
    QueueConfig pointing at queue_paths.

    Usage:
        def test_queue(queue_config):
            queue = DurableQueue(queue_config)
    """
    from validation.config import QueueConfig

    current, staging = queue_paths
    return QueueConfig(current_path=current, staging_path=staging)


@pytest.fixture
def valid_config_dict(queue_paths):
    """Dictionary with valid values for QueueConfig instantiation."""
    current, staging = queue_paths
    return {
        "current_path": current,
        "staging_path": staging,
        "fsync": False,
    }


# =============================================================================
# Queue Fixtures
# =============================================================================

@pytest.fixture
def make_queue(queue_config):
    """
    Factory building a DurableQueue against queue_config.

    Calling it again simulates a process restart on the same files.

    Usage:
        def test_restart(make_queue):
            queue = make_queue()
            queue.add("a")
            assert make_queue().snapshot() == ["a"]
    """
    from durable_queue.queue import DurableQueue

    def _make(config=None):
        return DurableQueue(config or queue_config)

    return _make


@pytest.fixture
def read_backing_file():
    """
    Read a backing file the way a restart would: one item per line.

    Usage:
        def test_file(read_backing_file, queue_paths):
            assert read_backing_file(queue_paths[0]) == ["a", "b"]
    """
    def _read(path):
        with open(path, "r", encoding="utf-8", newline="\n") as f:
            return [line.rstrip("\n") for line in f]

    return _read


@pytest.fixture
def write_backing_file():
    """Write raw text to a backing file path, bypassing the queue."""
    def _write(path, text):
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)

    return _write


# =============================================================================
# Fault Injection Fixtures
# =============================================================================

@pytest.fixture
def file_size_limit():
    """
    Temporarily cap the size of files this process may write (RLIMIT_FSIZE).

    Writes past the cap fail with EFBIG; Python ignores SIGXFSZ.

    Usage:
        def test_full(file_size_limit):
            with file_size_limit(16):
                ...
    """
    resource = pytest.importorskip("resource")
    soft, hard = resource.getrlimit(resource.RLIMIT_FSIZE)

    @contextmanager
    def _limit(max_bytes):
        resource.setrlimit(resource.RLIMIT_FSIZE, (max_bytes, hard))
        try:
            yield
        finally:
            resource.setrlimit(resource.RLIMIT_FSIZE, (soft, hard))

    return _limit


@pytest.fixture
def open_fds_under():
    """List the files under a directory this process holds open (Linux /proc)."""
    if not os.path.isdir("/proc/self/fd"):
        pytest.skip("requires /proc/self/fd")

    def _open(directory):
        prefix = os.path.realpath(directory) + os.sep
        targets = []
        for fd in os.listdir("/proc/self/fd"):
            try:
                target = os.readlink(os.path.join("/proc/self/fd", fd))
            except OSError:
                continue
            if target.startswith(prefix):
                targets.append(target)
        return targets

    return _open


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def restore_root_logging():
    """Restore root logger handlers and level changed by configure_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
