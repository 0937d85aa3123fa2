"""
Integration test fixtures for the durable queue.

These fixtures compose the unit test fixtures from tests/conftest.py
into restart and crash scenarios:
- Queues pre-filled with items
- Simulated crashes at each step of the rewrite protocol

All integration tests should be marked with @pytest.mark.integration
"""

import os

import pytest


@pytest.fixture
def filled_queue(make_queue):
    """
    Queue holding three items added in order.

    Usage:
        def test_drain(filled_queue):
            assert filled_queue.snapshot() == ["first", "second", "third"]
    """
    queue = make_queue()
    for item in ["first", "second", "third"]:
        queue.add(item)
    return queue


@pytest.fixture
def simulate_crash(queue_paths):
    """
    Leave the backing files as a crash after a given rewrite step would.

    Steps follow the rewrite protocol:
        1: current renamed to staging
        2: new empty current created
        3: new current fully written with `items`
        4: handle swapped (nothing new on disk)

    The live queue instance is abandoned afterwards, as a crashed process would.

    Usage:
        def test_crash(filled_queue, simulate_crash):
            simulate_crash(step=1)
    """
    current, staging = queue_paths

    def _crash(step, items=()):
        os.rename(current, staging)
        if step >= 2:
            with open(current, "x", encoding="utf-8", newline="\n") as f:
                if step >= 3:
                    f.writelines(item + "\n" for item in items)

    return _crash
