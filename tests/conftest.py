"""Pytest configuration for the FI planner test suite."""

import pytest
from loguru import logger


@pytest.fixture
def log_messages():
    """Collect loguru messages (level name and text) emitted during a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append((m.record['level'].name, m.record['message'])),
                            level="DEBUG")
    yield messages
    logger.remove(handler_id)
