"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest
from loguru import logger

# Add project root to Python path so imports work without installing
root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path))


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(messages.append, format="{message}", level="DEBUG")
    yield messages
    logger.remove(handler_id)
