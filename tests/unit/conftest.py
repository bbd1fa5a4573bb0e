"""Unit test conftest for setting up test environment."""

import os

# Set before importing largebatch so the settings singleton picks these up
os.environ.setdefault("LARGEBATCH_LOG_LEVEL", "DEBUG")
os.environ.setdefault("LARGEBATCH_BATCH_CAPACITY", "500")

import pytest  # noqa: E402

from largebatch.clients.memory import InMemoryDatabaseClient  # noqa: E402


@pytest.fixture
def memory_client():
    """Create an empty in-memory database client."""
    return InMemoryDatabaseClient()
