"""Fixtures for F3 tests - Table engine."""

import pytest

from senja.core.backends import MemoryBackend
from senja.core.engine import Engine


@pytest.fixture
def local_engine(local_config) -> Engine:
    """Engine with no remote endpoint."""
    return Engine(MemoryBackend(), config=local_config)


@pytest.fixture
def synced_engine(fake_sheet, remote_config) -> Engine:
    """Engine mirroring to the fake spreadsheet."""
    return Engine(MemoryBackend(), transport=fake_sheet.transport, config=remote_config)
