"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path (for 'dictsync.*' imports without installing)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))
sys.path.insert(0, str(Path(__file__).parent))


@pytest.fixture
def bus():
    """Fresh EventBus, isolated from the process-global one."""
    from dictsync.core.events import EventBus

    return EventBus()


@pytest.fixture
def settings_store():
    """In-memory settings with a single default profile."""
    from dictsync.core.settings_store import InMemorySettingsStore

    return InMemorySettingsStore()


@pytest.fixture
def logged_errors():
    """List that collects every error passed to the diagnostic log."""
    return []


@pytest.fixture
def normalizer(logged_errors):
    from dictsync.core.error_display import ErrorNormalizer

    return ErrorNormalizer(log=logged_errors.append)
