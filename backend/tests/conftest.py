"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with markers
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers and fixtures
"""

import os
import tempfile
from pathlib import Path

# Keep test logs out of the working tree (settings are read at import time)
os.environ.setdefault("LOG_FILE", str(Path(tempfile.gettempdir()) / "slate-tests" / "slate.log"))

import pytest

from slate.core.config import settings
from slate.llm.provider_factory import reset_provider
from tests.fixtures.mock_transport import FakeTransport, Recorder


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )


@pytest.fixture(autouse=True)
def reset_provider_singleton():
    """
    Reset provider singleton before each test.

    WHAT: Clear provider cache between tests
    WHY: Prevent test pollution and ensure clean state
    HOW: Call reset_provider() before and after each test
    """
    reset_provider()
    yield
    reset_provider()


@pytest.fixture
def mock_settings(monkeypatch):
    """
    Pin settings to test-friendly values.

    WHAT: Provide consistent test configuration
    WHY: Isolate tests from .env files and environment variables
    HOW: monkeypatch attributes of the settings singleton
    """
    monkeypatch.setattr(settings, "OLLAMA_BASE_URL", "http://ollama.test:11434")
    monkeypatch.setattr(settings, "OPENAI_BASE_URL", "http://ollama.test:11434/v1")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "ollama")
    monkeypatch.setattr(settings, "DEFAULT_MODEL", "test-model")
    monkeypatch.setattr(settings, "DEFAULT_TEMPERATURE", 0.6)
    monkeypatch.setattr(settings, "DEFAULT_STREAM_MODE", "native")
    monkeypatch.setattr(settings, "NATIVE_CARRY_PARTIAL_LINES", False)
    monkeypatch.setattr(settings, "SSE_COALESCE_TOKENS", 1)
    yield settings


@pytest.fixture
def recorder():
    """Fresh callback recorder."""
    return Recorder()


@pytest.fixture
def fake_transport():
    """Factory for in-memory transports."""
    return FakeTransport
