"""Pytest configuration and fixtures."""

import os
from pathlib import Path

import pytest

from tagcaster.schema import DescriptorRegistry, SchemaCache


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    # Remove any TAGCASTER_ env vars that might interfere
    for key in list(os.environ.keys()):
        if key.startswith("TAGCASTER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_env_file(tmp_path: Path) -> Path:
    """Create a temporary .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        """
OPENAI_API_KEY=sk-test-key
TAGCASTER_DEFAULT_MODEL=gpt-4o-mini
TAGCASTER_LOG_LEVEL=DEBUG
TAGCASTER_MAX_RETRIES=5
"""
    )
    return env_file


@pytest.fixture
def registry() -> DescriptorRegistry:
    """A fresh descriptor registry, isolated from the process-wide one."""
    return DescriptorRegistry()


@pytest.fixture
def schema_cache(registry: DescriptorRegistry) -> SchemaCache:
    """A fresh schema cache backed by the isolated registry."""
    return SchemaCache(registry=registry)

