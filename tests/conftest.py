"""Test configuration for pytest."""

import shutil
import tempfile
from pathlib import Path

import pytest

from llmc.config import LLMCConfig


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture(autouse=True)
def isolated_environment(temp_dir, monkeypatch):
    """Keep the user's real config and credentials out of every test."""
    for name in (
        "LLM_API_KEY",
        "LLM_API_BASE",
        "LLM_MODEL",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "LLMC_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir / "xdg"))
    yield


@pytest.fixture
def sample_config():
    """Create a sample OpenAI-style configuration for testing."""
    return LLMCConfig(
        api_key="test-key-123",
        api_base="https://api.openai.com/v1",
        model="gpt-4o-mini",
    )


@pytest.fixture
def anthropic_config():
    """Create a sample Anthropic-style configuration for testing."""
    return LLMCConfig(
        api_key="test-key-anthropic",
        api_base="https://api.anthropic.com",
        model="claude-haiku-4-5-20251001",
    )
