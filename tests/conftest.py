"""Pytest configuration and shared fixtures for all tests.

This module provides:
- Test configuration and markers
- Shared fixtures for the pipeline collaborators (MCP transport, LLM provider)
- Settings pointing at the fake MCP server
"""

import pytest
from _pytest.config import Config

from tests.fixtures.factories import (
    FakeLlmProvider,
    create_mock_transport,
    create_text_result,
    fake_mcp_server_command,
)
from tool_relay.application.settings import Settings

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config: Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (spawn the fake MCP server subprocess)")
    config.addinivalue_line("markers", "asyncio: Async tests")


# ============================================================================
# COLLABORATOR FIXTURES
# ============================================================================


@pytest.fixture
def mock_transport():
    """Mock MCP transport serving use_curl and answering one text result."""
    return create_mock_transport(results=[create_text_result("package main\n\nfunc main() {}\n")])


@pytest.fixture
def fake_llm() -> FakeLlmProvider:
    """Scripted LLM provider proposing no tool call and streaming nothing."""
    return FakeLlmProvider()


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================


@pytest.fixture
def fake_server_settings() -> Settings:
    """Settings whose MCP server command spawns the fake MCP server."""
    return Settings(
        mcp_server_command=fake_mcp_server_command(),
        mcp_request_timeout=5.0,
        run_deadline_seconds=20.0,
    )
