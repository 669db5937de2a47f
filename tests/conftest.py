"""
Shared test fixtures for the support bridge test suite.

Provides: environment configuration, a HelperConfig wired to a test logger,
MockTransport helpers for the httpx-based clients.
"""

import logging
from typing import Callable

import httpx
import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

TEST_ENV = {
    "EMBED_ENGINE": "openai",
    "EMBED_MODEL": "text-embedding-3-small",
    "EMBED_DIMENSION": "4",
    "EMBED_OPENAI_BASE_URL": "https://embed.test",
    "EMBED_OPENAI_API_KEY": "embed-key",
    "EMBED_OLLAMA_BASE_URL": "http://ollama.test:11434",
    "RAG_ENGINE": "supabase",
    "RAG_SUPABASE_BASE_URL": "https://project.supabase.test",
    "RAG_SUPABASE_API_KEY": "service-role-key",
    "LLM_ENGINE": "anthropic",
    "LLM_CHAT_MODEL": "claude-test",
    "LLM_ANTHROPIC_BASE_URL": "https://llm.test",
    "LLM_ANTHROPIC_API_KEY": "llm-key",
    "LLM_OLLAMA_BASE_URL": "http://ollama.test:11434",
    "MENU_HTTP_BASE_URL": "https://menu.test",
    "MENU_BRANCHES": "[seraing,angleur]",
    "SUPPORT_ENGINE": "supabase",
    "SUPPORT_SUPABASE_BASE_URL": "https://project.supabase.test",
    "SUPPORT_SUPABASE_API_KEY": "service-role-key",
    "APP_API_KEY": "admin-secret",
}


@pytest.fixture
def test_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> dict[str, str]:
    """Populate the process environment with a complete test configuration."""
    env = {**TEST_ENV, "MENU_CACHE_PATH": str(tmp_path / "data" / "menu-cache.json")}
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture
def logger() -> ColorLogger:
    return ColorLogger(logging.getLogger("support_bridge.tests"))


@pytest.fixture
def helper_config(test_env: dict[str, str], logger: ColorLogger) -> HelperConfig:
    """HelperConfig reading the test environment."""
    return HelperConfig(logger=logger)


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    """Requests seen by a transport built with make_transport."""
    return []


@pytest.fixture
def make_transport(recorded_requests: list[httpx.Request]) -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.MockTransport]:
    """Build a MockTransport that records every request before delegating to handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return httpx.MockTransport(recording_handler)

    return factory
