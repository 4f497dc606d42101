"""Shared fixtures for the Prompt Architect test suite."""

import base64
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
import requests

from _helpers import DIRECT_BASE_URL, GATEWAY_BASE_URL, image_bytes
from prompt_architect.core.prompt_types import PromptInput
from prompt_architect.llm.provider_config import GatewayConfig


@pytest.fixture
def direct_config() -> GatewayConfig:
    """Config pointing at the vendor host with a Gemini-style key."""
    return GatewayConfig(
        model="gemini-2.5-pro",
        base_url=DIRECT_BASE_URL,
        credentials=(("AI_GATEWAY_API_KEY", "AIzaTestKey"), ("GEMINI_API_KEY", None)),
        timeout=5.0,
    )


@pytest.fixture
def openai_config() -> GatewayConfig:
    """Config pointing at an OpenAI-compatible gateway."""
    return GatewayConfig(
        model="google/gemini-2.5-pro",
        base_url=GATEWAY_BASE_URL,
        credentials=(("AI_GATEWAY_API_KEY", "sk-gateway-key"),),
        timeout=5.0,
    )


@pytest.fixture
def fake_session() -> Callable[[requests.Response], MagicMock]:
    """Factory for a `requests.Session` stand-in returning a fixed response."""

    def _make(response: requests.Response) -> MagicMock:
        session = MagicMock(spec=requests.Session)
        session.post.return_value = response
        return session

    return _make


@pytest.fixture
def small_png() -> bytes:
    return image_bytes(120, 80)


@pytest.fixture
def data_url_png(small_png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(small_png).decode("ascii")


@pytest.fixture
def two_inputs(data_url_png: str) -> list[PromptInput]:
    return [
        PromptInput(index=0, description="sunset on a beach", image_data=data_url_png),
        PromptInput(index=1, description="rainy neon street"),
    ]


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'history.db'}"
