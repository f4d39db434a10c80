"""Service wiring for the API.

The app resolves its OperatorAgent through get_agent(), so tests can swap
in a fully in-memory agent with app.dependency_overrides.
"""

from functools import lru_cache
from pathlib import Path

from fastapi import Header, HTTPException

from ..agent import OperatorAgent
from ..clients.factory import create_client, get_light_model
from ..config import get_settings
from ..main import build_platforms, load_yaml_config
from ..platforms.base import PlatformRegistry
from ..storage.memory import InMemoryConversationStore


def build_agent(seed_path: str | Path | None = None) -> OperatorAgent:
    """Build an agent from settings, with in-memory platforms and storage."""
    settings = get_settings()
    provider = settings.detect_provider()
    if not provider:
        raise ValueError("No LLM provider configured: set LLM_PROVIDER or an API key")
    api_key = settings.get_api_key_for_provider(provider)
    client = create_client(provider, settings.llm_model, api_key=api_key)
    light_client = create_client(
        provider, settings.memory_model or get_light_model(provider), api_key=api_key
    )
    return OperatorAgent(
        client,
        build_platforms(load_yaml_config(seed_path)) if seed_path else PlatformRegistry(),
        InMemoryConversationStore(),
        light_client=light_client,
        settings=settings,
    )


@lru_cache
def get_agent() -> OperatorAgent:
    """Get the process-wide agent, built on first use."""
    return build_agent(get_settings().seed_path)


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity from the X-User-Id header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()
