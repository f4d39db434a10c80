"""Shared test fixtures and configuration."""

from typing import Any, Callable

import pytest

from operator_agent.agent import OperatorAgent
from operator_agent.clients.base import BaseLLMClient
from operator_agent.config import Settings
from operator_agent.core.gateway import ConfirmationGateway, PendingActionStore
from operator_agent.core.resolver import EntityResolver
from operator_agent.platforms.base import PlatformRegistry
from operator_agent.platforms.memory import InMemoryPlatform
from operator_agent.storage.memory import InMemoryConversationStore
from operator_agent.tools.registry import build_catalogue
from operator_agent.types import (
    EntityDomain,
    FinishReason,
    MessageRole,
    OracleResponse,
    ToolCall,
    UnifiedMessage,
    UsageStats,
)

USER = "user-1"
OTHER_USER = "user-2"


class FakeOracle(BaseLLMClient):
    """Scripted oracle: replays queued responses and records every call."""

    def __init__(self):
        super().__init__()
        self.responses: list[OracleResponse | Exception] = []
        self.completions: list[str | Exception] = []
        self.calls: list[dict[str, Any]] = []
        self.prompts: list[str] = []
        self.on_generate: Callable[[int], None] | None = None
        self._next_id = 0

    def reply(self, text: str) -> "FakeOracle":
        self.responses.append(OracleResponse(
            message=UnifiedMessage(role=MessageRole.ASSISTANT, content=text),
            finish_reason=FinishReason.STOP,
            usage=UsageStats(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        ))
        return self

    def call_tools(self, *calls: tuple[str, dict[str, Any]], text: str | None = None) -> "FakeOracle":
        tool_calls = []
        for name, arguments in calls:
            self._next_id += 1
            tool_calls.append(ToolCall(id=f"call_{self._next_id}", name=name, arguments=arguments))
        self.responses.append(OracleResponse(
            message=UnifiedMessage(
                role=MessageRole.ASSISTANT, content=text, tool_calls=tuple(tool_calls)
            ),
            finish_reason=FinishReason.TOOL_USE,
        ))
        return self

    def fail(self, error: Exception) -> "FakeOracle":
        self.responses.append(error)
        return self

    async def generate(self, system, messages, tools=None) -> OracleResponse:
        self.calls.append({"system": system, "messages": list(messages), "tools": tools})
        if self.on_generate is not None:
            self.on_generate(len(self.calls))
        if not self.responses:
            raise AssertionError("Unexpected oracle call")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def complete(self, prompt: str, max_tokens: int = 300) -> str:
        self.prompts.append(prompt)
        if not self.completions:
            return "[]"
        completion = self.completions.pop(0)
        if isinstance(completion, Exception):
            raise completion
        return completion

    def _convert_messages(self, messages):
        return messages

    def _convert_tools(self, tools):
        return tools

    def _parse_response(self, response):
        return response


class FrozenClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def light_oracle():
    """Oracle for memory extraction and suggestions."""
    return FakeOracle()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def meta():
    """Meta platform with two adsets named Spring Launch (spend $500 and $200)."""
    platform = InMemoryPlatform("meta", (EntityDomain.META_ADSET, EntityDomain.META_CAMPAIGN))
    platform.add_entity(USER, EntityDomain.META_ADSET, "42", "Spring Launch", metric=500, daily_budget=100)
    platform.add_entity(USER, EntityDomain.META_ADSET, "57", "Spring Launch", metric=200, daily_budget=50)
    platform.add_entity(USER, EntityDomain.META_ADSET, "63", "Retargeting Q2", metric=340, daily_budget=60)
    platform.add_entity(USER, EntityDomain.META_CAMPAIGN, "9001", "Spring Sale", metric=1200)
    platform.add_entity(OTHER_USER, EntityDomain.META_ADSET, "77", "Summer Teaser", metric=90)
    return platform


@pytest.fixture
def checkout():
    platform = InMemoryPlatform("checkout", (EntityDomain.SUBSCRIPTION,))
    platform.add_entity(USER, EntityDomain.SUBSCRIPTION, "sub_881", "Pro Monthly - jane@example.com", metric=49)
    return platform


@pytest.fixture
def platforms(meta, checkout):
    return PlatformRegistry([meta, checkout])


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        suggestions_enabled=False,
        memory_extraction_interval=5,
        text_chunk_size=20,
    )


@pytest.fixture
def catalogue():
    return build_catalogue()


@pytest.fixture
def gateway(platforms, catalogue, clock):
    return ConfirmationGateway(
        PendingActionStore(),
        EntityResolver(platforms),
        catalogue,
        ttl_seconds=300,
        clock=clock,
    )


@pytest.fixture
def agent(oracle, light_oracle, platforms, store, settings, clock):
    return OperatorAgent(
        oracle,
        platforms,
        store,
        light_client=light_oracle,
        settings=settings,
        clock=clock,
    )
