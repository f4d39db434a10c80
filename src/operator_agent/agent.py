"""Operator agent assembly.

The OperatorAgent wires the components of one deployment together: the
platform registry and conversation store it was given, the tool catalogue,
the resolver and confirmation gateway, the reasoning loop and the
conversation manager that fronts them.
"""

import time
from collections.abc import Callable

from .clients.base import BaseLLMClient
from .config import Settings, get_settings
from .conversation import ConversationManager
from .core import (
    ConfirmationGateway,
    EntityResolver,
    MemoryExtractor,
    PendingActionStore,
    PendingActionSweeper,
    PromptBuilder,
    ReasoningLoop,
    ToolDispatcher,
)
from .logging import get_logger
from .platforms.base import PlatformRegistry
from .storage.base import ConversationStore
from .streaming import StreamChannel
from .tools.base import BaseTool
from .tools.registry import build_catalogue
from .types import PendingAction, TurnResult

logger = get_logger(__name__)


class OperatorAgent:
    """Agent that lets an operator act on ad and checkout platforms by chat.

    A turn goes through the conversation manager, which runs the reasoning
    loop; each tool call passes through the dispatcher and, for write
    tools, the confirmation gateway. Nothing touches a platform until the
    user confirms.
    """

    def __init__(
        self,
        client: BaseLLMClient,
        platforms: PlatformRegistry,
        store: ConversationStore,
        light_client: BaseLLMClient | None = None,
        settings: Settings | None = None,
        tools: list[BaseTool] | None = None,
        clock: Callable[[], float] = time.time,
        system_prompt: str | None = None,
    ):
        """Initialize the agent.

        Args:
            client: Oracle client driving the reasoning loop
            platforms: Platform clients keyed by entity domain
            store: Conversation and fact storage
            light_client: Lightweight client for memory and suggestions
                (defaults to client)
            settings: Runtime settings (defaults to get_settings())
            tools: Tool set override (defaults to the full operator catalogue)
            clock: Epoch-seconds clock for pending action expiry
            system_prompt: System prompt template override
        """
        self.settings = settings or get_settings()
        self.client = client
        self.platforms = platforms
        self.store = store

        self.catalogue = build_catalogue(tools)
        self.resolver = EntityResolver(platforms)
        self.gateway = ConfirmationGateway(
            PendingActionStore(),
            self.resolver,
            self.catalogue,
            ttl_seconds=self.settings.pending_ttl_seconds,
            clock=clock,
        )
        self.dispatcher = ToolDispatcher(self.catalogue, self.gateway)
        self.loop = ReasoningLoop(
            client,
            self.dispatcher,
            max_tool_rounds=self.settings.max_tool_rounds,
            chunk_size=self.settings.text_chunk_size,
        )
        self.memory = MemoryExtractor(
            light_client or client,
            store,
            interval=self.settings.memory_extraction_interval,
            window=self.settings.memory_window,
            dedupe=self.settings.memory_dedupe,
        )
        prompt_builder = PromptBuilder(system_prompt) if system_prompt else PromptBuilder()
        self.conversations = ConversationManager(
            store,
            self.loop,
            self.gateway,
            self.memory,
            prompt_builder=prompt_builder,
            suggestions_enabled=self.settings.suggestions_enabled,
        )
        self.sweeper = PendingActionSweeper(self.gateway, self.settings.sweep_interval_seconds)

    async def send_message(
        self,
        user_id: str,
        message: str,
        channel: StreamChannel,
        conversation_id: str | None = None,
    ) -> TurnResult:
        """Run one turn; see ConversationManager.send_message."""
        return await self.conversations.send_message(user_id, message, channel, conversation_id)

    def pending_actions(self, user_id: str) -> list[PendingAction]:
        return self.gateway.pending_for_user(user_id)

    async def start(self) -> None:
        """Start background work (the pending action sweeper)."""
        self.sweeper.start()
        logger.info("Operator agent started")

    async def shutdown(self) -> None:
        """Stop background work and wait for in-flight memory extractions."""
        await self.sweeper.stop()
        await self.memory.drain()
        logger.info("Operator agent stopped")
