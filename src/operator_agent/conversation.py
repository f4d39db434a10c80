"""Conversation manager.

Owns conversation identity and message ordering, and wraps the reasoning
loop for each turn. A turn persists the user message up front and the
assistant reply only when the turn completes; aborted and failed turns
leave no assistant message behind.
"""

from .clients.base import BaseLLMClient
from .core.gateway import ConfirmationGateway
from .core.loop import ReasoningLoop
from .core.memory_extractor import MemoryExtractor
from .core.prompt_builder import PromptBuilder
from .exceptions import ConversationNotFound, ValidationError
from .logging import get_logger
from .prompts import SUGGESTIONS_PROMPT
from .storage.base import ConversationStore
from .streaming import StreamChannel, ToolStatus
from .types import (
    Conversation,
    PendingAction,
    ToolOutcome,
    TurnResult,
    TurnState,
    UnifiedMessage,
)
from .utils.json_array import parse_string_array

logger = get_logger(__name__)

TITLE_LENGTH = 100
DEFAULT_TITLE = "New conversation"
MAX_SUGGESTIONS = 3


class ConversationManager:
    """Runs turns and manages conversations for all users.

    Args:
        store: Conversation and fact storage.
        loop: Reasoning loop driver.
        gateway: Confirmation gateway, for the bare confirm/cancel shortcut.
        memory: Long-term memory extractor.
        prompt_builder: Builds the system context.
        suggestions_client: Lightweight client for follow-up suggestions;
            defaults to the memory extractor's client.
        suggestions_enabled: Whether to emit follow-up suggestions.
    """

    def __init__(
        self,
        store: ConversationStore,
        loop: ReasoningLoop,
        gateway: ConfirmationGateway,
        memory: MemoryExtractor,
        prompt_builder: PromptBuilder | None = None,
        suggestions_client: BaseLLMClient | None = None,
        suggestions_enabled: bool = True,
    ):
        self.store = store
        self.loop = loop
        self.gateway = gateway
        self.memory = memory
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.suggestions_client = suggestions_client or memory.client
        self.suggestions_enabled = suggestions_enabled

    # ==================== turns ====================

    async def send_message(
        self,
        user_id: str,
        message: str,
        channel: StreamChannel,
        conversation_id: str | None = None,
    ) -> TurnResult:
        """Validate, persist and run one turn, streaming events to the channel.

        Raises:
            ValidationError: If the message is empty.
            ConversationNotFound: If conversation_id is not the user's.
        """
        conversation = await self.begin_turn(user_id, message, conversation_id)
        return await self.run_turn(conversation, message.strip(), channel)

    async def begin_turn(
        self,
        user_id: str,
        message: str,
        conversation_id: str | None = None,
    ) -> Conversation:
        """Validate the request, open the conversation and persist the user message.

        Nothing is written when validation fails.
        """
        text = (message or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty")

        if conversation_id:
            conversation = await self.store.get_conversation(conversation_id, user_id)
            if conversation is None:
                raise ConversationNotFound(conversation_id)
        else:
            conversation = await self.store.create_conversation(user_id, text[:TITLE_LENGTH])
            logger.info(f"Created conversation {conversation.id} for user {user_id}")

        await self.store.append_message(
            conversation.id, self.prompt_builder.build_user_message(text)
        )
        return conversation

    async def run_turn(self, conversation: Conversation, text: str, channel: StreamChannel) -> TurnResult:
        """Run a turn whose user message is already persisted.

        Emits exactly one terminal event (done or error) unless the channel
        was cancelled.
        """
        user_id = conversation.user_id
        persisted = 1
        try:
            result = await self._run(conversation, text, channel)

            if result.is_aborted:
                logger.info(f"Turn in {conversation.id} aborted by client")
                return result
            if result.state == TurnState.FAILED:
                channel.error(result.error or "Turn failed")
                return result

            if result.content:
                chart = result.charts[-1] if result.charts else None
                await self.store.append_message(
                    conversation.id,
                    self.prompt_builder.build_assistant_message(result.content, chart),
                )
                persisted += 1

            if self.suggestions_enabled and result.content and not channel.is_cancelled:
                suggestions = await self._suggest(result.content)
                if suggestions:
                    channel.suggestions(suggestions)

            channel.done(conversation.id)
            return result
        except Exception as e:
            logger.exception(f"Turn in {conversation.id} failed")
            channel.error("Internal error")
            return TurnResult(TurnState.FAILED, error=str(e))
        finally:
            self.memory.record(conversation.id, user_id, count=persisted)

    async def _run(self, conversation: Conversation, text: str, channel: StreamChannel) -> TurnResult:
        user_id = conversation.user_id
        settled = await self.gateway.resolve_by_intent(user_id, text)
        if settled is not None:
            return await self._stream_settled(settled, channel)

        facts = await self.memory.recall(user_id)
        system = self.prompt_builder.format_system_prompt(
            list(self.loop.dispatcher.catalogue),
            facts,
            pending=self.gateway.pending_for_user(user_id),
        )
        history = await self.store.fetch_messages(conversation.id)
        return await self.loop.run_turn(system, history, user_id, channel)

    async def _stream_settled(
        self,
        settled: list[tuple[PendingAction, ToolOutcome]],
        channel: StreamChannel,
    ) -> TurnResult:
        for action, outcome in settled:
            channel.tool_status(action.tool_name, ToolStatus.RUNNING)
            status = ToolStatus.ERROR if outcome.is_error else ToolStatus.DONE
            channel.tool_status(action.tool_name, status, outcome.summary)

        text = "\n".join(outcome.summary for _, outcome in settled)
        if not await self.loop.stream_text(text, channel):
            return TurnResult(TurnState.ABORTED)
        return TurnResult(TurnState.DONE, content=text)

    async def _suggest(self, response: str) -> list[str]:
        try:
            text = await self.suggestions_client.complete(
                SUGGESTIONS_PROMPT.format(response=response[:1000]), max_tokens=200
            )
        except Exception as e:
            logger.warning(f"Follow-up suggestions failed: {e}")
            return []
        return parse_string_array(text, limit=MAX_SUGGESTIONS)

    # ==================== conversation records ====================

    async def create_conversation(self, user_id: str, title: str | None = None) -> Conversation:
        return await self.store.create_conversation(user_id, (title or DEFAULT_TITLE)[:TITLE_LENGTH])

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        return await self.store.list_conversations(user_id)

    async def get_conversation(self, conversation_id: str, user_id: str) -> tuple[Conversation, list[UnifiedMessage]]:
        """Get a conversation with its messages, oldest first.

        Raises:
            ConversationNotFound: If it does not exist or is not the user's.
        """
        conversation = await self.store.get_conversation(conversation_id, user_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)
        return conversation, await self.store.fetch_messages(conversation_id)

    async def delete_conversation(self, conversation_id: str, user_id: str) -> None:
        """Delete a conversation and its messages.

        Raises:
            ConversationNotFound: If it does not exist or is not the user's.
        """
        if not await self.store.delete_conversation(conversation_id, user_id):
            raise ConversationNotFound(conversation_id)
        self.memory.forget(conversation_id)
